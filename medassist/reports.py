import logging

from django.conf import settings

from healthdecode.exceptions import ExtractionError, NotFound, ValidationError

from .agents.report_analysis_graph import DocumentAnalysisService
from .extraction import OCR_IMAGE_TYPES, extract_text, validate_medical_content
from .models import MedicalReport
from .validation import generate_safe_file_name, validate_medical_report_file

logger = logging.getLogger(__name__)

# Below this many characters the file is treated as unreadable and no record is created
MIN_REPORT_TEXT_LENGTH = 10

REPORT_TYPES = {value for value, _ in MedicalReport.REPORT_TYPE_CHOICES}


class ReportService:
    def __init__(self, client, ocr_client=None):
        self.analysis = DocumentAnalysisService(client)
        self.ocr_client = ocr_client

    def upload(self, user, uploaded_file, report_type='other'):
        """
        Validates and extracts the file, records it as `processing` and runs
        the analysis before returning. Returns (report, warnings).
        """
        report_type = (report_type or 'other').strip().lower()
        if report_type not in REPORT_TYPES:
            raise ValidationError(f"Unknown report type '{report_type}'.")

        warnings = validate_medical_report_file(uploaded_file.name, uploaded_file.size, uploaded_file.content_type)
        data = uploaded_file.read()

        logger.info(f"REPORTS: extracting text from {uploaded_file.name} for user {user.pk}")
        extracted_text = extract_text(data, uploaded_file.content_type, uploaded_file.name,
                                      ocr_client=self.ocr_client)
        if not extracted_text or len(extracted_text.strip()) < MIN_REPORT_TEXT_LENGTH:
            raise ExtractionError("Could not extract meaningful text from the uploaded file. Please ensure the "
                                  "file contains readable text or try a different format.")

        metadata = {"warnings": warnings} if warnings else {}
        if (uploaded_file.content_type or "").lower() in OCR_IMAGE_TYPES:
            metadata["medical_content"] = validate_medical_content(extracted_text)

        report = MedicalReport.objects.create(
            user=user,
            file_name=generate_safe_file_name(uploaded_file.name),
            original_name=uploaded_file.name,
            file_type=uploaded_file.content_type,
            file_size=uploaded_file.size,
            report_type=report_type,
            extracted_text=extracted_text,
            analysis_status=MedicalReport.STATUS_PROCESSING,
            metadata=metadata,
        )
        logger.info(f"REPORTS: saved report {report.pk}, starting analysis")

        self.analysis.analyze(report)
        return report, warnings


def list_reports(user):
    return list(
        MedicalReport.objects.filter(user=user)
        .defer('extracted_text')
        .order_by('-uploaded_at', '-id')[:settings.REPORT_LIST_LIMIT]
    )


def get_report(user, report_id):
    report = MedicalReport.objects.filter(pk=report_id, user=user).first()
    if report is None:
        raise NotFound("Report not found")
    return report


def delete_report(user, report_id):
    deleted, _ = MedicalReport.objects.filter(pk=report_id, user=user).delete()
    if not deleted:
        raise NotFound("Report not found or access denied")
    logger.info(f"REPORTS: report {report_id} deleted for user {user.pk}")
