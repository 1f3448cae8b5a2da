# Text extraction for uploaded medical documents: plain text, OCR for images,
# PyMuPDF for PDFs.
import logging
import os
from typing import Dict, Optional

import fitz  # PyMuPDF
import requests
from django.conf import settings

from healthdecode.exceptions import ExtractionError

from .prompts import WORD_DOCUMENT_PLACEHOLDER

logger = logging.getLogger(__name__)

MIN_EXTRACTED_CHARS = 20

OCR_IMAGE_TYPES = {
    'image/jpeg',
    'image/jpg',
    'image/png',
    'image/gif',
    'image/bmp',
    'image/tiff',
    'image/webp',
}


class OCRClient:
    """Client for an OCR.space compatible ``parse/image`` endpoint."""

    def __init__(self, api_key: Optional[str] = None, api_url: Optional[str] = None,
                 timeout: Optional[int] = None, language: str = 'eng'):
        self.api_key = api_key if api_key is not None else settings.OCR_API_KEY
        self.api_url = api_url or settings.OCR_API_URL
        self.timeout = timeout or settings.OCR_TIMEOUT_SECONDS
        self.language = language

    def extract_text(self, data: bytes, mime_type: str, file_name: str) -> str:
        if not self.api_key:
            logger.error("[OCR] OCR_API_KEY is not configured")
            raise ExtractionError("Image text extraction is currently unavailable. Please upload a PDF or text file.")

        logger.info(f"[OCR] Submitting {file_name} ({len(data)} bytes) for OCR")
        try:
            response = requests.post(
                self.api_url,
                headers={"apikey": self.api_key},
                files={"file": (file_name, data, mime_type)},
                data={"language": self.language, "isOverlayRequired": "false", "scale": "true"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"[OCR] OCR request failed: {e}")
            raise ExtractionError("Failed to extract text from image: the OCR service could not be reached. "
                                  "Please try again.")
        except ValueError as e:
            logger.error(f"[OCR] OCR response was not JSON: {e}")
            raise ExtractionError("Failed to extract text from image: unexpected OCR response.")

        if payload.get("IsErroredOnProcessing"):
            logger.warning(f"[OCR] Provider reported an error: {payload.get('ErrorMessage')}")
            raise ExtractionError("Failed to extract text from image: the image could not be processed.")

        results = payload.get("ParsedResults") or []
        if not results:
            raise ExtractionError("Failed to extract text from image: no text was found.")

        text = "\n".join((result.get("ParsedText") or "").strip() for result in results)
        if len(text.strip()) < MIN_EXTRACTED_CHARS:
            raise ExtractionError("Very little text extracted from image. "
                                  "Please ensure the image is clear and contains readable text.")
        return text


MEDICAL_KEYWORDS = (
    'patient', 'diagnosis', 'treatment', 'medication', 'doctor', 'hospital',
    'blood', 'pressure', 'heart', 'rate', 'temperature', 'weight', 'height',
    'lab', 'test', 'result', 'normal', 'abnormal', 'range', 'level',
    'mg/dl', 'mmol/l', 'bpm', 'mmhg', 'units', 'report', 'findings',
)
MIN_MEDICAL_CONFIDENCE = 20


def validate_medical_content(text: str) -> Dict:
    """
    Rough check that OCR output reads like a medical document: the share of
    MEDICAL_KEYWORDS found in it, as a 0-100 confidence. Advisory only.
    """
    lowered = text.lower()
    found = sum(1 for keyword in MEDICAL_KEYWORDS if keyword in lowered)
    confidence = round(min(found / len(MEDICAL_KEYWORDS) * 100, 100), 1)
    is_valid = confidence > MIN_MEDICAL_CONFIDENCE

    suggestions = []
    if not is_valid:
        suggestions.append('The extracted text does not appear to contain medical information.')
        suggestions.append('Please ensure the image is clear and contains medical report content.')
    if len(text) < 50:
        suggestions.append('The extracted text is very short. Consider uploading a higher quality image.')
    if confidence < 50:
        suggestions.append('The medical content confidence is low. You may want to manually review the extracted text.')

    if not is_valid:
        logger.warning(f"[OCR] Extracted text may not contain medical information ({confidence}% keyword match)")
    return {"is_valid": is_valid, "confidence": confidence, "suggestions": suggestions}


def extract_text_from_pdf(data: bytes) -> str:
    try:
        with fitz.open(stream=data, filetype="pdf") as doc:
            page_count = doc.page_count
            text = "\n".join(page.get_text() for page in doc)
    except Exception as e:
        logger.error(f"PDF text extraction failed: {e}")
        raise ExtractionError("PDF text extraction failed. The PDF may be corrupted or password-protected.")

    logger.info(f"Extracted {len(text)} characters from {page_count} PDF page(s)")
    if len(text.strip()) < MIN_EXTRACTED_CHARS:
        raise ExtractionError("The PDF contains no readable text layer (it may be a scanned image). "
                              "Please upload a text-based PDF.")
    return text


def _is_word_document(mime_type: str, extension: str) -> bool:
    return 'word' in mime_type or extension in ('.doc', '.docx')


def extract_text(data: bytes, mime_type: str, file_name: str, ocr_client: Optional[OCRClient] = None) -> str:
    """
    Converts an uploaded file's bytes to plain text based on its declared type.
    Raises ExtractionError when no usable text can be produced.
    """
    mime_type = (mime_type or '').lower()
    extension = os.path.splitext(file_name or '')[1].lower()
    logger.info(f"Extracting text from {file_name} ({mime_type})")

    if 'text' in mime_type or extension == '.txt':
        try:
            return data.decode('utf-8')
        except UnicodeDecodeError:
            raise ExtractionError("The text file is not valid UTF-8.")

    if mime_type in OCR_IMAGE_TYPES:
        return (ocr_client or OCRClient()).extract_text(data, mime_type, file_name)

    if mime_type == 'application/pdf':
        return extract_text_from_pdf(data)

    if _is_word_document(mime_type, extension):
        logger.info("Word documents are not parsed yet, returning placeholder text")
        return WORD_DOCUMENT_PLACEHOLDER

    raise ExtractionError(f"Unsupported file type: {mime_type or 'unknown'}")
