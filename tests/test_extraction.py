import fitz
import pytest
import requests

from healthdecode.exceptions import ExtractionError
from medassist import extraction
from medassist.extraction import OCRClient, extract_text, extract_text_from_pdf, validate_medical_content
from medassist.prompts import WORD_DOCUMENT_PLACEHOLDER


class FakeOCRResponse:
    def __init__(self, payload, status_ok=True):
        self.payload = payload
        self.status_ok = status_ok

    def raise_for_status(self):
        if not self.status_ok:
            raise requests.exceptions.HTTPError("500 Server Error")

    def json(self):
        return self.payload


def make_pdf(text=None):
    doc = fitz.open()
    page = doc.new_page()
    if text:
        page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def test_plain_text_is_returned_verbatim():
    body = "Hemoglobin: 14.2 g/dL\nGlucose: 92 mg/dL\n"
    assert extract_text(body.encode('utf-8'), 'text/plain', 'labs.txt') == body


def test_txt_extension_wins_over_unknown_mime_type():
    assert extract_text(b"Cholesterol 180 mg/dL", 'application/octet-stream', 'labs.TXT') == "Cholesterol 180 mg/dL"


def test_invalid_utf8_text_is_rejected():
    with pytest.raises(ExtractionError):
        extract_text(b"\xff\xfe\xfa", 'text/plain', 'broken.txt')


def test_image_is_sent_to_ocr(monkeypatch):
    captured = {}

    def fake_post(url, headers=None, files=None, data=None, timeout=None):
        captured.update(url=url, headers=headers, files=files, data=data, timeout=timeout)
        return FakeOCRResponse({
            "IsErroredOnProcessing": False,
            "ParsedResults": [{"ParsedText": "Patient: Ana Silva\nHemoglobin 14.2 g/dL"}],
        })

    monkeypatch.setattr(extraction.requests, 'post', fake_post)
    client = OCRClient(api_key='abc', api_url='https://ocr.test/parse/image', timeout=5)

    text = extract_text(b"\x89PNG fake", 'image/png', 'scan.png', ocr_client=client)

    assert "Hemoglobin 14.2 g/dL" in text
    assert captured['url'] == 'https://ocr.test/parse/image'
    assert captured['headers'] == {"apikey": 'abc'}
    assert captured['data']['language'] == 'eng'
    assert captured['files']['file'][0] == 'scan.png'
    assert captured['timeout'] == 5


def test_ocr_processing_error_is_extraction_error(monkeypatch):
    monkeypatch.setattr(extraction.requests, 'post', lambda *a, **kw: FakeOCRResponse({
        "IsErroredOnProcessing": True, "ErrorMessage": ["Unable to recognize the file type"],
    }))
    with pytest.raises(ExtractionError):
        OCRClient(api_key='abc').extract_text(b"data", 'image/jpeg', 'scan.jpg')


def test_ocr_with_too_little_text_is_rejected(monkeypatch):
    monkeypatch.setattr(extraction.requests, 'post', lambda *a, **kw: FakeOCRResponse({
        "IsErroredOnProcessing": False, "ParsedResults": [{"ParsedText": "blurry"}],
    }))
    with pytest.raises(ExtractionError) as exc_info:
        OCRClient(api_key='abc').extract_text(b"data", 'image/jpeg', 'scan.jpg')
    assert "Very little text" in exc_info.value.message


def test_ocr_network_failure_is_extraction_error(monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.exceptions.ConnectionError("connection refused")

    monkeypatch.setattr(extraction.requests, 'post', fake_post)
    with pytest.raises(ExtractionError):
        OCRClient(api_key='abc').extract_text(b"data", 'image/png', 'scan.png')


def test_ocr_without_api_key_is_unavailable(settings):
    settings.OCR_API_KEY = None
    with pytest.raises(ExtractionError):
        OCRClient().extract_text(b"data", 'image/png', 'scan.png')


def test_pdf_text_layer_is_extracted():
    data = make_pdf("Total cholesterol 182 mg/dL within reference range")
    text = extract_text(data, 'application/pdf', 'report.pdf')
    assert "Total cholesterol 182 mg/dL" in text


def test_pdf_without_text_layer_is_rejected():
    with pytest.raises(ExtractionError):
        extract_text_from_pdf(make_pdf())


def test_corrupt_pdf_is_rejected():
    with pytest.raises(ExtractionError):
        extract_text(b"this is not a pdf", 'application/pdf', 'report.pdf')


@pytest.mark.parametrize("mime_type, file_name", [
    ('application/msword', 'notes.doc'),
    ('application/vnd.openxmlformats-officedocument.wordprocessingml.document', 'notes.docx'),
])
def test_word_documents_return_placeholder(mime_type, file_name):
    assert extract_text(b"PK\x03\x04", mime_type, file_name) == WORD_DOCUMENT_PLACEHOLDER


def test_unsupported_type_names_the_type():
    with pytest.raises(ExtractionError) as exc_info:
        extract_text(b"\x00\x01", 'application/zip', 'archive.zip')
    assert exc_info.value.message == "Unsupported file type: application/zip"


def test_medical_text_passes_content_check():
    check = validate_medical_content(
        "Patient lab report. Blood pressure 120/80 mmHg, heart rate 72 bpm. "
        "Glucose 92 mg/dL, within normal range. Test result findings: no abnormal level."
    )
    assert check["is_valid"] is True
    assert check["confidence"] > 50
    assert check["suggestions"] == []


def test_non_medical_text_is_flagged_but_not_rejected():
    check = validate_medical_content("Grocery list: apples, bread, coffee and a new umbrella")
    assert check["is_valid"] is False
    assert check["confidence"] == 0
    assert 'The extracted text does not appear to contain medical information.' in check["suggestions"]
