# File validation utilities for medical report uploads

import re
import time
from typing import List, Optional

from django.conf import settings

from healthdecode.exceptions import ValidationError

ALLOWED_FILE_TYPES = {
    'application/pdf': {'extension': '.pdf', 'category': 'document'},
    'image/jpeg': {'extension': '.jpg', 'category': 'image'},
    'image/jpg': {'extension': '.jpg', 'category': 'image'},
    'image/png': {'extension': '.png', 'category': 'image'},
    'image/gif': {'extension': '.gif', 'category': 'image'},
    'text/plain': {'extension': '.txt', 'category': 'text'},
    'application/msword': {'extension': '.doc', 'category': 'document'},
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document': {
        'extension': '.docx',
        'category': 'document',
    },
}

MAX_FILE_NAME_LENGTH = 255

UNSAFE_NAME_CHARS = re.compile(r'[/\\\x00-\x1f]')
SPECIAL_NAME_CHARS = re.compile(r'[<>:"|?*]')


def format_file_size(size: int) -> str:
    if size == 0:
        return '0 Bytes'
    for unit in ('Bytes', 'KB', 'MB'):
        if size < 1024:
            return f"{round(size, 2):g} {unit}"
        size /= 1024
    return f"{round(size, 2):g} GB"


def validate_medical_report_file(file_name: str, size: int, content_type: Optional[str]) -> List[str]:
    """
    Checks an upload against the allow-list and limits. Raises ValidationError
    with the reason, otherwise returns a (possibly empty) list of warnings.
    """
    max_size = settings.REPORT_MAX_FILE_SIZE
    content_type = (content_type or '').lower()

    if size > max_size:
        raise ValidationError(f"File size ({format_file_size(size)}) exceeds the maximum limit of "
                              f"{format_file_size(max_size)}")
    if size == 0:
        raise ValidationError("The uploaded file is empty.")
    if content_type not in ALLOWED_FILE_TYPES:
        raise ValidationError(f'File type "{content_type or "unknown"}" is not supported. '
                              "Please upload PDF, image, or document files.")
    if not file_name:
        raise ValidationError("The uploaded file has no name.")
    if len(file_name) > MAX_FILE_NAME_LENGTH:
        raise ValidationError(f"File name is too long. Maximum {MAX_FILE_NAME_LENGTH} characters allowed.")
    if UNSAFE_NAME_CHARS.search(file_name):
        raise ValidationError("File name contains path separators or control characters.")

    warnings = []
    if SPECIAL_NAME_CHARS.search(file_name):
        warnings.append('File name contains special characters that may cause issues.')
    if size < 1024:
        warnings.append('File is very small and may not contain meaningful content.')
    elif size > 5 * 1024 * 1024:
        warnings.append('Large file may take longer to process.')
    if ALLOWED_FILE_TYPES[content_type]['category'] == 'image' and size > 2 * 1024 * 1024:
        warnings.append('Large image files may have reduced OCR accuracy.')
    return warnings


def generate_safe_file_name(original_name: str, timestamp: Optional[int] = None) -> str:
    ts = timestamp or int(time.time() * 1000)
    safe_name = re.sub(r'[<>:"/\\|?*\x00-\x1f]', '_', original_name)
    safe_name = re.sub(r'\s+', '_', safe_name).lower()
    return f"{ts}_{safe_name}"
