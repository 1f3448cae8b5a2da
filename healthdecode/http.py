import json

from .exceptions import ValidationError


def parse_json_body(request):
    """Decodes a JSON object request body; an empty body is treated as {}."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise ValidationError("Request body must be valid JSON.")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data
