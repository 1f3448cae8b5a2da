"""
Error taxonomy shared by the accounts and medassist apps.

Every error carries the HTTP status it maps to and whether the caller
should retry. ``ApiErrorMiddleware`` renders them as JSON.
"""


class HealthDecodeError(Exception):
    status_code = 500
    retryable = False
    default_message = "An unexpected error occurred."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthError(HealthDecodeError):
    status_code = 401
    default_message = "Unauthorized"


class ValidationError(HealthDecodeError):
    status_code = 400
    default_message = "Invalid request."


class ExtractionError(HealthDecodeError):
    status_code = 422
    default_message = "Could not extract text from the uploaded file."


class AIServiceError(HealthDecodeError):
    status_code = 503
    retryable = True
    default_message = "The AI service is temporarily unavailable. Please try again."


class NotFound(HealthDecodeError):
    status_code = 404
    default_message = "Not found"
