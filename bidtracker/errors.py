"""
errors.py — Domain exception taxonomy

Services raise these; main.py maps them to structured JSON responses
(schemas/errors.ErrorResponse) so routers never build error bodies.

Business Rules:
- ValidationError → 400 (malformed input, bad identifier)
- NotFoundError → 404
- ForbiddenError → 403, always the same message (role vs ownership is not revealed)
- ConflictError → 400 (store constraint, message says what blocks the change)
- DuplicateError → 409 (unique name/email already taken)
- MailDeliveryError → 502 (the SMTP server refused or was unreachable)

Called by: services/*, dependencies.py, main.py
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = 400


class NotFoundError(AppError):
    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class ForbiddenError(AppError):
    status_code = 403

    def __init__(self):
        super().__init__("Forbidden")


class ConflictError(AppError):
    status_code = 400


class DuplicateError(AppError):
    status_code = 409


class MailDeliveryError(AppError):
    status_code = 502
