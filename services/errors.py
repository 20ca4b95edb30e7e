"""Error taxonomy shared by services and routes.

Every error carries the HTTP status it maps to; main.py renders them as
``{"success": false, "message": ...}``.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    status_code = 400


class ConflictError(AppError):
    status_code = 400


class AuthError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class TokenExpiredError(ForbiddenError):
    pass


class TokenInvalidError(ForbiddenError):
    pass


class NotFoundError(AppError):
    status_code = 404


class OTPError(AppError):
    status_code = 400


class PersistenceError(AppError):
    status_code = 500
