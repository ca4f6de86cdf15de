"""Error taxonomy shared by services and routers.

Services raise these; the handlers registered in ``quickblog.main`` render them
as ``{"success": false, "message": ...}`` with the matching status code.
"""


class AppError(Exception):
    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str = None, status_code: int = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Bad request"


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Authentication failed"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Access forbidden"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"


class ServerError(AppError):
    status_code = 500
    default_message = "Internal Server Error"
