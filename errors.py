"""
Error kinds raised by the stores. The HTTP layer turns each one into a
flat ``{"success": false, "message": ...}`` body with the matching status.
"""


class StorefrontError(Exception):
    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(StorefrontError):
    status_code = 404
    default_message = "Resource not found"


class ValidationError(StorefrontError):
    status_code = 400
    default_message = "Invalid input"


class InvalidIndex(StorefrontError):
    status_code = 400
    default_message = "Invalid image index"


class InvalidTransition(StorefrontError):
    status_code = 400
    default_message = "Order cannot be moved to that status"


class PersistenceError(StorefrontError):
    status_code = 500
    default_message = "Failed to save changes"


class Unauthorized(StorefrontError):
    status_code = 401
    default_message = "Could not validate credentials"


class InvalidCredentials(Unauthorized):
    default_message = "Invalid Email or Password"


class Forbidden(StorefrontError):
    status_code = 403
    default_message = "Not allowed to access this resource"
