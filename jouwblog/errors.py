"""
Domain errors raised by the services and translated to HTTP responses by the
route handlers.
"""


class BlogError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BlogError):
    status_code = 400


class NotFoundError(BlogError):
    status_code = 404


class DuplicateError(BlogError):
    status_code = 409
