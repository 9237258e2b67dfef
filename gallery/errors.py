"""
Domain errors raised by the gallery services.

Each error carries the HTTP status the API layer answers with, so routers
never translate them by hand.
"""


class GalleryError(Exception):
    """Base class for all gallery errors"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(GalleryError):
    """Referenced image, person or link does not exist"""
    status_code = 404


class ValidationError(GalleryError):
    """Malformed input: names, dates, bounding boxes, rotation degrees, file types"""
    status_code = 400


class ConflictError(GalleryError):
    """Operation would duplicate an existing record"""
    status_code = 409
