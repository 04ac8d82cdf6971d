"""
API error types.

Services raise these; the error handlers registered in app.py turn them into
JSON responses carrying ``status_code``.  Anything else that escapes a view is
a 500 and rolls the session back.
"""


class APIError(Exception):
    """Base error with an HTTP status code."""
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'status': 'error', 'message': self.message}


class BadRequestError(APIError):
    status_code = 400


class NotFoundError(APIError):
    status_code = 404


class ConflictError(APIError):
    status_code = 409


class InvalidRatingUpdate(BadRequestError):
    """A rating update was requested without the previous rating."""
