class ParkingError(Exception):
    """Base class for errors the API turns into a JSON response."""
    status_code = 400

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    def to_dict(self):
        body = {"message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(ParkingError):
    """Malformed input or a violated constraint, caught before any write."""


class BusinessRuleViolation(ParkingError):
    """A lifecycle precondition was not met (space taken, request closed, ...)."""


class StorageError(ParkingError):
    status_code = 500
