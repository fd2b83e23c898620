"""Custom exceptions for the FloraPOS application."""


class PosError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class BusinessLogicError(PosError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class ValidationError(BusinessLogicError):
    """Raised by the validation pass before any pricing or stock computation."""
    def __init__(self, errors, message="Validation failed"):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__(message, status_code=422, payload={'errors': self.errors})

    def __str__(self):
        return f"{self.message}: {'; '.join(self.errors)}"


class NotFoundError(PosError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class InsufficientStockError(BusinessLogicError):
    """Raised when an operation fails due to lack of stock."""
    def __init__(self, name, required, available):
        self.name = name
        self.required = required
        self.available = available
        message = f"Insufficient stock for {name}: {required} required, {available} available"
        super().__init__(message, status_code=409)
