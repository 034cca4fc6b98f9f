from .custom import BookingError, ConflictError, NotFoundError, TransientInfraError, ValidationError

__all__ = [
    "BookingError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "TransientInfraError",
]
