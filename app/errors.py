"""Error taxonomy shared by services and routes."""


class AppError(Exception):
    """Base exception for all storefront errors."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(AppError):
    """Missing or malformed input, unavailable product, amount mismatch."""

    status_code = 400


class NotFoundError(AppError):
    """Unknown order, product or basket item reference."""

    status_code = 404


class InternalError(AppError):
    """Unexpected persistence or network failure."""

    status_code = 500
