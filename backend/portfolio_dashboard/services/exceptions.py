"""Service layer exceptions.

These carry no HTTP knowledge; the routers map them to responses.

    ServiceError
    ├── HoldingNotFoundError
    ├── HoldingValidationError
    └── RemoteSyncError
"""


class ServiceError(Exception):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class HoldingNotFoundError(ServiceError):
    """No holding at the given position of an asset class collection."""

    def __init__(self, asset_class: str, index: int) -> None:
        self.asset_class = asset_class
        self.index = index
        super().__init__(f"No {asset_class} holding at index {index}")


class HoldingValidationError(ServiceError):
    """A record does not fit the asset class it is stored under."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class RemoteSyncError(ServiceError):
    """Uploading the portfolio to the remote store failed.

    ``status_code`` is the remote HTTP status when there was one.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)

    @property
    def unauthorized(self) -> bool:
        return self.status_code == 401
