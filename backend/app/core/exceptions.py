class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class InvalidArgumentError(AppError):
    """Raised for malformed version numbers or cell coordinates."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": str(resource_id)},
        )

class DuplicateRoomError(AppError):
    """Raised when a room name is already present in the grid."""
    def __init__(self, room: str, days: list[str]):
        super().__init__(
            f"Room {room} already exists",
            status_code=409,
            details={"room": room, "days": days},
        )

class PersistenceError(AppError):
    """Raised when the timetable store cannot complete a read or write."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=503, details=details)

class VersionConflictError(AppError):
    """Raised when an in-place write targets a version that changed after it was read."""
    def __init__(self, version: int, message: str, details: dict = None):
        super().__init__(message, status_code=409, details={"version": version, **(details or {})})
