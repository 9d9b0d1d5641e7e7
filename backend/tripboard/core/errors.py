"""Domain errors raised by the service layer.

Routers and the application-level exception handler translate these into
HTTP responses; services never raise ``HTTPException`` themselves.
"""

from fastapi import status


class TripBoardError(Exception):
    """Base class for all service-level failures."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message = "Internal server error"

    def __init__(self, message: str = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class TripNotFoundError(TripBoardError):
    status_code = status.HTTP_404_NOT_FOUND
    public_message = "Trip not found"


class ImageNotFoundError(TripBoardError):
    status_code = status.HTTP_404_NOT_FOUND
    public_message = "Image not found"


class VideoNotFoundError(TripBoardError):
    status_code = status.HTTP_404_NOT_FOUND
    public_message = "Video not found"


class InvalidTransitionError(TripBoardError):
    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Invalid trip status"


class InvalidUploadError(TripBoardError):
    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Invalid upload"


class StorageError(TripBoardError):
    status_code = status.HTTP_502_BAD_GATEWAY
    public_message = "Storage operation failed"


class DuplicationError(TripBoardError):
    public_message = "Failed to duplicate trip"


class TripIdAllocationError(TripBoardError):
    status_code = status.HTTP_409_CONFLICT
    public_message = "Could not allocate a trip number, please retry"


class InvalidTripDataError(TripBoardError):
    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Invalid trip data"
