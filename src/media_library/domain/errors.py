"""Exception hierarchy for media library operations."""


class MediaLibraryError(Exception):
    """Base class for every error surfaced by the media library."""


class ValidationError(MediaLibraryError):
    """Input rejected before any network call was made."""


class NotFoundError(MediaLibraryError):
    """A referenced record does not exist for the current user."""


class ImageNotFoundError(NotFoundError):
    """Library image is missing."""


class AvatarNotFoundError(NotFoundError):
    """Avatar is missing."""


class CategoryNotFoundError(NotFoundError):
    """Category is neither a record nor used by any image."""


class CategoryConflictError(MediaLibraryError):
    """Another category already uses the requested name."""


class AssetUploadError(MediaLibraryError):
    """Uploading a binary asset failed."""


class RecordWriteError(MediaLibraryError):
    """Writing to the record store failed, including batch commits."""


class GenerationError(MediaLibraryError):
    """An AI generation or suggestion call failed."""


class WorkflowStateError(MediaLibraryError):
    """A bulk workflow transition is not valid in the current state."""


class AssetFetchError(MediaLibraryError):
    """Downloading a stored asset by URL failed."""


class SessionNotFoundError(NotFoundError):
    """Bulk workflow session expired or belongs to another user."""


class RecordReadError(MediaLibraryError):
    """Querying the record store failed."""
