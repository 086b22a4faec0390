"""Error taxonomy for the sync engine."""


class PetSyncError(Exception):
    """Base class for all engine errors."""


class NotFound(PetSyncError):
    """A pet or user record does not exist."""


class IneligibleStage(PetSyncError):
    """Retirement attempted before the pet reached the terminal stage."""


class FeedUnavailable(PetSyncError):
    """The remote activity feed could not be read this cycle."""


class PersistenceFailure(PetSyncError):
    """The repository could not read or commit a record."""
