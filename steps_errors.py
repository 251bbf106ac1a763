class TrackerError(Exception):
    """Base class for every error shown to the user as a message."""


class ValidationError(TrackerError):
    """A required field is missing or malformed."""


class DuplicateEntry(TrackerError):
    """The participant already has a submission for that date."""


class NotFound(TrackerError):
    """No submission with the given id."""


class InvalidValue(TrackerError):
    """A step edit that is negative or not a whole number."""


class StorageError(TrackerError):
    """The persisted snapshot could not be read."""
