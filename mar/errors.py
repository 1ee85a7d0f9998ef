class MarError(Exception):
    """Base class for MAR-specific errors."""


class InputNotFound(MarError, FileNotFoundError):
    pass


# Layout/bounds
class TruncatedArchive(MarError):
    pass


class ContentBoundsError(TruncatedArchive):
    """An entry's content range runs past the end of the archive."""


class ArchiveTooLarge(MarError):
    pass


# Integrity
class MagicMismatch(MarError):
    pass


class ChecksumMismatch(MarError):
    pass


# Names
class NameTooLong(MarError):
    pass


class NameEncodingError(MarError):
    pass


class DuplicatePathError(MarError):
    pass


class UnsafePathError(MarError):
    pass
