class RepostError(RuntimeError):
    """Base class for everything the mirror raises on purpose."""


class ConfigError(RepostError):
    """Raised when required settings are missing or invalid."""


class FetchError(RepostError):
    """Raised when a remote resource cannot be retrieved."""


class TranscodeError(RepostError):
    """Raised when media cannot be decoded or re-encoded."""


class SizeUnsatisfiable(RepostError):
    """Raised when media cannot be brought under the platform size limit."""


class ContentRejected(RepostError):
    """Raised when post text is empty or over the platform limit."""

    def __init__(self, reason, message=""):
        super().__init__(message or reason)
        self.reason = reason


class PublishError(RepostError):
    """Raised when the destination rejects a request or is unreachable."""


class LedgerIOError(RepostError):
    """Raised when the posted-ids ledger cannot be read or written."""
