class GenDocsError(Exception):
    """Base class for every error raised by gendocs."""


class StorageError(GenDocsError):
    """Reading or writing the key-value store failed."""


class ValidationError(GenDocsError, ValueError):
    """User input is missing or invalid; nothing was changed."""


class GenerationError(GenDocsError):
    """The AI draft generator failed or answered outside the schema."""


class GenerationInProgress(GenerationError):
    """A line item generation is already running for this draft."""


class ConfigurationError(GenDocsError, RuntimeError):
    """Required configuration is missing; the app cannot start."""
