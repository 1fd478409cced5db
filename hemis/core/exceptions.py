"""
Domain exceptions
"""


class HemisError(Exception):
    """Base class for service errors"""


class CacheUnavailableError(HemisError):
    """Redis could not serve a call whose result the caller depends on"""


class TranslationNotFoundError(HemisError):
    """No system message with the given id or key"""


class ImmutableFieldError(HemisError):
    """Attempt to change message key or category of an existing message"""


class ResourceFileError(HemisError):
    """Properties file could not be parsed"""
