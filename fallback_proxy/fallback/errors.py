class FallbackError(Exception):
    """Base class for model fallback registry failures."""


class MalformedFallbackError(FallbackError):
    """A mutation payload could not be parsed or validated."""


class ConfigUnavailableError(FallbackError):
    """The fallback registry has not been initialized."""


class FallbackNotFoundError(FallbackError):
    """A delete selector matched no rule."""


class FallbackPersistenceError(FallbackError):
    """The new rule set could not be written to durable storage."""
