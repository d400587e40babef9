"""Exception hierarchy for GenMatch.

Plausibility problems in a record are not exceptions; they are reported as
structured issues on a ValidationResult. Only missing required input is fatal.
"""


class GenMatchError(Exception):
    """Base exception for GenMatch errors."""
    pass


class ConfigurationError(GenMatchError):
    """Raised when required input is missing and no fallback is possible."""
    pass


class ProviderError(GenMatchError):
    """Raised by a search provider on network, auth or response failure."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class ProviderAuthError(ProviderError):
    """Raised when a search provider rejects our credentials."""
    pass


class ProviderTimeoutError(ProviderError):
    """Raised when a search provider does not answer in time."""
    pass


class GenerativeResponseError(GenMatchError):
    """Raised when model output cannot be parsed or fails structural validation."""
    pass
