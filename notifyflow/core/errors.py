"""Exception types for NotifyFlow.

Only configuration-time problems are raised to callers. Failures while sending
are always captured in a SendResult instead.
"""

ERROR_SEPARATOR = "; "


class NotifyFlowError(Exception):
    """Base class for all NotifyFlow exceptions."""


class ConfigurationError(NotifyFlowError, ValueError):
    """Raised when the dispatch setup is unusable (e.g. no channels registered)."""


class ProviderError(NotifyFlowError):
    """Raised by a provider when the external service rejects a send.

    Attributes:
        provider_name: Name of the provider that failed.
    """

    def __init__(self, provider_name: str, message: str):
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class MessageValidationError(NotifyFlowError):
    """Raised when a message fails validation and the caller asked for an exception.

    Attributes:
        errors: Every validation problem found, in the order detected.
    """

    def __init__(self, errors: list[str] | str):
        self.errors = [errors] if isinstance(errors, str) else list(errors)
        super().__init__("Validation failed: " + ERROR_SEPARATOR.join(self.errors))


class TemplateNotFoundError(NotifyFlowError, LookupError):
    """Raised when rendering a template name that was never registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Template not found: {name}")
