"""Send outcome model for NotifyFlow."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

PROVIDER_PREFIX = "PROVIDER:"


class ErrorCategory(str, Enum):
    """Classification of a failed send.

    VALIDATION: Input malformed. Never retried.
    CONFIGURATION: No handler, handler unavailable. Never retried.
    PROVIDER: The delivery backend reported a failure. Retryable.
    SYSTEM: Unexpected fault anywhere in the send path. Retryable.
    """

    VALIDATION = "VALIDATION"
    CONFIGURATION = "CONFIGURATION"
    PROVIDER = "PROVIDER"
    SYSTEM = "SYSTEM"

    @property
    def is_retryable(self) -> bool:
        return self in (ErrorCategory.PROVIDER, ErrorCategory.SYSTEM)


class SendResult(BaseModel):
    """Immutable outcome of one send attempt.

    A successful result carries only ``message_id`` (the backend correlation id,
    which may still be absent). A failed result always has an
    ``error_category``; ``provider`` names the backend for PROVIDER failures.

    Attributes:
        successful: Whether the message was accepted by the backend.
        message_id: Backend-assigned id, only on success.
        error_category: Failure class, only on failure.
        provider: Provider name, only for PROVIDER failures.
        error_message: Human readable failure description.
        cause: Original exception, when one was captured.
        timestamp: UTC time the result was created.
    """

    successful: bool
    message_id: str | None = None
    error_category: ErrorCategory | None = None
    provider: str | None = None
    error_message: str | None = None
    cause: BaseException | None = Field(default=None, exclude=True, repr=False)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {
        "extra": "forbid",
        "frozen": True,
        "arbitrary_types_allowed": True,
    }

    @model_validator(mode="after")
    def _check_outcome_fields(self) -> "SendResult":
        if self.successful:
            if any(
                value is not None
                for value in (self.error_category, self.provider, self.error_message, self.cause)
            ):
                raise ValueError("a successful result must not carry error fields")
        else:
            if self.error_category is None:
                raise ValueError("a failed result requires an error_category")
            if self.message_id is not None:
                raise ValueError("a failed result must not carry a message_id")
            if self.provider is not None and self.error_category is not ErrorCategory.PROVIDER:
                raise ValueError("provider is only valid for PROVIDER failures")
        return self

    @property
    def error_source(self) -> str | None:
        """Error category as a flat string, e.g. ``"PROVIDER:Twilio"``."""
        if self.error_category is None:
            return None
        if self.error_category is ErrorCategory.PROVIDER:
            return f"{PROVIDER_PREFIX}{self.provider or ''}"
        return self.error_category.value

    @property
    def is_retryable(self) -> bool:
        return self.error_category is not None and self.error_category.is_retryable

    @classmethod
    def success(cls, message_id: str | None = None) -> "SendResult":
        return cls(successful=True, message_id=message_id)

    @classmethod
    def validation_error(cls, message: str) -> "SendResult":
        return cls(successful=False, error_category=ErrorCategory.VALIDATION, error_message=message)

    @classmethod
    def configuration_error(cls, message: str) -> "SendResult":
        return cls(
            successful=False, error_category=ErrorCategory.CONFIGURATION, error_message=message
        )

    @classmethod
    def provider_error(
        cls, provider: str, message: str, cause: BaseException | None = None
    ) -> "SendResult":
        return cls(
            successful=False,
            error_category=ErrorCategory.PROVIDER,
            provider=provider,
            error_message=message,
            cause=cause,
        )

    @classmethod
    def system_error(cls, message: str, cause: BaseException | None = None) -> "SendResult":
        return cls(
            successful=False,
            error_category=ErrorCategory.SYSTEM,
            error_message=message,
            cause=cause,
        )
