"""Lifecycle event model for NotifyFlow."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from notifyflow.core.message import MessageKind
from notifyflow.core.result import SendResult


class LifecycleEventType(str, Enum):
    """State transitions of a single send attempt."""

    QUEUED = "QUEUED"
    SENDING = "SENDING"
    SENT = "SENT"
    FAILED = "FAILED"
    RETRYING = "RETRYING"


_RESULT_EVENTS = frozenset({LifecycleEventType.SENT, LifecycleEventType.FAILED})


class LifecycleEvent(BaseModel):
    """Immutable record of a lifecycle transition.

    Events are observability-only: nothing in the dispatch path reads them back
    for control flow.

    Attributes:
        event_type: The transition that occurred.
        kind: Kind of the message being sent.
        recipient: Opaque recipient string of the message.
        attempt: 1-indexed attempt number (0 for QUEUED, before any attempt).
        result: The send outcome, only for SENT and FAILED.
        timestamp: UTC time the event was created.
    """

    event_type: LifecycleEventType
    kind: MessageKind
    recipient: str
    attempt: int = Field(ge=0)
    result: SendResult | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @model_validator(mode="after")
    def _check_result_presence(self) -> "LifecycleEvent":
        if self.event_type in _RESULT_EVENTS:
            if self.result is None:
                raise ValueError(f"{self.event_type.value} events require a result")
        elif self.result is not None:
            raise ValueError(f"{self.event_type.value} events must not carry a result")
        return self

    def describe(self) -> str:
        """Return a human-readable summary of the event."""
        kind = self.kind.value
        if self.event_type is LifecycleEventType.QUEUED:
            return f"Message queued for {kind} to {self.recipient}"
        if self.event_type is LifecycleEventType.SENDING:
            return f"Sending {kind} message to {self.recipient} (attempt {self.attempt})"
        if self.event_type is LifecycleEventType.SENT:
            return f"Successfully sent {kind} message to {self.recipient}"
        if self.event_type is LifecycleEventType.FAILED:
            return f"Failed to send {kind} message to {self.recipient} (attempt {self.attempt})"
        return f"Retrying {kind} message to {self.recipient} (attempt {self.attempt})"

    @classmethod
    def queued(cls, kind: MessageKind, recipient: str) -> "LifecycleEvent":
        return cls(event_type=LifecycleEventType.QUEUED, kind=kind, recipient=recipient, attempt=0)

    @classmethod
    def sending(cls, kind: MessageKind, recipient: str, attempt: int = 1) -> "LifecycleEvent":
        return cls(
            event_type=LifecycleEventType.SENDING, kind=kind, recipient=recipient, attempt=attempt
        )

    @classmethod
    def sent(
        cls, kind: MessageKind, recipient: str, result: SendResult, attempt: int = 1
    ) -> "LifecycleEvent":
        return cls(
            event_type=LifecycleEventType.SENT,
            kind=kind,
            recipient=recipient,
            result=result,
            attempt=attempt,
        )

    @classmethod
    def failed(
        cls, kind: MessageKind, recipient: str, result: SendResult, attempt: int = 1
    ) -> "LifecycleEvent":
        return cls(
            event_type=LifecycleEventType.FAILED,
            kind=kind,
            recipient=recipient,
            result=result,
            attempt=attempt,
        )

    @classmethod
    def retrying(cls, kind: MessageKind, recipient: str, attempt: int) -> "LifecycleEvent":
        return cls(
            event_type=LifecycleEventType.RETRYING, kind=kind, recipient=recipient, attempt=attempt
        )
