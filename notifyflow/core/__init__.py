"""Core components for NotifyFlow dispatch.

This module exposes the primary types of the dispatch, retry, async and event
layer:

Model:
    Message: Union of EmailMessage, SmsMessage, PushMessage, ChatMessage.
    MessageKind: Closed set of message kinds used to pick a channel handler.
    SendResult: Immutable outcome of one send attempt.
    ErrorCategory: VALIDATION, CONFIGURATION, PROVIDER, SYSTEM.
    LifecycleEvent: Immutable QUEUED/SENDING/SENT/FAILED/RETRYING record.

Dispatch:
    ChannelHandler: Protocol for per-kind delivery handlers.
    Dispatcher: Resolves a message's kind to its handler and sends once.
    RetryPolicy: Attempt count and exponential backoff.
    RetryingSender: Repeats dispatches under a RetryPolicy.
    AsyncSender: Non-blocking single sends and fail-soft batches.
    EventPublisher: Fault-isolated fan-out of lifecycle events.

Errors:
    NotifyFlowError, ConfigurationError, ProviderError,
    MessageValidationError, TemplateNotFoundError.
"""

from notifyflow.core.concurrent import AsyncSender
from notifyflow.core.dispatcher import ChannelHandler, Dispatcher
from notifyflow.core.errors import (
    ConfigurationError,
    MessageValidationError,
    NotifyFlowError,
    ProviderError,
    TemplateNotFoundError,
)
from notifyflow.core.event import LifecycleEvent, LifecycleEventType
from notifyflow.core.message import (
    ChatMessage,
    EmailMessage,
    Message,
    MessageKind,
    PushMessage,
    SmsMessage,
    describe_message,
    parse_message,
)
from notifyflow.core.publisher import EventListener, EventPublisher
from notifyflow.core.result import ErrorCategory, SendResult
from notifyflow.core.retry import RetryingSender, RetryPolicy

__all__ = [
    "Message",
    "MessageKind",
    "EmailMessage",
    "SmsMessage",
    "PushMessage",
    "ChatMessage",
    "describe_message",
    "parse_message",
    "SendResult",
    "ErrorCategory",
    "LifecycleEvent",
    "LifecycleEventType",
    "ChannelHandler",
    "Dispatcher",
    "RetryPolicy",
    "RetryingSender",
    "AsyncSender",
    "EventListener",
    "EventPublisher",
    "NotifyFlowError",
    "ConfigurationError",
    "ProviderError",
    "MessageValidationError",
    "TemplateNotFoundError",
]
