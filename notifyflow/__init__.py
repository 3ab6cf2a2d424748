"""NotifyFlow - Async message dispatch with retries and lifecycle events."""

from notifyflow.channels import (
    ApnsProvider,
    Channel,
    FcmProvider,
    FlakyProvider,
    MailgunProvider,
    SendGridProvider,
    SlackWebhookProvider,
    TwilioProvider,
    VonageProvider,
)
from notifyflow.core import (
    AsyncSender,
    ChannelHandler,
    ChatMessage,
    ConfigurationError,
    Dispatcher,
    EmailMessage,
    ErrorCategory,
    EventListener,
    EventPublisher,
    LifecycleEvent,
    LifecycleEventType,
    Message,
    MessageKind,
    MessageValidationError,
    NotifyFlowError,
    ProviderError,
    PushMessage,
    RetryingSender,
    RetryPolicy,
    SendResult,
    SmsMessage,
    TemplateNotFoundError,
    parse_message,
)
from notifyflow.flow import NotifyFlow, NotifyFlowBuilder
from notifyflow.templates import Template, TemplateRegistry

__version__ = "0.1.0"

__all__ = [
    # Facade
    "NotifyFlow",
    "NotifyFlowBuilder",
    # Messages
    "Message",
    "MessageKind",
    "EmailMessage",
    "SmsMessage",
    "PushMessage",
    "ChatMessage",
    "parse_message",
    # Results and events
    "SendResult",
    "ErrorCategory",
    "LifecycleEvent",
    "LifecycleEventType",
    # Dispatch
    "ChannelHandler",
    "Dispatcher",
    "RetryPolicy",
    "RetryingSender",
    "AsyncSender",
    "EventListener",
    "EventPublisher",
    # Channels
    "Channel",
    "SendGridProvider",
    "MailgunProvider",
    "TwilioProvider",
    "VonageProvider",
    "FcmProvider",
    "ApnsProvider",
    "SlackWebhookProvider",
    "FlakyProvider",
    # Templates
    "Template",
    "TemplateRegistry",
    # Errors
    "NotifyFlowError",
    "ConfigurationError",
    "ProviderError",
    "MessageValidationError",
    "TemplateNotFoundError",
    # Meta
    "__version__",
]
