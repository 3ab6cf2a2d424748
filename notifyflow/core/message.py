"""Message model for NotifyFlow.

A message is one of a closed set of kinds (email, SMS, push, chat). Each kind is
an immutable pydantic model carrying a literal ``kind`` discriminator, so the
``Message`` union can be parsed from plain data and matched exhaustively.

Models only describe shape. Content rules (address formats, lengths, required
text) are checked by the channel validators at send time, so an invalid message
can still be constructed and produces a VALIDATION result rather than an
exception.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from notifyflow.core.logging import mask_token

_MODEL_CONFIG = {
    "extra": "forbid",
    "frozen": True,
}


class MessageKind(str, Enum):
    """Discriminator selecting which channel handler processes a message."""

    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"
    CHAT = "chat"

    def __str__(self) -> str:
        return self.value


class EmailMessage(BaseModel):
    """Email with sender, primary recipient, optional CC/BCC lists."""

    kind: Literal[MessageKind.EMAIL] = MessageKind.EMAIL
    sender: str
    to: str
    subject: str
    body: str
    html: bool = False
    cc: tuple[str, ...] = ()
    bcc: tuple[str, ...] = ()

    model_config = _MODEL_CONFIG

    @property
    def recipient(self) -> str:
        return self.to

    @classmethod
    def simple(cls, sender: str, to: str, subject: str, body: str) -> "EmailMessage":
        """Plain-text email with no CC/BCC."""
        return cls(sender=sender, to=to, subject=subject, body=body)

    @classmethod
    def html_body(cls, sender: str, to: str, subject: str, body: str) -> "EmailMessage":
        """HTML email with no CC/BCC."""
        return cls(sender=sender, to=to, subject=subject, body=body, html=True)


class SmsMessage(BaseModel):
    """SMS text. ``phone_number`` is expected in E.164 format (+1234567890)."""

    kind: Literal[MessageKind.SMS] = MessageKind.SMS
    sender: str
    phone_number: str
    text: str

    model_config = _MODEL_CONFIG

    @property
    def recipient(self) -> str:
        return self.phone_number


class PushMessage(BaseModel):
    """Mobile push notification addressed to a device token."""

    kind: Literal[MessageKind.PUSH] = MessageKind.PUSH
    device_token: str
    title: str
    body: str
    data: dict[str, str] = Field(default_factory=dict)
    badge: int | None = None
    sound: str | None = None

    model_config = _MODEL_CONFIG

    @property
    def recipient(self) -> str:
        return self.device_token

    @classmethod
    def simple(cls, device_token: str, title: str, body: str) -> "PushMessage":
        return cls(device_token=device_token, title=title, body=body)

    @classmethod
    def with_data(
        cls, device_token: str, title: str, body: str, data: dict[str, str]
    ) -> "PushMessage":
        return cls(device_token=device_token, title=title, body=body, data=data)


class ChatMessage(BaseModel):
    """Chat message posted to a channel (Slack-style incoming webhook)."""

    kind: Literal[MessageKind.CHAT] = MessageKind.CHAT
    channel: str
    text: str
    username: str | None = None
    icon_emoji: str | None = None

    model_config = _MODEL_CONFIG

    @property
    def recipient(self) -> str:
        return self.channel

    @classmethod
    def simple(cls, channel: str, text: str) -> "ChatMessage":
        return cls(channel=channel, text=text)


Message = Annotated[
    Union[EmailMessage, SmsMessage, PushMessage, ChatMessage],
    Field(discriminator="kind"),
]

_message_adapter: TypeAdapter[Message] = TypeAdapter(Message)


def parse_message(data: dict[str, Any]) -> Message:
    """Build the matching message variant from plain data using its ``kind`` key.

    Raises:
        pydantic.ValidationError: If ``kind`` is missing/unknown or fields don't fit.
    """
    return _message_adapter.validate_python(data)


def describe_message(message: Message) -> str:
    """Return a short, log-safe description of a message."""
    if isinstance(message, EmailMessage):
        return f"email to '{message.to}' [subject: {message.subject}]"
    if isinstance(message, SmsMessage):
        return f"SMS to '{message.phone_number}'"
    if isinstance(message, PushMessage):
        return f"push to device '{mask_token(message.device_token)}' [title: {message.title}]"
    if isinstance(message, ChatMessage):
        return f"chat message to '{message.channel}'"
    return f"{message.kind} message to '{message.recipient}'"
