"""Field-level validation rules for each message kind.

Each validator returns every problem found, in order, so callers can report
them all at once. An empty list means the message is valid.
"""

import re

from notifyflow.core.errors import MessageValidationError
from notifyflow.core.logging import get_logger, mask_token
from notifyflow.core.message import (
    ChatMessage,
    EmailMessage,
    Message,
    MessageKind,
    PushMessage,
    SmsMessage,
)

log = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
E164_PATTERN = re.compile(r"^\+[1-9]\d{7,14}$")
MAX_SMS_LENGTH = 1600
MIN_DEVICE_TOKEN_LENGTH = 10


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _is_email(value: str | None) -> bool:
    return value is not None and EMAIL_PATTERN.match(value) is not None


def validate_email(message: EmailMessage) -> list[str]:
    errors: list[str] = []

    if _blank(message.to):
        errors.append("Recipient (to) is required")
    elif not _is_email(message.to):
        errors.append(f"Recipient (to) has invalid email format: {message.to}")

    if _blank(message.sender):
        errors.append("Sender (from) is required")
    elif not _is_email(message.sender):
        errors.append(f"Sender (from) has invalid email format: {message.sender}")

    if _blank(message.subject):
        errors.append("Subject is required")
    if _blank(message.body):
        errors.append("Body is required")

    for address in message.cc:
        if not _is_email(address):
            errors.append(f"CC address has invalid email format: {address}")
    for address in message.bcc:
        if not _is_email(address):
            errors.append(f"BCC address has invalid email format: {address}")

    if errors:
        log.debug(f"Email validation failed with {len(errors)} error(s)", extra={"kind": "email"})
    return errors


def validate_sms(message: SmsMessage) -> list[str]:
    """Check E.164 phone number, sender, and a non-empty text of at most 1600 chars."""
    errors: list[str] = []

    if _blank(message.phone_number):
        errors.append("Phone number is required")
    elif not E164_PATTERN.match(message.phone_number):
        errors.append(
            f"Phone number must be in E.164 format (e.g., +1234567890): {message.phone_number}"
        )

    if _blank(message.sender):
        errors.append("Sender (from) is required")

    if _blank(message.text):
        errors.append("Message is required")
    elif len(message.text) > MAX_SMS_LENGTH:
        errors.append(
            f"Message exceeds maximum length of {MAX_SMS_LENGTH} characters "
            f"(actual: {len(message.text)})"
        )

    if errors:
        log.debug(f"SMS validation failed with {len(errors)} error(s)", extra={"kind": "sms"})
    return errors


def validate_push(message: PushMessage) -> list[str]:
    errors: list[str] = []

    if _blank(message.device_token):
        errors.append("Device token is required")
    elif len(message.device_token) < MIN_DEVICE_TOKEN_LENGTH:
        errors.append(f"Device token must be at least {MIN_DEVICE_TOKEN_LENGTH} characters")

    if _blank(message.title):
        errors.append("Title is required")
    if _blank(message.body):
        errors.append("Body is required")

    if errors:
        log.debug(
            f"Push validation failed with {len(errors)} error(s) for device "
            f"{mask_token(message.device_token)}",
            extra={"kind": "push"},
        )
    return errors


def validate_chat(message: ChatMessage) -> list[str]:
    errors: list[str] = []
    if _blank(message.channel):
        errors.append("Channel is required")
    if _blank(message.text):
        errors.append("Message is required")
    return errors


VALIDATORS = {
    MessageKind.EMAIL: validate_email,
    MessageKind.SMS: validate_sms,
    MessageKind.PUSH: validate_push,
    MessageKind.CHAT: validate_chat,
}


def ensure_valid(message: Message) -> None:
    """Raise MessageValidationError if ``message`` breaks its kind's rules."""
    errors = VALIDATORS[MessageKind(message.kind)](message)
    if errors:
        raise MessageValidationError(errors)
