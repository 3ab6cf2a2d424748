"""Channel handlers, validators, and simulated providers."""

from notifyflow.channels.base import Channel, Provider, Validator, deliver
from notifyflow.channels.providers import (
    ApnsProvider,
    FcmProvider,
    FlakyProvider,
    MailgunProvider,
    SendGridProvider,
    SimulatedProvider,
    SlackWebhookProvider,
    TwilioProvider,
    VonageProvider,
)
from notifyflow.channels.validators import (
    VALIDATORS,
    ensure_valid,
    validate_chat,
    validate_email,
    validate_push,
    validate_sms,
)

__all__ = [
    "Channel",
    "Provider",
    "Validator",
    "deliver",
    "SimulatedProvider",
    "SendGridProvider",
    "MailgunProvider",
    "TwilioProvider",
    "VonageProvider",
    "FcmProvider",
    "ApnsProvider",
    "SlackWebhookProvider",
    "FlakyProvider",
    "VALIDATORS",
    "ensure_valid",
    "validate_email",
    "validate_sms",
    "validate_push",
    "validate_chat",
]
