"""Simulated delivery providers.

Each provider logs the request its real API would receive, with credentials
masked, and returns a success carrying an id in that provider's format. No
network traffic is produced. ``latency`` adds an ``asyncio.sleep`` per send to
mimic I/O.
"""

import asyncio
import json
import threading
from abc import ABC, abstractmethod
from typing import Any
from uuid import uuid4

from cachetools import TTLCache

from notifyflow.core.errors import ProviderError
from notifyflow.core.logging import MASKED_VALUE, get_logger, mask_token, truncate_for_log
from notifyflow.core.message import (
    ChatMessage,
    EmailMessage,
    Message,
    PushMessage,
    SmsMessage,
)
from notifyflow.core.result import SendResult

log = get_logger(__name__)

CONTENT_TYPE_HTML = "text/html"
CONTENT_TYPE_PLAIN = "text/plain"


def _require(value: str | None, error: str) -> str:
    if value is None or not value.strip():
        raise ValueError(error)
    return value


class SimulatedProvider(ABC):
    """Base class for simulated providers.

    Subclasses set ``name`` and implement ``_simulate`` to log the request and
    return the provider-specific message id.
    """

    name: str = "Simulated"

    def __init__(self, latency: float = 0.0) -> None:
        if latency < 0:
            raise ValueError(f"latency must be >= 0, got {latency}")
        self.latency = latency

    @abstractmethod
    def _simulate(self, message: Any) -> str: ...

    async def send(self, message: Message) -> SendResult:
        if self.latency:
            await asyncio.sleep(self.latency)
        try:
            message_id = self._simulate(message)
        except ProviderError:
            raise
        except Exception as e:
            log.error(f"[{self.name}] Failed to send to {message.recipient}: {e}")
            raise ProviderError(self.name, f"Failed to send: {e}") from e
        return SendResult.success(message_id)

    def _log(self, text: str, **fields: Any) -> None:
        log.info(f"[{self.name}] {text}", extra={"provider": self.name, **fields})


class SendGridProvider(SimulatedProvider):
    """Simulates the SendGrid v3 Mail Send API (``POST /v3/mail/send``)."""

    name = "SendGrid"

    def __init__(self, api_key: str, latency: float = 0.0) -> None:
        super().__init__(latency)
        self._api_key = _require(api_key, "SendGrid API key must not be null or blank")
        log.info(f"SendGrid provider initialized with API key {MASKED_VALUE}")

    def _simulate(self, message: EmailMessage) -> str:
        personalization: dict[str, Any] = {"to": [{"email": message.to}]}
        if message.cc:
            personalization["cc"] = [{"email": address} for address in message.cc]
        if message.bcc:
            personalization["bcc"] = [{"email": address} for address in message.bcc]
        body = {
            "personalizations": [personalization],
            "from": {"email": message.sender},
            "subject": message.subject,
            "content": [
                {
                    "type": CONTENT_TYPE_HTML if message.html else CONTENT_TYPE_PLAIN,
                    "value": truncate_for_log(message.body),
                }
            ],
        }
        self._log("Simulating POST /v3/mail/send")
        self._log(f"Authorization: Bearer {MASKED_VALUE}")
        self._log(f"Request body: {json.dumps(body)}")
        message_id = f"sg-{uuid4()}"
        self._log(f"Response: 202 Accepted, Message-ID: {message_id}")
        return message_id


class MailgunProvider(SimulatedProvider):
    """Simulates the Mailgun Messages API (``POST /v3/{domain}/messages``)."""

    name = "Mailgun"

    def __init__(self, api_key: str, domain: str, latency: float = 0.0) -> None:
        super().__init__(latency)
        self._api_key = _require(api_key, "Mailgun API key must not be null or blank")
        self.domain = _require(domain, "Mailgun domain must not be null or blank")
        log.info(f"Mailgun provider initialized for domain '{domain}' with API key {MASKED_VALUE}")

    def _simulate(self, message: EmailMessage) -> str:
        content_field = "html" if message.html else "text"
        self._log(f"Simulating POST /v3/{self.domain}/messages")
        self._log(f"Authorization: Basic api:{MASKED_VALUE}")
        self._log(
            f"Form data: from={message.sender}, to={message.to}, subject={message.subject}, "
            f"{content_field}={truncate_for_log(message.body)}"
        )
        if message.cc:
            self._log(f"Form data: cc={','.join(message.cc)}")
        if message.bcc:
            self._log(f"Form data: bcc={','.join(message.bcc)}")
        message_id = f"mg-{uuid4()}"
        self._log(f"Response: 200 OK, id=<{message_id}.{self.domain}>")
        return message_id


class TwilioProvider(SimulatedProvider):
    """Simulates the Twilio Messages API."""

    name = "Twilio"
    SID_LENGTH = 32

    def __init__(self, account_sid: str, auth_token: str, latency: float = 0.0) -> None:
        super().__init__(latency)
        self._account_sid = _require(account_sid, "Twilio Account SID must not be null or blank")
        self._auth_token = _require(auth_token, "Twilio Auth Token must not be null or blank")
        log.info(
            f"Twilio provider initialized with Account SID {MASKED_VALUE} "
            f"and Auth Token {MASKED_VALUE}"
        )

    def _simulate(self, message: SmsMessage) -> str:
        self._log(f"Simulating POST /2010-04-01/Accounts/{MASKED_VALUE}/Messages.json")
        self._log(f"Authorization: Basic {MASKED_VALUE}")
        self._log(
            f"Form data: From={message.sender}, To={message.phone_number}, "
            f"Body={truncate_for_log(message.text)}"
        )
        sid = "SM" + uuid4().hex[: self.SID_LENGTH]
        self._log(f"Response: 201 Created, SID: {sid}")
        return sid


class VonageProvider(SimulatedProvider):
    """Simulates the Vonage SMS API (``POST /sms/json``)."""

    name = "Vonage"

    def __init__(self, api_key: str, api_secret: str, latency: float = 0.0) -> None:
        super().__init__(latency)
        self._api_key = _require(api_key, "Vonage API key must not be null or blank")
        self._api_secret = _require(api_secret, "Vonage API secret must not be null or blank")
        log.info(
            f"Vonage provider initialized with API key {MASKED_VALUE} "
            f"and API secret {MASKED_VALUE}"
        )

    def _simulate(self, message: SmsMessage) -> str:
        body = {
            "api_key": MASKED_VALUE,
            "api_secret": MASKED_VALUE,
            "from": message.sender,
            "to": message.phone_number,
            "text": truncate_for_log(message.text),
        }
        self._log("Simulating POST /sms/json")
        self._log(f"Request body: {json.dumps(body)}")
        message_id = f"vonage-{uuid4()}"
        self._log(f"Response: 200 OK, message-id: {message_id}")
        return message_id


class FcmProvider(SimulatedProvider):
    """Simulates the Firebase Cloud Messaging HTTP v1 API."""

    name = "FCM"

    def __init__(self, server_key: str, latency: float = 0.0) -> None:
        super().__init__(latency)
        self._server_key = _require(server_key, "FCM server key must not be null or blank")
        log.info(f"FCM provider initialized with server key {MASKED_VALUE}")

    def _simulate(self, message: PushMessage) -> str:
        payload: dict[str, Any] = {
            "token": mask_token(message.device_token),
            "notification": {"title": message.title, "body": truncate_for_log(message.body)},
        }
        if message.data:
            payload["data"] = dict(message.data)
        self._log("Simulating POST /v1/projects/-/messages:send")
        self._log(f"Authorization: Bearer {MASKED_VALUE}")
        self._log(f"Request body: {json.dumps({'message': payload})}")
        message_id = f"projects/-/messages/{uuid4()}"
        self._log(f"Response: 200 OK, name: {message_id}")
        return message_id


class ApnsProvider(SimulatedProvider):
    """Simulates the Apple Push Notification service HTTP/2 API."""

    name = "APNs"

    def __init__(self, team_id: str, key_id: str, bundle_id: str, latency: float = 0.0) -> None:
        super().__init__(latency)
        self._team_id = _require(team_id, "APNs Team ID must not be null or blank")
        self._key_id = _require(key_id, "APNs Key ID must not be null or blank")
        self.bundle_id = _require(bundle_id, "APNs Bundle ID must not be null or blank")
        log.info(
            f"APNs provider initialized for bundle '{bundle_id}' with Team ID {MASKED_VALUE} "
            f"and Key ID {MASKED_VALUE}"
        )

    def _simulate(self, message: PushMessage) -> str:
        aps: dict[str, Any] = {
            "alert": {"title": message.title, "body": truncate_for_log(message.body)}
        }
        if message.badge is not None:
            aps["badge"] = message.badge
        if message.sound is not None:
            aps["sound"] = message.sound
        self._log(f"Simulating POST /3/device/{mask_token(message.device_token)}")
        self._log(f"Headers: apns-topic={self.bundle_id}, authorization=bearer {MASKED_VALUE}")
        self._log(f"Payload: {json.dumps({'aps': aps})}")
        apns_id = f"apns-{uuid4()}"
        self._log(f"Response: 200 OK, apns-id: {apns_id}")
        return apns_id


class SlackWebhookProvider(SimulatedProvider):
    """Simulates a Slack incoming webhook. The webhook URL is a credential."""

    name = "Slack"

    def __init__(self, webhook_url: str, latency: float = 0.0) -> None:
        super().__init__(latency)
        self._webhook_url = _require(webhook_url, "Slack webhook URL must not be null or blank")
        log.info(f"Slack webhook provider initialized with webhook URL {MASKED_VALUE}")

    def _simulate(self, message: ChatMessage) -> str:
        payload: dict[str, Any] = {
            "text": truncate_for_log(message.text),
            "channel": message.channel,
        }
        if message.username is not None:
            payload["username"] = message.username
        if message.icon_emoji is not None:
            payload["icon_emoji"] = message.icon_emoji
        self._log(f"Simulating POST to webhook URL {MASKED_VALUE}")
        self._log(f"Payload: {json.dumps(payload)}")
        message_id = f"slack-{uuid4()}"
        self._log(f"Response: 200 OK, id: {message_id}")
        return message_id


class FlakyProvider:
    """Wraps a provider and fails the first ``failures`` sends per recipient.

    Attempt counts live in a TTL cache so tracking state cannot grow without
    bound. A recipient's counter is dropped once a send goes through.

    Args:
        inner: Provider used once the injected failures are spent.
        failures: Number of ProviderErrors to raise per recipient.
        ttl: Seconds an attempt counter is kept.
        max_tracked: Maximum number of recipients tracked at once.
    """

    def __init__(
        self,
        inner: SimulatedProvider,
        failures: int = 1,
        ttl: float = 3600.0,
        max_tracked: int = 10_000,
    ) -> None:
        if failures < 0:
            raise ValueError(f"failures must be >= 0, got {failures}")
        self.inner = inner
        self.name = inner.name
        self.failures = failures
        self._attempt_counts: TTLCache[str, int] = TTLCache(maxsize=max_tracked, ttl=ttl)
        self._lock = threading.Lock()

    def attempts(self, recipient: str) -> int:
        """Attempts recorded for ``recipient`` since its last success."""
        with self._lock:
            return self._attempt_counts.get(recipient, 0)

    async def send(self, message: Message) -> SendResult:
        recipient = message.recipient
        with self._lock:
            attempt = self._attempt_counts.get(recipient, 0) + 1
            self._attempt_counts[recipient] = attempt

        if attempt <= self.failures:
            log.warning(
                f"[{self.name}] Simulated transient failure for {recipient} (attempt {attempt})",
                extra={"provider": self.name, "recipient": recipient, "attempt": attempt},
            )
            raise ProviderError(
                self.name, f"Connection failed for {recipient} (attempt {attempt})"
            )

        result = await self.inner.send(message)
        with self._lock:
            self._attempt_counts.pop(recipient, None)
        return result
