"""Pytest configuration, Hypothesis profiles and shared test doubles."""

import asyncio
import logging

import pytest
from hypothesis import settings

from notifyflow.core.event import LifecycleEvent
from notifyflow.core.logging import DISPATCH_LOGGER_NAME
from notifyflow.core.message import (
    ChatMessage,
    EmailMessage,
    PushMessage,
    SmsMessage,
)
from notifyflow.core.publisher import EventPublisher
from notifyflow.core.result import SendResult

# Register Hypothesis profiles
settings.register_profile("ci", max_examples=100)
settings.register_profile("dev", max_examples=20)

# Load dev profile by default, CI can override via --hypothesis-profile=ci
settings.load_profile("dev")


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio as the async backend for pytest-asyncio."""
    return "asyncio"


class LogCapture(logging.Handler):
    """Custom handler to capture log records for testing."""

    def __init__(self):
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    def messages(self) -> list[str]:
        return [r.getMessage() for r in self.records]

    def clear(self) -> None:
        self.records.clear()


class EventRecorder:
    """Listener that keeps every event it receives."""

    def __init__(self):
        self.events: list[LifecycleEvent] = []

    def on_event(self, event: LifecycleEvent) -> None:
        self.events.append(event)

    @property
    def types(self) -> list[str]:
        return [e.event_type.value for e in self.events]


class ScriptedHandler:
    """Async channel handler returning queued results, then successes.

    Entries in ``script`` may be SendResults or exceptions to raise.
    """

    def __init__(self, script=(), available: bool = True, delay: float = 0.0):
        self.script = list(script)
        self.available = available
        self.delay = delay
        self.calls: list = []

    def is_available(self) -> bool:
        return self.available

    async def send(self, message) -> SendResult:
        self.calls.append(message)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.script:
            outcome = self.script.pop(0)
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        return SendResult.success(f"id-{len(self.calls)}")


class SyncHandler:
    """Blocking channel handler, run by the Dispatcher in an executor."""

    def __init__(self, result: SendResult | None = None):
        self.result = result or SendResult.success("sync-1")
        self.calls: list = []

    def is_available(self) -> bool:
        return True

    def send(self, message) -> SendResult:
        self.calls.append(message)
        return self.result


def _capture(logger_name: str):
    logger = logging.getLogger(logger_name)
    handler = LogCapture()
    handler.setLevel(logging.DEBUG)

    original_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        yield handler
    finally:
        logger.removeHandler(handler)
        logger.setLevel(original_level)


@pytest.fixture
def dispatch_logs():
    """Capture records from the notifyflow.dispatch logger."""
    yield from _capture(DISPATCH_LOGGER_NAME)


@pytest.fixture
def channel_logs():
    """Capture records from the channel pipeline logger."""
    yield from _capture("notifyflow.channels.base")


@pytest.fixture
def publisher() -> EventPublisher:
    return EventPublisher()


@pytest.fixture
def recorder(publisher: EventPublisher) -> EventRecorder:
    """EventRecorder already subscribed to ``publisher``."""
    rec = EventRecorder()
    publisher.subscribe(rec)
    return rec


@pytest.fixture
def email() -> EmailMessage:
    return EmailMessage.simple("noreply@example.com", "alice@example.com", "Hi", "Hello Alice")


@pytest.fixture
def sms() -> SmsMessage:
    return SmsMessage(sender="NotifyFlow", phone_number="+15551234567", text="Your code is 1234")


@pytest.fixture
def push() -> PushMessage:
    return PushMessage.simple("device_token_0123456789", "Ping", "You have mail")


@pytest.fixture
def chat() -> ChatMessage:
    return ChatMessage.simple("#alerts", "Deploy finished")


@pytest.fixture
def scripted_handler():
    """The ScriptedHandler class, for building async test handlers."""
    return ScriptedHandler


@pytest.fixture
def sync_handler():
    """The SyncHandler class, for building blocking test handlers."""
    return SyncHandler


@pytest.fixture
def event_recorder():
    """The EventRecorder class, for listeners on publishers other than ``publisher``."""
    return EventRecorder
