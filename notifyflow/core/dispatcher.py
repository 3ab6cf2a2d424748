"""Dispatcher: the single authoritative send path for one message.

The Dispatcher resolves a message's kind to exactly one registered channel
handler and runs it once:

    resolve handler -> check availability -> SENDING -> handler.send -> SENT/FAILED

It never lets a handler fault escape; every outcome is a SendResult. Early
short-circuits (no message, no handler, handler unavailable) publish no events,
so SENDING always means a handler was actually engaged.
"""

import asyncio
import functools
import inspect
from collections.abc import Awaitable, Mapping
from concurrent.futures import Executor
from types import MappingProxyType
from typing import Protocol, runtime_checkable

from notifyflow.core.errors import ConfigurationError
from notifyflow.core.event import LifecycleEvent
from notifyflow.core.logging import configure_dispatch_logger
from notifyflow.core.message import Message, MessageKind, describe_message
from notifyflow.core.publisher import EventPublisher
from notifyflow.core.result import SendResult

DEFAULT_HANDLER_TIMEOUT = 30.0

MESSAGE_NONE = "Message must not be None"
NO_CHANNEL_CONFIGURED = "No channel configured for type: "
CHANNEL_NOT_AVAILABLE = "Channel {} is not available"
UNEXPECTED_ERROR_PREFIX = "Unexpected error: "
AT_LEAST_ONE_CHANNEL = "At least one notification channel must be configured"


@runtime_checkable
class ChannelHandler(Protocol):
    """Pluggable delivery collaborator for one message kind.

    ``send`` may be a plain function or a coroutine function and must be safe
    to call concurrently. ``is_available`` is a side-effect-free query.
    """

    def is_available(self) -> bool: ...

    def send(self, message: Message) -> SendResult | Awaitable[SendResult]: ...


class Dispatcher:
    """Routes messages to channel handlers by kind."""

    def __init__(
        self,
        channels: Mapping[MessageKind | str, ChannelHandler],
        publisher: EventPublisher,
        executor: Executor | None = None,
        handler_timeout: float | None = DEFAULT_HANDLER_TIMEOUT,
    ) -> None:
        if publisher is None:
            raise ConfigurationError("publisher must not be None")
        if not channels:
            raise ConfigurationError(AT_LEAST_ONE_CHANNEL)
        if handler_timeout is not None and handler_timeout <= 0:
            raise ConfigurationError(f"handler_timeout must be positive, got {handler_timeout}")

        resolved: dict[MessageKind, ChannelHandler] = {}
        for key, handler in channels.items():
            try:
                kind = MessageKind(key)
            except ValueError:
                raise ConfigurationError(f"Unknown message kind: {key!r}") from None
            self._validate_handler(kind, handler)
            resolved[kind] = handler

        self._channels: Mapping[MessageKind, ChannelHandler] = MappingProxyType(resolved)
        self.publisher = publisher
        self.executor = executor
        self.handler_timeout = handler_timeout
        self._log = configure_dispatch_logger()

    @staticmethod
    def _validate_handler(kind: MessageKind, handler: object) -> None:
        for method in ("send", "is_available"):
            if not callable(getattr(handler, method, None)):
                raise TypeError(
                    f"Handler for {kind.value} must define a callable {method}(), "
                    f"got {type(handler).__name__}"
                )

    @property
    def kinds(self) -> frozenset[MessageKind]:
        """Kinds with a registered handler."""
        return frozenset(self._channels)

    def is_channel_available(self, kind: MessageKind | str) -> bool:
        """Return True if a handler is registered for ``kind`` and reports itself available."""
        try:
            handler = self._channels.get(MessageKind(kind))
        except ValueError:
            return False
        return handler is not None and bool(handler.is_available())

    async def _invoke_handler(self, handler: ChannelHandler, message: Message) -> SendResult:
        """Run the handler without blocking the loop and validate its return type."""
        if inspect.iscoroutinefunction(handler.send):
            result = await asyncio.wait_for(handler.send(message), timeout=self.handler_timeout)
        else:
            loop = asyncio.get_running_loop()
            call = loop.run_in_executor(self.executor, functools.partial(handler.send, message))
            result = await asyncio.wait_for(call, timeout=self.handler_timeout)
            if inspect.isawaitable(result):
                result = await asyncio.wait_for(result, timeout=self.handler_timeout)

        if not isinstance(result, SendResult):
            raise TypeError(
                f"Handler {type(handler).__name__} must return SendResult, "
                f"got {type(result).__name__}"
            )
        return result

    async def dispatch(self, message: Message | None, attempt: int = 1) -> SendResult:
        """Send ``message`` once through its channel handler.

        Args:
            message: The message to send.
            attempt: Attempt number reported on lifecycle events (1 outside retries).

        Returns:
            The handler's result, or a failure describing why no send happened.
        """
        if message is None:
            self._log.warning("Attempted to dispatch None message")
            return SendResult.validation_error(MESSAGE_NONE)

        try:
            kind = MessageKind(message.kind)
            recipient = str(message.recipient)
        except (AttributeError, ValueError) as e:
            self._log.warning(f"Attempted to dispatch unsupported message: {e}")
            return SendResult.validation_error(f"Unsupported message: {type(message).__name__}")
        extra = {"kind": kind.value, "recipient": recipient, "attempt": attempt}

        handler = self._channels.get(kind)
        if handler is None:
            self._log.warning(f"No channel configured for type: {kind.value}", extra=extra)
            return SendResult.configuration_error(NO_CHANNEL_CONFIGURED + kind.value)

        try:
            available = handler.is_available()
        except Exception as e:
            self._log.error(f"Channel {kind.value} availability check failed: {e}", extra=extra)
            return SendResult.configuration_error(CHANNEL_NOT_AVAILABLE.format(kind.value))
        if not available:
            self._log.warning(f"Channel {kind.value} is not available", extra=extra)
            return SendResult.configuration_error(CHANNEL_NOT_AVAILABLE.format(kind.value))

        description = describe_message(message)
        self._log.info(f"Dispatching {description}", extra=extra)
        self.publisher.publish(LifecycleEvent.sending(kind, recipient, attempt))

        try:
            result = await self._invoke_handler(handler, message)
        except TimeoutError as e:
            self._log.error(
                f"Handler for {kind.value} timed out after {self.handler_timeout}s", extra=extra
            )
            result = SendResult.system_error(
                f"{UNEXPECTED_ERROR_PREFIX}handler timed out after {self.handler_timeout}s", e
            )
        except Exception as e:
            self._log.error(
                f"Unexpected error sending {description}: {e}",
                extra={**extra, "error": str(e)},
                exc_info=True,
            )
            result = SendResult.system_error(f"{UNEXPECTED_ERROR_PREFIX}{e}", e)

        if result.successful:
            self.publisher.publish(LifecycleEvent.sent(kind, recipient, result, attempt))
            self._log.info(
                f"Successfully sent {description}",
                extra={**extra, "message_id": result.message_id},
            )
        else:
            self.publisher.publish(LifecycleEvent.failed(kind, recipient, result, attempt))
            if result.error_category is not None:
                extra["error_category"] = result.error_source
            self._log.warning(f"Failed to send {description} - {result.error_message}", extra=extra)

        return result
