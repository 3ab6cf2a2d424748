"""Channel pipeline: validate -> send via provider -> classify.

The pipeline is a free function taking a validator and a provider, and
``Channel`` composes it into a ChannelHandler for the Dispatcher. Any object
with ``is_available()`` and ``send()`` can be registered instead.
"""

import inspect
from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from notifyflow.channels.validators import VALIDATORS
from notifyflow.core.errors import ERROR_SEPARATOR, ProviderError
from notifyflow.core.logging import get_logger
from notifyflow.core.message import Message, MessageKind
from notifyflow.core.result import SendResult

log = get_logger(__name__)

Validator = Callable[[Message], list[str]]


@runtime_checkable
class Provider(Protocol):
    """External delivery service for one message kind (SendGrid, Twilio, ...).

    ``send`` returns a SendResult or raises; it may be a coroutine function.
    """

    name: str

    def send(self, message: Message) -> SendResult | Awaitable[SendResult]: ...


async def deliver(message: Message, validate: Validator, provider: Provider) -> SendResult:
    """Run the validate -> send -> classify pipeline for one message.

    Validation errors become a VALIDATION result. A provider exception becomes
    a PROVIDER result naming the provider. Provider results pass through as is.
    """
    errors = validate(message)
    if errors:
        joined = ERROR_SEPARATOR.join(errors)
        log.warning(
            f"{message.kind.value} validation failed: {joined}",
            extra={"kind": message.kind.value, "errors": errors},
        )
        return SendResult.validation_error(joined)

    try:
        result = provider.send(message)
        if inspect.isawaitable(result):
            result = await result
    except ProviderError as e:
        log.warning(
            f"{message.kind.value} send failed via {provider.name}: {e}",
            extra={"kind": message.kind.value, "provider": provider.name, "error": str(e)},
        )
        return SendResult.provider_error(e.provider_name, str(e), e)
    except Exception as e:
        log.error(
            f"Unexpected error sending {message.kind.value} via {provider.name}: {e}",
            extra={"kind": message.kind.value, "provider": provider.name, "error": str(e)},
        )
        return SendResult.provider_error(provider.name, str(e), e)

    if result.successful:
        log.info(
            f"{message.kind.value} sent successfully via {provider.name}, id={result.message_id}",
            extra={"kind": message.kind.value, "provider": provider.name},
        )
    else:
        log.warning(
            f"{message.kind.value} send returned failure via {provider.name}: "
            f"{result.error_message}",
            extra={"kind": message.kind.value, "provider": provider.name},
        )
    return result


class Channel:
    """ChannelHandler built from a provider and a validator.

    Args:
        kind: The message kind this channel delivers.
        provider: Backend performing the send.
        validate: Returns error strings for a message; defaults to the kind's
            standard validator.
        enabled: Reported by ``is_available()``. A disabled channel is skipped
            by the Dispatcher with a CONFIGURATION failure.
    """

    def __init__(
        self,
        kind: MessageKind | str,
        provider: Provider,
        validate: Validator | None = None,
        enabled: bool = True,
    ) -> None:
        self.kind = MessageKind(kind)
        if not callable(getattr(provider, "send", None)):
            raise TypeError(f"provider must define send(), got {type(provider).__name__}")
        self.provider = provider
        self.validate = validate or VALIDATORS[self.kind]
        self.enabled = enabled
        log.info(
            f"{self.kind.value} channel initialized with provider '{provider.name}'",
            extra={"kind": self.kind.value, "provider": provider.name},
        )

    def is_available(self) -> bool:
        return self.enabled

    async def send(self, message: Message) -> SendResult:
        if message.kind is not self.kind:
            return SendResult.configuration_error(
                f"{self.kind.value} channel cannot send {message.kind.value} messages"
            )
        return await deliver(message, self.validate, self.provider)
