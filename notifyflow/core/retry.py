"""Retry policy and the retrying send path.

RetryingSender repeats Dispatcher calls until success, a non-retryable
failure, or attempt exhaustion. The wait between attempts is an
``asyncio.sleep``: the coroutine is resumed by the loop's timer, so other
sends keep running on the same loop and worker pool in the meantime.
"""

import asyncio

from pydantic import BaseModel, Field

from notifyflow.core.dispatcher import Dispatcher
from notifyflow.core.event import LifecycleEvent
from notifyflow.core.logging import configure_dispatch_logger
from notifyflow.core.message import Message, MessageKind
from notifyflow.core.publisher import EventPublisher
from notifyflow.core.result import SendResult


class RetryPolicy(BaseModel):
    """Attempt count and exponential backoff configuration.

    Bounds are checked at construction; an out-of-range value raises
    ``pydantic.ValidationError`` and nothing is built.

    Attributes:
        max_attempts: Total attempts including the first one (>= 1).
        initial_delay: Seconds to wait before the first retry (>= 0).
        backoff_multiplier: Factor applied to the delay per retry (>= 1.0).
        max_delay: Upper bound for any single delay, in seconds (>= 0).
    """

    max_attempts: int = Field(ge=1)
    initial_delay: float = Field(ge=0.0)
    backoff_multiplier: float = Field(ge=1.0)
    max_delay: float = Field(ge=0.0)

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @classmethod
    def default(cls) -> "RetryPolicy":
        """3 attempts, 1s initial delay, 2x backoff, 30s cap."""
        return cls(max_attempts=3, initial_delay=1.0, backoff_multiplier=2.0, max_delay=30.0)

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        """Send once only."""
        return cls(max_attempts=1, initial_delay=0.0, backoff_multiplier=1.0, max_delay=0.0)

    def delay_for_attempt(self, attempt: int) -> float:
        """Seconds to wait before retry number ``attempt`` (0 means no wait)."""
        if attempt <= 0:
            return 0.0
        return min(self.initial_delay * self.backoff_multiplier ** (attempt - 1), self.max_delay)


class RetryingSender:
    """Wraps a Dispatcher with retries under a RetryPolicy."""

    def __init__(
        self,
        dispatcher: Dispatcher,
        policy: RetryPolicy,
        publisher: EventPublisher,
    ) -> None:
        self.dispatcher = dispatcher
        self.policy = policy
        self.publisher = publisher
        self._log = configure_dispatch_logger()

    async def send_with_retry(self, message: Message | None) -> SendResult:
        """Send ``message``, retrying PROVIDER and SYSTEM failures.

        VALIDATION and CONFIGURATION failures return immediately. When every
        attempt fails, the last attempt's result is returned unchanged.
        """
        try:
            kind = MessageKind(message.kind)
            recipient = str(message.recipient)
        except (AttributeError, ValueError):
            # None or unsupported: the dispatcher reports VALIDATION, never retried
            return await self.dispatcher.dispatch(message)

        max_attempts = self.policy.max_attempts
        result: SendResult | None = None

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                delay = self.policy.delay_for_attempt(attempt - 1)
                self._log.info(
                    f"Retry attempt {attempt}/{max_attempts} for {kind.value} "
                    f"message to {recipient} (delay: {delay}s)",
                    extra={
                        "kind": kind.value,
                        "recipient": recipient,
                        "attempt": attempt,
                        "delay": delay,
                    },
                )
                self.publisher.publish(
                    LifecycleEvent.retrying(kind, recipient, attempt)
                )
                await asyncio.sleep(delay)

            result = await self.dispatcher.dispatch(message, attempt=attempt)

            if result.successful:
                return result

            if not result.is_retryable:
                self._log.debug(
                    f"{result.error_source} error - not retrying: {result.error_message}",
                    extra={"attempt": attempt, "error_category": result.error_source},
                )
                return result

            if attempt < max_attempts:
                self._log.warning(
                    f"Attempt {attempt}/{max_attempts} failed for {kind.value} "
                    f"to {recipient}: {result.error_message}",
                    extra={
                        "kind": kind.value,
                        "recipient": recipient,
                        "attempt": attempt,
                        "error_category": result.error_source,
                    },
                )

        self._log.error(
            f"All {max_attempts} attempts exhausted for {kind.value} "
            f"message to {recipient}",
            extra={
                "kind": kind.value,
                "recipient": recipient,
                "attempt": max_attempts,
            },
        )
        return result
