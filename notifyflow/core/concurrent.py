"""Non-blocking single sends and fail-soft batches."""

import asyncio
from collections.abc import Awaitable, Callable, Iterable

from notifyflow.core.logging import configure_dispatch_logger
from notifyflow.core.message import Message
from notifyflow.core.result import SendResult

ASYNC_ERROR_PREFIX = "Async execution failed: "

SendFunction = Callable[[Message], Awaitable[SendResult]]


class AsyncSender:
    """Schedules sends as asyncio tasks on the running loop.

    ``send`` is any coroutine function returning a SendResult, typically
    ``Dispatcher.dispatch`` or ``RetryingSender.send_with_retry``.

    Every scheduled task is retained until it finishes, so a future the caller
    drops still runs to completion. There is no cancellation API.
    """

    def __init__(self, send: SendFunction) -> None:
        if not callable(send):
            raise TypeError(f"send must be callable, got {type(send).__name__}")
        self._send = send
        self._in_flight: set[asyncio.Task] = set()
        self._log = configure_dispatch_logger()

    @property
    def in_flight(self) -> int:
        """Number of sends scheduled and not yet finished."""
        return len(self._in_flight)

    async def _guarded_send(self, message: Message) -> SendResult:
        try:
            result = await self._send(message)
            if not isinstance(result, SendResult):
                raise TypeError(f"send returned {type(result).__name__}, expected SendResult")
            return result
        except Exception as e:
            recipient = getattr(message, "recipient", None)
            self._log.error(
                f"Async send failed for {recipient}: {e}",
                extra={"recipient": recipient, "error": str(e)},
                exc_info=True,
            )
            return SendResult.system_error(f"{ASYNC_ERROR_PREFIX}{e}", e)

    def _track(self, task: asyncio.Task) -> asyncio.Task:
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    def send_async(self, message: Message) -> "asyncio.Task[SendResult]":
        """Schedule one send and return a task resolving to its result.

        Send faults are never raised here; they resolve the task to a SYSTEM
        failure instead.

        Raises:
            RuntimeError: If no event loop is running in this thread.
        """
        loop = asyncio.get_running_loop()
        kind = getattr(message, "kind", None)
        self._log.debug(
            f"Queueing async {kind} message to {getattr(message, 'recipient', None)}",
            extra={"kind": str(kind), "recipient": getattr(message, "recipient", None)},
        )
        return self._track(loop.create_task(self._guarded_send(message)))

    async def _gather(self, tasks: list["asyncio.Task[SendResult]"]) -> list[SendResult]:
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        results: list[SendResult] = []
        for outcome in outcomes:
            if isinstance(outcome, SendResult):
                results.append(outcome)
            else:
                # Only reachable if a task was cancelled from outside
                results.append(SendResult.system_error(f"{ASYNC_ERROR_PREFIX}{outcome!r}", outcome))

        sent = sum(1 for r in results if r.successful)
        self._log.info(
            f"Batch complete: {sent} sent, {len(results) - sent} failed out of {len(results)} total",
            extra={"sent": sent, "failed": len(results) - sent, "total": len(results)},
        )
        return results

    def send_batch(self, messages: Iterable[Message]) -> "asyncio.Task[list[SendResult]]":
        """Send every message concurrently; resolve once all have finished.

        Results keep the input order. A failing message only affects its own
        entry (fail-soft); nothing short-circuits on the first failure.

        Raises:
            RuntimeError: If no event loop is running in this thread.
        """
        loop = asyncio.get_running_loop()
        messages = list(messages)
        self._log.info(
            f"Sending batch of {len(messages)} messages", extra={"total": len(messages)}
        )
        tasks = [self.send_async(message) for message in messages]
        return self._track(loop.create_task(self._gather(tasks)))

    async def join(self) -> None:
        """Wait until every send scheduled so far has finished."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)
