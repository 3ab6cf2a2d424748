"""Multi-channel delivery demo.

Builds a NotifyFlow with every simulated provider, prints each lifecycle
event as it happens, then sends a batch of messages and prints a summary.

Usage:
    python -m notifyflow.apps.demo.main                     # Sample messages
    python -m notifyflow.apps.demo.main --file msgs.json    # Load from JSON
    python -m notifyflow.apps.demo.main --stress --count 100
    python -m notifyflow.apps.demo.main --flaky 2 --retry   # Inject failures, retry them
"""

import argparse
import asyncio
import json
import logging
import random
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from notifyflow.channels.base import Channel
from notifyflow.channels.providers import (
    FcmProvider,
    FlakyProvider,
    SendGridProvider,
    SlackWebhookProvider,
    TwilioProvider,
)
from notifyflow.channels.validators import ensure_valid
from notifyflow.core.errors import MessageValidationError
from notifyflow.core.event import LifecycleEvent
from notifyflow.core.logging import configure_dispatch_logger
from notifyflow.core.message import (
    ChatMessage,
    EmailMessage,
    Message,
    MessageKind,
    PushMessage,
    SmsMessage,
    parse_message,
)
from notifyflow.core.result import SendResult
from notifyflow.core.retry import RetryPolicy
from notifyflow.flow import NotifyFlow

WELCOME_TEMPLATE = "Hello {{name}}, welcome to {{product}}!"


def create_sample_messages(flow: NotifyFlow) -> list[Message]:
    """Sample messages, including two that fail validation."""
    welcome = flow.render_template("welcome", {"name": "Alice", "product": "NotifyFlow"})
    return [
        EmailMessage.simple("noreply@example.com", "alice@example.com", "Welcome", welcome),
        EmailMessage(
            sender="noreply@example.com",
            to="bob@example.com",
            subject="Weekly digest",
            body="<h1>12 updates</h1>",
            html=True,
            cc=("team@example.com",),
        ),
        SmsMessage(sender="NotifyFlow", phone_number="+15551230001", text="Order shipped!"),
        PushMessage.with_data(
            "fcm_token_alice_0123456789", "New message", "You have 3 unread", {"screen": "inbox"}
        ),
        ChatMessage.simple("#alerts", "Deploy finished"),
        EmailMessage.simple("noreply@example.com", "not-an-email", "", "Body"),
        SmsMessage(sender="NotifyFlow", phone_number="555", text="Bad number"),
    ]


def create_stress_messages(count: int) -> list[Message]:
    """Random valid messages for stress testing."""
    factories: list[Callable[[int], Message]] = [
        lambda i: EmailMessage.simple(
            "noreply@example.com", f"user{i}@example.com", "Update", f"Update #{i}"
        ),
        lambda i: SmsMessage(sender="NotifyFlow", phone_number=f"+1555{i:07d}", text=f"Code {i}"),
        lambda i: PushMessage.simple(f"device_token_{i:08d}", "Ping", f"Ping #{i}"),
        lambda i: ChatMessage.simple("#load-test", f"Message #{i}"),
    ]
    return [random.choice(factories)(i) for i in range(count)]


def load_from_file(filepath: str) -> list[Message]:
    """Load messages from a JSON list (or ``{"messages": [...]}``).

    Entries that cannot be parsed are skipped with a warning. Entries that parse
    but break validation rules are kept, so the run shows their VALIDATION result.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid JSON or holds no message list.
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    with open(path) as f:
        data = json.load(f)
    entries: list[dict[str, Any]] = data.get("messages", []) if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise ValueError(
            f'Expected a list of messages or {{"messages": [...]}} in {filepath}, '
            f"got {type(entries).__name__}"
        )

    messages: list[Message] = []
    for i, entry in enumerate(entries):
        try:
            message = parse_message(entry)
        except ValidationError as e:
            print(f"Warning: Skipping entry {i}: {e.error_count()} field error(s)")
            continue
        try:
            ensure_valid(message)
        except MessageValidationError as e:
            print(f"Warning: Entry {i} will fail validation: {e}")
        messages.append(message)
    return messages


def build_flow(
    flaky: int = 0,
    retry: bool = False,
    latency: float = 0.0,
    on_event: Callable[[LifecycleEvent], None] | None = None,
) -> NotifyFlow:
    """Create a flow with one simulated provider per kind.

    Args:
        flaky: Transient failures to inject per recipient on every provider.
        retry: Use a fast retry policy instead of sending once.
        latency: Simulated per-send provider latency in seconds.
        on_event: Listener receiving every lifecycle event.
    """
    providers = {
        MessageKind.EMAIL: SendGridProvider("demo-sendgrid-key", latency=latency),
        MessageKind.SMS: TwilioProvider("demo-account-sid", "demo-auth-token", latency=latency),
        MessageKind.PUSH: FcmProvider("demo-fcm-server-key", latency=latency),
        MessageKind.CHAT: SlackWebhookProvider(
            "https://hooks.example.com/services/demo", latency=latency
        ),
    }

    builder = NotifyFlow.builder().with_template("welcome", WELCOME_TEMPLATE)
    for kind, provider in providers.items():
        handler_provider = FlakyProvider(provider, failures=flaky) if flaky else provider
        builder.with_channel(kind, Channel(kind, handler_provider))

    if retry:
        builder.with_retry_policy(
            RetryPolicy(max_attempts=flaky + 2, initial_delay=0.05, backoff_multiplier=2.0, max_delay=1.0)
        )
    if on_event is not None:
        builder.on_event(on_event)
    return builder.build()


async def run_demo(
    messages: list[Message] | None = None,
    flaky: int = 0,
    retry: bool = False,
    latency: float = 0.0,
    output_callback: Callable[[str], None] | None = None,
) -> list[SendResult]:
    """Send ``messages`` (or the samples) as one batch and return the results.

    Example:
        results = await run_demo(flaky=1, retry=True)
        assert all(r.successful for r in results[:5])
    """
    output = output_callback or print
    flow = build_flow(
        flaky=flaky,
        retry=retry,
        latency=latency,
        on_event=lambda event: output(f"  [{event.event_type.value}] {event.describe()}"),
    )
    if messages is None:
        messages = create_sample_messages(flow)

    results = await flow.send_batch(messages, retry=retry)

    sent = sum(1 for r in results if r.successful)
    output(f"\n=== Summary: {sent} sent, {len(results) - sent} failed of {len(results)} ===")
    for message, result in zip(messages, results):
        if result.successful:
            output(f"  OK   {message.kind.value:<5} {message.recipient} -> {result.message_id}")
        else:
            output(
                f"  FAIL {message.kind.value:<5} {message.recipient} "
                f"[{result.error_source}] {result.error_message}"
            )
    return results


def quiet_logs(level: int = logging.WARNING) -> None:
    """Raise the level of the dispatch logger and every NotifyFlow logger created so far."""
    configure_dispatch_logger(level)
    for name in list(logging.root.manager.loggerDict):
        if name == "notifyflow" or name.startswith("notifyflow."):
            logging.getLogger(name).setLevel(level)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the delivery demo."""
    parser = argparse.ArgumentParser(description="NotifyFlow multi-channel delivery demo")
    parser.add_argument("--file", help="JSON file with messages to send")
    parser.add_argument("--stress", action="store_true", help="Send generated messages")
    parser.add_argument("--count", type=int, default=100, help="Message count for --stress")
    parser.add_argument("--flaky", type=int, default=0, help="Failures to inject per recipient")
    parser.add_argument("--retry", action="store_true", help="Retry failed sends")
    parser.add_argument("--latency", type=float, default=0.0, help="Simulated provider latency")
    parser.add_argument("--verbose", action="store_true", help="Show provider logs")
    args = parser.parse_args(argv)

    if not args.verbose:
        quiet_logs()

    messages: list[Message] | None = None
    if args.file:
        try:
            messages = load_from_file(args.file)
        except (FileNotFoundError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    elif args.stress:
        messages = create_stress_messages(args.count)

    print("Starting NotifyFlow demo...\n")
    results = asyncio.run(
        run_demo(messages, flaky=args.flaky, retry=args.retry, latency=args.latency)
    )
    return 0 if all(r.successful for r in results) else 2


if __name__ == "__main__":
    sys.exit(main())
