"""NotifyFlow facade and its fluent builder.

All configuration happens in code:

    flow = (
        NotifyFlow.builder()
        .with_sendgrid("api-key")
        .with_twilio("sid", "token")
        .with_retry_policy(RetryPolicy.default())
        .on_event(print)
        .build()
    )
    result = await flow.send_with_retry(EmailMessage.simple(...))
    results = await flow.send_batch([email, sms, push])
"""

import asyncio
from collections.abc import Iterable, Mapping
from concurrent.futures import Executor

from notifyflow.channels.base import Channel, Provider, Validator
from notifyflow.channels.providers import (
    ApnsProvider,
    FcmProvider,
    MailgunProvider,
    SendGridProvider,
    SlackWebhookProvider,
    TwilioProvider,
    VonageProvider,
)
from notifyflow.core.concurrent import AsyncSender
from notifyflow.core.dispatcher import (
    AT_LEAST_ONE_CHANNEL,
    DEFAULT_HANDLER_TIMEOUT,
    ChannelHandler,
    Dispatcher,
)
from notifyflow.core.errors import ConfigurationError
from notifyflow.core.message import Message, MessageKind
from notifyflow.core.publisher import EventPublisher, Listener
from notifyflow.core.result import SendResult
from notifyflow.core.retry import RetryingSender, RetryPolicy
from notifyflow.templates import TemplateRegistry


class NotifyFlow:
    """Unified entry point: sync-style, retrying, async and batch sends."""

    def __init__(
        self,
        dispatcher: Dispatcher,
        retrier: RetryingSender,
        templates: TemplateRegistry,
        publisher: EventPublisher,
    ) -> None:
        self.dispatcher = dispatcher
        self.retrier = retrier
        self.publisher = publisher
        self._templates = templates
        self._async = AsyncSender(dispatcher.dispatch)
        self._async_retry = AsyncSender(retrier.send_with_retry)

    @staticmethod
    def builder() -> "NotifyFlowBuilder":
        return NotifyFlowBuilder()

    async def send(self, message: Message) -> SendResult:
        """Send once through the message's channel."""
        return await self.dispatcher.dispatch(message)

    async def send_with_retry(self, message: Message) -> SendResult:
        """Send with retries per the configured RetryPolicy."""
        return await self.retrier.send_with_retry(message)

    def send_async(self, message: Message, retry: bool = False) -> "asyncio.Task[SendResult]":
        """Schedule a send without waiting for it."""
        sender = self._async_retry if retry else self._async
        return sender.send_async(message)

    def send_batch(
        self, messages: Iterable[Message], retry: bool = False
    ) -> "asyncio.Task[list[SendResult]]":
        """Send many messages concurrently; results keep input order."""
        sender = self._async_retry if retry else self._async
        return sender.send_batch(messages)

    async def join(self) -> None:
        """Wait for every scheduled async send to finish."""
        await self._async.join()
        await self._async_retry.join()

    def is_channel_available(self, kind: MessageKind | str) -> bool:
        return self.dispatcher.is_channel_available(kind)

    def on_event(self, listener: Listener) -> None:
        self.publisher.subscribe(listener)

    @property
    def templates(self) -> TemplateRegistry:
        return self._templates

    def render_template(self, name: str, variables: Mapping[str, object]) -> str:
        return self._templates.render(name, variables)


class NotifyFlowBuilder:
    """Fluent configuration for NotifyFlow.

    Registering a channel for a kind that already has one replaces it.
    """

    def __init__(self) -> None:
        self._channels: dict[MessageKind, ChannelHandler] = {}
        self._publisher = EventPublisher()
        self._templates = TemplateRegistry()
        self._retry_policy = RetryPolicy.no_retry()
        self._executor: Executor | None = None
        self._handler_timeout: float | None = DEFAULT_HANDLER_TIMEOUT

    # Channels

    def with_channel(self, kind: MessageKind | str, handler: ChannelHandler) -> "NotifyFlowBuilder":
        """Register any handler for ``kind``; lets callers plug in custom channels."""
        self._channels[MessageKind(kind)] = handler
        return self

    def _with_provider(
        self, kind: MessageKind, provider: Provider, validator: Validator | None
    ) -> "NotifyFlowBuilder":
        return self.with_channel(kind, Channel(kind, provider, validator))

    def with_email(
        self, provider: Provider, validator: Validator | None = None
    ) -> "NotifyFlowBuilder":
        return self._with_provider(MessageKind.EMAIL, provider, validator)

    def with_sms(self, provider: Provider, validator: Validator | None = None) -> "NotifyFlowBuilder":
        return self._with_provider(MessageKind.SMS, provider, validator)

    def with_push(
        self, provider: Provider, validator: Validator | None = None
    ) -> "NotifyFlowBuilder":
        return self._with_provider(MessageKind.PUSH, provider, validator)

    def with_chat(
        self, provider: Provider, validator: Validator | None = None
    ) -> "NotifyFlowBuilder":
        return self._with_provider(MessageKind.CHAT, provider, validator)

    def with_sendgrid(self, api_key: str) -> "NotifyFlowBuilder":
        return self.with_email(SendGridProvider(api_key))

    def with_mailgun(self, api_key: str, domain: str) -> "NotifyFlowBuilder":
        return self.with_email(MailgunProvider(api_key, domain))

    def with_twilio(self, account_sid: str, auth_token: str) -> "NotifyFlowBuilder":
        return self.with_sms(TwilioProvider(account_sid, auth_token))

    def with_vonage(self, api_key: str, api_secret: str) -> "NotifyFlowBuilder":
        return self.with_sms(VonageProvider(api_key, api_secret))

    def with_fcm(self, server_key: str) -> "NotifyFlowBuilder":
        return self.with_push(FcmProvider(server_key))

    def with_apns(self, team_id: str, key_id: str, bundle_id: str) -> "NotifyFlowBuilder":
        return self.with_push(ApnsProvider(team_id, key_id, bundle_id))

    def with_slack(self, webhook_url: str) -> "NotifyFlowBuilder":
        return self.with_chat(SlackWebhookProvider(webhook_url))

    # Cross-cutting

    def with_retry_policy(self, policy: RetryPolicy) -> "NotifyFlowBuilder":
        self._retry_policy = policy
        return self

    def with_executor(self, executor: Executor) -> "NotifyFlowBuilder":
        """Thread pool used to run sync channel handlers."""
        self._executor = executor
        return self

    def with_handler_timeout(self, seconds: float | None) -> "NotifyFlowBuilder":
        self._handler_timeout = seconds
        return self

    def on_event(self, listener: Listener) -> "NotifyFlowBuilder":
        self._publisher.subscribe(listener)
        return self

    def with_template(self, name: str, template: str) -> "NotifyFlowBuilder":
        self._templates.register(name, template)
        return self

    def build(self) -> NotifyFlow:
        """Assemble the flow.

        Raises:
            ConfigurationError: If no channel has been configured.
        """
        if not self._channels:
            raise ConfigurationError(AT_LEAST_ONE_CHANNEL)

        dispatcher = Dispatcher(
            self._channels,
            self._publisher,
            executor=self._executor,
            handler_timeout=self._handler_timeout,
        )
        retrier = RetryingSender(dispatcher, self._retry_policy, self._publisher)
        return NotifyFlow(dispatcher, retrier, self._templates, self._publisher)
