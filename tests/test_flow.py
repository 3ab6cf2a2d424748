"""Tests for the NotifyFlow facade and its builder."""

import pytest

from notifyflow import EmailMessage, NotifyFlow
from notifyflow.channels.base import Channel
from notifyflow.channels.providers import FlakyProvider, SendGridProvider, TwilioProvider
from notifyflow.core.errors import ConfigurationError, TemplateNotFoundError
from notifyflow.core.message import MessageKind
from notifyflow.core.result import ErrorCategory
from notifyflow.core.retry import RetryPolicy

FAST_RETRY = RetryPolicy(max_attempts=3, initial_delay=0.0, backoff_multiplier=1.0, max_delay=0.0)


class TestBuilder:
    def test_build_without_channels_fails(self):
        with pytest.raises(ConfigurationError, match="At least one notification channel"):
            NotifyFlow.builder().build()

    def test_convenience_providers_register_channels(self):
        flow = (
            NotifyFlow.builder()
            .with_sendgrid("sg-key")
            .with_twilio("sid", "token")
            .with_fcm("fcm-key")
            .with_slack("https://hooks.example.com/x")
            .build()
        )
        for kind in MessageKind:
            assert flow.is_channel_available(kind)

    def test_last_registration_wins(self, email):
        flow = NotifyFlow.builder().with_sendgrid("sg-key").with_mailgun("mg-key", "mg.example.com")
        assert flow.build().dispatcher.kinds == frozenset({MessageKind.EMAIL})

    async def test_last_registration_used_for_send(self, email):
        flow = (
            NotifyFlow.builder()
            .with_sendgrid("sg-key")
            .with_mailgun("mg-key", "mg.example.com")
            .build()
        )
        result = await flow.send(email)
        assert result.message_id.startswith("mg-")

    def test_alternate_providers(self):
        flow = (
            NotifyFlow.builder()
            .with_vonage("key", "secret")
            .with_apns("TEAM", "KEY", "com.example.app")
            .build()
        )
        assert flow.dispatcher.kinds == frozenset({MessageKind.SMS, MessageKind.PUSH})

    def test_custom_channel(self, scripted_handler):
        handler = scripted_handler()
        flow = NotifyFlow.builder().with_channel("chat", handler).build()
        assert flow.is_channel_available(MessageKind.CHAT)

    def test_invalid_handler_timeout_rejected(self):
        with pytest.raises(ConfigurationError):
            NotifyFlow.builder().with_sendgrid("key").with_handler_timeout(0).build()


class TestSending:
    async def test_send_and_events(self, email, event_recorder):
        recorder = event_recorder()
        flow = NotifyFlow.builder().with_sendgrid("sg-key").on_event(recorder).build()

        result = await flow.send(email)

        assert result.successful
        assert recorder.types == ["SENDING", "SENT"]

    async def test_unconfigured_kind(self, sms):
        flow = NotifyFlow.builder().with_sendgrid("sg-key").build()
        result = await flow.send(sms)
        assert result.error_category is ErrorCategory.CONFIGURATION

    async def test_invalid_message_is_validation_failure(self):
        flow = NotifyFlow.builder().with_sendgrid("sg-key").with_retry_policy(FAST_RETRY).build()
        result = await flow.send_with_retry(EmailMessage.simple("a@b.co", "nope", "s", "b"))
        assert result.error_category is ErrorCategory.VALIDATION

    async def test_send_with_retry_recovers_from_flaky_provider(self, sms, event_recorder):
        recorder = event_recorder()
        flow = (
            NotifyFlow.builder()
            .with_channel(
                MessageKind.SMS,
                Channel(MessageKind.SMS, FlakyProvider(TwilioProvider("sid", "token"), failures=2)),
            )
            .with_retry_policy(FAST_RETRY)
            .on_event(recorder)
            .build()
        )

        result = await flow.send_with_retry(sms)

        assert result.successful
        assert recorder.types.count("RETRYING") == 2

    async def test_default_policy_does_not_retry(self, sms):
        flow = (
            NotifyFlow.builder()
            .with_sms(FlakyProvider(TwilioProvider("sid", "token"), failures=1))
            .build()
        )
        result = await flow.send_with_retry(sms)
        assert result.error_category is ErrorCategory.PROVIDER
        assert result.provider == "Twilio"

    async def test_send_async_and_join(self, email):
        flow = NotifyFlow.builder().with_email(SendGridProvider("sg-key", latency=0.01)).build()
        task = flow.send_async(email)
        await flow.join()
        assert task.done()
        assert task.result().successful

    async def test_send_batch_with_retry(self, email, sms):
        flow = (
            NotifyFlow.builder()
            .with_email(FlakyProvider(SendGridProvider("sg-key"), failures=1))
            .with_twilio("sid", "token")
            .with_retry_policy(FAST_RETRY)
            .build()
        )
        results = await flow.send_batch([email, sms], retry=True)
        assert [r.successful for r in results] == [True, True]

    async def test_send_batch_without_retry_is_fail_soft(self, email, sms):
        flow = (
            NotifyFlow.builder()
            .with_email(FlakyProvider(SendGridProvider("sg-key"), failures=1))
            .with_twilio("sid", "token")
            .with_retry_policy(FAST_RETRY)
            .build()
        )
        results = await flow.send_batch([email, sms])
        assert [r.successful for r in results] == [False, True]

    async def test_on_event_after_build(self, email):
        flow = NotifyFlow.builder().with_sendgrid("sg-key").build()
        seen = []
        flow.on_event(seen.append)
        await flow.send(email)
        assert len(seen) == 2


class TestTemplates:
    def test_render_registered_template(self):
        flow = (
            NotifyFlow.builder()
            .with_sendgrid("sg-key")
            .with_template("otp", "Your code is {{code}}")
            .build()
        )
        assert flow.render_template("otp", {"code": "4242"}) == "Your code is 4242"
        assert "otp" in flow.templates

    def test_missing_template(self):
        flow = NotifyFlow.builder().with_sendgrid("sg-key").build()
        with pytest.raises(TemplateNotFoundError):
            flow.render_template("missing", {})
