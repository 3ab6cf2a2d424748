"""Tests for SendResult and ErrorCategory."""

import pytest
from pydantic import ValidationError

from notifyflow.core.result import ErrorCategory, SendResult


class TestErrorCategory:
    @pytest.mark.parametrize(
        "category,retryable",
        [
            (ErrorCategory.VALIDATION, False),
            (ErrorCategory.CONFIGURATION, False),
            (ErrorCategory.PROVIDER, True),
            (ErrorCategory.SYSTEM, True),
        ],
    )
    def test_retryability(self, category, retryable):
        assert category.is_retryable is retryable


class TestFactories:
    def test_success(self):
        result = SendResult.success("msg-1")
        assert result.successful
        assert result.message_id == "msg-1"
        assert result.error_category is None
        assert result.error_source is None
        assert not result.is_retryable

    def test_success_without_id(self):
        assert SendResult.success().message_id is None

    def test_validation_error(self):
        result = SendResult.validation_error("Subject is required")
        assert not result.successful
        assert result.error_category is ErrorCategory.VALIDATION
        assert result.error_message == "Subject is required"
        assert result.provider is None
        assert result.error_source == "VALIDATION"

    def test_configuration_error(self):
        result = SendResult.configuration_error("No channel configured for type: sms")
        assert result.error_category is ErrorCategory.CONFIGURATION
        assert not result.is_retryable

    def test_provider_error_names_provider(self):
        cause = ConnectionError("reset")
        result = SendResult.provider_error("Twilio", "Connection reset", cause)
        assert result.error_category is ErrorCategory.PROVIDER
        assert result.provider == "Twilio"
        assert result.cause is cause
        assert result.error_source == "PROVIDER:Twilio"
        assert result.is_retryable

    def test_system_error_keeps_cause(self):
        cause = RuntimeError("boom")
        result = SendResult.system_error("Unexpected error: boom", cause)
        assert result.error_category is ErrorCategory.SYSTEM
        assert result.cause is cause
        assert result.is_retryable

    def test_timestamp_is_utc(self):
        assert SendResult.success().timestamp.tzinfo is not None


class TestInvariants:
    def test_success_rejects_error_fields(self):
        with pytest.raises(ValidationError):
            SendResult(successful=True, error_category=ErrorCategory.SYSTEM)

    def test_failure_requires_category(self):
        with pytest.raises(ValidationError):
            SendResult(successful=False, error_message="no category")

    def test_failure_rejects_message_id(self):
        with pytest.raises(ValidationError):
            SendResult(
                successful=False, error_category=ErrorCategory.SYSTEM, message_id="msg-1"
            )

    def test_provider_only_for_provider_category(self):
        with pytest.raises(ValidationError):
            SendResult(successful=False, error_category=ErrorCategory.SYSTEM, provider="Twilio")

    def test_results_are_immutable(self):
        result = SendResult.success("msg-1")
        with pytest.raises(ValidationError):
            result.message_id = "other"

    def test_cause_excluded_from_dump(self):
        dumped = SendResult.system_error("x", RuntimeError("boom")).model_dump()
        assert "cause" not in dumped
