"""
Unit tests for the delivery adapter resolver.
"""

import pytest
from unittest.mock import Mock

from notify_gateway.delivery.adapter_resolver import (
    AdapterMode, DeliveryAdapterResolver, PassthroughTarget, is_gc_notify_passthrough, parse_adapter_key
)
from notify_gateway.delivery.context import DeliveryContextService, delivery_scope
from notify_gateway.notifications.exceptions import ConfigurationError
from notify_gateway.notifications.models import DeliveryContext


def named(name):
    transport = Mock()
    transport.name = name
    return transport


@pytest.fixture
def transports():
    return {
        "nodemailer": named("nodemailer"),
        "ches": named("ches"),
        "twilio": named("twilio"),
    }


@pytest.fixture
def resolver(transports):
    return DeliveryAdapterResolver(
        DeliveryContextService(),
        {"nodemailer": transports["nodemailer"], "ches": transports["ches"]},
        {"twilio": transports["twilio"]},
    )


class TestParseAdapterKey:
    """Test key parsing."""

    def test_parse(self):
        assert parse_adapter_key("gc-notify:passthrough") == ("gc-notify", AdapterMode.PASSTHROUGH)
        assert parse_adapter_key(" CHES ") == ("ches", AdapterMode.ADAPTER)
        assert parse_adapter_key(None) == ("", AdapterMode.ADAPTER)

    def test_gc_notify_passthrough(self):
        assert is_gc_notify_passthrough("gc-notify:passthrough")
        assert not is_gc_notify_passthrough("ches:passthrough")
        assert not is_gc_notify_passthrough("nodemailer")


class TestDeliveryAdapterResolver:
    """Test transport resolution."""

    def test_resolves_registered_transports(self, resolver, transports):
        assert resolver.resolve_email_key("ches") is transports["ches"]
        assert resolver.resolve_email_key("nodemailer") is transports["nodemailer"]
        assert resolver.resolve_sms_key("twilio") is transports["twilio"]

    def test_passthrough_targets(self, resolver):
        assert resolver.resolve_email_key("gc-notify:passthrough") is PassthroughTarget.GC_NOTIFY
        assert resolver.resolve_email_key("ches:passthrough") is PassthroughTarget.CHES
        assert resolver.resolve_sms_key("gc-notify:passthrough") is PassthroughTarget.GC_NOTIFY

    @pytest.mark.parametrize("key", ["", None, "sendgrid", "mailgun"])
    def test_unknown_keys_fall_back(self, resolver, transports, key):
        """Test resolution never fails for an unknown key."""
        assert resolver.resolve_email_key(key) is transports["nodemailer"]
        assert resolver.resolve_sms_key(key) is transports["twilio"]

    def test_fallback_order(self, transports):
        resolver = DeliveryAdapterResolver(
            DeliveryContextService(), {"ches": transports["ches"]}, {"twilio": transports["twilio"]}
        )
        assert resolver.resolve_email_key("unknown") is transports["ches"]

    def test_missing_fallback_fails_construction(self, transports):
        with pytest.raises(ConfigurationError, match="No fallback sms transport"):
            DeliveryAdapterResolver(DeliveryContextService(), {"nodemailer": transports["nodemailer"]}, {})

    def test_resolves_from_current_context(self, resolver, transports):
        context = DeliveryContext(email_adapter_key="ches", sms_adapter_key="twilio", template_engine_default="jinja2")

        with delivery_scope(context):
            assert resolver.resolve_email() is transports["ches"]
            assert resolver.resolve_sms() is transports["twilio"]
