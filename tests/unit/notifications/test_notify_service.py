"""
Unit tests for send-by-profile.
"""

import pytest
from unittest.mock import Mock, patch

from notify_gateway.delivery.adapter_resolver import DeliveryAdapterResolver
from notify_gateway.delivery.context import DeliveryContextService, delivery_scope
from notify_gateway.notifications.composer import NotificationComposer
from notify_gateway.notifications.exceptions import (
    BadRequestError, NotFoundError, UnsupportedError
)
from notify_gateway.notifications.models import (
    CommonOverride, DeliveryContext, EmailOverride, NotifyRequest, SendResult
)
from notify_gateway.notifications.notify_service import NotifyService
from notify_gateway.rendering.registry import create_default_registry
from notify_gateway.services.defaults_service import DefaultsService
from notify_gateway.services.identities_service import IdentitiesService
from notify_gateway.services.notify_types_service import NotifyTypesService
from notify_gateway.services.template_resolver import InMemoryTemplateResolver
from notify_gateway.services.templates_service import TemplatesService
from notify_gateway.storage import DefaultsStore, InMemoryStore, NotifyTypeStore


CONTEXT = DeliveryContext(email_adapter_key="nodemailer", sms_adapter_key="twilio", template_engine_default="jinja2")


@pytest.fixture
def email_transport():
    transport = Mock()
    transport.name = "nodemailer"
    transport.send.return_value = SendResult(message_id="m1")
    return transport


@pytest.fixture
def templates_service():
    return TemplatesService(InMemoryStore("templates"))


@pytest.fixture
def identities_service():
    return IdentitiesService(InMemoryStore("senders"))


@pytest.fixture
def notify_types_service():
    return NotifyTypesService(NotifyTypeStore())


@pytest.fixture
def defaults_service():
    return DefaultsService(DefaultsStore())


@pytest.fixture
def notify_service(email_transport, templates_service, identities_service, notify_types_service, defaults_service):
    sms_transport = Mock()
    sms_transport.name = "twilio"
    context_service = DeliveryContextService()
    adapter_resolver = DeliveryAdapterResolver(
        context_service, {"nodemailer": email_transport}, {"twilio": sms_transport}
    )
    registry = create_default_registry()
    template_resolver = InMemoryTemplateResolver(templates_service.store)
    composer = NotificationComposer(
        adapter_resolver=adapter_resolver,
        context_service=context_service,
        passthrough_client=Mock(),
        template_resolver=template_resolver,
        templates_service=templates_service,
        senders_service=identities_service,
        registry=registry,
        adapter_from_addresses={"nodemailer": "smtp@example.com"},
    )
    return NotifyService(
        adapter_resolver=adapter_resolver,
        identities_service=identities_service,
        notify_types_service=notify_types_service,
        defaults_service=defaults_service,
        composer=composer,
    )


@pytest.fixture
def welcome_template(templates_service):
    return templates_service.create_template(
        name="Welcome", channel="email", subject="Welcome {{name}}", body="{{greeting}} {{name}}"
    )


class TestNotifyService:
    """Test notify type resolution and merging."""

    def test_send_merges_params(self, notify_service, notify_types_service, welcome_template, email_transport):
        """Test request params override notify type params key by key."""
        notify_types_service.create_notify_type(
            code="welcome",
            template_id=welcome_template.id,
            params={"greeting": "Hello", "name": "Default"},
        )

        with delivery_scope(CONTEXT):
            result = notify_service.send(NotifyRequest(
                notify_type="welcome",
                common=CommonOverride(to=["ann@example.com"], params={"name": "Ann"}),
            ))

        message = email_transport.send.call_args[0][0]
        assert message.to == "ann@example.com"
        assert message.subject == "Welcome Ann"
        assert message.body == "Hello Ann"
        assert message.from_address == "smtp@example.com"

        data = result.to_dict()
        assert data["notifyId"] and data["txId"]
        assert data["messages"] == [{"msgId": result.messages[0].msg_id, "channel": "email", "to": ["ann@example.com"]}]

    def test_identity_precedence(self, notify_service, notify_types_service, identities_service, defaults_service,
                                 welcome_template, email_transport):
        """Test request identity wins over notify type identity, which wins over tenant default."""
        tenant = identities_service.create_identity(type="email", email_address="tenant@x.com")
        profile = identities_service.create_identity(type="email", email_address="profile@x.com")
        override = identities_service.create_identity(type="email", email_address="override@x.com")
        defaults_service.update_defaults(email_identity_id=tenant.id)
        notify_types_service.create_notify_type(code="welcome", template_id=welcome_template.id,
                                                identity_id=profile.id)

        with delivery_scope(CONTEXT):
            notify_service.send(NotifyRequest(notify_type="welcome", common=CommonOverride(to=["a@example.com"])))
            notify_service.send(NotifyRequest(
                notify_type="welcome",
                common=CommonOverride(to=["a@example.com"]),
                email=EmailOverride(email_identity_id=override.id),
            ))

        first, second = [c[0][0] for c in email_transport.send.call_args_list]
        assert first.from_address == "profile@x.com"
        assert second.from_address == "override@x.com"
        assert second.reply_to == "override@x.com"

    def test_tenant_identity_used_last(self, notify_service, notify_types_service, identities_service,
                                       defaults_service, welcome_template, email_transport):
        tenant = identities_service.create_identity(type="email", email_address="tenant@x.com")
        defaults_service.update_defaults(email_identity_id=tenant.id)
        notify_types_service.create_notify_type(code="welcome", template_id=welcome_template.id)

        with delivery_scope(CONTEXT):
            notify_service.send(NotifyRequest(notify_type="welcome", common=CommonOverride(to=["a@example.com"])))

        assert email_transport.send.call_args[0][0].from_address == "tenant@x.com"

    def test_renderer_override(self, notify_service, notify_types_service, templates_service, email_transport):
        """Test the request renderer applies when the template has no engine."""
        template = templates_service.create_template(name="T", channel="email", body="Hi {{name}}")
        notify_types_service.create_notify_type(code="t", template_id=template.id, renderer="jinja2")

        with delivery_scope(CONTEXT):
            notify_service.send(NotifyRequest(
                notify_type="t",
                common=CommonOverride(to=["a@example.com"], params={"name": "<b>"}, renderer="mustache"),
            ))

        assert email_transport.send.call_args[0][0].body == "Hi &lt;b&gt;"

    def test_unknown_notify_type(self, notify_service):
        with delivery_scope(CONTEXT):
            with pytest.raises(NotFoundError, match='Notify type "missing" not found'):
                notify_service.send(NotifyRequest(notify_type="missing", common=CommonOverride(to=["a@x.com"])))

    def test_send_as_sms_unsupported(self, notify_service, notify_types_service, welcome_template):
        notify_types_service.create_notify_type(code="welcome", template_id=welcome_template.id, send_as="sms")

        with delivery_scope(CONTEXT):
            with pytest.raises(UnsupportedError):
                notify_service.send(NotifyRequest(notify_type="welcome", common=CommonOverride(to=["a@x.com"])))

    def test_requires_single_recipient(self, notify_service, notify_types_service, welcome_template):
        notify_types_service.create_notify_type(code="welcome", template_id=welcome_template.id)

        with delivery_scope(CONTEXT):
            with pytest.raises(BadRequestError, match="exactly one recipient"):
                notify_service.send(NotifyRequest(
                    notify_type="welcome", common=CommonOverride(to=["a@x.com", "b@x.com"])
                ))

    def test_requires_template(self, notify_service, notify_types_service):
        notify_types_service.create_notify_type(code="bare")

        with delivery_scope(CONTEXT):
            with pytest.raises(BadRequestError, match="templateId"):
                notify_service.send(NotifyRequest(notify_type="bare", common=CommonOverride(to=["a@x.com"])))

    def test_passthrough_adapter_rejected(self, notify_service, notify_types_service, welcome_template):
        notify_types_service.create_notify_type(code="welcome", template_id=welcome_template.id)
        context = DeliveryContext(
            email_adapter_key="gc-notify:passthrough", sms_adapter_key="twilio", template_engine_default="jinja2"
        )

        with delivery_scope(context):
            with pytest.raises(BadRequestError, match="supports only nodemailer and ches"):
                notify_service.send(NotifyRequest(notify_type="welcome", common=CommonOverride(to=["a@x.com"])))

    def test_tenant_default_renderer(self, notify_service, notify_types_service, templates_service,
                                     defaults_service, email_transport):
        """Test the tenant renderer applies when neither template nor request names one."""
        template = templates_service.create_template(
            name="T", channel="email", body="{{#if name}}Hi {{name}}{{/if}}"
        )
        notify_types_service.create_notify_type(code="t", template_id=template.id, params={"name": "Ann"})
        defaults_service.update_defaults(renderer="handlebars")

        with delivery_scope(CONTEXT):
            notify_service.send(NotifyRequest(notify_type="t", common=CommonOverride(to=["a@example.com"])))

        assert email_transport.send.call_args[0][0].body == "Hi Ann"

    def test_delivery_runs_through_composer(self, notify_service, notify_types_service, identities_service,
                                            welcome_template):
        notify_types_service.create_notify_type(code="welcome", template_id=welcome_template.id,
                                                renderer="mustache")
        composer = notify_service.composer

        with patch.object(composer, "deliver_email", wraps=composer.deliver_email) as deliver:
            with delivery_scope(CONTEXT):
                notify_service.send(NotifyRequest(
                    notify_type="welcome", common=CommonOverride(to=["a@example.com"], renderer="handlebars")
                ))

        kwargs = deliver.call_args.kwargs
        assert kwargs["template_id"] == welcome_template.id
        assert kwargs["to"] == "a@example.com"
        assert kwargs["sender_resolver"] is identities_service.resolver
        assert kwargs["engine_overrides"] == ("handlebars", "mustache", None)
