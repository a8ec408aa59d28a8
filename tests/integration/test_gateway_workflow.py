"""
Integration tests for the complete gateway workflow.

Wires the real container (stores, services, renderers, resolvers and
transports) and only mocks the network edges: the SMTP socket and the
upstream GC Notify session.
"""

import pytest
from unittest.mock import Mock, patch

from notify_gateway.app_factory import GatewayContainer, build_gc_notify_auth_header
from notify_gateway.config import Settings
from notify_gateway.notifications.exceptions import DeliveryError, UnauthorizedError
from notify_gateway.notifications.models import (
    CommonOverride, EmailRequest, NotifyRequest, SmsRequest
)
from notify_gateway.passthrough import GcNotifyApiClient


@pytest.fixture
def settings():
    """Settings built from a clean environment."""
    with patch.dict('os.environ', {
        'ENVIRONMENT': 'testing',
        'NODEMAILER_FROM': 'smtp@example.com',
        'TWILIO_FROM_NUMBER': '+15550001111',
        'LOG_ENABLE_CONSOLE_LOGGING': 'false',
        'CIRCUIT_BREAKER_EMAIL_FAILURE_THRESHOLD': '2',
    }, clear=True):
        return Settings()


@pytest.fixture
def container(settings):
    return GatewayContainer(settings)


@pytest.fixture
def mock_smtp():
    with patch('notify_gateway.transports.smtp_sender.smtplib.SMTP') as smtp_class:
        smtp_class.return_value.__enter__.return_value.send_message.return_value = {}
        yield smtp_class


def sent_mime(smtp_class):
    return smtp_class.return_value.__enter__.return_value.send_message.call_args[0][0]


class TestEmailWorkflow:
    """Test template, sender and send end to end."""

    def test_handlebars_send_with_default_sender(self, container, mock_smtp):
        template = container.templates_service.create_template(
            name="Greeting", channel="email", subject="Hi {{name}}", body="Hello {{name}}", engine="handlebars"
        )
        container.senders_service.create_sender(type="email", email_address="a@x.com", is_default=True)

        response = container.handle_request(
            {}, container.composer.send_email,
            EmailRequest(template_id=template.id, email_address="ann@example.com",
                         personalisation={"name": "Ann"}),
        )

        mime = sent_mime(mock_smtp)
        assert mime["From"] == "a@x.com"
        assert mime["Subject"] == "Hi Ann"
        assert mime.get_content().strip() == "Hello Ann"

        data = response.to_dict()
        assert data["content"] == {"from_email": "a@x.com", "body": "Hello Ann", "subject": "Hi Ann"}
        assert data["template"]["version"] == 1

    def test_new_default_sender_used_for_next_send(self, container, mock_smtp):
        template = container.templates_service.create_template(name="T", channel="email", body="Body")
        first = container.senders_service.create_sender(type="email", email_address="first@x.com", is_default=True)
        request = EmailRequest(template_id=template.id, email_address="ann@example.com")

        container.handle_request({}, container.composer.send_email, request)
        assert sent_mime(mock_smtp)["From"] == "first@x.com"

        container.senders_service.create_sender(type="email", email_address="second@x.com", is_default=True)
        response = container.handle_request({}, container.composer.send_email, request)

        assert sent_mime(mock_smtp)["From"] == "second@x.com"
        assert response.content["from_email"] == "second@x.com"
        assert container.senders_service.get_sender(first.id).is_default is False

    def test_configured_from_address(self, container, mock_smtp):
        template = container.templates_service.create_template(name="T", channel="email", body="Body")

        container.handle_request(
            {}, container.composer.send_email, EmailRequest(template_id=template.id, email_address="a@b.com")
        )

        assert sent_mime(mock_smtp)["From"] == "smtp@example.com"
        assert sent_mime(mock_smtp)["Subject"] == "Notification"

    def test_circuit_breaker_opens(self, container, mock_smtp):
        template = container.templates_service.create_template(name="T", channel="email", body="Body")
        mock_smtp.side_effect = ConnectionRefusedError("refused")
        request = EmailRequest(template_id=template.id, email_address="a@b.com")

        for _ in range(3):
            with pytest.raises(DeliveryError):
                container.handle_request({}, container.composer.send_email, request)

        assert mock_smtp.call_count == 2
        status = container.get_component_status()["transports"]["email:nodemailer"]
        assert status["state"] == "open"


class TestSmsWorkflow:
    """Test SMS through the development-mode Twilio transport."""

    def test_sms_dev_mode(self, container):
        template = container.templates_service.create_template(
            name="Code", channel="sms", body="Your code is {{code}}"
        )

        response = container.handle_request(
            {}, container.composer.send_sms,
            SmsRequest(template_id=template.id, phone_number="+15550000000", personalisation={"code": 42}),
        )

        assert response.content == {"body": "Your code is 42", "from_number": "+15550001111"}
        assert response.id


class TestNotifyWorkflow:
    """Test send-by-profile through the container."""

    def test_notify_type_send(self, container, mock_smtp):
        template = container.templates_service.create_template(
            name="Welcome", channel="email", subject="Welcome", body="{{greeting}}, {{name}}"
        )
        container.identities_service.create_identity(type="email", email_address="team@x.com", is_default=True)
        container.notify_types_service.create_notify_type(
            code="welcome", template_id=template.id, params={"greeting": "Hello"}
        )

        result = container.handle_request(
            {}, container.notify_service.send,
            NotifyRequest(notify_type="welcome", common=CommonOverride(to=["ann@example.com"],
                                                                      params={"name": "Ann"})),
        )

        mime = sent_mime(mock_smtp)
        assert mime["From"] == "team@x.com"
        assert mime.get_content().strip() == "Hello, Ann"
        assert result.to_dict()["messages"][0]["to"] == ["ann@example.com"]


class TestPassthroughWorkflow:
    """Test per-request adapter selection and passthrough forwarding."""

    @pytest.fixture
    def upstream(self, container):
        session = Mock()
        session.headers = {}
        response = Mock()
        response.ok = True
        response.status_code = 201
        response.json.return_value = {
            "id": "n1", "content": {"body": "Hi", "subject": "S", "from_email": "u@x.com"},
            "template": {"id": "remote-t", "version": 4},
        }
        session.request.return_value = response
        container._passthrough_client = GcNotifyApiClient(base_url="https://notify.example.com", session=session)
        return session

    def test_header_switches_to_passthrough(self, container, upstream, mock_smtp):
        headers = {"X-Delivery-Email-Adapter": "gc-notify:passthrough", "X-GC-Notify-Api-Key": "key-123"}

        response = container.handle_request(
            headers, container.composer.send_email,
            EmailRequest(template_id="remote-t", email_address="ann@example.com"),
            build_gc_notify_auth_header(headers),
        )

        assert upstream.request.call_args.kwargs["headers"]["Authorization"] == "ApiKey-v1 key-123"
        assert response.template.version == 4
        mock_smtp.assert_not_called()

    def test_passthrough_requires_key(self, container, upstream):
        headers = {"X-Delivery-Email-Adapter": "gc-notify:passthrough"}

        with pytest.raises(UnauthorizedError):
            container.handle_request(
                headers, container.composer.send_email,
                EmailRequest(template_id="remote-t", email_address="ann@example.com"),
                build_gc_notify_auth_header(headers),
            )

        upstream.request.assert_not_called()

    def test_tenant_default_adapter(self, container, upstream):
        container.defaults_service.update_defaults(email_adapter="gc-notify:passthrough")

        container.handle_request(
            {}, container.composer.send_email,
            EmailRequest(template_id="remote-t", email_address="ann@example.com"),
            "ApiKey-v1 key-123",
        )

        assert upstream.request.called

    def test_invalid_header_ignored(self, container, upstream, mock_smtp):
        template = container.templates_service.create_template(name="T", channel="email", body="Body")

        container.handle_request(
            {"x-delivery-email-adapter": "sendgrid"}, container.composer.send_email,
            EmailRequest(template_id=template.id, email_address="a@b.com"),
        )

        upstream.request.assert_not_called()
        mock_smtp.assert_called_once()


class TestAuthHeader:
    """Test upstream credential construction."""

    def test_builds_api_key(self):
        assert build_gc_notify_auth_header({"X-GC-Notify-Api-Key": " abc "}) == "ApiKey-v1 abc"

    def test_missing(self):
        assert build_gc_notify_auth_header({}) is None
        assert build_gc_notify_auth_header({"x-gc-notify-api-key": "  "}) is None
