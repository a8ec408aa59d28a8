"""
Unit tests for the CHES email sender.
"""

import pytest
from unittest.mock import Mock

from notify_gateway.notifications.exceptions import ConfigurationError, DeliveryError
from notify_gateway.notifications.models import Attachment, EmailMessage
from notify_gateway.transports.ches_sender import ChesEmailSender


def response(status_code=200, data=None):
    mock_response = Mock()
    mock_response.status_code = status_code
    mock_response.ok = status_code < 400
    mock_response.json.return_value = data or {}
    mock_response.text = str(data)
    return mock_response


@pytest.fixture
def session():
    return Mock()


@pytest.fixture
def sender(session):
    return ChesEmailSender(
        base_url="https://ches.example.com/api/v1/",
        token_url="https://auth.example.com/token",
        client_id="client",
        client_secret="secret",
        session=session,
    )


@pytest.fixture
def message():
    return EmailMessage(
        to="ann@example.com", subject="Hi", body="<p>Hello</p>", from_address="a@x.com",
        attachments=[Attachment(filename="a.txt", content=b"hi")],
    )


class TestChesEmailSender:
    """Test CHES sending."""

    def test_missing_configuration(self):
        with pytest.raises(ConfigurationError):
            ChesEmailSender(base_url="https://ches", token_url="https://token", client_id="", client_secret="")

    def test_send_success(self, sender, session, message):
        session.post.side_effect = [
            response(data={"access_token": "tok", "expires_in": 300}),
            response(201, {"txId": "tx1", "messages": [{"msgId": "m1", "to": ["ann@example.com"]}]}),
        ]

        result = sender.send(message)

        assert result.message_id == "m1"
        token_call, send_call = session.post.call_args_list
        assert token_call.kwargs["data"] == {"grant_type": "client_credentials"}
        assert token_call.kwargs["auth"] == ("client", "secret")
        assert send_call.args[0] == "https://ches.example.com/api/v1/email"
        assert send_call.kwargs["headers"] == {"Authorization": "Bearer tok"}
        assert send_call.kwargs["json"]["attachments"][0]["content"] == "aGk="

    def test_token_is_cached(self, sender, session, message):
        session.post.side_effect = [
            response(data={"access_token": "tok", "expires_in": 300}),
            response(data={"txId": "tx1"}),
            response(data={"txId": "tx2"}),
        ]

        first = sender.send(message)
        second = sender.send(message)

        assert (first.message_id, second.message_id) == ("tx1", "tx2")
        assert session.post.call_count == 3

    def test_token_failure(self, sender, session, message):
        session.post.return_value = response(401)

        with pytest.raises(DeliveryError, match="token request failed") as exc_info:
            sender.send(message)

        assert exc_info.value.upstream_status == 401

    def test_send_failure(self, sender, session, message):
        session.post.side_effect = [
            response(data={"access_token": "tok"}),
            response(500, {"detail": "down"}),
        ]

        with pytest.raises(DeliveryError, match="CHES HTTP error: 500"):
            sender.send(message)
