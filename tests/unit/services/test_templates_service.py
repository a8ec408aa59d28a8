"""
Unit tests for template management.
"""

import pytest

from notify_gateway.notifications.exceptions import BadRequestError, NotFoundError
from notify_gateway.notifications.models import Channel
from notify_gateway.services.templates_service import TemplatesService
from notify_gateway.storage import InMemoryStore


@pytest.fixture
def service():
    return TemplatesService(InMemoryStore("templates"))


class TestTemplatesService:
    """Test template CRUD and versioning."""

    def test_create_template(self, service):
        template = service.create_template(name="Welcome", channel="EMAIL", subject="Hi", body="Hello {{name}}")

        assert template.version == 1
        assert template.channel == Channel.EMAIL
        assert template.created_at == template.updated_at
        assert service.get_template(template.id) is template

    def test_update_bumps_version(self, service):
        template = service.create_template(name="Welcome", channel="email", body="v1")

        updated = service.update_template(template.id, body="v2")
        updated = service.update_template(template.id, active=False)

        assert updated.version == 3
        assert updated.body == "v2"
        assert updated.active is False
        assert updated.created_at == template.created_at

    def test_update_unknown_field(self, service):
        template = service.create_template(name="Welcome", channel="email", body="b")

        with pytest.raises(BadRequestError, match="version"):
            service.update_template(template.id, version=10)

    def test_update_missing(self, service):
        with pytest.raises(NotFoundError):
            service.update_template("missing", body="b")

    def test_invalid_channel(self, service):
        with pytest.raises(BadRequestError, match="Invalid template type"):
            service.create_template(name="Push", channel="push", body="b")

    def test_list_filters_by_channel(self, service):
        service.create_template(name="E", channel="email", body="b")
        sms = service.create_template(name="S", channel="sms", body="b")

        assert service.list_templates("sms") == [sms]
        assert len(service.get_templates()["templates"]) == 2

    def test_delete(self, service):
        template = service.create_template(name="E", channel="email", body="b")

        service.delete_template(template.id)

        with pytest.raises(NotFoundError):
            service.get_template(template.id)
        with pytest.raises(NotFoundError):
            service.delete_template(template.id)
