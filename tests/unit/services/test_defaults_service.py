"""
Unit tests for tenant defaults.
"""

import pytest

from notify_gateway.notifications.exceptions import BadRequestError
from notify_gateway.services.defaults_service import DefaultsService
from notify_gateway.storage import DefaultsStore


@pytest.fixture
def service():
    return DefaultsService(DefaultsStore())


class TestDefaultsService:
    """Test partial updates of tenant defaults."""

    def test_initially_empty(self, service):
        defaults = service.get_defaults()

        assert defaults.email_adapter is None
        assert defaults.updated_at is None

    def test_partial_update_merges(self, service):
        service.update_defaults(email_adapter="ches", renderer="handlebars")
        defaults = service.update_defaults(priority="high")

        assert defaults.email_adapter == "ches"
        assert defaults.renderer == "handlebars"
        assert defaults.priority == "high"
        assert defaults.updated_at is not None

    def test_invalid_value(self, service):
        with pytest.raises(BadRequestError, match="Invalid encoding"):
            service.update_defaults(encoding="utf-16")

        assert service.get_defaults().encoding is None

    def test_unknown_field(self, service):
        with pytest.raises(BadRequestError, match="Unknown defaults fields"):
            service.update_defaults(color="blue")
