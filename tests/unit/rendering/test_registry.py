"""
Unit tests for the renderer registry.
"""

import pytest

from notify_gateway.notifications.exceptions import UnknownEngineError
from notify_gateway.rendering.jinja_renderer import Jinja2TemplateRenderer
from notify_gateway.rendering.registry import RendererRegistry, create_default_registry


class TestRendererRegistry:
    """Test engine lookup."""

    def test_default_registry_engines(self):
        registry = create_default_registry()

        assert sorted(registry.engines) == ["handlebars", "jinja2", "mustache", "nunjucks"]
        assert registry.default_engine == "jinja2"
        assert registry.get_renderer("nunjucks") is registry.get_renderer("jinja2")

    def test_custom_default_engine(self):
        assert create_default_registry("handlebars").default_engine == "handlebars"

    def test_unknown_engine_raises(self):
        registry = create_default_registry()

        with pytest.raises(UnknownEngineError, match="Unknown template engine: ejs. Available:") as exc_info:
            registry.get_renderer("ejs")

        assert exc_info.value.engine == "ejs"

    def test_register_replaces(self):
        first, second = Jinja2TemplateRenderer(), Jinja2TemplateRenderer(autoescape=False)
        registry = RendererRegistry([("jinja2", first)], "jinja2")

        registry.register("jinja2", second)

        assert registry.get_renderer("jinja2") is second
        assert registry.has_engine("jinja2")
        assert not registry.has_engine("mustache")

    def test_ejs_not_bundled(self):
        registry = create_default_registry()

        assert not registry.has_engine("ejs")
        with pytest.raises(UnknownEngineError):
            registry.get_renderer("ejs")
