"""
Template rendering strategies and the renderer registry.
"""

from notify_gateway.rendering.base import TemplateRenderer, DEFAULT_SUBJECT
from notify_gateway.rendering.registry import RendererRegistry, create_default_registry
from notify_gateway.rendering.jinja_renderer import Jinja2TemplateRenderer
from notify_gateway.rendering.mustache_renderer import MustacheTemplateRenderer
from notify_gateway.rendering.handlebars_renderer import HandlebarsTemplateRenderer
from notify_gateway.rendering.personalisation import (
    normalize_personalisation, split_personalisation, string_personalisation
)

__all__ = [
    'TemplateRenderer',
    'DEFAULT_SUBJECT',
    'RendererRegistry',
    'create_default_registry',
    'Jinja2TemplateRenderer',
    'MustacheTemplateRenderer',
    'HandlebarsTemplateRenderer',
    'normalize_personalisation',
    'split_personalisation',
    'string_personalisation',
]
