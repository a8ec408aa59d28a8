"""
Jinja2 template renderer.
"""

from typing import Mapping

from jinja2 import Environment, TemplateError

from notify_gateway.rendering.base import TemplateRenderer


class Jinja2TemplateRenderer(TemplateRenderer):
    """
    Renders ``{{ variable }}`` / ``{% for %}`` templates with Jinja2.

    Undefined variables render as empty strings and output is autoescaped.
    Registered under ``jinja2`` and, since the syntax is shared, ``nunjucks``.
    """

    name = "jinja2"
    engine_errors = (TemplateError,)

    def __init__(self, autoescape: bool = True):
        self.environment = Environment(autoescape=autoescape)

    def render_string(self, source: str, variables: Mapping[str, str]) -> str:
        return self.environment.from_string(source).render(**variables)
