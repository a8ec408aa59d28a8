"""
Handlebars template renderer backed by pybars3.
"""

import threading
from typing import Mapping

from pybars import Compiler, PybarsError

from notify_gateway.rendering.base import TemplateRenderer


class HandlebarsTemplateRenderer(TemplateRenderer):
    """Handlebars templates with block helpers (``{{#if}}``, ``{{#each}}``)."""

    name = "handlebars"
    engine_errors = (PybarsError,)

    def __init__(self):
        self._compiler = Compiler()
        # pybars' Compiler keeps per-compile state
        self._lock = threading.Lock()

    def render_string(self, source: str, variables: Mapping[str, str]) -> str:
        with self._lock:
            template = self._compiler.compile(source)
        return str(template(dict(variables)))
