"""
Mustache template renderer backed by chevron.
"""

from typing import Mapping

import chevron
from chevron.tokenizer import ChevronError

from notify_gateway.rendering.base import TemplateRenderer


class MustacheTemplateRenderer(TemplateRenderer):
    """Logic-less ``{{name}}`` templates."""

    name = "mustache"
    engine_errors = (ChevronError,)

    def render_string(self, source: str, variables: Mapping[str, str]) -> str:
        return chevron.render(template=source, data=dict(variables))
