"""
Base class for template renderer strategies.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional, Tuple, Type

from notify_gateway.notifications.exceptions import TemplateRenderError
from notify_gateway.notifications.models import (
    PersonalisationValue, RenderedEmail, RenderedSms, TemplateDefinition
)
from notify_gateway.rendering.personalisation import split_personalisation


logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "Notification"


class TemplateRenderer(ABC):
    """
    Engine-agnostic rendering algorithm.

    Subclasses only provide ``render_string`` for their template syntax;
    personalisation splitting and subject fallback live here so every
    engine behaves the same way.
    """

    name: str = ""

    # Engine-specific exceptions translated into TemplateRenderError
    engine_errors: Tuple[Type[Exception], ...] = ()

    @abstractmethod
    def render_string(self, source: str, variables: Mapping[str, str]) -> str:
        """
        Render a template string.

        Args:
            source: Template markup
            variables: String variables available to the template

        Returns:
            Rendered text
        """

    def render_email(
        self,
        template: TemplateDefinition,
        personalisation: Mapping[str, PersonalisationValue],
        default_subject: Optional[str] = None,
    ) -> RenderedEmail:
        """
        Render an email template.

        Args:
            template: Stored email template
            personalisation: Normalized personalisation values
            default_subject: Subject used when the template has none

        Returns:
            RenderedEmail with subject, body and decoded attachments
        """
        strings, attachments = split_personalisation(personalisation)

        if template.subject:
            subject = self._render(template.subject, strings)
        else:
            subject = default_subject or DEFAULT_SUBJECT

        body = self._render(template.body, strings)

        return RenderedEmail(
            subject=subject,
            body=body,
            attachments=attachments or None,
        )

    def render_sms(
        self,
        template: TemplateDefinition,
        personalisation: Mapping[str, str],
    ) -> RenderedSms:
        """
        Render an SMS template with string personalisation only.
        """
        return RenderedSms(body=self._render(template.body, dict(personalisation)))

    def _render(self, source: str, variables: Dict[str, str]) -> str:
        try:
            return self.render_string(source, variables)
        except self.engine_errors as e:
            logger.warning(f"{self.name} rendering failed: {e}")
            raise TemplateRenderError(f"Template rendering failed ({self.name}): {e}", self.name)
