"""
Registry of template renderer strategies keyed by engine name.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from notify_gateway.notifications.exceptions import UnknownEngineError
from notify_gateway.rendering.base import TemplateRenderer
from notify_gateway.rendering.handlebars_renderer import HandlebarsTemplateRenderer
from notify_gateway.rendering.jinja_renderer import Jinja2TemplateRenderer
from notify_gateway.rendering.mustache_renderer import MustacheTemplateRenderer


logger = logging.getLogger(__name__)


class RendererRegistry:
    """
    Resolves engine names to renderer strategies.

    An unknown engine is always an error; the registry never substitutes
    its default engine for a name it does not know.
    """

    def __init__(
        self,
        renderers: Iterable[Tuple[str, TemplateRenderer]],
        default_engine: str
    ):
        """
        Initialize registry.

        Args:
            renderers: (engine name, renderer) pairs; later pairs replace
                earlier ones registered under the same name
            default_engine: Engine used when neither template nor request
                names one
        """
        self._renderers: Dict[str, TemplateRenderer] = {}
        for engine, renderer in renderers:
            self.register(engine, renderer)
        self.default_engine = default_engine

        if not self.has_engine(default_engine):
            logger.warning(f"Default template engine '{default_engine}' is not registered")

    def register(self, engine: str, renderer: TemplateRenderer) -> None:
        self._renderers[engine] = renderer

    def get_renderer(self, engine: str) -> TemplateRenderer:
        """
        Get the renderer for an engine.

        Raises:
            UnknownEngineError: If no renderer is registered under ``engine``
        """
        renderer = self._renderers.get(engine)
        if renderer is None:
            raise UnknownEngineError(
                f"Unknown template engine: {engine}. Available: {', '.join(self.engines)}",
                engine,
            )
        return renderer

    def has_engine(self, engine: str) -> bool:
        return engine in self._renderers

    @property
    def engines(self) -> List[str]:
        return list(self._renderers.keys())


def create_default_registry(default_engine: Optional[str] = None) -> RendererRegistry:
    """
    Build a registry with every bundled engine.

    Args:
        default_engine: Default engine name (``jinja2`` if None)
    """
    # ejs is not bundled; it resolves as an unknown engine
    jinja = Jinja2TemplateRenderer()
    return RendererRegistry(
        [
            ("handlebars", HandlebarsTemplateRenderer()),
            ("jinja2", jinja),
            ("mustache", MustacheTemplateRenderer()),
            ("nunjucks", jinja),
        ],
        default_engine or "jinja2",
    )
