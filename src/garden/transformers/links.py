"""CrawlLinks transformer: find outbound links and resolve them to slugs."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, ClassVar

import structlog

from garden.document import Document
from garden.errors import ConfigurationError
from garden.parser import parse_links
from garden.slugs import LinkStrategy, resolve_link

if TYPE_CHECKING:
    from garden.pipeline import BuildContext
    from garden.plugin import PluginDescriptor

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CrawlLinks:
    name: ClassVar[str] = "CrawlLinks"

    #: Overrides ``settings.link_resolution`` when given
    strategy: str | None = None

    def __post_init__(self) -> None:
        if self.strategy is not None:
            try:
                LinkStrategy(self.strategy)
            except ValueError as exc:
                raise ConfigurationError(f"Unknown link resolution strategy '{self.strategy}'") from exc

    def transform(self, document: Document, ctx: "BuildContext") -> Document:
        strategy = LinkStrategy(self.strategy) if self.strategy else ctx.settings.link_resolution
        resolved: list[str] = []
        for target in parse_links(document.body):
            result = resolve_link(document.slug, target, ctx.slug_index, strategy)
            if result.warning is not None:
                logger.debug("link_unresolved", source=document.slug, target=target, reason=result.warning.reason)
                ctx.warn(result.warning)
            resolved.append(result.slug)
        return replace(document, links=tuple(dict.fromkeys(resolved)))


def create_plugin(descriptor: "PluginDescriptor") -> CrawlLinks:
    return CrawlLinks(**descriptor.options)
