"""AliasRedirects emitter: a redirect page for every frontmatter alias."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from html import escape
from typing import TYPE_CHECKING, ClassVar

import structlog

from garden.document import Document
from garden.errors import ConfigurationError
from garden.pipeline import Artifact
from garden.render import href, page_path
from garden.slugs import slugify_path

if TYPE_CHECKING:
    from garden.pipeline import BuildContext
    from garden.plugin import PluginDescriptor

logger = structlog.get_logger(__name__)

RESERVED = frozenset({"", "404", "index", "sitemap", "tags"})


def redirect_html(from_slug: str, to_slug: str, title: str) -> str:
    target = escape(href(from_slug, to_slug))
    return (
        "<!DOCTYPE html>\n"
        f'<html lang="en-us"><head><title>{escape(title)}</title>'
        f'<meta name="robots" content="noindex"><meta charset="utf-8">'
        f'<meta http-equiv="refresh" content="0; url={target}"></head></html>\n'
    )


@dataclass(frozen=True)
class AliasRedirects:
    name: ClassVar[str] = "AliasRedirects"

    def emit(self, documents: Sequence[Document], ctx: "BuildContext") -> list[Artifact]:
        # reserved slugs include dropped documents
        taken = set(ctx.all_slugs)
        claimed: dict[str, str] = {}
        artifacts = []
        for doc in documents:
            for alias in doc.frontmatter.aliases:
                try:
                    alias_slug = slugify_path(alias)
                except ConfigurationError:
                    logger.warning("alias_invalid", slug=doc.slug, alias=alias)
                    continue
                if alias_slug in RESERVED or alias_slug in taken or alias_slug.startswith("tags/"):
                    logger.warning("alias_collides", slug=doc.slug, alias=alias_slug)
                    continue
                if alias_slug in claimed:
                    if claimed[alias_slug] != doc.slug:
                        logger.warning("alias_duplicate", slug=doc.slug, alias=alias_slug, owner=claimed[alias_slug])
                    continue
                claimed[alias_slug] = doc.slug
                artifacts.append(
                    Artifact.text(page_path(alias_slug), redirect_html(alias_slug, doc.slug, doc.title), self.name)
                )
        return artifacts


def create_plugin(descriptor: "PluginDescriptor") -> AliasRedirects:
    return AliasRedirects(**descriptor.options)
