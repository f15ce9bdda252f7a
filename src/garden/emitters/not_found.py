"""NotFoundPage emitter: ``404.html`` unless a document already lives at ``404``."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from garden.document import Document
from garden.pipeline import Artifact
from garden.render import render_page

if TYPE_CHECKING:
    from garden.pipeline import BuildContext
    from garden.plugin import PluginDescriptor


@dataclass(frozen=True)
class NotFoundPage:
    name: ClassVar[str] = "NotFoundPage"

    def emit(self, documents: Sequence[Document], ctx: "BuildContext") -> list[Artifact]:
        if any(d.slug == "404" for d in documents):
            return []
        body = "<p>Either this page is private or doesn't exist.</p>"
        return [
            Artifact.text(
                "404.html",
                render_page(slug="404", title="404", settings=ctx.settings, body=body),
                self.name,
            )
        ]


def create_plugin(descriptor: "PluginDescriptor") -> NotFoundPage:
    return NotFoundPage(**descriptor.options)
