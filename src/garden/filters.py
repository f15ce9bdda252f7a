"""Built-in filters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from garden.document import Document

if TYPE_CHECKING:
    from garden.pipeline import BuildContext


@dataclass(frozen=True)
class RemoveDrafts:
    """Drop documents whose frontmatter sets ``draft: true``."""

    name: ClassVar[str] = "RemoveDrafts"

    def keep(self, document: Document, ctx: "BuildContext") -> bool:
        return not document.frontmatter.draft


@dataclass(frozen=True)
class ExplicitPublish:
    """Keep only documents whose frontmatter sets ``publish: true``."""

    name: ClassVar[str] = "ExplicitPublish"

    def keep(self, document: Document, ctx: "BuildContext") -> bool:
        return document.frontmatter.publish is True
