"""Description transformer: frontmatter description, or one derived from the body."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, ClassVar

from garden.document import Document

if TYPE_CHECKING:
    from garden.pipeline import BuildContext
    from garden.plugin import PluginDescriptor

_FENCE_RE = re.compile(r"```.*?```", re.DOTALL)
_WIKILINK_RE = re.compile(r"!?\[\[([^\]|]+?)(?:\|([^\]]*))?\]\]")
_MDLINK_RE = re.compile(r"!?\[([^\]]*)\]\([^)]*\)")
_MARKUP_RE = re.compile(r"(^|\s)#{1,6}\s+|[*_`~>]+", re.MULTILINE)
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")


def plain_text(body: str) -> str:
    """Strip the most common markdown syntax and collapse whitespace."""
    text = _FENCE_RE.sub(" ", body)
    text = _WIKILINK_RE.sub(lambda m: (m.group(2) or m.group(1)).split("#")[0], text)
    text = _MDLINK_RE.sub(r"\1", text)
    text = _MARKUP_RE.sub(r"\1", text)
    return re.sub(r"\s+", " ", text).strip()


def summarise(body: str, length: int) -> str | None:
    """Whole sentences until *length* characters, cut with ``...`` when longer."""
    text = plain_text(body)
    if not text:
        return None
    summary = ""
    for sentence in _SENTENCE_RE.split(text):
        if len(summary) >= length:
            break
        summary = f"{summary} {sentence}".strip()
    if len(summary) > length:
        summary = summary[:length].rsplit(" ", 1)[0].rstrip(" ,;:") + "..."
    return summary


@dataclass(frozen=True)
class Description:
    name: ClassVar[str] = "Description"

    #: Overrides ``settings.description_length`` when given
    length: int | None = None

    def transform(self, document: Document, ctx: "BuildContext") -> Document:
        if document.frontmatter.description:
            return replace(document, description=document.frontmatter.description)
        length = self.length or ctx.settings.description_length
        return replace(document, description=summarise(document.body, length))


def create_plugin(descriptor: "PluginDescriptor") -> Description:
    return Description(**descriptor.options)
