"""Frontmatter, link, tag and block-tree parsing.

This is the parsing collaborator: it splits raw markdown into frontmatter
and body, extracts outbound link targets, and builds the opaque
:class:`~garden.document.ContentTree` carried through the pipeline. It does
not implement a markdown grammar.
"""

from __future__ import annotations

import re
from typing import Any

import yaml

from garden.document import ContentTree

# [[Target]] or [[Target|Alias]] or [[Target#Heading]]; ![[embeds]] count too
_WIKILINK_RE = re.compile(r"!?\[\[([^\]|#]+)(?:[|#][^\]]*)?\]\]")
# [text](target) markdown links, excluding images
_MDLINK_RE = re.compile(r"(?<!!)\[[^\]]*\]\(\s*<?([^)\s>]+)>?(?:\s+\"[^\"]*\")?\s*\)")
# Inline #tags (not inside code-spans or URLs)
_TAG_RE = re.compile(r"(?<![`\w/#])#([\w/-]+)")
# YAML front-matter block
_FRONTMATTER_RE = re.compile(r"^---[ \t]*\n(.*?)\n?---[ \t]*(?:\n|$)", re.DOTALL)
_EXTERNAL_RE = re.compile(r"^(?:[a-zA-Z][a-zA-Z0-9+.-]*:|//)")
_BLOCK_SPLIT_RE = re.compile(r"\n\s*\n")
_FENCE_RE = re.compile(r"```.*?```", re.DOTALL)


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Split YAML front-matter from body text.

    Returns ``(metadata_dict, body)``; ``metadata_dict`` is empty when there
    is no front-matter block or when the block is not a YAML mapping.
    """
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return {}, content
    try:
        meta = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        meta = {}
    if not isinstance(meta, dict):
        meta = {}
    return meta, content[match.end() :]


def _dedupe(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def parse_wikilinks(text: str) -> list[str]:
    """Return all ``[[WikiLink]]`` targets found in *text* (de-duped, ordered)."""
    return _dedupe([m.group(1).strip() for m in _WIKILINK_RE.finditer(text) if m.group(1).strip()])


def is_external(target: str) -> bool:
    return bool(_EXTERNAL_RE.match(target))


def parse_markdown_links(text: str) -> list[str]:
    """Return internal ``[text](target)`` link targets (externals and bare anchors skipped)."""
    targets: list[str] = []
    for m in _MDLINK_RE.finditer(text):
        target = m.group(1).strip()
        if not target or target.startswith("#") or is_external(target):
            continue
        targets.append(target)
    return _dedupe(targets)


def parse_links(text: str) -> list[str]:
    """Wikilinks first, then markdown links, ignoring fenced code."""
    text = _FENCE_RE.sub("", text)
    return _dedupe(parse_wikilinks(text) + parse_markdown_links(text))


def parse_tags(text: str) -> list[str]:
    """Return all ``#tag`` values found in *text* (de-duped, ordered)."""
    return _dedupe([m.group(1) for m in _TAG_RE.finditer(text)])


def parse_tree(body: str) -> ContentTree:
    """Split *body* into top-level blocks separated by blank lines."""
    blocks = tuple(b.strip() for b in _BLOCK_SPLIT_RE.split(body) if b.strip())
    return ContentTree(children=blocks)
