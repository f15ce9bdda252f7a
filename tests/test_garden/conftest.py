"""Shared fixtures for the garden test-suite."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from garden.document import DateSource, DateStamp, Dates, Document, Frontmatter
from garden.parser import parse_tree


def _stamp(value: str | None) -> DateStamp | None:
    if value is None:
        return None
    return DateStamp(datetime.fromisoformat(value).replace(tzinfo=timezone.utc), DateSource.FRONTMATTER)


@pytest.fixture()
def make_doc():
    """Factory for already-transformed documents (frontmatter, dates and links set)."""

    def factory(
        slug: str,
        *,
        body: str = "Some text.",
        title: str | None = None,
        tags: tuple[str, ...] = (),
        created: str | None = None,
        draft: bool = False,
        links: tuple[str, ...] = (),
        description: str | None = None,
        is_folder_index: bool = False,
    ) -> Document:
        path = Path(f"{slug}/index.md" if is_folder_index else f"{slug}.md")
        return Document(
            slug=slug,
            path=path,
            body=body,
            tree=parse_tree(body),
            frontmatter=Frontmatter(title=title, tags=tuple(tags), draft=draft),
            dates=Dates(created=_stamp(created)),
            links=tuple(links),
            description=description,
            is_folder_index=is_folder_index,
        )

    return factory
