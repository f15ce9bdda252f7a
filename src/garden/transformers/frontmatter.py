"""FrontMatter transformer: coerce the raw YAML mapping into :class:`Frontmatter`."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timezone
from typing import TYPE_CHECKING, Any, ClassVar

import structlog

from garden.document import Document, Frontmatter
from garden.parser import parse_tags
from garden.slugs import slugify_tag

if TYPE_CHECKING:
    from garden.pipeline import BuildContext
    from garden.plugin import PluginDescriptor

logger = structlog.get_logger(__name__)

_CREATED_KEYS = ("date", "created")
_MODIFIED_KEYS = ("lastmod", "updated", "last-modified")
_PUBLISHED_KEYS = ("publishDate", "published")
_KNOWN_KEYS = frozenset(
    {
        "title",
        "description",
        "tags",
        "tag",
        "aliases",
        "alias",
        "cssclasses",
        "cssclass",
        "draft",
        "publish",
        *_CREATED_KEYS,
        *_MODIFIED_KEYS,
        *_PUBLISHED_KEYS,
    }
)


def coerce_list(value: Any) -> list[str]:  # noqa: ANN401
    """Accept a list or a comma-separated string; drop empties."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    elif not isinstance(value, (list, tuple, set)):
        value = [value]
    return [str(v).strip() for v in value if v is not None and str(v).strip()]


def coerce_bool(value: Any) -> bool:  # noqa: ANN401
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1"}
    return bool(value)


def coerce_date(value: Any) -> datetime | None:  # noqa: ANN401
    """YAML dates, datetimes and ISO strings; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip())
        except ValueError:
            logger.debug("frontmatter_date_unparsable", value=str(value))
            return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _first(meta: Mapping[str, Any], keys: tuple[str, ...]) -> Any:  # noqa: ANN401
    for key in keys:
        if meta.get(key) not in (None, ""):
            return meta[key]
    return None


def parse_frontmatter_fields(meta: Mapping[str, Any], body: str = "", *, inline_tags: bool = True) -> Frontmatter:
    raw_tags = coerce_list(meta.get("tags", meta.get("tag")))
    if inline_tags:
        raw_tags += parse_tags(body)
    tags = tuple(dict.fromkeys(t for t in (slugify_tag(tag) for tag in raw_tags) if t))

    title = meta.get("title")
    description = meta.get("description")
    publish = meta.get("publish")
    return Frontmatter(
        title=str(title).strip() if title not in (None, "") else None,
        description=str(description).strip() if description not in (None, "") else None,
        tags=tags,
        aliases=tuple(coerce_list(meta.get("aliases", meta.get("alias")))),
        css_classes=tuple(coerce_list(meta.get("cssclasses", meta.get("cssclass")))),
        draft=coerce_bool(meta.get("draft", False)),
        publish=None if publish is None else coerce_bool(publish),
        created=coerce_date(_first(meta, _CREATED_KEYS)),
        modified=coerce_date(_first(meta, _MODIFIED_KEYS)),
        published=coerce_date(_first(meta, _PUBLISHED_KEYS)),
        extra={k: v for k, v in meta.items() if k not in _KNOWN_KEYS},
    )


@dataclass(frozen=True)
class FrontMatter:
    name: ClassVar[str] = "FrontMatter"

    #: Merge inline ``#tags`` from the body into the frontmatter tags
    inline_tags: bool = True

    def transform(self, document: Document, ctx: "BuildContext") -> Document:
        fields = parse_frontmatter_fields(document.raw_frontmatter, document.body, inline_tags=self.inline_tags)
        return replace(document, frontmatter=fields)


def create_plugin(descriptor: "PluginDescriptor") -> FrontMatter:
    return FrontMatter(**descriptor.options)
