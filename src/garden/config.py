"""Immutable build configuration.

:class:`SiteSettings` holds the global options, :class:`PipelineConfig` the
ordered plugin lists. Both are constructed once and passed explicitly into
the pipeline; there is no module-level registry.

When several settings layers are supplied (e.g. a base file and a variant),
they are applied in declaration order and the later-declared value wins per
key; list-valued options are replaced wholesale.
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from garden.document import DateSource
from garden.errors import ConfigurationError
from garden.plugin import Emitter, Filter, Transformer, load_plugins, plugin_name
from garden.slugs import LinkStrategy

DATE_TYPES = ("created", "modified", "published")


def _date_priority(value: Any) -> tuple[DateSource, ...]:  # noqa: ANN401
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConfigurationError(f"date_priority must be a list, got {value!r}")
    try:
        priority = tuple(DateSource(v) for v in value)
    except ValueError as exc:
        allowed = ", ".join(s.value for s in DateSource)
        raise ConfigurationError(f"Unknown date source in {list(value)!r}; expected one of: {allowed}") from exc
    if len(set(priority)) != len(priority):
        raise ConfigurationError(f"date_priority lists a source twice: {list(value)!r}")
    return priority


@dataclass(frozen=True)
class SiteSettings:
    """Global options consumed by the core and the built-in plugins."""

    page_title: str = "Garden"
    base_url: str | None = None
    locale: str = "en-US"
    link_resolution: LinkStrategy = LinkStrategy.SHORTEST
    date_priority: tuple[DateSource, ...] = (
        DateSource.FRONTMATTER,
        DateSource.FILESYSTEM,
        DateSource.VERSION_CONTROL,
    )
    default_date_type: str = "created"
    tag_display_cap: int = 10
    include_empty_documents_in_index: bool = False
    graph_include_tag_nodes: bool = False
    graph_include_folder_nodes: bool = False
    rss_limit: int | None = 10
    rss_full_content: bool = False
    description_length: int = 150
    ignore_patterns: tuple[str, ...] = ("private", "templates", ".obsidian")

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "link_resolution", LinkStrategy(self.link_resolution))
        except ValueError as exc:
            allowed = ", ".join(s.value for s in LinkStrategy)
            raise ConfigurationError(
                f"Unknown link_resolution '{self.link_resolution}'; expected one of: {allowed}"
            ) from exc
        object.__setattr__(self, "date_priority", _date_priority(self.date_priority))
        object.__setattr__(self, "ignore_patterns", tuple(self.ignore_patterns))
        if self.default_date_type not in DATE_TYPES:
            raise ConfigurationError(
                f"Unknown default_date_type '{self.default_date_type}'; expected one of: {', '.join(DATE_TYPES)}"
            )
        if not isinstance(self.tag_display_cap, int) or self.tag_display_cap <= 0:
            raise ConfigurationError(f"tag_display_cap must be a positive integer, got {self.tag_display_cap!r}")
        if self.rss_limit is not None and (not isinstance(self.rss_limit, int) or self.rss_limit <= 0):
            raise ConfigurationError(f"rss_limit must be a positive integer, got {self.rss_limit!r}")
        if self.description_length <= 0:
            raise ConfigurationError("description_length must be positive")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SiteSettings":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(unknown)}")
        return cls(**dict(data))

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def merge_settings(*layers: Mapping[str, Any] | SiteSettings) -> SiteSettings:
    """Fold *layers* left to right; the later-declared value wins per key."""
    merged: dict[str, Any] = {}
    for layer in layers:
        if isinstance(layer, SiteSettings):
            layer = layer.to_dict()
        unknown = sorted(set(layer) - {f.name for f in fields(SiteSettings)})
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(unknown)}")
        merged.update(layer)
    return SiteSettings.from_dict(merged)


@dataclass(frozen=True)
class PipelineConfig:
    """Ordered transformers and filters, emitters, and global settings."""

    transformers: tuple[Transformer, ...] = ()
    filters: tuple[Filter, ...] = ()
    emitters: tuple[Emitter, ...] = ()
    settings: SiteSettings = field(default_factory=SiteSettings)

    def __post_init__(self) -> None:
        object.__setattr__(self, "transformers", tuple(self.transformers))
        object.__setattr__(self, "filters", tuple(self.filters))
        object.__setattr__(self, "emitters", tuple(self.emitters))
        for kind, protocol, plugins in (
            ("transformer", Transformer, self.transformers),
            ("filter", Filter, self.filters),
            ("emitter", Emitter, self.emitters),
        ):
            for plugin in plugins:
                if not isinstance(plugin, protocol):
                    raise ConfigurationError(f"{plugin_name(plugin)} is not a {kind}.")
        names = [plugin_name(e) for e in self.emitters]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(f"Emitters must have unique names: {', '.join(duplicates)}")


def default_config(settings: SiteSettings | None = None) -> PipelineConfig:
    """The stock pipeline: frontmatter, dates, links, description; drafts removed."""
    from garden.emitters.aliases import AliasRedirects
    from garden.emitters.content_index import ContentIndex
    from garden.emitters.content_page import ContentPage
    from garden.emitters.folder_page import FolderPage
    from garden.emitters.graph import GraphData
    from garden.emitters.not_found import NotFoundPage
    from garden.emitters.tag_page import TagPage
    from garden.filters import RemoveDrafts
    from garden.transformers.dates import CreatedModifiedDate
    from garden.transformers.description import Description
    from garden.transformers.frontmatter import FrontMatter
    from garden.transformers.links import CrawlLinks

    return PipelineConfig(
        transformers=(FrontMatter(), CreatedModifiedDate(), CrawlLinks(), Description()),
        filters=(RemoveDrafts(),),
        emitters=(
            AliasRedirects(),
            ContentPage(),
            FolderPage(),
            TagPage(),
            ContentIndex(),
            GraphData(),
            NotFoundPage(),
        ),
        settings=settings or SiteSettings(),
    )


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read configuration file '{path}': {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in '{path}': {exc}") from exc


def load_config(*paths: Path | str) -> PipelineConfig:
    """Load and merge one or more TOML configuration files.

    ``[settings]`` tables merge key by key (later file wins). A plugin list
    (``transformers``, ``filters``, ``emitters``) declared in a later file
    replaces the earlier one; lists never declared fall back to
    :func:`default_config`.
    """
    if not paths:
        raise ConfigurationError("load_config() needs at least one configuration file.")
    layers: list[dict[str, Any]] = []
    plugin_lists: dict[str, list[Any]] = {}
    for path in paths:
        data = _read_toml(Path(path))
        unknown = sorted(set(data) - {"settings", "transformers", "filters", "emitters"})
        if unknown:
            raise ConfigurationError(f"Unknown top-level keys in '{path}': {', '.join(unknown)}")
        layers.append(data.get("settings", {}))
        for key in ("transformers", "filters", "emitters"):
            if key in data:
                plugin_lists[key] = data[key]

    settings = merge_settings(*layers)
    stock = default_config(settings)
    return PipelineConfig(
        transformers=load_plugins("transformer", plugin_lists["transformers"])
        if "transformers" in plugin_lists
        else stock.transformers,
        filters=load_plugins("filter", plugin_lists["filters"]) if "filters" in plugin_lists else stock.filters,
        emitters=load_plugins("emitter", plugin_lists["emitters"]) if "emitters" in plugin_lists else stock.emitters,
        settings=settings,
    )
