"""garden: build a static site from a tree of markdown documents."""

from garden.build import build_site
from garden.config import PipelineConfig, SiteSettings, default_config, load_config, merge_settings
from garden.content_index import ContentIndexEntry, build_content_index
from garden.document import Document, Frontmatter
from garden.errors import (
    BuildFailedError,
    ConfigurationError,
    DuplicateSlugError,
    EmitError,
    FilterError,
    LinkResolutionWarning,
    TransformError,
)
from garden.graph import LinkGraph, build_link_graph
from garden.hierarchy import folder_listing, tag_index, tag_listing
from garden.logging_config import configure_logging
from garden.pipeline import Artifact, BuildContext, BuildResult, publish, run_pipeline
from garden.slugs import LinkStrategy, SlugIndex, resolve_link, slugify_path

__all__ = [
    "Artifact",
    "BuildContext",
    "BuildFailedError",
    "BuildResult",
    "ConfigurationError",
    "ContentIndexEntry",
    "Document",
    "DuplicateSlugError",
    "EmitError",
    "FilterError",
    "Frontmatter",
    "LinkGraph",
    "LinkResolutionWarning",
    "LinkStrategy",
    "PipelineConfig",
    "SiteSettings",
    "SlugIndex",
    "TransformError",
    "build_content_index",
    "build_link_graph",
    "build_site",
    "configure_logging",
    "default_config",
    "folder_listing",
    "load_config",
    "merge_settings",
    "publish",
    "resolve_link",
    "run_pipeline",
    "slugify_path",
    "tag_index",
    "tag_listing",
]
