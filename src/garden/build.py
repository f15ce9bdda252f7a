"""One-call build: discover sources, run the pipeline, publish the output."""

from __future__ import annotations

from pathlib import Path

import structlog

from garden.config import PipelineConfig, default_config
from garden.pipeline import BuildResult, publish, run_pipeline
from garden.sources import discover_sources, load_documents

logger = structlog.get_logger(__name__)


def build_site(
    content_root: Path | str,
    output_dir: Path | str,
    config: PipelineConfig | None = None,
    *,
    use_git: bool = False,
    max_workers: int | None = None,
) -> BuildResult:
    """Build the site under *content_root* into *output_dir*.

    Fatal errors propagate and leave *output_dir* untouched; emitter
    failures raise :class:`~garden.errors.BuildFailedError` from
    :func:`~garden.pipeline.publish`, also without touching *output_dir*.
    """
    config = config or default_config()
    sources = discover_sources(
        Path(content_root),
        ignore_patterns=config.settings.ignore_patterns,
        use_git=use_git,
    )
    documents = load_documents(sources)
    result = run_pipeline(documents, config, max_workers=max_workers)
    publish(result, output_dir)
    return result
