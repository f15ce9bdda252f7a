"""Pipeline driver: transformers, then filters, then emitters.

Every transformer is applied to the whole document set before the next one
runs; filters run after all transformers, each seeing the survivors of the
previous one; emitters run last over the frozen final set. A transformer or
filter failure aborts the build. Emitter failures are isolated: siblings
still run and the failures are reported in :attr:`BuildResult.emit_errors`.
"""

from __future__ import annotations

import os
import shutil
import tempfile
import threading
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, TypeVar

import structlog

from garden.document import Document
from garden.errors import (
    BuildFailedError,
    DuplicateSlugError,
    EmitError,
    FilterError,
    LinkResolutionWarning,
    TransformError,
)
from garden.graph import LinkGraph, build_link_graph
from garden.plugin import plugin_name
from garden.slugs import SlugIndex

if TYPE_CHECKING:
    from garden.config import PipelineConfig, SiteSettings

logger = structlog.get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class Artifact:
    """One output file, addressed by a ``/``-separated path below the output root."""

    path: str
    content: bytes
    emitter: str = ""

    @classmethod
    def text(cls, path: str, text: str, emitter: str = "") -> "Artifact":
        return cls(path=path, content=text.encode("utf-8"), emitter=emitter)


@dataclass
class BuildContext:
    """Per-build state shared with plugins.

    ``all_slugs`` lists every slug loaded for this build, including documents
    a filter later drops, so those slugs stay reserved; ``slug_index`` is the
    link-resolution index over them. ``link_graph`` is set once filters have
    finished and is shared by every emitter.
    """

    settings: "SiteSettings"
    all_slugs: tuple[str, ...]
    link_graph: LinkGraph | None = None
    slug_index: SlugIndex = field(init=False, repr=False)
    _warnings: list[LinkResolutionWarning] = field(default_factory=list, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        self.all_slugs = tuple(self.all_slugs)
        self.slug_index = SlugIndex.build(self.all_slugs)

    def warn(self, warning: LinkResolutionWarning) -> None:
        with self._lock:
            self._warnings.append(warning)

    @property
    def warnings(self) -> list[LinkResolutionWarning]:
        with self._lock:
            return sorted(self._warnings, key=lambda w: (w.source, w.target, w.reason))

    def require_graph(self) -> LinkGraph:
        if self.link_graph is None:
            raise RuntimeError("Link graph is only available to emitters.")
        return self.link_graph


@dataclass
class BuildResult:
    documents: tuple[Document, ...]
    artifacts: list[Artifact]
    warnings: list[LinkResolutionWarning]
    emit_errors: list[EmitError]
    dropped: tuple[str, ...]
    link_graph: LinkGraph

    @property
    def succeeded(self) -> bool:
        return not self.emit_errors


# ---------------------------------------------------------------------------
# Stage helpers
# ---------------------------------------------------------------------------


def _map(fn: Callable[[T], R], items: Sequence[T], max_workers: int | None) -> list[R]:
    """Apply *fn* to every item, in parallel when *max_workers* > 1; order preserved."""
    if not max_workers or max_workers <= 1 or len(items) <= 1:
        return [fn(item) for item in items]
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(fn, items))


def _apply_transformer(transformer: object, ctx: BuildContext, document: Document) -> Document:
    name = plugin_name(transformer)
    try:
        result = transformer.transform(document, ctx)  # type: ignore[attr-defined]
    except Exception as exc:
        raise TransformError(name, document.slug, str(exc) or type(exc).__name__) from exc
    if not isinstance(result, Document):
        raise TransformError(name, document.slug, f"returned {type(result).__name__}, expected Document")
    if result.slug != document.slug:
        raise TransformError(name, document.slug, f"changed the slug to '{result.slug}'")
    return result


def _apply_filter(filter_: object, ctx: BuildContext, document: Document) -> bool:
    name = plugin_name(filter_)
    try:
        verdict = filter_.keep(document, ctx)  # type: ignore[attr-defined]
    except Exception as exc:
        raise FilterError(name, document.slug, str(exc) or type(exc).__name__) from exc
    if not isinstance(verdict, bool):
        raise FilterError(name, document.slug, f"returned {type(verdict).__name__}, expected bool")
    return verdict


def _run_emitter(
    emitter: object, documents: tuple[Document, ...], ctx: BuildContext
) -> tuple[list[Artifact], EmitError | None]:
    name = plugin_name(emitter)
    log = logger.bind(emitter=name)
    log.debug("emitter_started")
    try:
        produced = list(emitter.emit(documents, ctx))  # type: ignore[attr-defined]
        for artifact in produced:
            if not isinstance(artifact, Artifact):
                raise TypeError(f"emitted {type(artifact).__name__}, expected Artifact")
    except Exception as exc:  # noqa: BLE001
        log.exception("emitter_failed", error=str(exc))
        return [], EmitError(name, str(exc) or type(exc).__name__)
    log.debug("emitter_finished", artifacts=len(produced))
    return [Artifact(a.path, a.content, a.emitter or name) for a in produced], None


def _check_paths(artifacts: Iterable[Artifact]) -> list[EmitError]:
    errors: list[EmitError] = []
    owners: dict[str, str] = {}
    for artifact in artifacts:
        path = PurePosixPath(artifact.path)
        if path.is_absolute() or ".." in path.parts or not artifact.path:
            errors.append(EmitError(artifact.emitter, f"invalid output path '{artifact.path}'"))
            continue
        if artifact.path in owners:
            errors.append(
                EmitError(
                    artifact.emitter,
                    f"output path '{artifact.path}' already produced by '{owners[artifact.path]}'",
                )
            )
            continue
        owners[artifact.path] = artifact.emitter
    return errors


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


def run_pipeline(
    documents: Iterable[Document],
    config: "PipelineConfig",
    *,
    max_workers: int | None = None,
) -> BuildResult:
    """Run *documents* through every stage of *config*.

    Raises :class:`~garden.errors.ConfigurationError` (duplicate slug),
    :class:`~garden.errors.TransformError` or :class:`~garden.errors.FilterError`;
    emitter failures are returned, not raised.
    """
    docs = sorted(documents, key=lambda d: d.slug)
    for previous, current in zip(docs, docs[1:]):
        if previous.slug == current.slug:
            raise DuplicateSlugError(current.slug, previous.path, current.path)

    ctx = BuildContext(settings=config.settings, all_slugs=tuple(d.slug for d in docs))
    log = logger.bind(documents=len(docs))
    log.info("build_started", transformers=len(config.transformers), filters=len(config.filters))

    for transformer in config.transformers:
        logger.debug("transformer_started", transformer=plugin_name(transformer))
        docs = _map(lambda d, t=transformer: _apply_transformer(t, ctx, d), docs, max_workers)

    dropped: list[str] = []
    for filter_ in config.filters:
        verdicts = _map(lambda d, f=filter_: _apply_filter(f, ctx, d), docs, max_workers)
        removed = [d.slug for d, keep in zip(docs, verdicts) if not keep]
        if removed:
            logger.info("documents_filtered", filter=plugin_name(filter_), dropped=len(removed))
        dropped.extend(removed)
        docs = [d for d, keep in zip(docs, verdicts) if keep]

    final = tuple(docs)
    ctx.link_graph = build_link_graph(final)

    outcomes = _map(lambda e: _run_emitter(e, final, ctx), list(config.emitters), max_workers)
    artifacts = [a for produced, _ in outcomes for a in produced]
    emit_errors = [err for _, err in outcomes if err is not None]
    emit_errors.extend(_check_paths(artifacts))
    artifacts.sort(key=lambda a: a.path)

    warnings = ctx.warnings
    if warnings:
        logger.warning("link_resolution_warnings", count=len(warnings))
    log.info(
        "build_finished",
        emitted=len(final),
        dropped=len(dropped),
        artifacts=len(artifacts),
        emit_errors=len(emit_errors),
    )
    return BuildResult(
        documents=final,
        artifacts=artifacts,
        warnings=warnings,
        emit_errors=emit_errors,
        dropped=tuple(sorted(dropped)),
        link_graph=ctx.link_graph,
    )


def publish(result: BuildResult, output_dir: Path | str) -> Path:
    """Write *result* to *output_dir*, replacing its previous contents atomically.

    Nothing is written when the build has emitter errors.
    """
    if not result.succeeded:
        raise BuildFailedError(result.emit_errors)
    output_dir = Path(output_dir)
    output_dir.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f".{output_dir.name}-staging-", dir=output_dir.parent))
    backup: Path | None = None
    try:
        for artifact in result.artifacts:
            target = staging.joinpath(*PurePosixPath(artifact.path).parts)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(artifact.content)
        if output_dir.exists():
            backup = output_dir.with_name(f".{output_dir.name}-previous")
            if backup.exists():
                shutil.rmtree(backup)
            os.replace(output_dir, backup)
        os.replace(staging, output_dir)
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        if backup is not None and not output_dir.exists():
            os.replace(backup, output_dir)
        raise
    if backup is not None:
        shutil.rmtree(backup, ignore_errors=True)
    logger.info("build_published", output_dir=str(output_dir), artifacts=len(result.artifacts))
    return output_dir
