"""Error taxonomy for the build pipeline.

Fatal errors (:class:`ConfigurationError`, :class:`TransformError`,
:class:`FilterError`) abort a build before any output is written.
:class:`EmitError` is collected per emitter and reported at the end of the
build; :class:`LinkResolutionWarning` is a non-fatal diagnostic.
"""

from __future__ import annotations

from pathlib import Path


class GardenError(Exception):
    """Base class for every error raised by the build pipeline."""


class ConfigurationError(GardenError):
    """Invalid configuration or corpus detected before the pipeline starts."""


class DuplicateSlugError(ConfigurationError):
    """Two source files normalise to the same slug."""

    def __init__(self, slug: str, first: Path | str, second: Path | str) -> None:
        self.slug = slug
        self.paths = (Path(first), Path(second))
        super().__init__(
            f"Duplicate slug '{slug}' produced by '{first}' and '{second}'."
        )


class TransformError(GardenError):
    """A transformer raised or returned an invalid document."""

    def __init__(self, plugin: str, slug: str, message: str) -> None:
        self.plugin = plugin
        self.slug = slug
        super().__init__(f"Transformer '{plugin}' failed on '{slug}': {message}")


class FilterError(GardenError):
    """A filter raised or returned a non-boolean verdict."""

    def __init__(self, plugin: str, slug: str, message: str) -> None:
        self.plugin = plugin
        self.slug = slug
        super().__init__(f"Filter '{plugin}' failed on '{slug}': {message}")


class EmitError(GardenError):
    """A single emitter failed; sibling emitters are unaffected."""

    def __init__(self, emitter: str, message: str) -> None:
        self.emitter = emitter
        super().__init__(f"Emitter '{emitter}' failed: {message}")


class BuildFailedError(GardenError):
    """Raised by :func:`garden.pipeline.publish` when a build did not fully succeed."""

    def __init__(self, errors: list[EmitError]) -> None:
        self.errors = list(errors)
        names = ", ".join(e.emitter for e in self.errors)
        super().__init__(f"Build failed; {len(self.errors)} emitter(s) reported errors: {names}")


class LinkResolutionWarning(UserWarning):
    """An ambiguous or dangling link found while crawling a document.

    Collected in :attr:`garden.pipeline.BuildResult.warnings`; never raised.
    """

    def __init__(
        self,
        source: str,
        target: str,
        reason: str,
        candidates: tuple[str, ...] = (),
        resolved: str | None = None,
    ) -> None:
        self.source = source
        self.target = target
        self.reason = reason
        self.candidates = tuple(candidates)
        self.resolved = resolved
        if reason == "ambiguous":
            detail = f"{len(self.candidates)} candidates, picked '{resolved}'"
        else:
            detail = "no matching document"
        super().__init__(f"{source}: link '{target}' is {reason} ({detail})")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LinkResolutionWarning):
            return NotImplemented
        return (self.source, self.target, self.reason, self.candidates, self.resolved) == (
            other.source,
            other.target,
            other.reason,
            other.candidates,
            other.resolved,
        )

    def __hash__(self) -> int:
        return hash((self.source, self.target, self.reason, self.candidates, self.resolved))
