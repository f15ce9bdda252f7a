"""Plugin contracts and descriptor loader.

A pipeline is assembled from three plugin kinds, each declared in the
configuration file as a descriptor::

    [[transformers]]
    entry   = "garden.transformers.dates"      # module exposing create_plugin()
    options = { priority = ["frontmatter"] }

    [[filters]]
    entry = "garden.filters:RemoveDrafts"      # module:factory, called with **options

A module entry must expose a ``create_plugin(descriptor)`` factory; a
``module:attr`` entry names a callable that receives the options as keyword
arguments.
"""

from __future__ import annotations

import importlib
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from garden.errors import ConfigurationError

if TYPE_CHECKING:
    from garden.document import Document
    from garden.pipeline import Artifact, BuildContext


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class Transformer(Protocol):
    """``(document) -> document'``; must keep the slug and never drop documents."""

    name: str

    def transform(self, document: "Document", ctx: "BuildContext") -> "Document": ...


@runtime_checkable
class Filter(Protocol):
    """``(document) -> bool``; False drops the document for the rest of the build."""

    name: str

    def keep(self, document: "Document", ctx: "BuildContext") -> bool: ...


@runtime_checkable
class Emitter(Protocol):
    """``(final documents, context) -> artifacts``; read-only over documents."""

    name: str

    def emit(self, documents: Sequence["Document"], ctx: "BuildContext") -> list["Artifact"]: ...


PLUGIN_KINDS: dict[str, type] = {
    "transformer": Transformer,
    "filter": Filter,
    "emitter": Emitter,
}


def plugin_name(plugin: object) -> str:
    return getattr(plugin, "name", None) or type(plugin).__name__


# ---------------------------------------------------------------------------
# Descriptor
# ---------------------------------------------------------------------------


@dataclass
class PluginDescriptor:
    kind: str
    entry: str
    options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, kind: str, data: dict[str, Any] | str) -> "PluginDescriptor":
        if kind not in PLUGIN_KINDS:
            raise ConfigurationError(f"Unknown plugin kind '{kind}'.")
        if isinstance(data, str):
            return cls(kind=kind, entry=data)
        if "entry" not in data:
            raise ConfigurationError(f"A {kind} descriptor needs an 'entry' key: {data!r}")
        options = data.get("options", {})
        if not isinstance(options, dict):
            raise ConfigurationError(f"Options for '{data['entry']}' must be a table.")
        return cls(kind=kind, entry=data["entry"], options=dict(options))


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def load_plugin(descriptor: PluginDescriptor) -> Any:  # noqa: ANN401
    """Import and instantiate the plugin named by *descriptor*."""
    module_name, _, attr = descriptor.entry.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"Cannot import plugin module '{module_name}': {exc}") from exc

    try:
        if attr:
            factory = getattr(module, attr, None)
            if factory is None:
                raise ConfigurationError(f"Plugin module '{module_name}' has no attribute '{attr}'.")
            plugin = factory(**descriptor.options)
        else:
            if not hasattr(module, "create_plugin"):
                raise ConfigurationError(
                    f"Plugin module '{module_name}' must expose a 'create_plugin(descriptor)' factory."
                )
            plugin = module.create_plugin(descriptor)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid options for plugin '{descriptor.entry}': {exc}") from exc

    protocol = PLUGIN_KINDS[descriptor.kind]
    if not isinstance(plugin, protocol):
        raise ConfigurationError(
            f"Plugin '{descriptor.entry}' does not implement the {descriptor.kind} protocol."
        )
    return plugin


def load_plugins(kind: str, entries: Sequence[dict[str, Any] | str]) -> tuple[Any, ...]:
    """Load every descriptor in *entries*, preserving declaration order."""
    return tuple(load_plugin(PluginDescriptor.from_dict(kind, entry)) for entry in entries)
