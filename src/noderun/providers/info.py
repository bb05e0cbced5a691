# noderun/providers/info.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar

from noderun.providers.depset import Depset

P = TypeVar("P")


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DefaultInfo:
    """Files a target produces."""

    files: Depset = field(default_factory=Depset)


@dataclass(frozen=True)
class ExternalNpmPackageInfo:
    """
    Metadata exposed by targets that come from an externally installed
    package tree. The workspace implies the module root
    ``<workspace>/node_modules``.
    """

    workspace: str
    path: str = ""
    sources: Depset = field(default_factory=Depset)


@dataclass(frozen=True)
class LinkablePackageInfo:
    """A first-party package made resolvable under ``package_name``."""

    package_name: str
    path: str


@dataclass(frozen=True)
class NodeRuntimeDepsInfo:
    """
    Runtime dependencies of a binary or test.

    These are the files the module resolver must find at execution time.
    Passing them as a flat input set plus a manifest avoids building a
    symlink forest per binary and keeps everything in one resolution tree.

    Fields:
      deps: transitive depset of runtime files
      pkgs: targets carrying package metadata, first-seen order
    """

    deps: Depset = field(default_factory=Depset)
    pkgs: Tuple["Target", ...] = ()

    @property
    def runtime_files(self) -> Depset:
        return self.deps

    @property
    def linked_packages(self) -> Tuple["Target", ...]:
        return self.pkgs


# ---------------------------------------------------------------------------
# Target: a label plus a capability map of providers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Target:
    label: str
    providers: Mapping[type, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for key, value in self.providers.items():
            if not isinstance(value, key):
                raise TypeError(
                    f"Target {self.label}: provider keyed by {key.__name__} "
                    f"is a {type(value).__name__}"
                )

    def __contains__(self, provider: type) -> bool:
        return provider in self.providers

    def __getitem__(self, provider: Type[P]) -> P:
        try:
            return self.providers[provider]
        except KeyError:
            raise KeyError(
                f"Target {self.label} does not provide {provider.__name__}"
            ) from None

    def get(self, provider: Type[P], default: Optional[P] = None) -> Optional[P]:
        return self.providers.get(provider, default)

    def __hash__(self) -> int:
        return hash(self.label)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Target):
            return NotImplemented
        return self.label == other.label


def make_target(label: str, *providers: Any) -> Target:
    """Build a Target from provider instances, keyed by their class."""
    return Target(label=label, providers={type(p): p for p in providers})


# ---------------------------------------------------------------------------
# Descriptor construction (target evaluation time)
# ---------------------------------------------------------------------------

def _dedupe_targets(targets: Iterable[Target]) -> Tuple[Target, ...]:
    seen = set()
    out: List[Target] = []
    for t in targets:
        if t.label in seen:
            continue
        seen.add(t.label)
        out.append(t)
    return tuple(out)


def node_runtime_deps_info(
    data: Sequence[Target] = (),
    deps: Sequence[Target] = (),
    pkgs: Optional[Sequence[Target]] = None,
    direct_files: Iterable[Any] = (),
) -> NodeRuntimeDepsInfo:
    """
    Close over the runtime files of every data/deps edge.

    Each edge contributes its DefaultInfo files and, when present, the
    runtime files of its own NodeRuntimeDepsInfo. ``pkgs`` defaults to
    the data edges, as binaries link whatever they list in data.
    """
    children: List[Depset] = []
    for edge in list(data) + list(deps):
        default = edge.get(DefaultInfo)
        if default is not None:
            children.append(default.files)
        nested = edge.get(NodeRuntimeDepsInfo)
        if nested is not None:
            children.append(nested.runtime_files)

    linked = _dedupe_targets(data if pkgs is None else pkgs)
    return NodeRuntimeDepsInfo(
        deps=Depset(direct=direct_files, transitive=children),
        pkgs=linked,
    )
