# noderun/linker/roots.py

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from noderun.errors import ModuleRootConflictError
from noderun.providers.info import ExternalNpmPackageInfo, Target

if TYPE_CHECKING:
    from noderun.actions.context import RuleContext

NODE_MODULES = "node_modules"

log = logging.getLogger("noderun.linker")


def root_for_workspace(workspace: str) -> str:
    return "/".join([workspace, NODE_MODULES])


def compute_node_modules_root(edges: Iterable[Target]) -> str:
    """
    Return the single node_modules root implied by ``edges``.

    Every edge carrying ExternalNpmPackageInfo must name the same
    workspace. Returns "" when no edge carries package metadata.
    """
    node_modules_root = ""
    for edge in edges:
        info = edge.get(ExternalNpmPackageInfo)
        if info is None:
            continue
        candidate = root_for_workspace(info.workspace)
        if not node_modules_root:
            node_modules_root = candidate
        elif node_modules_root != candidate:
            raise ModuleRootConflictError(node_modules_root, candidate)
    return node_modules_root


def node_modules_root_for(ctx: "RuleContext") -> str:
    """Module root over the rule's own data + deps edges."""
    root = compute_node_modules_root(list(ctx.data) + list(ctx.deps))
    log.debug("node_modules root for %s: %r", ctx.label, root)
    return root
