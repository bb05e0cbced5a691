# noderun/linker/manifest.py

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from noderun.errors import ModuleMappingConflictError
from noderun.linker.roots import compute_node_modules_root
from noderun.providers.info import LinkablePackageInfo, Target

if TYPE_CHECKING:
    from noderun.actions.context import File, RuleContext

log = logging.getLogger("noderun.linker")

MANIFEST_SUFFIX = "module_mappings.json"

# Shape of the document the launcher accepts.
MANIFEST_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["bin", "modules", "root", "workspace"],
    "properties": {
        "bin": {"type": "string"},
        "root": {"type": "string"},
        "workspace": {"type": "string"},
        "modules": {
            "type": "object",
            "additionalProperties": {
                "type": "array",
                "items": {"type": "string"},
                "minItems": 2,
                "maxItems": 2,
            },
        },
    },
    "additionalProperties": False,
}


def manifest_basename(name: str, mnemonic: Optional[str] = None) -> str:
    if mnemonic:
        return f"_{name}.{mnemonic}.{MANIFEST_SUFFIX}"
    return f"_{name}.{MANIFEST_SUFFIX}"


def collect_module_mappings(
    targets: Sequence[Target],
    workspace_name: str,
    bin_dir: str,
    link_workspace_root: bool = False,
) -> Dict[str, List[str]]:
    """
    package_name -> ["execroot", path] for every LinkablePackageInfo edge.
    """
    mappings: Dict[str, List[str]] = {}
    if link_workspace_root:
        mappings[workspace_name] = ["execroot", bin_dir]

    for t in targets:
        info = t.get(LinkablePackageInfo)
        if info is None:
            continue
        entry = ["execroot", info.path]
        existing = mappings.get(info.package_name)
        if existing is not None and existing != entry:
            raise ModuleMappingConflictError(info.package_name, existing[1], info.path)
        mappings[info.package_name] = entry
    return mappings


def build_manifest_document(
    ctx: "RuleContext",
    extra_data: Sequence[Target] = (),
    link_workspace_root: bool = False,
) -> Dict[str, Any]:
    edges = list(extra_data) + list(ctx.data) + list(ctx.deps)
    return {
        "bin": ctx.bin_dir,
        "modules": collect_module_mappings(
            edges, ctx.workspace_name, ctx.bin_dir, link_workspace_root
        ),
        "root": compute_node_modules_root(edges),
        "workspace": ctx.workspace_name,
    }


def write_node_modules_manifest(
    ctx: "RuleContext",
    extra_data: Sequence[Target] = (),
    mnemonic: Optional[str] = None,
    link_workspace_root: bool = False,
) -> "File":
    """
    Declare and write the module mappings manifest for one action.

    ``mnemonic`` keeps manifests of several actions from the same rule
    apart. ``link_workspace_root`` maps the workspace name to the bin dir
    so absolute requires like 'my_wksp/path/to/file' resolve.
    """
    doc = build_manifest_document(ctx, extra_data, link_workspace_root)
    manifest = ctx.actions.declare_file(manifest_basename(ctx.label.name, mnemonic))
    ctx.actions.write(manifest, json.dumps(doc, indent=2, sort_keys=True) + "\n")
    log.debug("manifest %s: root=%r modules=%s", manifest.path, doc["root"], sorted(doc["modules"]))
    return manifest
