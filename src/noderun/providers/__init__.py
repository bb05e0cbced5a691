"""
Providers attached to build targets.

Exports:
- Depset
- Target, make_target
- DefaultInfo, ExternalNpmPackageInfo, LinkablePackageInfo
- NodeRuntimeDepsInfo, node_runtime_deps_info
"""
from .depset import Depset
from .info import (
    DefaultInfo,
    ExternalNpmPackageInfo,
    LinkablePackageInfo,
    NodeRuntimeDepsInfo,
    Target,
    make_target,
    node_runtime_deps_info,
)
