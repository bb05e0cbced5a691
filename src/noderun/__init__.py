"""
noderun: run node programs against a module mappings manifest instead of a
materialised node_modules tree.
"""
from noderun.actions import (
    BuildConfiguration,
    ExecutableBinding,
    File,
    Label,
    LocalEngine,
    RecordingEngine,
    RuleContext,
    run_node,
)
from noderun.errors import (
    ActionFailedError,
    BuildConfigurationError,
    ExecutableReferenceError,
    ModuleMappingConflictError,
    ModuleRootConflictError,
)
from noderun.providers import (
    Depset,
    ExternalNpmPackageInfo,
    NodeRuntimeDepsInfo,
    Target,
    node_runtime_deps_info,
)

__version__ = "0.1.0"
