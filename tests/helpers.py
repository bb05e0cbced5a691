"""Builders shared by the test modules."""
from typing import Dict, Optional, Sequence

from noderun.actions.context import (
    Actions,
    BuildConfiguration,
    ExecutableBinding,
    File,
    Label,
    RuleContext,
)
from noderun.actions.engine import RecordingEngine
from noderun.providers.depset import Depset
from noderun.providers.info import (
    DefaultInfo,
    ExternalNpmPackageInfo,
    Target,
    make_target,
    node_runtime_deps_info,
)


def npm_pkg(label: str, workspace: str, *paths: str) -> Target:
    files = Depset([File(p) for p in paths])
    return make_target(label, DefaultInfo(files), ExternalNpmPackageInfo(workspace=workspace, sources=files))


def plain(label: str, *paths: str) -> Target:
    return make_target(label, DefaultInfo(Depset([File(p) for p in paths])))


def make_ctx(
    engine: RecordingEngine,
    *,
    label: str = "//app:build",
    data: Sequence[Target] = (),
    deps: Sequence[Target] = (),
    executables: Optional[Dict[str, ExecutableBinding]] = None,
    configuration: Optional[BuildConfiguration] = None,
    workspace: str = "my_wksp",
) -> RuleContext:
    lbl = Label.parse(label)
    configuration = configuration or BuildConfiguration()
    return RuleContext(
        label=lbl,
        workspace_name=workspace,
        configuration=configuration,
        actions=Actions(engine, lbl, configuration.bin_dir),
        data=data,
        deps=deps,
        executables=executables or {},
    )


def tool_binding(label: str = "//tools:tool", data: Sequence[Target] = (), *files: str) -> ExecutableBinding:
    """An executable whose NodeRuntimeDepsInfo links ``data``."""
    info = node_runtime_deps_info(data=data, direct_files=[File(f) for f in files])
    return ExecutableBinding(
        target=make_target(label, info),
        artifact=File("tools/tool.sh"),
    )
