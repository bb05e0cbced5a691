# noderun/actions/run_node.py

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from noderun.actions.context import RuleContext
from noderun.actions.engine import ActionSubmission
from noderun.linker.args import Arguments, add_arg, copy_arguments
from noderun.linker.manifest import write_node_modules_manifest
from noderun.linker.roots import node_modules_root_for
from noderun.providers.depset import Depset
from noderun.providers.info import NodeRuntimeDepsInfo, Target

log = logging.getLogger("noderun.run_node")

# ---------------------------------------------------------------------------
# Flags understood by the launcher of the invoked process
# ---------------------------------------------------------------------------
MANIFEST_FLAG = "--bazel_node_modules_manifest"
CAPTURE_STDOUT_FLAG = "--bazel_capture_stdout"
CAPTURE_STDERR_FLAG = "--bazel_capture_stderr"
CAPTURE_EXIT_CODE_FLAG = "--bazel_capture_exit_code"

COMPILATION_MODE_ENV = "COMPILATION_MODE"
NODE_MODULES_ROOT_ENV = "BAZEL_NODE_MODULES_ROOT"


def resolve_env(
    ctx: RuleContext,
    env: Optional[Dict[str, str]],
    configuration_env_vars: Sequence[str] = (),
) -> Dict[str, str]:
    """
    Explicit env wins. Otherwise each requested variable comes from
    --define values (ctx.var), then --action_env values. A variable found
    in neither stays unset. COMPILATION_MODE is always requested.
    """
    env = dict(env or {})
    for var in list(configuration_env_vars) + [COMPILATION_MODE_ENV]:
        if var in env:
            continue
        if var in ctx.var:
            env[var] = ctx.var[var]
        elif var in ctx.configuration.default_shell_env:
            env[var] = ctx.configuration.default_shell_env[var]
        else:
            log.debug("%s: %s is not defined, leaving it unset", ctx.label, var)
    env[NODE_MODULES_ROOT_ENV] = node_modules_root_for(ctx)
    return env


def run_node(
    ctx: RuleContext,
    inputs,
    arguments: Optional[Arguments],
    executable: str,
    **kwargs: Any,
) -> ActionSubmission:
    """
    Run a node program with its node_modules available through a manifest.

    Args:
        ctx: rule context of the calling rule
        inputs: list or Depset of inputs to the action
        arguments: list or Args; copied, the caller's object is not modified
        executable: name of the executable attribute, eg. "my_executable"
            rather than the resolved file
        mnemonic: optional action mnemonic; also names the manifest so
            several actions of one rule do not collide
        link_workspace_root: map the workspace root to the bin dir to
            support absolute requires like 'my_wksp/path/to/file'
        stdout, stderr, exit_code_out: optional Files to capture into.
            With exit_code_out the process exits 0 and the real code is
            written to the file; its consumer must check it.
        env, configuration_env_vars, outputs: see resolve_env
        kwargs: everything else is passed through to ctx.actions.run

    Returns the submitted ActionSubmission.
    """
    binding = ctx.executable(executable)

    outputs: List[Any] = list(kwargs.pop("outputs", None) or [])
    arguments = copy_arguments(arguments)

    extra_inputs = Depset()
    link_data: Sequence[Target] = ()
    deps_info = binding.target.get(NodeRuntimeDepsInfo)
    if deps_info is not None:
        extra_inputs = deps_info.runtime_files
        link_data = deps_info.linked_packages

    # mnemonic stays in kwargs, it is passed on to actions.run as well
    mnemonic = kwargs.get("mnemonic")
    link_workspace_root = kwargs.pop("link_workspace_root", False)
    modules_manifest = write_node_modules_manifest(
        ctx,
        extra_data=link_data,
        mnemonic=mnemonic,
        link_workspace_root=link_workspace_root,
    )
    add_arg(arguments, f"{MANIFEST_FLAG}={modules_manifest.path}")

    stdout_file = kwargs.pop("stdout", None)
    if stdout_file:
        add_arg(arguments, f"{CAPTURE_STDOUT_FLAG}={stdout_file.path}")
        outputs.append(stdout_file)

    stderr_file = kwargs.pop("stderr", None)
    if stderr_file:
        add_arg(arguments, f"{CAPTURE_STDERR_FLAG}={stderr_file.path}")
        outputs.append(stderr_file)

    exit_code_file = kwargs.pop("exit_code_out", None)
    if exit_code_file:
        # forces the process to exit 0; declared outputs must still be created
        add_arg(arguments, f"{CAPTURE_EXIT_CODE_FLAG}={exit_code_file.path}")
        outputs.append(exit_code_file)

    env = resolve_env(
        ctx,
        kwargs.pop("env", None),
        kwargs.pop("configuration_env_vars", None) or [],
    )

    inputs_depset = Depset(
        transitive=[
            Depset.coerce(inputs),
            extra_inputs,
            Depset(direct=[modules_manifest]),
        ]
    )

    log.debug(
        "%s: %s with %d input(s), %d output(s)",
        ctx.label, executable, len(inputs_depset), len(outputs),
    )
    return ctx.actions.run(
        outputs=outputs,
        inputs=inputs_depset,
        arguments=arguments,
        executable=binding.artifact,
        env=env,
        **kwargs,
    )
