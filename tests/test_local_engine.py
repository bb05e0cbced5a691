import json
import stat
from pathlib import Path

import pytest

from helpers import make_ctx, tool_binding
from noderun.actions.context import BuildConfiguration
from noderun.actions.local import LocalEngine
from noderun.actions.run_node import run_node
from noderun.errors import ActionFailedError


def _write_tool(root: Path, body: str) -> None:
    tool = root / "tools" / "tool.sh"
    tool.parent.mkdir(parents=True, exist_ok=True)
    tool.write_text("#!/usr/bin/env bash\nset -e\n" + body + "\n")
    tool.chmod(tool.stat().st_mode | stat.S_IXUSR)


def _ctx(engine):
    return make_ctx(
        engine,
        executables={"tool": tool_binding()},
        configuration=BuildConfiguration(compilation_mode="opt", defines={"FOO": "bar baz"}),
    )


def test_action_runs_in_exec_root(tmp_path):
    _write_tool(tmp_path, 'echo "$COMPILATION_MODE|$FOO|$BAZEL_NODE_MODULES_ROOT|$*" > "$1"')
    engine = LocalEngine(tmp_path)
    ctx = _ctx(engine)
    out = ctx.actions.declare_file("out.txt")

    run_node(ctx, [], [out.path], "tool", outputs=[out], configuration_env_vars=["FOO"], mnemonic="Echo")

    line = (tmp_path / out.path).read_text().strip()
    mode, foo, root, args = line.split("|")
    assert (mode, foo, root) == ("opt", "bar baz", "")
    assert "--bazel_node_modules_manifest=bazel-out/bin/app/_build.Echo.module_mappings.json" in args

    # manifest materialised, script + record kept
    assert (tmp_path / "bazel-out/bin/app/_build.Echo.module_mappings.json").is_file()
    assert (tmp_path / ".noderun/actions/Echo-1.sh").is_file()
    records = engine.read_records()
    assert len(records) == 1
    assert records[0]["returncode"] == 0
    assert records[0]["missing_outputs"] == []


def test_non_zero_exit_raises(tmp_path):
    _write_tool(tmp_path, "exit 7")
    engine = LocalEngine(tmp_path)
    with pytest.raises(ActionFailedError, match="exit code 7") as exc:
        run_node(_ctx(engine), [], [], "tool")
    assert exc.value.returncode == 7
    assert engine.read_records()[0]["returncode"] == 7


def test_missing_output_raises(tmp_path):
    _write_tool(tmp_path, "true")
    engine = LocalEngine(tmp_path)
    ctx = _ctx(engine)
    out = ctx.actions.declare_file("never.txt")
    with pytest.raises(ActionFailedError, match="missing outputs") as exc:
        run_node(ctx, [], [], "tool", outputs=[out])
    assert exc.value.missing_outputs == [out.path]


def test_dry_run_renders_without_running(tmp_path):
    engine = LocalEngine(tmp_path, dry_run=True)
    run_node(_ctx(engine), [], ["a b"], "tool", configuration_env_vars=["FOO"])

    script = engine.last_preview()
    assert "export FOO='bar baz'" in script
    assert "export BAZEL_NODE_MODULES_ROOT=''" in script
    assert "exec ./tools/tool.sh 'a b' --bazel_node_modules_manifest=" in script
    assert not (tmp_path / ".noderun" / "actions").exists()
    assert engine.read_records() == []


def test_dry_run_leaves_exec_root_untouched(tmp_path):
    engine = LocalEngine(tmp_path, dry_run=True)
    run_node(_ctx(engine), [], [], "tool")

    assert list(tmp_path.iterdir()) == []
    manifest = "bazel-out/bin/app/_build.module_mappings.json"
    assert json.loads(engine.preview_files[manifest])["root"] == ""
