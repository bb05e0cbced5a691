import json
import sys
from pathlib import Path

import jsonschema
import pytest

from noderun.launcher import MANIFEST_ENV, launch, load_manifest, main, parse_launcher_args


def _manifest(tmp_path: Path, **overrides) -> Path:
    doc = {"bin": "bazel-out/bin", "modules": {}, "root": "npm/node_modules", "workspace": "w"}
    doc.update(overrides)
    p = tmp_path / "_x.module_mappings.json"
    p.write_text(json.dumps(doc))
    return p


def test_flags_are_stripped_wherever_they_appear():
    opts, rest = parse_launcher_args([
        "--bazel_capture_stdout=out.txt",
        "node",
        "main.js",
        "--bazel_node_modules_manifest=m.json",
        "--keep=me",
        "--bazel_capture_exit_code=code.txt",
    ])
    assert rest == ["node", "main.js", "--keep=me"]
    assert opts.stdout == Path("out.txt")
    assert opts.manifest == Path("m.json")
    assert opts.exit_code == Path("code.txt")
    assert opts.stderr is None


def test_flag_without_value_is_rejected():
    with pytest.raises(ValueError, match="requires a path"):
        parse_launcher_args(["--bazel_capture_stderr=", "prog"])


def test_exit_code_capture_forces_zero(tmp_path):
    out = tmp_path / "cap" / "stdout.txt"
    err = tmp_path / "cap" / "stderr.txt"
    code = tmp_path / "cap" / "exit_code.txt"
    script = "import sys; print('hello'); print('oops', file=sys.stderr); sys.exit(3)"

    rc = launch([
        sys.executable, "-c", script,
        f"--bazel_capture_stdout={out}",
        f"--bazel_capture_stderr={err}",
        f"--bazel_capture_exit_code={code}",
    ])

    assert rc == 0
    assert out.read_text().strip() == "hello"
    assert err.read_text().strip() == "oops"
    assert code.read_text() == "3"


def test_exit_code_passes_through_without_capture():
    rc = launch([sys.executable, "-c", "import sys; sys.exit(4)"])
    assert rc == 4


def test_manifest_path_reaches_child(tmp_path):
    m = _manifest(tmp_path)
    out = tmp_path / "env.txt"
    script = f"import os; print(os.environ['{MANIFEST_ENV}'])"

    rc = launch(
        [f"--bazel_node_modules_manifest={m}", f"--bazel_capture_stdout={out}", sys.executable, "-c", script],
        env={},
    )
    assert rc == 0
    assert out.read_text().strip() == str(m)


def test_invalid_manifest_is_rejected(tmp_path):
    m = _manifest(tmp_path, modules={"x": ["execroot"]})
    with pytest.raises(jsonschema.ValidationError):
        load_manifest(m)


def test_missing_manifest(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_manifest(tmp_path / "nope.json")


def test_main_reports_usage_errors(capsys):
    assert main([]) == 2
    assert "No program given" in capsys.readouterr().err


def test_unstartable_program_is_captured_as_127(tmp_path):
    code = tmp_path / "cap" / "exit_code.txt"
    err = tmp_path / "cap" / "stderr.txt"

    rc = main([
        str(tmp_path / "no-such-program"),
        f"--bazel_capture_stderr={err}",
        f"--bazel_capture_exit_code={code}",
    ])

    assert rc == 0
    assert code.read_text() == "127"
    assert "no-such-program" in err.read_text()


def test_unstartable_program_without_capture_is_a_usage_error(tmp_path, capsys):
    assert main([str(tmp_path / "no-such-program")]) == 2
    assert "noderun-launch:" in capsys.readouterr().err
