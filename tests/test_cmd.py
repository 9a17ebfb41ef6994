from __future__ import annotations

import os
import shlex
import subprocess
import sys
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_DIR))

from treekit.runner import ArgParser, CmdBuilder  # noqa: E402

pytestmark = pytest.mark.skipif(os.name != "posix", reason="posix shell quoting")

PY = shlex.quote(sys.executable)


def test_parse_splits_quoted_arguments() -> None:
    assert ArgParser.parse('git commit -m "first commit"') == [
        "git",
        "commit",
        "-m",
        "first commit",
    ]


def test_parse_rejects_unbalanced_quotes() -> None:
    with pytest.raises(ValueError, match="invalid command string"):
        ArgParser.parse('echo "unterminated')


def test_empty_command_raises() -> None:
    with pytest.raises(ValueError, match="command is empty"):
        CmdBuilder("   ").build().output_in_bytes()


def test_output_captures_both_streams() -> None:
    cmd = CmdBuilder(
        f"{PY} -c \"import sys; print('out'); print('err', file=sys.stderr)\""
    ).build()

    out, err = cmd.output()

    assert out.strip() == "out"
    assert err.strip() == "err"


def test_env_and_cwd_are_applied(tmp_path: Path) -> None:
    cmd = (
        CmdBuilder(
            f"{PY} -c \"import os; print(os.environ['TREEKIT_X']); print(os.getcwd())\""
        )
        .env("TREEKIT_X", "forty-two")
        .cwd(tmp_path)
        .build()
    )

    l_lines = cmd.output()[0].splitlines()

    assert l_lines[0] == "forty-two"
    assert Path(l_lines[1]).resolve() == tmp_path.resolve()


def test_non_zero_exit_raises_called_process_error() -> None:
    cmd = CmdBuilder(f"{PY} -c \"import sys; sys.exit(3)\"").build()

    with pytest.raises(subprocess.CalledProcessError) as exc_info:
        cmd.run()
    assert exc_info.value.returncode == 3


def test_spawn_failure_raises_runtime_error() -> None:
    with pytest.raises(RuntimeError, match="spawn command"):
        CmdBuilder("treekit-definitely-missing-binary --flag").build().run()


def test_strict_decoding_rejects_invalid_utf8() -> None:
    cmd = CmdBuilder(
        f"{PY} -c \"import sys; sys.stdout.buffer.write(bytes([255]))\""
    ).build()

    with pytest.raises(ValueError, match="stdout contains invalid utf-8"):
        cmd.output(lossy=False)
    assert cmd.output(lossy=True)[0] == "\ufffd"


def test_output_in_bytes_returns_raw_buffers() -> None:
    cls_output = CmdBuilder(f"{PY} -c \"print('hi')\"").build().output_in_bytes()

    assert cls_output.return_code == 0
    assert cls_output.stdout.strip() == b"hi"
    assert cls_output.stderr == b""
