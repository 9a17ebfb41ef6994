from __future__ import annotations

import os
import shlex
import sys
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_DIR))

from treekit.cli import build_parser, main  # noqa: E402


def _write_text(path: Path, text: str = "x") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)


def test_copy_command_applies_patterns(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    src = tmp_path / "src"
    _write_text(src / "a.txt")
    _write_text(src / "b.log")
    _write_text(src / "sub" / "c.txt")
    dst = tmp_path / "dst"

    rc = main(["copy", str(dst), str(src), "-e", "*.log"])

    assert rc == 0
    assert (dst / "a.txt").exists()
    assert (dst / "sub" / "c.txt").exists()
    assert not (dst / "b.log").exists()
    assert "copied=2" in capsys.readouterr().out


def test_parser_collects_repeated_patterns() -> None:
    ns = build_parser().parse_args(["copy", "dst", "s1", "s2", "-i", "*.a", "-i", "*.b"])

    assert ns.include == ["*.a", "*.b"]
    assert ns.exclude == []
    assert [str(p) for p in ns.sources] == ["s1", "s2"]


def test_ls_missing_path_exits_with_error(tmp_path: Path) -> None:
    assert main(["ls", str(tmp_path / "missing")]) == 1


def test_abs_prints_normalized_path(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.chdir(tmp_path)

    assert main(["abs", "x/../y"]) == 0
    assert Path(capsys.readouterr().out.strip()) == tmp_path.resolve() / "y"


def test_mkdir_ls_rm_round_trip(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path_dir = tmp_path / "a" / "b"

    assert main(["mkdir", str(path_dir)]) == 0
    assert main(["ls", str(tmp_path / "a")]) == 0
    assert str(path_dir) in capsys.readouterr().out
    assert main(["rm", str(tmp_path / "a")]) == 1
    assert main(["rm", "-f", str(tmp_path / "a")]) == 0
    assert not (tmp_path / "a").exists()


def test_pack_and_unpack_commands(tmp_path: Path) -> None:
    _write_text(tmp_path / "src" / "sub" / "c.txt", "charlie")
    path_zip = tmp_path / "out" / "src.zip"

    assert main(["pack", str(tmp_path / "src"), str(path_zip)]) == 0
    assert main(["unpack", str(path_zip), str(tmp_path / "restored")]) == 0
    assert (tmp_path / "restored" / "sub" / "c.txt").read_text() == "charlie"


def test_unpack_garbage_exits_with_error(tmp_path: Path) -> None:
    _write_text(tmp_path / "bad.zip", "nope")
    assert main(["unpack", str(tmp_path / "bad.zip"), str(tmp_path / "dst")]) == 1


@pytest.mark.skipif(os.name != "posix", reason="posix shell quoting")
def test_run_command_forwards_output_and_env(capsys: pytest.CaptureFixture[str]) -> None:
    c_cmd = f"{shlex.quote(sys.executable)} -c \"import os; print(os.environ['TK'])\""

    assert main(["run", c_cmd, "--env", "TK=value"]) == 0
    assert capsys.readouterr().out.strip() == "value"


@pytest.mark.skipif(os.name != "posix", reason="posix shell quoting")
def test_run_failing_command_exits_with_error() -> None:
    c_cmd = f"{shlex.quote(sys.executable)} -c \"raise SystemExit(2)\""
    assert main(["run", c_cmd]) == 1


def test_env_option_requires_key_value() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["run", "echo", "--env", "novalue"])


def test_package_main_stays_callable_after_parser_lookup(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    import treekit.cli as cli
    from treekit.cli import app

    cli.build_parser()

    assert cli.main is app.main
    assert cli.main(["abs", str(tmp_path)]) == 0
    assert Path(capsys.readouterr().out.strip()) == tmp_path.resolve()
