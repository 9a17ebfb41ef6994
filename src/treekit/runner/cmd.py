import os
import shlex
import subprocess
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

################################################################################
# #region ArgParser


class ArgParser:
    """Split a shell-style command string into argv."""

    @staticmethod
    def parse(cmd_str: str) -> list[str]:
        """
        Args:
            cmd_str (str): Command line, e.g. ``'git commit -m "first commit"'``.

        Raises:
            ValueError: If quoting is unbalanced.

        Returns:
            list[str]: Argument vector; empty for a blank string.
        """
        try:
            if os.name == "nt":
                return [_strip_quotes(a) for a in shlex.split(cmd_str, posix=False)]
            return shlex.split(cmd_str)
        except ValueError as e:
            raise ValueError(f"invalid command string: {cmd_str}") from e


def _strip_quotes(arg: str) -> str:
    if len(arg) >= 2 and arg[0] == arg[-1] and arg[0] in "\"'":
        return arg[1:-1]
    return arg


# #endregion
################################################################################
# #region Cmd


@dataclass(frozen=True, slots=True)
class SpecCmdOutput:
    return_code: int
    seconds: float
    stdout: bytes
    stderr: bytes


@dataclass(frozen=True, slots=True)
class Cmd:
    """A ready-to-run command. Build it with :class:`CmdBuilder`."""

    argv: tuple[str, ...]
    cwd: Path
    stream: bool = False
    envs: Mapping[str, str] = field(default_factory=lambda: {})

    def output_in_bytes(self) -> SpecCmdOutput:
        """
        Run the command and capture its output.

        With ``stream`` enabled, the child writes straight to this process's
        stdout/stderr and the captured buffers stay empty.

        Raises:
            ValueError: If the command is empty.
            RuntimeError: If the process cannot be spawned.
            CalledProcessError: If the process exits with a non-zero code.

        Returns:
            SpecCmdOutput(return_code, seconds, stdout, stderr)
        """
        if not self.argv:
            raise ValueError("command is empty")

        l_cmd = list(self.argv)
        c_cmd = shlex.join(l_cmd)
        logger.debug(f"RUN [{self.cwd}]:: {c_cmd}")
        n_pipe = None if self.stream else subprocess.PIPE

        t0 = time.perf_counter()
        try:
            p = subprocess.run(
                l_cmd,
                cwd=self.cwd,
                env={**os.environ, **self.envs},
                stdout=n_pipe,
                stderr=n_pipe,
                close_fds=True,
            )
        except OSError as e:
            raise RuntimeError(f"spawn command: {c_cmd}") from e
        t1 = time.perf_counter() - t0

        if p.returncode != 0:
            logger.error(f"Fail: {c_cmd} (rc={p.returncode}) in {t1:.1f}s")
            raise subprocess.CalledProcessError(
                p.returncode, l_cmd, output=p.stdout, stderr=p.stderr
            )

        logger.debug(f"Done: {c_cmd} in {t1:.1f}s")
        return SpecCmdOutput(
            return_code=p.returncode,
            seconds=t1,
            stdout=p.stdout or b"",
            stderr=p.stderr or b"",
        )

    def output(self, lossy: bool = True) -> tuple[str, str]:
        """Run the command and decode stdout/stderr as UTF-8.

        Args:
            lossy: Replace invalid bytes instead of raising.

        Raises:
            ValueError: If ``lossy`` is False and a stream is not valid UTF-8.
        """
        cls_output = self.output_in_bytes()
        if lossy:
            return (
                cls_output.stdout.decode("utf-8", errors="replace"),
                cls_output.stderr.decode("utf-8", errors="replace"),
            )

        l_decoded: list[str] = []
        for c_name, b_data in (("stdout", cls_output.stdout), ("stderr", cls_output.stderr)):
            try:
                l_decoded.append(b_data.decode("utf-8"))
            except UnicodeDecodeError as e:
                raise ValueError(
                    f"{c_name} contains invalid utf-8 bytes: {b_data!r}"
                ) from e
        return l_decoded[0], l_decoded[1]

    def run(self) -> None:
        self.output(lossy=True)


# #endregion
################################################################################
# #region CmdBuilder


class CmdBuilder:
    """Staging value for a :class:`Cmd`.

    Example:
        >>> cmd = CmdBuilder("git status --short").cwd("repo").env("LC_ALL", "C").build()
        >>> out, err = cmd.output()
    """

    def __init__(self, cmd_str: str) -> None:
        self._argv = ArgParser.parse(cmd_str)
        try:
            self._cwd = Path.cwd()
        except OSError as e:
            raise RuntimeError(
                f"Get current working directory for running command: {cmd_str}"
            ) from e
        self._stream = False
        self._envs: dict[str, str] = {}

    def cwd(self, path: os.PathLike[str] | str) -> "CmdBuilder":
        self._cwd = Path(path)
        return self

    def stream(self, stream: bool) -> "CmdBuilder":
        self._stream = stream
        return self

    def env(self, key: str, value: str) -> "CmdBuilder":
        self._envs[key] = value
        return self

    def build(self) -> Cmd:
        return Cmd(
            argv=tuple(self._argv),
            cwd=self._cwd,
            stream=self._stream,
            envs=dict(self._envs),
        )


# #endregion
################################################################################
