"""Command-line front end: ``treekit <command> ...``.

Each sub-command maps onto one library call; failures are logged and turned
into exit code 1.
"""

import argparse
import subprocess
import sys
import zipfile
from collections.abc import Callable, Sequence
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich_argparse import ArgumentDefaultsRichHelpFormatter, RawTextRichHelpFormatter

from treekit import __version__
from treekit.archive import pack, unpack
from treekit.fs import CopierBuilder, ls, mkdir, resolve_absolute_path, rm
from treekit.runner import CmdBuilder

TypeHandler = Callable[[argparse.Namespace, Console], None]


class SmartFormatter(ArgumentDefaultsRichHelpFormatter, RawTextRichHelpFormatter):
    """
    Keep manual newlines/indentation AND show (default: ...) in help.
    """

    pass


################################################################################
# #region Handlers


def _handle_copy(ns: argparse.Namespace, console: Console) -> None:
    builder = CopierBuilder(ns.destination).workers(ns.jobs)
    for _source in ns.sources:
        builder.add(_source)
    for _pattern in ns.include:
        builder.ipat(_pattern)
    for _pattern in ns.exclude:
        builder.epat(_pattern)
    report = builder.build().run()
    console.print(report.format(), markup=False, highlight=False)


def _handle_ls(ns: argparse.Namespace, console: Console) -> None:
    for _entry in ls(ns.paths):
        console.print(_entry, markup=False, highlight=False)


def _handle_rm(ns: argparse.Namespace, console: Console) -> None:
    rm(ns.paths, force=ns.force)


def _handle_mkdir(ns: argparse.Namespace, console: Console) -> None:
    mkdir(ns.paths)


def _handle_abs(ns: argparse.Namespace, console: Console) -> None:
    console.print(str(resolve_absolute_path(ns.path)), markup=False, highlight=False)


def _handle_pack(ns: argparse.Namespace, console: Console) -> None:
    data = pack(ns.source)
    ns.output.parent.mkdir(parents=True, exist_ok=True)
    ns.output.write_bytes(data)
    logger.info(f"Packed `{ns.source}` into `{ns.output}` ({len(data)} bytes)")


def _handle_unpack(ns: argparse.Namespace, console: Console) -> None:
    unpack(ns.archive.read_bytes(), ns.destination)


def _parse_env_pair(value: str) -> tuple[str, str]:
    c_key, sep, c_value = value.partition("=")
    if not sep or not c_key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {value!r}")
    return c_key, c_value


def _handle_run(ns: argparse.Namespace, console: Console) -> None:
    builder = CmdBuilder(ns.command).stream(ns.stream)
    if ns.cwd is not None:
        builder.cwd(ns.cwd)
    for c_key, c_value in ns.env:
        builder.env(c_key, c_value)
    c_stdout, c_stderr = builder.build().output(lossy=True)
    sys.stdout.write(c_stdout)
    sys.stderr.write(c_stderr)


# #endregion
################################################################################
# #region Parser


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="treekit",
        description="Filesystem and archive utilities.",
        formatter_class=SmartFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    group_log = parser.add_mutually_exclusive_group()
    group_log.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    group_log.add_argument("-q", "--quiet", action="store_true", help="Only warnings and errors.")

    subparsers = parser.add_subparsers(dest="command_name", required=True, metavar="COMMAND")

    def _add(name: str, help_text: str, handler: TypeHandler) -> argparse.ArgumentParser:
        sub = subparsers.add_parser(name, help=help_text, formatter_class=SmartFormatter)
        sub.set_defaults(handler=handler)
        return sub

    p_copy = _add("copy", "Copy files from sources into a destination.", _handle_copy)
    p_copy.add_argument("destination", type=Path)
    p_copy.add_argument("sources", type=Path, nargs="+")
    p_copy.add_argument(
        "-i", "--include", action="append", default=[], metavar="GLOB",
        help="Include glob, relative to each source. Ignored when any --exclude is given.",
    )
    p_copy.add_argument(
        "-e", "--exclude", action="append", default=[], metavar="GLOB",
        help="Exclude glob, relative to each source.",
    )
    p_copy.add_argument(
        "-j", "--jobs", type=int, default=None,
        help="Max worker threads (capped at CPU count).",
    )

    p_ls = _add("ls", "List files and directory children.", _handle_ls)
    p_ls.add_argument("paths", type=Path, nargs="+")

    p_rm = _add("rm", "Remove files and directories.", _handle_rm)
    p_rm.add_argument("paths", type=Path, nargs="+")
    p_rm.add_argument("-f", "--force", action="store_true", help="Remove non-empty directories.")

    p_mkdir = _add("mkdir", "Create directories with parents.", _handle_mkdir)
    p_mkdir.add_argument("paths", type=Path, nargs="+")

    p_abs = _add("abs", "Print the absolute, normalized form of a path.", _handle_abs)
    p_abs.add_argument("path", type=Path)

    p_pack = _add("pack", "Zip a directory or file.", _handle_pack)
    p_pack.add_argument("source", type=Path)
    p_pack.add_argument("output", type=Path)

    p_unpack = _add("unpack", "Extract a zip into a directory.", _handle_unpack)
    p_unpack.add_argument("archive", type=Path)
    p_unpack.add_argument("destination", type=Path)

    p_run = _add("run", "Run a shell-style command string.", _handle_run)
    p_run.add_argument("command", help='e.g. "git status --short"')
    p_run.add_argument("--cwd", type=Path, default=None)
    p_run.add_argument(
        "--env", type=_parse_env_pair, action="append", default=[], metavar="KEY=VALUE"
    )
    p_run.add_argument("--stream", action="store_true", help="Do not capture output.")

    return parser


# #endregion
################################################################################
# #region Entry


def _configure_logging(ns: argparse.Namespace) -> None:
    c_level = "DEBUG" if ns.verbose else "WARNING" if ns.quiet else "INFO"
    logger.remove()
    # Resolve sys.stderr per message so redirected streams are honored.
    logger.add(
        lambda msg: sys.stderr.write(msg),
        level=c_level,
        format="<level>{level: <8}</level> {message}",
    )


def main(argv: Sequence[str] | None = None) -> int:
    ns = build_parser().parse_args(argv)
    _configure_logging(ns)
    console = Console(soft_wrap=True)
    try:
        ns.handler(ns, console)
    except subprocess.CalledProcessError as e:
        logger.error(f"Command failed (rc={e.returncode}): {e.cmd}")
        return 1
    except (OSError, ValueError, RuntimeError, zipfile.BadZipFile) as e:
        logger.error(str(e))
        return 1
    return 0


# #endregion
################################################################################
