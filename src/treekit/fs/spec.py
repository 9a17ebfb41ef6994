import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from ._glob import compile_glob_patterns


class EnumCopyOperation(StrEnum):
    MKDIR = "mkdir"
    COPY = "copy"


class CopyError(OSError):
    """Base error for failures raised by :class:`treekit.fs.copy.Copier`."""


class CopyFileError(CopyError):
    """A single entry could not be materialized in the destination tree."""

    def __init__(
        self,
        operation: EnumCopyOperation,
        path_src: Path,
        path_dst: Path,
        reason: BaseException,
    ) -> None:
        super().__init__(
            f"Failed to {operation.value} `{path_src}` -> `{path_dst}`: {reason}"
        )
        self.operation = operation
        self.path_src = path_src
        self.path_dst = path_dst
        self.reason = reason


@dataclass(frozen=True, slots=True)
class SpecCopyPatterns:
    """Compiled include/exclude glob sets.

    Absolute and unparsable patterns are dropped at compile time, while
    ``if_has_*`` keep track of whether the raw set was configured at all:
    a configured exclude set decides alone even if none of its patterns
    survive compilation.
    """

    patterns_include: tuple[re.Pattern[str], ...]
    patterns_exclude: tuple[re.Pattern[str], ...]
    if_has_include: bool
    if_has_exclude: bool

    @staticmethod
    def _ensure_sequence(value: Sequence[str] | str | None) -> tuple[str, ...]:
        if value is None:
            return ()
        return (value,) if isinstance(value, str) else tuple(value)

    @classmethod
    def from_raw(
        cls,
        *,
        patterns_include: Sequence[str] | str | None,
        patterns_exclude: Sequence[str] | str | None,
    ) -> "SpecCopyPatterns":
        """Build a compiled pattern set from raw glob strings."""
        l_include = cls._ensure_sequence(patterns_include)
        l_exclude = cls._ensure_sequence(patterns_exclude)
        return cls(
            patterns_include=compile_glob_patterns(l_include),
            patterns_exclude=compile_glob_patterns(l_exclude),
            if_has_include=bool(l_include),
            if_has_exclude=bool(l_exclude),
        )


@dataclass(frozen=True, slots=True)
class SpecCopier:
    """Immutable copy configuration assembled by ``CopierBuilder``."""

    destination: Path
    sources: tuple[Path, ...] = ()
    patterns_include: tuple[str, ...] = ()
    patterns_exclude: tuple[str, ...] = ()
    num_workers_max: int | None = None
