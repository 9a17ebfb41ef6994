from .copy import Copier, CopierBuilder
from .ops import ls, mkdir, rm
from .report import ReportCopy
from .spec import CopyError, CopyFileError, EnumCopyOperation, SpecCopier
from .util import (
    is_interested_file,
    iter_tree_files,
    resolve_absolute_path,
)

abs_path = resolve_absolute_path

__all__ = [
    "Copier",
    "CopierBuilder",
    "CopyError",
    "CopyFileError",
    "EnumCopyOperation",
    "ReportCopy",
    "SpecCopier",
    "abs_path",
    "is_interested_file",
    "iter_tree_files",
    "ls",
    "mkdir",
    "resolve_absolute_path",
    "rm",
]
