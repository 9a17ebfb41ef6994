import os
import stat
from collections.abc import Iterator, Sequence
from pathlib import Path

from loguru import logger

from .spec import SpecCopyPatterns

################################################################################
# #region WorkerCalculation


def calculate_worker_limit(num_workers_max: int | None) -> int:
    """Calculate a safe worker limit bounded by CPU count.

    Args:
        num_workers_max: User-provided maximum workers; ``None`` uses CPU count.

    Returns:
        A positive worker count.

    Raises:
        ValueError: If ``num_workers_max`` is smaller than 1.
    """
    if num_workers_max is not None and num_workers_max < 1:
        raise ValueError(f"Arg `num_workers_max` must be >= 1 or None, got {num_workers_max}.")
    n_cpu = os.cpu_count() or 1
    return (
        max(1, n_cpu)
        if num_workers_max is None
        else max(1, min(num_workers_max, n_cpu))
    )


# #endregion
################################################################################
# #region Path

_PREFIX_VERBATIM = "\\\\?\\"
_PREFIX_VERBATIM_UNC = "\\\\?\\UNC\\"


def _strip_verbatim_prefix(path: Path) -> Path:
    """Drop the ``\\\\?\\`` prefix Windows may add to canonical paths."""
    c_path = str(path)
    if c_path.startswith(_PREFIX_VERBATIM_UNC):
        return Path("\\\\" + c_path[len(_PREFIX_VERBATIM_UNC) :])
    if c_path.startswith(_PREFIX_VERBATIM) and c_path[5:6] == ":":
        return Path(c_path[len(_PREFIX_VERBATIM) :])
    return path


def _normalize_lexically(path: Path) -> Path:
    # pathlib already drops "." and duplicate separators; only ".." is left.
    l_parts: list[str] = []
    for _part in path.parts[1:] if path.anchor else path.parts:
        if _part == "..":
            if l_parts:
                l_parts.pop()
            continue
        l_parts.append(_part)
    return Path(path.anchor, *l_parts)


def resolve_absolute_path(path: os.PathLike[str] | str) -> Path:
    """Convert ``path`` into an absolute, normalized path.

    Existing paths are canonicalized (symlinks and ``..`` resolved by the
    OS). Missing paths are joined onto the current working directory and
    normalized lexically: ``..`` pops the previous component and never
    climbs above the anchor.

    Args:
        path: Any path, existing or not, relative or absolute.

    Returns:
        Absolute path. Reachability is not checked.
    """
    path_in = Path(path)
    if path_in.exists():
        return _strip_verbatim_prefix(path_in.resolve(strict=True))
    path_abs = path_in if path_in.is_absolute() else Path.cwd() / path_in
    return _normalize_lexically(path_abs)


# #endregion
################################################################################
# #region PatternMatching


def _get_relative_path(root: Path, file_path: Path) -> Path | None:
    if not file_path.is_absolute():
        return file_path
    try:
        path_rel = file_path.relative_to(root)
    except ValueError:
        return None
    # A single-file source is its own root; match on its name.
    return Path(file_path.name) if path_rel == Path() else path_rel


def is_selected_by_patterns(path_relative: str, spec_patterns: SpecCopyPatterns) -> bool:
    """Apply the include/exclude precedence to a root-relative path.

    A configured exclude set is the sole criterion: the path is selected
    unless an exclude pattern matches, and includes are not consulted.
    Only without excludes does the include set apply (first match wins).
    With neither, everything is selected.

    Args:
        path_relative: Root-relative path in POSIX form.
        spec_patterns: Compiled pattern sets.

    Returns:
        True if the path is selected.
    """
    if spec_patterns.if_has_exclude:
        return not any(p.match(path_relative) for p in spec_patterns.patterns_exclude)
    if spec_patterns.if_has_include:
        return any(p.match(path_relative) for p in spec_patterns.patterns_include)
    return True


def check_interested_file(
    root: Path,
    file_path: Path,
    spec_patterns: SpecCopyPatterns,
) -> bool:
    """Same as :func:`is_interested_file` with precompiled patterns."""
    if not file_path.is_file():
        return False
    path_rel = _get_relative_path(root, file_path)
    if path_rel is None:
        return False
    return is_selected_by_patterns(path_rel.as_posix(), spec_patterns)


def is_interested_file(
    root: os.PathLike[str] | str,
    file_path: os.PathLike[str] | str,
    patterns_include: Sequence[str] | str | None = None,
    patterns_exclude: Sequence[str] | str | None = None,
) -> bool:
    """Decide whether ``file_path`` is selected for copying from ``root``.

    Args:
        root: Source root the patterns are relative to.
        file_path: Candidate file. Absolute paths are made relative to
            ``root``; relative paths are matched as given.
        patterns_include: Include globs.
        patterns_exclude: Exclude globs. When non-empty, they alone decide.

    Returns:
        False for anything that is not an existing regular file or lies
        outside ``root``; otherwise the pattern decision. Absolute and
        unparsable patterns never match.
    """
    spec_patterns = SpecCopyPatterns.from_raw(
        patterns_include=patterns_include,
        patterns_exclude=patterns_exclude,
    )
    return check_interested_file(Path(root), Path(file_path), spec_patterns)


# #endregion
################################################################################
# #region TreeWalk


def _log_walk_error(error: OSError) -> None:
    logger.debug(f"Skip unreadable entry during walk: {error}")


def iter_tree_files(root: os.PathLike[str] | str) -> Iterator[Path]:
    """Lazily yield every regular file under ``root``, depth first.

    Symlinks are not followed and not yielded. Entries that fail to read are
    dropped. A ``root`` that is itself a regular file yields just ``root``.
    """
    path_root = Path(root)
    if path_root.is_file():
        yield path_root
        return

    for _root, _dirnames, _filenames in os.walk(path_root, onerror=_log_walk_error):
        path_dir = Path(_root)
        for _filename in _filenames:
            path_file = path_dir / _filename
            try:
                n_mode = os.lstat(path_file).st_mode
            except OSError as e:
                _log_walk_error(e)
                continue
            if stat.S_ISREG(n_mode):
                yield path_file


# #endregion
################################################################################
