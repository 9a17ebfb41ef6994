import os
import shutil
from collections.abc import Iterable
from pathlib import Path

from loguru import logger

TypePathLike = os.PathLike[str] | str


def ls(paths: Iterable[TypePathLike]) -> list[str]:
    """List files and immediate directory children.

    Args:
        paths: Files and/or directories.

    Returns:
        For a file, the file itself; for a directory, its direct children.
        Children that cannot be read are left out.

    Raises:
        FileNotFoundError: If any item does not exist.
    """
    l_entries: list[str] = []
    for _path in paths:
        path_item = Path(_path)
        if not path_item.exists():
            raise FileNotFoundError(f"ls item `{path_item}` does not exist")
        if path_item.is_file():
            l_entries.append(str(path_item))
            continue
        with os.scandir(path_item) as it:
            l_entries.extend(_entry.path for _entry in it)
    return l_entries


def rm(paths: Iterable[TypePathLike], force: bool = False) -> None:
    """Remove files and directories; missing items are ignored.

    Directories must be empty unless ``force`` is set.
    """
    for _path in paths:
        path_item = Path(_path)
        if not path_item.exists():
            continue
        if path_item.is_file():
            path_item.unlink()
        elif path_item.is_dir():
            if force:
                shutil.rmtree(path_item)
            else:
                path_item.rmdir()
        logger.debug(f"Removed `{path_item}`")


def mkdir(paths: Iterable[TypePathLike]) -> None:
    for _path in paths:
        Path(_path).mkdir(parents=True, exist_ok=True)
