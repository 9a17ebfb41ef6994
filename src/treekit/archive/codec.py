import io
import os
import stat
import zipfile
from pathlib import Path

from loguru import logger

# Every entry is stored with rwxr-xr-x, directories included.
N_UNIX_PERMISSIONS = 0o755
N_ATTR_FILE = (stat.S_IFREG | N_UNIX_PERMISSIONS) << 16
N_ATTR_DIR = ((stat.S_IFDIR | N_UNIX_PERMISSIONS) << 16) | 0x10  # MS-DOS dir flag

COMPRESSION = zipfile.ZIP_DEFLATED

################################################################################
# #region Pack


def _write_file(zf: zipfile.ZipFile, path_file: Path, name: str) -> None:
    info = zipfile.ZipInfo.from_file(path_file, arcname=name, strict_timestamps=False)
    info.compress_type = COMPRESSION
    info.external_attr = N_ATTR_FILE
    with open(path_file, "rb") as fh:
        zf.writestr(info, fh.read())


def _write_dir(zf: zipfile.ZipFile, name: str) -> None:
    info = zipfile.ZipInfo(name.rstrip("/") + "/")
    info.external_attr = N_ATTR_DIR
    zf.writestr(info, b"")


def _log_walk_error(error: OSError) -> None:
    logger.debug(f"Skip unreadable entry while packing: {error}")


def pack(path_source: os.PathLike[str] | str) -> bytes:
    """Compress a directory (or a single file) into an in-memory zip.

    Entry names are relative to ``path_source`` and use ``/`` separators.
    Subdirectories get explicit entries, so empty ones survive a round trip.

    Args:
        path_source: Directory or regular file to archive.

    Returns:
        The zip archive bytes.

    Raises:
        ValueError: If ``path_source`` is neither a file nor a directory.
    """
    path_src = Path(path_source)
    buffer = io.BytesIO()

    if path_src.is_dir():
        with zipfile.ZipFile(buffer, "w", COMPRESSION) as zf:
            for _root, _dirnames, _filenames in os.walk(path_src, onerror=_log_walk_error):
                _dirnames.sort()
                path_root = Path(_root)
                c_rel_root = path_root.relative_to(path_src).as_posix()
                if c_rel_root != ".":
                    _write_dir(zf, c_rel_root)
                for _filename in sorted(_filenames):
                    path_file = path_root / _filename
                    if not path_file.is_file():
                        continue
                    _write_file(zf, path_file, path_file.relative_to(path_src).as_posix())
        logger.debug(f"Packed directory `{path_src}` ({buffer.tell()} bytes)")
        return buffer.getvalue()

    if path_src.is_file():
        with zipfile.ZipFile(buffer, "w", COMPRESSION) as zf:
            _write_file(zf, path_src, path_src.name)
        return buffer.getvalue()

    raise ValueError(f"{path_src} is neither a file or directory")


# #endregion
################################################################################
# #region Unpack


def unpack(data: bytes, dir_destination: os.PathLike[str] | str) -> None:
    """Extract zip ``data`` into ``dir_destination``.

    The destination is created when missing. Member names that are absolute
    or contain ``..`` are neutralized by :meth:`zipfile.ZipFile.extractall`.

    Raises:
        NotADirectoryError: If the destination exists and is not a directory.
        zipfile.BadZipFile: If ``data`` is not a zip archive.
    """
    path_dst = Path(dir_destination)
    if path_dst.exists():
        if not path_dst.is_dir():
            raise NotADirectoryError(
                f"zip unpack destination {path_dst} must be a directory"
            )
    else:
        path_dst.mkdir(parents=True, exist_ok=True)

    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        zf.extractall(path_dst)
        logger.debug(f"Unpacked {len(zf.infolist())} entries into `{path_dst}`")


# #endregion
################################################################################
