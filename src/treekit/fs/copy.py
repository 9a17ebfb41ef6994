import os
import shutil
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from .report import ReportCopy, ReportCopyBuilder
from .spec import CopyFileError, EnumCopyOperation, SpecCopier, SpecCopyPatterns
from .util import (
    calculate_worker_limit,
    check_interested_file,
    iter_tree_files,
)

# Max queued copy tasks per worker before the walk waits for the pool.
N_PENDING_PER_WORKER = 64

################################################################################
# #region Copier


class Copier:
    """Filtered, parallel copy of one or more sources into a destination.

    Built by :class:`CopierBuilder`; the configuration is immutable. Sources
    are processed one after another, and the files of a single source are
    copied concurrently on a thread pool bounded by CPU count.
    """

    def __init__(self, spec: SpecCopier) -> None:
        self.spec = spec
        self.spec_patterns = SpecCopyPatterns.from_raw(
            patterns_include=spec.patterns_include,
            patterns_exclude=spec.patterns_exclude,
        )
        self.num_workers = calculate_worker_limit(spec.num_workers_max)

    @property
    def sources(self) -> tuple[Path, ...]:
        return self.spec.sources

    @property
    def destination(self) -> Path:
        return self.spec.destination

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"destination={str(self.destination)!r}, "
            f"sources={[str(p) for p in self.sources]!r}, "
            f"includes={list(self.spec.patterns_include)!r}, "
            f"excludes={list(self.spec.patterns_exclude)!r})"
        )

    def run(self) -> ReportCopy:
        """Copy every selected file of every source into the destination.

        Returns:
            ReportCopy: Counts of scanned, matched and copied files.

        Raises:
            CopyFileError: The first per-file failure observed. Sources
                processed before the failure keep their copies.
            OSError: If the destination directory cannot be created.
        """
        builder_cp_report = ReportCopyBuilder()
        if not self.sources:
            return builder_cp_report.build()

        # 单一文件源：目标路径即文件路径，不预先创建目录
        b_is_single_file = len(self.sources) == 1 and self.sources[0].is_file()
        if not b_is_single_file:
            self.destination.mkdir(parents=True, exist_ok=True)

        logger.debug(
            f"Copy into `{self.destination}` from {len(self.sources)} source(s) "
            f"with {self.num_workers} worker(s)"
        )
        for _source in self.sources:
            self._run_source(_source, builder_cp_report, b_is_single_file)

        report = builder_cp_report.build()
        logger.info(report.format())
        return report

    def _resolve_destination(
        self, path_src_root: Path, path_file: Path, b_is_single_file: bool
    ) -> Path:
        if path_file == path_src_root:
            if b_is_single_file and not self.destination.is_dir():
                return self.destination
            return self.destination / path_file.name
        return self.destination / path_file.relative_to(path_src_root)

    def _copy_entry(
        self,
        path_src_root: Path,
        path_file: Path,
        builder_cp_report: ReportCopyBuilder,
        b_is_single_file: bool,
    ) -> None:
        if not check_interested_file(path_src_root, path_file, self.spec_patterns):
            return
        builder_cp_report.add_matched()

        path_file_dst = self._resolve_destination(
            path_src_root, path_file, b_is_single_file
        )
        try:
            path_file_dst.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CopyFileError(
                EnumCopyOperation.MKDIR, path_file, path_file_dst.parent, e
            ) from e
        try:
            shutil.copyfile(path_file, path_file_dst)
            shutil.copymode(path_file, path_file_dst)
        except OSError as e:
            raise CopyFileError(
                EnumCopyOperation.COPY, path_file, path_file_dst, e
            ) from e
        builder_cp_report.add_copied()

    def _run_source(
        self,
        source: Path,
        builder_cp_report: ReportCopyBuilder,
        b_is_single_file: bool,
    ) -> None:
        # Not canonicalized: a symlinked file source keeps its own name.
        path_src_root = source.absolute()
        builder_cp_report.add_source()

        # Bounded hand-off between the walk (producer) and the pool.
        semaphore_pending = threading.BoundedSemaphore(
            self.num_workers * N_PENDING_PER_WORKER
        )
        event_failed = threading.Event()
        lock_errors = threading.Lock()
        l_errors: list[BaseException] = []

        def _on_done(future: Future[Any]) -> None:
            # The failure must be visible before the permit is handed back.
            error = future.exception()
            if error is not None:
                with lock_errors:
                    l_errors.append(error)
                event_failed.set()
            semaphore_pending.release()

        with ThreadPoolExecutor(
            max_workers=self.num_workers, thread_name_prefix="treekit-copy"
        ) as executor:
            for _path_file in iter_tree_files(path_src_root):
                semaphore_pending.acquire()
                if event_failed.is_set():
                    semaphore_pending.release()
                    break
                builder_cp_report.add_scanned()
                executor.submit(
                    self._copy_entry,
                    path_src_root,
                    _path_file,
                    builder_cp_report,
                    b_is_single_file,
                ).add_done_callback(_on_done)

        if l_errors:
            logger.error(f"Copy from `{source}` failed: {l_errors[0]}")
            raise l_errors[0]
        logger.debug(f"Copied source `{source}`")


# #endregion
################################################################################
# #region CopierBuilder


@dataclass(slots=True)
class CopierBuilder:
    """Mutable staging value for a :class:`Copier`.

    Example:
        >>> copier = (
        ...     CopierBuilder("dist")
        ...     .add("assets")
        ...     .add("README.md")
        ...     .epat("*.tmp")
        ...     .build()
        ... )
    """

    destination: Path
    sources: list[Path] = field(default_factory=lambda: [])
    patterns_include: list[str] = field(default_factory=lambda: [])
    patterns_exclude: list[str] = field(default_factory=lambda: [])
    num_workers_max: int | None = None

    def __post_init__(self) -> None:
        self.destination = Path(self.destination)

    def add(self, source: os.PathLike[str] | str) -> "CopierBuilder":
        self.sources.append(Path(source))
        return self

    def ipat(self, pattern: str) -> "CopierBuilder":
        self.patterns_include.append(pattern)
        return self

    def epat(self, pattern: str) -> "CopierBuilder":
        self.patterns_exclude.append(pattern)
        return self

    def workers(self, num_workers_max: int | None) -> "CopierBuilder":
        calculate_worker_limit(num_workers_max)
        self.num_workers_max = num_workers_max
        return self

    def build(self) -> Copier:
        return Copier(
            SpecCopier(
                destination=self.destination,
                sources=tuple(self.sources),
                patterns_include=tuple(self.patterns_include),
                patterns_exclude=tuple(self.patterns_exclude),
                num_workers_max=self.num_workers_max,
            )
        )


# #endregion
################################################################################
