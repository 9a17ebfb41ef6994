import threading
from dataclasses import dataclass, field
from typing import ClassVar


@dataclass(frozen=True, slots=True)
class ReportCopy:
    """
    Summary of a completed :meth:`Copier.run`.

    Attributes:
        cnt_sources:
            Number of configured sources that were walked.
        cnt_scanned:
            Number of regular files produced by the tree walks.
        cnt_matched:
            Number of scanned files selected by the include/exclude rules.
        cnt_copied:
            Number of files written to the destination tree.
    """

    cnt_sources: int = 0
    cnt_scanned: int = 0
    cnt_matched: int = 0
    cnt_copied: int = 0

    @property
    def calculate_skipped_count(self) -> int:
        return self.cnt_scanned - self.cnt_matched

    def to_dict(self) -> dict[str, int]:
        return {
            "cnt_sources": self.cnt_sources,
            "cnt_scanned": self.cnt_scanned,
            "cnt_matched": self.cnt_matched,
            "cnt_copied": self.cnt_copied,
            "cnt_skipped": self.calculate_skipped_count,
        }

    def format(self, *, prefix: str = "[COPY]") -> str:
        s = self.to_dict()
        return (
            f"{prefix} sources={s['cnt_sources']} "
            f"scanned={s['cnt_scanned']} matched={s['cnt_matched']} "
            f"copied={s['cnt_copied']} skipped={s['cnt_skipped']}"
        )

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"sources_count={self.cnt_sources}, "
            f"scanned_count={self.cnt_scanned}, "
            f"matched_count={self.cnt_matched}, "
            f"copied_count={self.cnt_copied})"
        )


@dataclass(slots=True)
class ReportCopyBuilder:
    """Mutable accumulator for copy statistics, shared by worker threads."""

    COUNTER_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"cnt_sources", "cnt_scanned", "cnt_matched", "cnt_copied"}
    )

    cnt_sources: int = 0
    cnt_scanned: int = 0
    cnt_matched: int = 0
    cnt_copied: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add_counts(self, *field_names: str, value: int = 1) -> None:
        if not field_names:
            raise ValueError("`field_names` is required.")
        with self._lock:
            for _name in field_names:
                if _name not in self.COUNTER_FIELDS:
                    raise ValueError(f"Unsupported counter: {_name}")
                setattr(self, _name, getattr(self, _name) + value)

    def add_source(self) -> None:
        self.add_counts("cnt_sources")

    def add_scanned(self) -> None:
        self.add_counts("cnt_scanned")

    def add_matched(self) -> None:
        self.add_counts("cnt_matched")

    def add_copied(self) -> None:
        self.add_counts("cnt_copied")

    def build(self) -> ReportCopy:
        with self._lock:
            return ReportCopy(
                cnt_sources=self.cnt_sources,
                cnt_scanned=self.cnt_scanned,
                cnt_matched=self.cnt_matched,
                cnt_copied=self.cnt_copied,
            )
