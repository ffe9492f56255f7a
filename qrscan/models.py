from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .grammar import is_valid_code


PAGE_COUNT_UNKNOWN = -9
DEFAULT_DPI_LADDER: tuple[int, ...] = (150, 200, 250, 300)


class ResultStatus(str, Enum):
    FOUND = "QR_CODE_FOUND"
    NO_ACCESS = "NO_FILE_ACCESS"
    NO_CODE_FOUND = "NO_QR_CODE"


@dataclass(frozen=True)
class ScanConfig:
    page: int = 1
    use_cache: bool = True
    write_cache: bool = True
    dpi_ladder: tuple[int, ...] = DEFAULT_DPI_LADDER
    max_workers: int = 1
    write_report: bool = True

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"Page numbers start at 1, got {self.page}")
        if not self.dpi_ladder:
            raise ValueError("At least one render resolution is required")
        if any(dpi <= 0 for dpi in self.dpi_ladder):
            raise ValueError(f"Render resolutions must be positive: {self.dpi_ladder}")
        if list(self.dpi_ladder) != sorted(self.dpi_ladder):
            raise ValueError(f"Render resolutions must be ascending: {self.dpi_ladder}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")


@dataclass(frozen=True)
class Resolution:
    code: str = ""
    failure: ResultStatus | None = None
    source: str = ""
    dpi: int | None = None

    @property
    def found(self) -> bool:
        return self.failure is None


@dataclass
class ScanResult:
    status: ResultStatus
    code: str
    scanned_page: int
    input_path: str
    page_count: int = PAGE_COUNT_UNKNOWN
    creation_time: str = ""
    output_path: str = ""

    def __post_init__(self) -> None:
        if not self.output_path:
            self.output_path = self.input_path
        if (self.status == ResultStatus.FOUND) != is_valid_code(self.code):
            raise ValueError(
                f"Inconsistent result for {self.input_path}: status={self.status.name} code={self.code!r}"
            )

    @property
    def found(self) -> bool:
        return self.status == ResultStatus.FOUND

    @property
    def renamed(self) -> bool:
        return self.output_path != self.input_path

    def set_output_path(self, output_path: str) -> None:
        if self.renamed:
            raise ValueError(f"{self.input_path} was already moved to {self.output_path}")
        self.output_path = output_path

    def to_dict(self) -> dict:
        return {
            "input_path": self.input_path,
            "output_path": self.output_path,
            "renamed": self.renamed,
            "status": self.status.value,
            "code": self.code,
            "scanned_page": self.scanned_page,
            "page_count": self.page_count,
            "creation_time": self.creation_time,
        }


@dataclass
class ScanSummary:
    total: int = 0
    found: int = 0
    failed: int = 0
    cancelled: bool = False

    def message(self) -> str:
        return (
            f"Summary: scanned {self.total} files: {self.found} successful, "
            f"{self.failed} unsuccessful."
        )


@dataclass
class RenameSummary:
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    cancelled: bool = False
    failures: list[str] = field(default_factory=list)

    def message(self) -> str:
        return (
            f"Summary: tried renaming {self.attempted} files, {self.succeeded} successful, "
            f"{self.failed} unsuccessful, {self.skipped} not attempted (unable to find QR code)."
        )
