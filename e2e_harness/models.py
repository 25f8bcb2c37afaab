from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import uuid


class StepStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    SKIP = "skip"
    INFO = "info"


class TestStatus(str, Enum):
    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class StepRecord(BaseModel):
    """A single logged step. Immutable once appended to an entry."""
    model_config = ConfigDict(frozen=True)

    message: str
    status: StepStatus
    timestamp: datetime = Field(default_factory=datetime.now)
    screenshot_base64: Optional[str] = None
    screenshot_path: Optional[str] = None  # relative to the run directory

    @property
    def has_screenshot(self) -> bool:
        return bool(self.screenshot_base64 or self.screenshot_path)


class ReportEntry(BaseModel):
    """All steps recorded for one test execution (one attempt)."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    name: str
    description: str = ""
    attempt: int = 1
    worker: str = ""
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    status: Optional[TestStatus] = None
    error_message: Optional[str] = None
    steps: List[StepRecord] = []


class RunReport(BaseModel):
    """Serialized form of a whole run, written as report.json."""
    run_dir: str
    started_at: datetime
    finished_at: datetime
    system_info: Dict[str, str] = {}
    entries: List[ReportEntry] = []


@dataclass(frozen=True)
class SinkResult:
    """Outcome of a reporting call. Callers are free to ignore it."""
    ok: bool
    error: Optional[str] = None

    @classmethod
    def success(cls) -> "SinkResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, error) -> "SinkResult":
        return cls(ok=False, error=str(error))


@dataclass(frozen=True)
class CaptureResult:
    """Outcome of a screenshot attempt."""
    base64: Optional[str] = None
    path: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.base64 or self.path)


@dataclass
class TestResult:
    """Final result of one test invocation, across all of its attempts."""
    __test__ = False

    name: str
    status: TestStatus
    attempts: int
    duration: float
    error_message: Optional[str] = None
    entry_ids: List[str] = field(default_factory=list)
