# reconstructor/entities.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, TypeAlias

Timestamp: TypeAlias = str
RuleEntry: TypeAlias = Dict[str, Any]


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class StatusKind(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


class RunPhase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    FILTERING = "filtering"
    PROMPTING = "prompting"
    CALLING = "calling"
    VALIDATING = "validating"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (RunPhase.IDLE, RunPhase.DONE, RunPhase.ERROR)


class FileRole(str, Enum):
    MAIN = "main"
    SKELETON = "skeleton"
    DENSE = "dense"
    INDEX = "index"


@dataclass(frozen=True)
class SourceFile:
    role: FileRole
    name: str
    size: int

    @property
    def size_label(self) -> str:
        # KB below one megabyte, MB above, two decimals
        if self.size > 1024 * 1024:
            return f"{self.size / 1024 / 1024:.2f} MB"
        return f"{self.size / 1024:.2f} KB"

    def to_dict(self) -> dict:
        return {"role": self.role.value, "name": self.name, "size": self.size, "size_label": self.size_label}


@dataclass(frozen=True)
class ReconstructionLogEntry:
    timestamp: Timestamp
    message: str
    severity: Severity

    def to_dict(self) -> dict:
        return {"timestamp": self.timestamp, "message": self.message, "severity": self.severity.value}


@dataclass(frozen=True)
class RunStats:
    total_rules: int = 0
    reconstructed_rules: int = 0
    versions_processed: int = 0
    semantic_depth_percent: int = 0

    def to_dict(self) -> dict:
        return {
            "totalRules": self.total_rules,
            "reconstructedRules": self.reconstructed_rules,
            "versionsProcessed": self.versions_processed,
            "semanticDepthPercent": self.semantic_depth_percent,
        }


ZERO_STATS = RunStats()


@dataclass(frozen=True)
class RunState:
    """
    Immutable snapshot of one reconstruction run.
    Advanced only by ReconstructionService through dataclasses.replace.
    """
    phase: RunPhase = RunPhase.IDLE
    progress: int = 0
    status_message: str = ""
    status_kind: StatusKind = StatusKind.INFO
    stats: RunStats = ZERO_STATS
    result_text: str = ""
    parse_failed: bool = False
    files: Tuple[SourceFile, ...] = field(default_factory=tuple)

    @property
    def busy(self) -> bool:
        return not self.phase.is_terminal

    @property
    def has_result(self) -> bool:
        return bool(self.result_text)

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "busy": self.busy,
            "progress": self.progress,
            "status_message": self.status_message,
            "status_kind": self.status_kind.value,
            "stats": self.stats.to_dict(),
            "result_text": self.result_text,
            "parse_failed": self.parse_failed,
            "files": [f.to_dict() for f in self.files],
        }


@dataclass(frozen=True)
class FilterResult:
    filtered: Dict[str, Any]
    original_count: int
    filtered_count: int


@dataclass(frozen=True)
class ValidationResult:
    data: Optional[Any]
    display_text: str
    stats: RunStats
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class RuleSetVersion:
    label: str
    rules: List[RuleEntry]
