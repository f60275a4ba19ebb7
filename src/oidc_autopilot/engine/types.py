"""
Execution data model - states, results and plan summaries.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TestState(str, Enum):
    """Remote module states. FINISHED and INTERRUPTED are terminal."""
    CREATED = "CREATED"
    CONFIGURED = "CONFIGURED"
    WAITING = "WAITING"
    RUNNING = "RUNNING"
    FINISHED = "FINISHED"
    INTERRUPTED = "INTERRUPTED"
    
    __test__ = False
    
    @classmethod
    def parse(cls, value: Any) -> "TestState":
        """Case-insensitive decode; anything unrecognized becomes CREATED."""
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        return cls.CREATED
    
    @property
    def is_terminal(self) -> bool:
        return self in (TestState.FINISHED, TestState.INTERRUPTED)


class TestResult(str, Enum):
    """Remote module results."""
    PASSED = "PASSED"
    FAILED = "FAILED"
    WARNING = "WARNING"
    SKIPPED = "SKIPPED"
    REVIEW = "REVIEW"
    UNKNOWN = "UNKNOWN"
    
    __test__ = False
    
    @classmethod
    def parse(cls, value: Any) -> "TestResult":
        """Case-insensitive decode; anything unrecognized becomes UNKNOWN."""
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        return cls.UNKNOWN


@dataclass
class ModuleResult:
    """Outcome of one module execution."""
    name: str
    runner_id: str
    state: TestState
    result: TestResult
    captured: Dict[str, str] = field(default_factory=dict)
    error_message: Optional[str] = None
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: Dict[str, Any] = {
            "name": self.name,
            "runner_id": self.runner_id,
            "state": self.state.value,
            "result": self.result.value,
            "captured": dict(self.captured),
        }
        if self.error_message:
            data["error_message"] = self.error_message
        return data


@dataclass
class ExecutionSummary:
    """
    Plan-level roll-up of module results.
    
    Every recorded module lands in exactly one result bucket and, when its
    terminal state is INTERRUPTED, additionally in ``interrupted``.
    """
    plan_id: str
    total: int = 0
    passed: int = 0
    failed: int = 0
    warning: int = 0
    skipped: int = 0
    review: int = 0
    unknown: int = 0
    interrupted: int = 0
    modules: List[ModuleResult] = field(default_factory=list)
    
    _BUCKETS = {
        TestResult.PASSED: "passed",
        TestResult.FAILED: "failed",
        TestResult.WARNING: "warning",
        TestResult.SKIPPED: "skipped",
        TestResult.REVIEW: "review",
        TestResult.UNKNOWN: "unknown",
    }
    
    def record(self, result: ModuleResult) -> None:
        """Append a module result and update the counters."""
        self.modules.append(result)
        self.total += 1
        bucket = self._BUCKETS[result.result]
        setattr(self, bucket, getattr(self, bucket) + 1)
        if result.state == TestState.INTERRUPTED:
            self.interrupted += 1
    
    @property
    def has_failures(self) -> bool:
        """True when the plan should be reported as unsuccessful."""
        return self.failed > 0 or self.interrupted > 0
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "plan_id": self.plan_id,
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "warning": self.warning,
            "skipped": self.skipped,
            "review": self.review,
            "unknown": self.unknown,
            "interrupted": self.interrupted,
            "modules": [m.to_dict() for m in self.modules],
        }
