"""
Diagnostics Module

Structured record of soft degradations raised while cleaning geometry.
Stages never raise for bad geometry; they log a warning and, when a
collector is passed in, append an event to it so callers can inspect
what was skipped.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


logger = logging.getLogger(__name__)


class DiagnosticCode(str, Enum):
    """Degrade condition identifiers."""
    GROUP_TOO_LARGE = "group_too_large"
    COMPARISON_LIMIT = "comparison_limit"
    DISTANCE_ERROR = "distance_error"
    INVALID_INPUT = "invalid_input"


@dataclass
class DiagnosticEvent:
    """A single degrade condition reported by a stage."""
    stage: str
    code: DiagnosticCode
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for JSON serialization."""
        return {
            "stage": self.stage,
            "code": self.code.value,
            "message": self.message,
            "details": dict(self.details),
        }


@dataclass
class Diagnostics:
    """Collector passed through the cleanup stages."""
    events: List[DiagnosticEvent] = field(default_factory=list)

    def record(
        self,
        stage: str,
        code: DiagnosticCode,
        message: str,
        **details: Any
    ) -> DiagnosticEvent:
        """
        Append an event and return it.

        Args:
            stage: Stage name (e.g. "merge_parallel")
            code: One of the DiagnosticCode values
            message: Human readable description
            **details: Extra JSON-serializable context

        Returns:
            The recorded event
        """
        event = DiagnosticEvent(stage=stage, code=DiagnosticCode(code), message=message, details=details)
        self.events.append(event)
        return event

    def by_code(self, code: DiagnosticCode) -> List[DiagnosticEvent]:
        """Events with the given code, in recording order."""
        return [e for e in self.events if e.code == code]

    def to_list(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self.events]

    def __len__(self) -> int:
        return len(self.events)


def report(
    diagnostics: Optional[Diagnostics],
    stage: str,
    code: DiagnosticCode,
    message: str,
    **details: Any
) -> None:
    """Log a degradation as a warning and record it if a collector is given."""
    logger.warning(f"[{stage}] {message}")
    if diagnostics is not None:
        diagnostics.record(stage, code, message, **details)
