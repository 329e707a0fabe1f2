"""
Issue (diagnostic) records emitted by rules.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from commentcheck.parser import Range


class Severity(Enum):
    """Issue severity levels."""
    ERROR = "error"
    WARNING = "warning"
    NOTICE = "notice"


@dataclass(frozen=True)
class Issue:
    """A single rule violation."""
    rule: str
    severity: Severity
    message: str
    range: Range

    def __str__(self):
        prefix = {
            Severity.ERROR: "[ERROR]",
            Severity.WARNING: "[WARNING]",
            Severity.NOTICE: "[NOTICE]",
        }[self.severity]
        start = self.range.start
        return f"{prefix} {self.rule} {self.range.filename}:{start.line}:{start.column}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule": self.rule,
            "severity": self.severity.value,
            "message": self.message,
            "range": self.range.to_dict(),
        }
