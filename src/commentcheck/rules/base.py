"""
Base class for lint rules.
"""

from typing import Any, Mapping, Optional

from commentcheck.issues import Severity


class Rule:
    """
    A check that runs against a runner and emits issues through it.

    Subclasses set name/severity/enabled and implement check(). Rules are
    plain objects created by the caller; configuration is applied per run.
    """

    name: str = "rule"
    severity: Severity = Severity.WARNING
    enabled: bool = True

    def apply_config(self, payload: Optional[Mapping[str, Any]]) -> None:
        """Apply this rule's section of the configuration file; None when it has none."""
        raise NotImplementedError

    def check(self, runner) -> None:
        """Run the rule, emitting issues through runner.emit_issue()."""
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}({self.name}, enabled={self.enabled})"
