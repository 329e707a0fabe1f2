"""
Linter engine.

Runs an explicit list of rule instances against a runner. There is no global
rule registry: callers pass the rules they want, or use default_rules() for
a fresh set.

Usage:
    linter = Linter(config=load_config(search_dir=path))
    issues = linter.lint_path(path)
"""

import logging
from pathlib import Path
from typing import List, Optional

from commentcheck.config import LintConfig
from commentcheck.errors import ConfigurationError
from commentcheck.issues import Issue
from commentcheck.rules import ModuleAttributeCommentsRule, Rule
from commentcheck.runner import IssueCallback, ModuleRunner

logger = logging.getLogger(__name__)


def default_rules() -> List[Rule]:
    """A fresh instance of every built-in rule."""
    return [
        ModuleAttributeCommentsRule(),
    ]


class Linter:
    """
    Applies configuration to rules and runs the enabled ones.
    """

    def __init__(self, rules: Optional[List[Rule]] = None, config: Optional[LintConfig] = None):
        self.rules = rules if rules is not None else default_rules()
        self.config = config or LintConfig()

    def run(self, runner: ModuleRunner) -> List[Issue]:
        """
        Run every enabled rule against runner.

        Every rule gets its section (or None) applied on each run, so nothing
        carries over from an earlier run. Returns the runner's issues in
        emission order. Configuration, retrieval and sink errors propagate
        and abort the run.

        Raises:
            ConfigurationError: If the configuration names a rule that is not
                part of this linter.
        """
        known = {rule.name for rule in self.rules}
        unknown = sorted(set(self.config.rules) - known)
        if unknown:
            raise ConfigurationError(
                f"unknown rule(s) {', '.join(unknown)}; available: {', '.join(sorted(known))}",
                str(self.config.config_path) if self.config.config_path else None,
            )

        for rule in self.rules:
            rule.apply_config(self.config.rule_payload(rule.name))

            if not rule.enabled:
                logger.debug("Skipping disabled rule %s", rule.name)
                continue

            logger.info("Running rule %s", rule.name)
            before = len(runner.issues)
            rule.check(runner)
            logger.info("%s: %d issue(s)", rule.name, len(runner.issues) - before)

        return runner.issues

    def lint_path(self, path: Path, pattern: str = "*.tf",
                  sink: Optional[IssueCallback] = None) -> List[Issue]:
        """Lint a file or every matching file in a directory."""
        runner = ModuleRunner.from_path(path, pattern=pattern, sink=sink)
        return self.run(runner)
