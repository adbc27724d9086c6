"""
Exceptions raised by statstree.

Only configuration and transport problems raise. Traversal precondition
violations are ignored, stale snapshots reconstruct to an earlier state and a
resolution miss yields the fallback bundle.
"""

from __future__ import annotations


class StatsTreeError(Exception):
    """Base class for all statstree errors."""


class RulesetIntegrityError(StatsTreeError):
    """The ruleset failed load-time validation; the engine refuses to start."""

    def __init__(self, problems: list[str], source: str | None = None):
        self.problems = list(problems)
        self.source = source
        where = f" in {source}" if source else ""
        summary = "; ".join(self.problems[:5])
        if len(self.problems) > 5:
            summary += f" (+{len(self.problems) - 5} more)"
        super().__init__(f"Invalid ruleset{where}: {summary}")


class ReconstructionError(StatsTreeError):
    """Replaying a snapshot did not terminate within the step-count cap."""


class SnapshotError(StatsTreeError, ValueError):
    """A serialized snapshot or state dict is malformed."""
