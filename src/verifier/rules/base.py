"""Rule suite interface."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from verifier.github.models import CommitState

if TYPE_CHECKING:
    from verifier.processing.suite import PRSuite


@dataclass
class VerdictResult:
    """Output of a rule suite for one PR."""

    comment: str = ""
    labels: list[str] = field(default_factory=list)
    state: CommitState = CommitState.PENDING

    @property
    def empty(self) -> bool:
        """True when there is nothing to comment and no labels to set."""
        return not self.comment and not self.labels


class RuleSuiteEvaluator(Protocol):
    """Evaluates a PR suite into a verdict."""

    def evaluate(self, suite: "PRSuite") -> VerdictResult:
        ...
