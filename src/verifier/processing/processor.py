"""Per-PR processing: gates, rule suite and reconciliation."""

import logging
from dataclasses import dataclass, field
from typing import Callable

from verifier.errors import ReleaseNotProcessableError, ReleaseValidationError, SuiteBuildError
from verifier.github.client import GitHubClient
from verifier.github.models import CommitState, PullRequestSummary
from verifier.processing.metadata import MetadataStore
from verifier.processing.release import ReleaseValidator
from verifier.processing.suite import PRSuite, build_suite
from verifier.reconcile.comments import update_comments
from verifier.reconcile.labels import LabelUpdate, update_labels
from verifier.reconcile.status import update_status
from verifier.rules.base import RuleSuiteEvaluator


logger = logging.getLogger(__name__)

CONFORMANCE_TITLE_MARKER = "conformance results for"

RULE_SUITE_STAGE = "rule-suite"

NOT_CONFORMANCE_COMMENT = "\n".join(
    [
        "This pull request appears to not be a conformance results submission; "
        "Checks will not run.",
        "",
        "If this change is intended to be verified as a conformance results submission see: "
        "[_content of the PR_](https://github.com/cncf/k8s-conformance/blob/master/"
        "instructions.md#contents-of-the-pr), "
        "and [_requirements_](https://github.com/cncf/k8s-conformance/blob/master/"
        "instructions.md#requirements)",
    ]
)

UNABLE_TO_PROCESS_LABELS = ("conformance-product-submission", "unable-to-process")


@dataclass(frozen=True)
class Outcome:
    """Labels, comment and state a PR is driven to when a gate stops it.

    ``error`` is set when the PR still needs attention after the outcome was
    applied.
    """

    labels: tuple[str, ...]
    comment: str
    state: CommitState | str
    error: str | None = None


@dataclass(frozen=True)
class Gate:
    """A precondition checked before the rule suite runs."""

    name: str
    check: Callable[[PRSuite], Outcome | None]


@dataclass
class ProcessingResult:
    """What happened to a PR during one pass."""

    pr: PullRequestSummary
    stage: str
    labels: LabelUpdate = field(default_factory=LabelUpdate)
    comment_posted: bool = False
    status_set: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "pr": str(self.pr),
            "stage": self.stage,
            "labels_added": self.labels.added,
            "labels_removed": self.labels.removed,
            "comment_posted": self.comment_posted,
            "status_set": self.status_set,
            "error": self.error,
        }


def is_conformance_pr(pr: PullRequestSummary) -> bool:
    return CONFORMANCE_TITLE_MARKER in pr.title.lower()


def sentence_case(message: str) -> str:
    """Upper-case the first letter and end the message with a period."""
    if not message:
        return message
    message = message[0].upper() + message[1:]
    return message if message.endswith(".") else f"{message}."


class PullRequestProcessor:
    """Drives a single PR to the state matching its verdict.

    The gates run in order and the first one returning an Outcome ends the
    pass for that PR. Only a PR passing every gate reaches the rule suite.
    """

    def __init__(
        self,
        client: GitHubClient,
        evaluator: RuleSuiteEvaluator,
        validator: ReleaseValidator,
        metadata_store: MetadataStore,
    ):
        self.client = client
        self.evaluator = evaluator
        self.validator = validator
        self.metadata_store = metadata_store

    @property
    def gates(self) -> tuple[Gate, ...]:
        return (
            Gate("not-conformance-pr", self._check_conformance_title),
            Gate("unsupported-release", self._check_release),
            Gate("release-metadata-unavailable", self._check_release_metadata),
        )

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------

    def _check_conformance_title(self, suite: PRSuite) -> Outcome | None:
        if is_conformance_pr(suite.pr):
            return None
        logger.info(f"{suite.pr} is not a conformance PR")
        return Outcome(
            labels=("not-conformance-product-submission", "unable-to-process"),
            comment=NOT_CONFORMANCE_COMMENT,
            state=CommitState.PENDING,
        )

    def _check_release(self, suite: PRSuite) -> Outcome | None:
        try:
            self.validator.validate(suite.release_version)
        except ReleaseValidationError as e:
            logger.info(f"{suite.pr} has an unsupported release: {e}")
            return Outcome(
                labels=UNABLE_TO_PROCESS_LABELS,
                comment=sentence_case(str(e)),
                state=CommitState.PENDING,
                error=f"unable to process {suite.pr} for release "
                f"'{suite.release_version}': {e}",
            )
        return None

    def _check_release_metadata(self, suite: PRSuite) -> Outcome | None:
        version = suite.release_version
        try:
            suite.conformance_yaml = self.metadata_store.read(version)
        except FileNotFoundError:
            logger.info(f"{suite.pr}: no conformance metadata for {version}")
            return Outcome(
                labels=UNABLE_TO_PROCESS_LABELS,
                comment=f"The release version {version} is unable to be processed at "
                "this time; Please wait as this version may become available soon.",
                state=CommitState.PENDING,
                error=f"unable to process release file as it is missing for release {version}",
            )
        except OSError as e:
            raise SuiteBuildError(f"unable to read metadata for release {version}: {e}") from e
        return None

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def process(self, pr: PullRequestSummary) -> ProcessingResult:
        """Fetch the PR's files and process it.

        Raises:
            SuiteBuildError: If the PR's data cannot be fetched
            ReconciliationError: If a GitHub mutation fails
            ReleaseNotProcessableError: If the PR was stopped by a release gate
        """
        suite = build_suite(
            self.client,
            pr,
            latest_version=self.validator.latest,
            metadata_folder=str(self.metadata_store.root),
        )
        return self.process_suite(suite)

    def process_suite(self, suite: PRSuite) -> ProcessingResult:
        for gate in self.gates:
            outcome = gate.check(suite)
            if outcome is None:
                continue
            result = self.apply(suite, gate.name, outcome)
            if outcome.error:
                raise ReleaseNotProcessableError(outcome.error, result)
            return result

        verdict = self.evaluator.evaluate(suite)
        if verdict.empty:
            logger.info(f"{suite.pr}: there is nothing new to comment")
            return ProcessingResult(pr=suite.pr, stage=RULE_SUITE_STAGE)

        logger.info(
            f"{suite.pr}: release {suite.release_version}, "
            f"labels {verdict.labels}, state {verdict.state}"
        )
        outcome = Outcome(
            labels=tuple(verdict.labels),
            comment=verdict.comment,
            state=verdict.state,
        )
        return self.apply(suite, RULE_SUITE_STAGE, outcome)

    def apply(self, suite: PRSuite, stage: str, outcome: Outcome) -> ProcessingResult:
        """Reconcile labels, then the comment, then the status.

        The first failure stops the remaining steps for this PR.
        """
        result = ProcessingResult(pr=suite.pr, stage=stage, error=outcome.error)
        result.labels = update_labels(
            self.client, suite.pr, suite.labels, outcome.labels, suite.classifier
        )
        result.comment_posted = update_comments(self.client, suite.pr, outcome.comment)
        result.status_set = update_status(self.client, suite.pr, outcome.state)
        return result
