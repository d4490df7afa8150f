"""Converge a PR's labels to the desired managed set."""

import logging
from dataclasses import dataclass, field
from typing import Sequence

from verifier.errors import LabelUpdateError
from verifier.github.client import GitHubClient, GitHubClientError
from verifier.github.models import PullRequestSummary
from verifier.labels.classifier import LabelClassifier


logger = logging.getLogger(__name__)


@dataclass
class LabelPlan:
    """Labels to add and remove to reach the desired state."""

    to_add: list[str] = field(default_factory=list)
    to_remove: list[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.to_add and not self.to_remove


@dataclass
class LabelUpdate:
    """Labels actually added and removed on GitHub."""

    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)


def plan_labels(
    current: Sequence[str],
    desired: Sequence[str],
    classifier: LabelClassifier,
) -> LabelPlan:
    """Compute the minimal label changes.

    A label is added only if it is desired and absent, and removed only if
    it is present, managed and not desired. Unmanaged labels are never
    touched.

    Args:
        current: Labels currently on the PR
        desired: Labels the verdict asks for
        classifier: Classifier for the submission

    Returns:
        LabelPlan with disjoint add and remove lists
    """
    plan = LabelPlan()

    for label in desired:
        if not classifier.is_managed(label):
            logger.warning(f"Not adding label '{label}' as it is not managed")
            continue
        if label in current or label in plan.to_add:
            continue
        plan.to_add.append(label)

    for label in current:
        kind = classifier.classify(label)
        logger.debug(f"Label '{label}' classified as {kind.value}")
        if not classifier.is_managed(label):
            continue
        if label in desired or label in plan.to_remove:
            continue
        plan.to_remove.append(label)

    return plan


def update_labels(
    client: GitHubClient,
    pr: PullRequestSummary,
    labels: list[str],
    desired: Sequence[str],
    classifier: LabelClassifier,
) -> LabelUpdate:
    """Add and remove labels on a PR until its managed labels match ``desired``.

    ``labels`` is the in-memory label list for the PR. It is updated after
    every confirmed change so a later call in the same pass sees the new
    state without refetching. Failures are not rolled back.

    Args:
        client: GitHub client
        pr: PR being reconciled
        labels: Current labels, updated in place
        desired: Desired labels
        classifier: Classifier for the submission

    Returns:
        LabelUpdate with the labels added and removed

    Raises:
        LabelUpdateError: If adding or removing a label fails
    """
    plan = plan_labels(labels, desired, classifier)
    update = LabelUpdate()

    for label in plan.to_add:
        try:
            client.add_label(pr.org, pr.repo, pr.number, label)
        except GitHubClientError as e:
            raise LabelUpdateError(
                f"failed to add label '{label}' to {pr}: {e}", pr=str(pr), label=label
            ) from e
        labels.append(label)
        update.added.append(label)

    for label in plan.to_remove:
        try:
            client.remove_label(pr.org, pr.repo, pr.number, label)
        except GitHubClientError as e:
            raise LabelUpdateError(
                f"failed to remove label '{label}' from {pr}: {e}", pr=str(pr), label=label
            ) from e
        labels[:] = [existing for existing in labels if existing != label]
        update.removed.append(label)

    if update.added or update.removed:
        logger.info(f"{pr}: added labels {update.added}, removed labels {update.removed}")
    else:
        logger.info(f"{pr}: labels up to date")
    return update
