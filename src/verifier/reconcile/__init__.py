"""Reconcilers converging GitHub state to a verdict."""

from verifier.reconcile.comments import update_comments
from verifier.reconcile.labels import LabelPlan, LabelUpdate, plan_labels, update_labels
from verifier.reconcile.status import STATUS_CONTEXT, status_description, update_status

__all__ = [
    "update_comments",
    "LabelPlan",
    "LabelUpdate",
    "plan_labels",
    "update_labels",
    "STATUS_CONTEXT",
    "status_description",
    "update_status",
]
