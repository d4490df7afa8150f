"""Managed label definitions."""

from verifier.labels.classifier import (
    FILE_LABEL_TEMPLATES,
    MANAGED_LABELS,
    VERSION_LABEL_TEMPLATES,
    LabelClassifier,
    LabelKind,
    classify_label,
)

__all__ = [
    "FILE_LABEL_TEMPLATES",
    "MANAGED_LABELS",
    "VERSION_LABEL_TEMPLATES",
    "LabelClassifier",
    "LabelKind",
    "classify_label",
]
