"""Classification of PR labels into the categories the bot manages."""

from enum import Enum
from typing import Iterable


class LabelKind(str, Enum):
    """Category a label falls into."""

    UNMANAGED = "unmanaged"
    FIXED = "fixed"
    VERSION = "version"
    FILE = "file"


MANAGED_LABELS = (
    "conformance-product-submission",
    "not-conformance-product-submission",
    "not-verifiable",
    "release-documents-checked",
    "required-tests-missing",
    "evidence-missing",
    "unable-to-process",
)

VERSION_LABEL_TEMPLATES = (
    "release-{}",
    "no-failed-tests-{}",
    "tests-verified-{}",
)

FILE_LABEL_TEMPLATES = ("missing-file-{}",)


def _matches_template(label: str, template: str, values: Iterable[str]) -> bool:
    # Any rendering of the template family counts, not only the current one,
    # so labels left over from an earlier version are still recognised.
    if template.replace("{}", "") in label:
        return True
    return any(template.format(value) == label for value in values)


def classify_label(label: str, version: str = "", missing_files: Iterable[str] = ()) -> LabelKind:
    """Classify a label.

    Checks run fixed, then version, then file, and the first match wins, so
    every label lands in exactly one category.

    Args:
        label: Label name
        version: Release version of the submission, e.g. ``v1.29``
        missing_files: Required files missing from the submission

    Returns:
        The label's LabelKind
    """
    if label in MANAGED_LABELS:
        return LabelKind.FIXED
    if any(_matches_template(label, t, [version]) for t in VERSION_LABEL_TEMPLATES):
        return LabelKind.VERSION
    missing_files = list(missing_files)
    if any(_matches_template(label, t, missing_files) for t in FILE_LABEL_TEMPLATES):
        return LabelKind.FILE
    return LabelKind.UNMANAGED


class LabelClassifier:
    """Classifier bound to one submission's version and missing files."""

    def __init__(self, version: str = "", missing_files: Iterable[str] = ()):
        self.version = version
        self.missing_files = tuple(missing_files)

    def classify(self, label: str) -> LabelKind:
        return classify_label(label, self.version, self.missing_files)

    def is_managed(self, label: str) -> bool:
        return self.classify(label) is not LabelKind.UNMANAGED
