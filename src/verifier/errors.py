"""Exceptions raised while verifying conformance pull requests."""


class VerifierError(Exception):
    """Base class for errors scoped to a single pull request."""


class SuiteBuildError(VerifierError):
    """Raised when the data needed to evaluate a PR cannot be fetched."""


class ReleaseValidationError(VerifierError):
    """Raised when a release version is malformed or not supported."""


class ReconciliationError(VerifierError):
    """Raised when GitHub state could not be converged to a verdict."""

    def __init__(self, message: str, pr: str = ""):
        super().__init__(message)
        self.pr = pr


class LabelUpdateError(ReconciliationError):
    """Raised when adding or removing a label fails."""

    def __init__(self, message: str, pr: str = "", label: str = ""):
        super().__init__(message, pr)
        self.label = label


class CommentUpdateError(ReconciliationError):
    """Raised when listing, pruning or posting comments fails."""


class StatusUpdateError(ReconciliationError):
    """Raised when reading or creating the commit status fails."""


class ReleaseNotProcessableError(VerifierError):
    """Raised after a PR was labelled as unable to be processed.

    The PR's labels, comment and status were updated; the error signals that
    the submission still needs attention.
    """

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result
