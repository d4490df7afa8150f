"""Rule suites deciding the verdict for a conformance PR."""

from verifier.rules.base import RuleSuiteEvaluator, VerdictResult
from verifier.rules.basic import BasicRuleSuite

__all__ = ["RuleSuiteEvaluator", "VerdictResult", "BasicRuleSuite"]
