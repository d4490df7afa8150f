"""Built-in rule suite checking file evidence and version consistency."""

import logging
import re
import xml.etree.ElementTree as ElementTree
from dataclasses import dataclass
from typing import TYPE_CHECKING

import yaml

from verifier.github.models import CommitState
from verifier.rules.base import VerdictResult

if TYPE_CHECKING:
    from verifier.processing.suite import PRSuite


logger = logging.getLogger(__name__)

INSTRUCTIONS_URL = "https://github.com/cncf/k8s-conformance/blob/master/instructions.md"

PRODUCT_YAML_REQUIRED_FIELDS = (
    "vendor",
    "name",
    "version",
    "type",
    "description",
    "website_url",
    "documentation_url",
)

EVIDENCE_FILES = ("e2e.log", "junit_01.xml")

E2E_RESULT_PATTERN = re.compile(r"(\d+) Passed \| (\d+) Failed")


@dataclass
class Check:
    """Result of a single requirement."""

    description: str
    passed: bool
    detail: str = ""


class BasicRuleSuite:
    """Checks a submission's files against its release.

    The verdict is ``success`` only when every check passes.
    """

    def evaluate(self, suite: "PRSuite") -> VerdictResult:
        version = suite.release_version
        labels = ["conformance-product-submission"]
        if version:
            labels.append(f"release-{version}")

        checks: list[Check] = []

        files_check = self._check_required_files(suite)
        checks.append(files_check)
        labels.extend(f"missing-file-{name}" for name in suite.missing_files)
        if any(name in suite.missing_files for name in EVIDENCE_FILES):
            labels.append("evidence-missing")

        product_check = self._check_product_yaml(suite)
        checks.append(product_check)
        if files_check.passed and product_check.passed:
            labels.append("release-documents-checked")

        title_check = self._check_title_version(suite)
        e2e_version_check = self._check_e2e_version(suite)
        checks.extend([title_check, e2e_version_check])
        if not (title_check.passed and e2e_version_check.passed):
            labels.append("not-verifiable")

        failures_check = self._check_no_failed_tests(suite)
        checks.append(failures_check)
        if failures_check.passed:
            labels.append(f"no-failed-tests-{version}")

        tests_check = self._check_required_tests(suite)
        checks.append(tests_check)
        if tests_check.passed:
            labels.append(f"tests-verified-{version}")
        else:
            labels.append("required-tests-missing")

        passed = all(check.passed for check in checks)
        state = CommitState.SUCCESS if passed else CommitState.FAILURE
        logger.info(
            f"{suite.pr}: {sum(c.passed for c in checks)}/{len(checks)} checks passed"
        )
        return VerdictResult(comment=self._render(checks), labels=labels, state=state)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _check_required_files(self, suite: "PRSuite") -> Check:
        description = "all required files are included in the submission"
        if suite.missing_files:
            return Check(
                description,
                False,
                f"it appears that the files {', '.join(suite.missing_files)} are missing",
            )
        return Check(description, True)

    def _check_product_yaml(self, suite: "PRSuite") -> Check:
        description = "PRODUCT.yaml has the required fields"
        missing = [f for f in PRODUCT_YAML_REQUIRED_FIELDS if not suite.product_yaml.get(f)]
        if missing:
            return Check(description, False, f"missing or empty fields: {', '.join(missing)}")

        for field_name, content_type in suite.product_yaml_url_types.items():
            if not content_type:
                return Check(description, False, f"the URL in '{field_name}' is not reachable")
        return Check(description, True)

    def _check_title_version(self, suite: "PRSuite") -> Check:
        description = "the release version in the title matches the submission folder"
        version = suite.release_version
        if version and version in suite.pr.title:
            return Check(description, True)
        return Check(
            description,
            False,
            f"the title '{suite.pr.title}' does not reference release '{version}'",
        )

    def _check_e2e_version(self, suite: "PRSuite") -> Check:
        description = "the e2e.log was produced by the submitted release"
        e2e = suite.file("e2e.log")
        version = suite.release_version
        if e2e is None:
            return Check(description, False, "no e2e.log was submitted")
        if not version or f"{version}." not in e2e.contents:
            return Check(description, False, f"e2e.log does not mention release '{version}'")
        return Check(description, True)

    def _check_no_failed_tests(self, suite: "PRSuite") -> Check:
        description = "the e2e.log reports no failed tests"
        e2e = suite.file("e2e.log")
        if e2e is None:
            return Check(description, False, "no e2e.log was submitted")
        results = E2E_RESULT_PATTERN.findall(e2e.contents)
        if not results:
            return Check(description, False, "no test summary found in e2e.log")
        failed = int(results[-1][1])
        if failed:
            return Check(description, False, f"{failed} test(s) failed")
        return Check(description, True)

    def _check_required_tests(self, suite: "PRSuite") -> Check:
        description = "all required conformance tests passed in junit_01.xml"
        junit = suite.file("junit_01.xml")
        if junit is None:
            return Check(description, False, "no junit_01.xml was submitted")

        try:
            required = required_conformance_tests(suite.conformance_yaml)
        except yaml.YAMLError as e:
            return Check(description, False, f"unable to read release metadata: {e}")
        try:
            passed = passed_junit_tests(junit.contents)
        except ElementTree.ParseError as e:
            return Check(description, False, f"unable to parse junit_01.xml: {e}")

        missing = sorted(required - passed)
        if missing:
            return Check(
                description,
                False,
                f"{len(missing)} required test(s) did not pass, for example '{missing[0]}'",
            )
        return Check(description, True)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _render(self, checks: list[Check]) -> str:
        passed = sum(c.passed for c in checks)
        if passed == len(checks):
            lines = [f"All requirements ({len(checks)}) have passed for the submission!"]
        else:
            lines = [
                f"{passed} of {len(checks)} requirements have passed. "
                "Please review the following:",
                "",
            ]
            for check in checks:
                if not check.passed:
                    lines.append(f"- [FAIL] {check.description}: {check.detail}")
        lines.append("")
        lines.append(f"For a full list of requirements, see [instructions]({INSTRUCTIONS_URL}).")
        return "\n".join(lines)


def required_conformance_tests(conformance_yaml: str) -> set[str]:
    """Codenames of the tests listed in a release's conformance.yaml."""
    entries = yaml.safe_load(conformance_yaml) or []
    return {
        entry["codename"]
        for entry in entries
        if isinstance(entry, dict) and entry.get("codename")
    }


def passed_junit_tests(junit_xml: str) -> set[str]:
    """Names of the test cases that ran without failure, error or skip."""
    root = ElementTree.fromstring(junit_xml.encode("utf-8"))
    passed: set[str] = set()
    for case in root.iter("testcase"):
        if any(case.find(tag) is not None for tag in ("failure", "error", "skipped")):
            continue
        name = case.get("name")
        if name:
            passed.add(name)
    return passed
