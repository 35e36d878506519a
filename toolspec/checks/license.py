from __future__ import annotations

from typing import List

from ..github.client import RepositoryProvider
from ..models import AnalysisState, CheckResult, LicenseComparison, LicenseFileReport
from ..validators.licenses import compare_licenses
from .base import Check, join_messages, require_repository

LICENSE_PATH = "LICENSE"
MISSING_LICENSE_WARNING = "LICENSE file is missing (recommended for legal clarity)"


class LicenseCheck(Check):
    """Look for a LICENSE file and compare it with the citation license.

    The comparison only runs when both a parsed citation and LICENSE text are
    available; otherwise the report carries a neutral comparison.
    """

    id = "license-check"
    name = "LICENSE file check"
    description = "Checking for LICENSE file and comparing with CITATION.cff license"
    dependencies = ("citation-cff-exists",)
    is_required = False
    progress = 90

    def execute(self, state: AnalysisState, provider: RepositoryProvider) -> CheckResult:
        repo = require_repository(state)
        exists = provider.file_exists(repo, LICENSE_PATH)
        text = provider.file_content(repo, LICENSE_PATH) if exists else ""

        comparison = LicenseComparison()
        if state.citation_cff is not None and text:
            comparison = compare_licenses(state.citation_cff.license, text)

        warnings: List[str] = []
        if not exists:
            warnings.append(MISSING_LICENSE_WARNING)
        warnings.extend(comparison.warnings)

        report = LicenseFileReport(
            license_exists=exists,
            license_file_length=len(text),
            license_comparison=comparison,
        )
        return self.completed(data=report, warning=join_messages(warnings))
