from __future__ import annotations

from typing import Any, Dict

from ..github.client import RepositoryProvider
from ..models import AnalysisState, CheckResult, CitationCff
from ..validators.citation import parse_citation_cff
from .base import Check, join_messages, require_repository

CITATION_PATH = "CITATION.cff"
MISSING_CITATION_WARNING = "CITATION.cff file is missing (optional but recommended)"


class CitationCheck(Check):
    """Locate and parse CITATION.cff; optional, so failures never halt the run."""

    id = "citation-cff-exists"
    name = "CITATION.cff file exists and is valid"
    description = "Checking for CITATION.cff in repository root and parsing content"
    dependencies = ("tool-yaml-valid",)
    is_required = False
    progress = 80

    def execute(self, state: AnalysisState, provider: RepositoryProvider) -> CheckResult:
        repo = require_repository(state)
        if not provider.file_exists(repo, CITATION_PATH):
            return self.failed(warning=MISSING_CITATION_WARNING)

        parsed = parse_citation_cff(provider.file_content(repo, CITATION_PATH))
        warning = join_messages(parsed.warnings)
        if parsed.is_valid:
            return self.completed(data=parsed.citation_cff, warning=warning)
        return self.failed(error=join_messages(parsed.errors), warning=warning)

    def state_updates(self, result: CheckResult) -> Dict[str, Any]:
        if result.status == "completed" and isinstance(result.data, CitationCff):
            return {"citation_cff": result.data}
        return {}
