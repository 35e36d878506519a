from __future__ import annotations

from typing import Any, Dict

from ..github.client import RepositoryProvider
from ..models import AnalysisState, CheckResult
from .base import Check


class RepositoryExistsCheck(Check):
    """Resolve the repository identifier into a RepositoryInfo."""

    id = "repo-exists"
    name = "Repository exists and is public"
    description = "Validating repository URL and accessibility"
    dependencies = ()
    is_required = True
    progress = 20

    def execute(self, state: AnalysisState, provider: RepositoryProvider) -> CheckResult:
        repo_info = provider.resolve_repository(state.repo_url)
        return self.completed(data=repo_info)

    def state_updates(self, result: CheckResult) -> Dict[str, Any]:
        if result.status == "completed":
            return {"repo_info": result.data}
        return {}
