"""Base class for pipeline checks."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Dict, Optional, Tuple

from ..github.client import RepositoryProvider
from ..logging import get_logger
from ..models import AnalysisState, CheckResult, RepositoryInfo

_LOGGER = get_logger("checks")


class Check(ABC):
    """One step of the analysis pipeline.

    Checks receive a snapshot of the analysis state and return a
    ``CheckResult``. They never write to the shared state; the orchestrator
    applies whatever ``state_updates`` returns for the finished result.
    """

    id: str = ""
    name: str = ""
    description: str = ""
    dependencies: Tuple[str, ...] = ()
    is_required: bool = True
    progress: int = 0

    @abstractmethod
    def execute(self, state: AnalysisState, provider: RepositoryProvider) -> CheckResult:
        """Perform the check against ``state`` using ``provider`` for repository access."""

    def run(self, state: AnalysisState, provider: RepositoryProvider) -> CheckResult:
        """Execute the check, timing it and turning exceptions into a failed result."""
        started = time.perf_counter()
        try:
            result = self.execute(state, provider)
        except Exception as exc:  # noqa: BLE001 - any executor failure fails the check
            _LOGGER.debug("Check %s raised %s", self.id, exc, exc_info=True)
            result = self.failed(error=str(exc) or exc.__class__.__name__)
        duration = round((time.perf_counter() - started) * 1000, 3)
        return replace(result, duration=duration)

    def state_updates(self, result: CheckResult) -> Dict[str, Any]:
        """Return AnalysisState fields to assign once ``result`` is recorded."""
        return {}

    def pending(self) -> CheckResult:
        return self._result("pending")

    def running(self) -> CheckResult:
        return self._result("running")

    def completed(self, *, data: Any = None, warning: Optional[str] = None) -> CheckResult:
        return self._result("completed", data=data, warning=warning)

    def failed(
        self,
        *,
        error: Optional[str] = None,
        warning: Optional[str] = None,
        data: Any = None,
    ) -> CheckResult:
        return self._result("failed", data=data, error=error, warning=warning)

    def _result(self, status: str, **fields: Any) -> CheckResult:
        return CheckResult(
            id=self.id,
            status=status,
            is_required=self.is_required,
            name=self.name,
            description=self.description,
            **fields,
        )


def require_repository(state: AnalysisState) -> RepositoryInfo:
    if state.repo_info is None:
        raise RuntimeError("Repository info not available")
    return state.repo_info


def join_messages(messages: list[str]) -> Optional[str]:
    return "; ".join(messages) if messages else None


__all__ = ["Check", "join_messages", "require_repository"]
