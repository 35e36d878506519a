"""Sequential check orchestration for repository analysis."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional

from .checks import Check, default_checks
from .github.client import RepositoryProvider
from .logging import get_logger
from .models import AnalysisState, CheckResult

StateObserver = Callable[[AnalysisState], None]


class AnalysisPipeline:
    """Runs checks one at a time against a repository and owns the AnalysisState.

    The pipeline is the only writer of its state. Checks and observers always
    receive snapshots, so nothing they do can change the recorded run.
    Cancellation is observed between checks; a check that already started
    runs to completion. Only the thread inside ``run_analysis`` writes the
    state, so ``cancel`` merely raises a flag for that thread to act on.
    """

    def __init__(
        self,
        provider: RepositoryProvider,
        checks: Optional[Iterable[Check]] = None,
    ) -> None:
        self.provider = provider
        self.checks: List[Check] = list(checks) if checks is not None else default_checks()
        self.logger = get_logger("pipeline")
        self._state = AnalysisState()
        self._cancelled = threading.Event()
        self._observers: List[StateObserver] = []
        self._lock = threading.Lock()

    @property
    def state(self) -> AnalysisState:
        return self._state.snapshot()

    def subscribe(self, observer: StateObserver) -> Callable[[], None]:
        """Register ``observer`` for state snapshots; returns an unsubscribe callable."""
        with self._lock:
            self._observers.append(observer)

        def _unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return _unsubscribe

    def cancel(self) -> None:
        """Request cancellation; honoured before the next check starts.

        Safe to call from any thread. The state turns ``cancelled`` once the
        running check returns.
        """
        self._cancelled.set()

    def reset(self) -> None:
        self._cancelled.clear()
        self._state = AnalysisState()
        self._notify()

    def run_analysis(self, repo_url: str) -> AnalysisState:
        """Run every check in order and return the final state snapshot."""
        self._cancelled.clear()
        self._state = AnalysisState(
            state="analyzing",
            repo_url=repo_url,
            checks={check.id: check.pending() for check in self.checks},
            can_cancel=True,
        )
        self.logger.info("Analyzing %s with %d checks", repo_url, len(self.checks))
        self._notify()

        for check in self.checks:
            if self._cancelled.is_set():
                break

            self.logger.debug("Running check %s", check.id)
            self._record(check.running(), current_check=check.id)
            result = check.run(self._state.snapshot(), self.provider)
            self._apply(check, result)

            if result.status == "failed" and check.is_required and not self._cancelled.is_set():
                self.logger.error("Required check %s failed: %s", check.id, result.error)
                self._update(state="error", can_cancel=False, can_retry=True, current_check=None)
                break

        if self._state.state == "analyzing":
            self._finish(repo_url)
        return self.state

    def _finish(self, repo_url: str) -> None:
        if self._cancelled.is_set():
            self._update(state="cancelled", can_cancel=False, can_retry=True, current_check=None)
            self.logger.info("Analysis of %s cancelled", repo_url)
            return

        unfinished = [
            check_id
            for check_id, result in self._state.checks.items()
            if result.status in ("pending", "running")
        ]
        if unfinished:
            self.logger.error("Analysis of %s stopped before %s", repo_url, ", ".join(unfinished))
            self._update(state="error", can_cancel=False, can_retry=True, current_check=None)
            return

        self._update(state="completed", can_cancel=False, current_check=None)
        self.logger.info(
            "Analysis of %s completed with %d warning(s)", repo_url, len(self._state.warnings)
        )

    def _apply(self, check: Check, result: CheckResult) -> None:
        self._log_result(result)
        warnings = list(self._state.warnings)
        errors = list(self._state.errors)
        if result.warning:
            warnings.append(result.warning)
        if result.error:
            errors.append(result.error)
        updates = check.state_updates(result)
        self._record(
            result,
            warnings=warnings,
            errors=errors,
            progress=check.progress,
            **updates,
        )

    def _record(self, result: CheckResult, **fields: object) -> None:
        checks: Dict[str, CheckResult] = dict(self._state.checks)
        checks[result.id] = result
        self._update(checks=checks, **fields)

    def _update(self, **fields: object) -> None:
        self._state = replace(self._state, **fields)
        self._notify()

    def _notify(self) -> None:
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            observer(self._state.snapshot())

    def _log_result(self, result: CheckResult) -> None:
        duration = f"{result.duration:.1f}ms" if result.duration is not None else "n/a"
        if result.status == "completed":
            self.logger.info("Check %s completed in %s", result.id, duration)
        else:
            self.logger.log(
                logging.ERROR if result.is_required else logging.WARNING,
                "Check %s %s in %s%s",
                result.id,
                result.status,
                duration,
                f": {result.error}" if result.error else "",
            )
        if result.warning:
            self.logger.warning("%s: %s", result.id, result.warning)


__all__ = ["AnalysisPipeline", "StateObserver"]
