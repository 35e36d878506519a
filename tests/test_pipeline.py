"""Tests for toolspec.pipeline."""

from __future__ import annotations

import dataclasses
import textwrap
import threading
from typing import List

import pytest

from tests._fixtures.fake_provider import FakeProvider, TaggedFakeProvider
from toolspec.checks.citation import MISSING_CITATION_WARNING
from toolspec.checks.license import MISSING_LICENSE_WARNING
import toolspec.pipeline as pipeline_module
from toolspec.checks import Check
from toolspec.github.client import RepositoryProvider
from toolspec.models import AnalysisState, CheckResult
from toolspec.pipeline import AnalysisPipeline

MY_TOOL_YAML = """
    tools:
      my_tool:
        title: MyTool
        description: Does X.
        parameters:
          threshold:
            type: float
            min: 0
            max: 1
            default: 0.5
"""

CITATION = """
    cff-version: 1.2.0
    message: Please cite this software.
    title: MyTool
    version: 0.9.0
    date-released: "2024-03-01"
    url: https://example.org/mytool
    license: MIT
    authors:
      - given-names: Grace
        family-names: Hopper
"""

MIT_LICENSE = """
    MIT License

    Permission is hereby granted, free of charge, to any person obtaining a copy
    of this software and associated documentation files.
"""

DOCKERFILE = """
    FROM python:3.12-slim
    COPY src /src
    CMD ["python", "/src/run.py"]
"""

CHECK_IDS = [
    "repo-exists",
    "tool-yaml-exists",
    "tool-yaml-valid",
    "citation-cff-exists",
    "license-check",
    "metadata-conversion",
]


def test_minimal_repository_completes_with_warnings() -> None:
    pipeline = AnalysisPipeline(FakeProvider({"src/tool.yml": MY_TOOL_YAML}))

    state = pipeline.run_analysis("owner/repo")

    assert state.state == "completed"
    assert state.progress == 100
    assert state.current_check is None
    assert state.can_cancel is False
    assert list(state.checks) == CHECK_IDS
    assert state.checks["tool-yaml-valid"].status == "completed"
    citation = state.checks["citation-cff-exists"]
    assert citation.status == "failed"
    assert citation.warning == MISSING_CITATION_WARNING
    license_check = state.checks["license-check"]
    assert license_check.status == "completed"
    assert license_check.warning == MISSING_LICENSE_WARNING
    assert state.checks["metadata-conversion"].status == "completed"
    assert state.warnings == [MISSING_CITATION_WARNING, MISSING_LICENSE_WARNING]
    assert state.errors == []

    assert state.metadata is not None
    assert state.metadata.name == "MyTool"
    assert state.metadata.version == "latest"
    assert "tool-spec" in state.metadata.keywords
    assert "python" in state.metadata.keywords
    assert state.tool_yaml is not None and state.tool_yaml.name == "my_tool"


def test_every_result_records_duration() -> None:
    state = AnalysisPipeline(FakeProvider({"src/tool.yml": MY_TOOL_YAML})).run_analysis("owner/repo")

    assert all(result.duration is not None and result.duration >= 0 for result in state.checks.values())


def test_full_repository_uses_citation_license_and_release_tag() -> None:
    provider = TaggedFakeProvider(
        {
            "src/tool.yml": MY_TOOL_YAML,
            "CITATION.cff": CITATION,
            "LICENSE": MIT_LICENSE,
            "Dockerfile": DOCKERFILE,
        }
    )

    state = AnalysisPipeline(provider).run_analysis("https://github.com/owner/repo")

    assert state.state == "completed"
    assert state.warnings == []
    assert state.citation_cff is not None and state.citation_cff.license == "MIT"
    assert state.dockerfile_cmd == "python /src/run.py"
    assert state.repository_version == "v2.1.0"
    assert state.metadata is not None
    assert state.metadata.version == "v2.1.0"
    assert state.metadata.license.license_file_exists is True
    assert state.metadata.license.license_compatibility.are_compatible is True
    assert state.metadata.galaxy_config is not None
    assert state.metadata.galaxy_config.command == "python /src/run.py"
    conversion = state.checks["metadata-conversion"].data
    assert conversion["export_formats"] == ["codemeta", "schema-org", "galaxy", "cwl", "doap"]
    assert conversion["exported_data_length"] > 0


def test_missing_tool_yaml_stops_the_run() -> None:
    state = AnalysisPipeline(FakeProvider()).run_analysis("owner/repo")

    assert state.state == "error"
    assert state.can_retry is True
    assert state.can_cancel is False
    assert state.progress == 40
    assert state.checks["tool-yaml-exists"].status == "failed"
    assert state.errors == ["tool.yml file not found in src directory"]
    for check_id in CHECK_IDS[2:]:
        assert state.checks[check_id].status == "pending"
    assert state.metadata is None


def test_missing_repository_fails_first_check() -> None:
    provider = FakeProvider(missing=True)

    state = AnalysisPipeline(provider).run_analysis("owner/ghost")

    assert state.state == "error"
    assert state.repo_info is None
    assert state.checks["repo-exists"].error == "Repository owner/ghost not found or not public"
    assert provider.requested == []


def test_invalid_tool_yaml_reports_all_errors() -> None:
    broken = """
        tools:
          t:
            parameters:
              p:
                type: colour
    """
    state = AnalysisPipeline(FakeProvider({"src/tool.yml": broken})).run_analysis("owner/repo")

    assert state.state == "error"
    error = state.checks["tool-yaml-valid"].error
    assert error is not None
    assert 'Missing required field: "title"' in error
    assert 'Parameter "p" has invalid type "colour"' in error
    assert state.tool_yaml is None


def test_cancel_between_checks() -> None:
    pipeline = AnalysisPipeline(FakeProvider({"src/tool.yml": MY_TOOL_YAML}))

    def cancel_after_first(state: AnalysisState) -> None:
        if state.checks.get("repo-exists") and state.checks["repo-exists"].status == "completed":
            pipeline.cancel()

    pipeline.subscribe(cancel_after_first)
    state = pipeline.run_analysis("owner/repo")

    assert state.state == "cancelled"
    assert state.can_cancel is False
    assert state.can_retry is True
    assert state.checks["repo-exists"].status == "completed"
    for check_id in CHECK_IDS[1:]:
        assert state.checks[check_id].status == "pending"


def test_cancel_when_idle_is_a_no_op() -> None:
    pipeline = AnalysisPipeline(FakeProvider())

    pipeline.cancel()

    assert pipeline.state.state == "idle"


class GateCheck(Check):
    """Blocks inside execute until the test releases it."""

    id = "gate"
    name = "Gate"
    progress = 50

    def __init__(self) -> None:
        self.entered = threading.Event()
        self.release = threading.Event()

    def execute(self, state: AnalysisState, provider: RepositoryProvider) -> CheckResult:
        self.entered.set()
        self.release.wait(timeout=5)
        return self.completed()


class AfterGateCheck(Check):
    id = "after-gate"
    name = "After gate"
    progress = 100

    def __init__(self) -> None:
        self.executed = False

    def execute(self, state: AnalysisState, provider: RepositoryProvider) -> CheckResult:
        self.executed = True
        return self.completed()


def test_cancel_from_another_thread_during_state_write(monkeypatch: pytest.MonkeyPatch) -> None:
    pipeline = AnalysisPipeline(FakeProvider({"src/tool.yml": MY_TOOL_YAML}))

    def replace_then_cancel(state: AnalysisState, /, **fields: object) -> AnalysisState:
        if fields.get("current_check") == "tool-yaml-valid":
            worker = threading.Thread(target=pipeline.cancel)
            worker.start()
            worker.join()
        return dataclasses.replace(state, **fields)

    monkeypatch.setattr(pipeline_module, "replace", replace_then_cancel)
    state = pipeline.run_analysis("owner/repo")

    assert state.state == "cancelled"
    assert state.can_retry is True
    assert state.metadata is None
    assert state.checks["tool-yaml-valid"].status == "completed"
    for check_id in CHECK_IDS[3:]:
        assert state.checks[check_id].status == "pending"


def test_running_check_finishes_after_cancel() -> None:
    gate = GateCheck()
    after = AfterGateCheck()
    pipeline = AnalysisPipeline(FakeProvider(), checks=[gate, after])
    finished: List[AnalysisState] = []
    runner = threading.Thread(target=lambda: finished.append(pipeline.run_analysis("owner/repo")))

    runner.start()
    assert gate.entered.wait(timeout=5)
    pipeline.cancel()
    assert pipeline.state.state == "analyzing"
    gate.release.set()
    runner.join(timeout=5)

    (state,) = finished
    assert state.state == "cancelled"
    assert state.checks["gate"].status == "completed"
    assert state.checks["after-gate"].status == "pending"
    assert after.executed is False


def test_observers_receive_snapshots() -> None:
    pipeline = AnalysisPipeline(FakeProvider({"src/tool.yml": MY_TOOL_YAML}))
    seen: List[AnalysisState] = []
    running: List[str] = []

    def observe(state: AnalysisState) -> None:
        seen.append(state)
        if state.current_check:
            running.append(state.current_check)
        state.warnings.append("tampered")

    unsubscribe = pipeline.subscribe(observe)
    final = pipeline.run_analysis("owner/repo")

    assert seen[0].state == "analyzing"
    assert seen[-1].state == "completed"
    assert "tampered" not in final.warnings
    assert sorted(set(running), key=CHECK_IDS.index) == CHECK_IDS

    unsubscribe()
    count = len(seen)
    pipeline.run_analysis("owner/repo")
    assert len(seen) == count


def test_progress_is_monotonic() -> None:
    pipeline = AnalysisPipeline(FakeProvider({"src/tool.yml": MY_TOOL_YAML}))
    progress: List[int] = []
    pipeline.subscribe(lambda state: progress.append(state.progress))

    pipeline.run_analysis("owner/repo")

    assert progress == sorted(progress)
    assert progress[-1] == 100


def test_reset_returns_to_idle() -> None:
    pipeline = AnalysisPipeline(FakeProvider({"src/tool.yml": MY_TOOL_YAML}))
    pipeline.run_analysis("owner/repo")

    pipeline.reset()

    state = pipeline.state
    assert state.state == "idle"
    assert state.checks == {}
    assert state.metadata is None
    assert state.progress == 0


def test_retry_after_error_starts_fresh() -> None:
    provider = FakeProvider()
    pipeline = AnalysisPipeline(provider)
    assert pipeline.run_analysis("owner/repo").state == "error"

    provider.files["src/tool.yml"] = textwrap.dedent(MY_TOOL_YAML)
    state = pipeline.run_analysis("owner/repo")

    assert state.state == "completed"
    assert state.errors == []
