"""Checks for the ``src/tool.yml`` manifest."""

from __future__ import annotations

from typing import Any, Dict

from ..github.client import RepositoryProvider
from ..models import AnalysisState, CheckResult, ToolSpec
from ..validators.tool_spec import validate_tool_spec
from .base import Check, join_messages, require_repository

TOOL_YAML_PATH = "src/tool.yml"


class ToolYamlExistsCheck(Check):
    id = "tool-yaml-exists"
    name = "tool.yml file exists"
    description = "Checking for tool.yml in src directory"
    dependencies = ("repo-exists",)
    is_required = True
    progress = 40

    def execute(self, state: AnalysisState, provider: RepositoryProvider) -> CheckResult:
        repo = require_repository(state)
        if provider.file_exists(repo, TOOL_YAML_PATH):
            return self.completed()
        return self.failed(error="tool.yml file not found in src directory")


class ToolYamlValidCheck(Check):
    id = "tool-yaml-valid"
    name = "tool.yml is valid and compliant"
    description = "Validating tool.yml structure and content"
    dependencies = ("tool-yaml-exists",)
    is_required = True
    progress = 60

    def execute(self, state: AnalysisState, provider: RepositoryProvider) -> CheckResult:
        repo = require_repository(state)
        content = provider.file_content(repo, TOOL_YAML_PATH)
        validation = validate_tool_spec(content)
        warning = join_messages(validation.warnings)
        if validation.is_valid:
            return self.completed(data=validation.tool_spec, warning=warning)
        return self.failed(
            error=join_messages(validation.errors),
            warning=warning,
            data=validation.tool_spec,
        )

    def state_updates(self, result: CheckResult) -> Dict[str, Any]:
        if result.status == "completed" and isinstance(result.data, ToolSpec):
            return {"tool_yaml": result.data}
        return {}
