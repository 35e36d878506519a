from __future__ import annotations

from typing import Any, Dict, Optional

from ..exporters import get_default_export_format, get_export_formats
from ..github.client import ReleaseProvider, RepositoryProvider
from ..github.dockerfile import extract_dockerfile_cmd
from ..logging import get_logger
from ..metadata import build_unified_metadata
from ..models import AnalysisState, CheckResult, LicenseFileReport, UnifiedSoftwareMetadata
from .base import Check

_LOGGER = get_logger("checks.conversion")

DOCKERFILE_PATH = "Dockerfile"


class MetadataConversionCheck(Check):
    """Merge every gathered source into UnifiedSoftwareMetadata.

    Also reads the Dockerfile entry command and the newest release tag when
    the provider offers one, then runs the default exporter once so broken
    metadata surfaces here rather than at download time.
    """

    id = "metadata-conversion"
    name = "Convert to software metadata"
    description = "Generating software metadata from available sources"
    dependencies = ("license-check",)
    is_required = True
    progress = 100

    def execute(self, state: AnalysisState, provider: RepositoryProvider) -> CheckResult:
        if state.repo_info is None:
            raise RuntimeError("Repository information is required for metadata conversion")
        if state.tool_yaml is None:
            raise RuntimeError("Tool specification is required for metadata conversion")
        repo = state.repo_info

        dockerfile_cmd: Optional[str] = None
        if provider.file_exists(repo, DOCKERFILE_PATH):
            docker_command = extract_dockerfile_cmd(provider.file_content(repo, DOCKERFILE_PATH))
            if docker_command is not None:
                dockerfile_cmd = docker_command.command
                _LOGGER.debug(
                    "Dockerfile command %r (interpreter: %s)",
                    dockerfile_cmd,
                    docker_command.interpreter or "unknown",
                )

        repository_version: Optional[str] = None
        if isinstance(provider, ReleaseProvider):
            repository_version = provider.latest_tag(repo)

        license_result = state.checks.get("license-check")
        license_report = (
            license_result.data
            if license_result is not None and isinstance(license_result.data, LicenseFileReport)
            else None
        )

        metadata = build_unified_metadata(
            repo,
            state.tool_yaml,
            state.citation_cff,
            license_report,
            dockerfile_cmd=dockerfile_cmd,
            repository_version=repository_version,
        )
        exported = get_default_export_format().exporter.export(metadata)
        return self.completed(
            data={
                "metadata": metadata,
                "export_formats": [export_format.id for export_format in get_export_formats()],
                "exported_data_length": len(exported),
                "dockerfile_cmd": dockerfile_cmd,
                "repository_version": repository_version,
            }
        )

    def state_updates(self, result: CheckResult) -> Dict[str, Any]:
        data = result.data if isinstance(result.data, dict) else {}
        metadata = data.get("metadata")
        if result.status != "completed" or not isinstance(metadata, UnifiedSoftwareMetadata):
            return {}
        return {
            "metadata": metadata,
            "dockerfile_cmd": data.get("dockerfile_cmd"),
            "repository_version": data.get("repository_version"),
        }
