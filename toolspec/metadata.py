"""Merge validated sources into one UnifiedSoftwareMetadata record."""

from __future__ import annotations

import datetime as dt
from typing import Iterable, List, Optional

from .logging import get_logger
from .models import (
    CitationCff,
    CitationData,
    GalaxyExportConfig,
    LicenseComparison,
    LicenseFileReport,
    LicenseInfo,
    RepositoryInfo,
    ToolSpec,
    UnifiedSoftwareMetadata,
)

_LOGGER = get_logger("metadata")

GENERATOR_NAME = "Tool-Spec Converter"
GENERATOR_VERSION = "1.0.0"
DEFAULT_GALAXY_PROFILE = "24.0"
TOOL_SPEC_KEYWORD = "tool-spec"


def build_unified_metadata(
    repo_info: Optional[RepositoryInfo],
    tool_spec: Optional[ToolSpec],
    citation: Optional[CitationCff] = None,
    license_report: Optional[LicenseFileReport] = None,
    dockerfile_cmd: Optional[str] = None,
    repository_version: Optional[str] = None,
    *,
    now: Optional[dt.datetime] = None,
) -> UnifiedSoftwareMetadata:
    """Build the canonical metadata record.

    Fallbacks, in order:

    * name: tool title, then repository name
    * description: tool description, then repository description, then ``""``
    * version: repository tag, then citation version, then ``"latest"``

    Authors come only from the citation. The license value is the citation's
    declared license; LICENSE text never produces a license value here.
    """
    if repo_info is None:
        raise ValueError("Repository information is required for metadata conversion")
    if tool_spec is None:
        raise ValueError("Tool specification is required for metadata conversion")

    authors = list(citation.authors) if citation else []
    keywords = _unique(
        ([TOOL_SPEC_KEYWORD] if tool_spec.parameters is not None else [])
        + list((citation.keywords or []) if citation else [])
        + ([repo_info.language.lower()] if repo_info.language else [])
    )
    version = repository_version or (citation.version if citation else None) or "latest"

    report = license_report or LicenseFileReport()
    license_info = LicenseInfo(
        license=citation.license if citation and citation.license else None,
        license_file_exists=report.license_exists,
        license_file_content="Present" if report.license_file_length > 0 else None,
        license_compatibility=report.license_comparison or LicenseComparison(),
    )

    citation_data = CitationData(
        title=(citation.title if citation and citation.title else tool_spec.title),
        authors=list(citation.authors) if citation else [],
        version=citation.version if citation else None,
        date_released=citation.date_released if citation else None,
        url=citation.url if citation else None,
        repository=citation.repository if citation else None,
        license=citation.license if citation else None,
        keywords=citation.keywords if citation else None,
        abstract=citation.abstract if citation else None,
    )

    generated = (now or dt.datetime.now(dt.timezone.utc)).astimezone(dt.timezone.utc)
    metadata = UnifiedSoftwareMetadata(
        name=tool_spec.title or repo_info.name,
        description=tool_spec.description or repo_info.description or "",
        version=version,
        authors=authors,
        maintainers=[],
        repository=repo_info,
        license=license_info,
        programming_language=repo_info.language or "Unknown",
        keywords=keywords,
        tool_spec=tool_spec,
        citation=citation_data,
        generated_at=generated.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        generator=GENERATOR_NAME,
        generator_version=GENERATOR_VERSION,
        galaxy_config=GalaxyExportConfig(
            command=dockerfile_cmd,
            container=f"ghcr.io/{repo_info.owner}/{repo_info.name}:latest",
            container_version=repository_version,
            outputs=[],
            profile=DEFAULT_GALAXY_PROFILE,
        ),
    )
    _LOGGER.debug(
        "Unified metadata for %s: version=%s authors=%d keywords=%s",
        metadata.name,
        metadata.version,
        len(metadata.authors),
        metadata.keywords,
    )
    return metadata


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    ordered: List[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        ordered.append(value)
    return ordered


__all__ = ["GENERATOR_NAME", "GENERATOR_VERSION", "build_unified_metadata"]
