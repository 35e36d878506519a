"""Core data models shared across toolspec components."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

PARAMETER_TYPES: tuple[str, ...] = ("string", "integer", "float", "boolean", "enum", "asset")

CHECK_STATUSES: tuple[str, ...] = ("pending", "running", "completed", "failed", "skipped")

ANALYSIS_STATES: tuple[str, ...] = ("idle", "analyzing", "completed", "error", "cancelled")

LicenseValue = Union[str, List[str]]


@dataclass
class RepositoryInfo:
    """Descriptor of a hosted repository as resolved by the content provider."""

    owner: str
    name: str
    full_name: str
    description: Optional[str] = None
    language: Optional[str] = None
    stars: int = 0
    created_at: str = ""
    updated_at: str = ""
    clone_url: str = ""
    html_url: str = ""


@dataclass
class Author:
    """A person or entity credited in citation metadata."""

    name: Optional[str] = None
    given_names: Optional[str] = None
    family_names: Optional[str] = None
    email: Optional[str] = None
    affiliation: Optional[str] = None
    orcid: Optional[str] = None

    def display_name(self) -> str:
        if self.name:
            return self.name
        return " ".join(part for part in (self.given_names, self.family_names) if part)


@dataclass
class ParameterDef:
    type: str
    description: Optional[str] = None
    values: Optional[List[str]] = None
    array: bool = False
    min: Optional[float] = None
    max: Optional[float] = None
    optional: bool = False
    default: Any = None


@dataclass
class DataDef:
    description: Optional[str] = None
    example: Optional[str] = None
    extension: Optional[LicenseValue] = None


@dataclass
class ToolSpec:
    """Validated entry of the `tools` section of a tool.yml manifest."""

    title: str
    description: str
    parameters: Optional[Dict[str, ParameterDef]] = None
    data: Optional[Union[Dict[str, DataDef], List[str]]] = None
    name: Optional[str] = None


@dataclass
class CitationCff:
    """Normalized view of a CITATION.cff document."""

    title: str
    authors: List[Author] = field(default_factory=list)
    cff_version: Optional[str] = None
    message: Optional[str] = None
    version: Optional[str] = None
    date_released: Optional[str] = None
    url: Optional[str] = None
    repository: Optional[str] = None
    repository_code: Optional[str] = None
    license: Optional[LicenseValue] = None
    keywords: Optional[List[str]] = None
    abstract: Optional[str] = None
    preferred_citation: Optional[Dict[str, Any]] = None
    identifiers: Optional[List[Dict[str, Any]]] = None


@dataclass(frozen=True)
class CheckResult:
    """Outcome of a single pipeline check; replaced, never mutated."""

    id: str
    status: str
    is_required: bool
    name: str = ""
    description: str = ""
    data: Any = None
    error: Optional[str] = None
    warning: Optional[str] = None
    duration: Optional[float] = None


@dataclass
class LicenseComparison:
    are_compatible: bool = True
    warnings: List[str] = field(default_factory=list)


@dataclass
class LicenseFileReport:
    """Data recorded by the LICENSE check."""

    license_exists: bool = False
    license_file_length: int = 0
    license_comparison: LicenseComparison = field(default_factory=LicenseComparison)


@dataclass
class LicenseInfo:
    license: Optional[LicenseValue] = None
    license_file_exists: bool = False
    license_file_content: Optional[str] = None
    license_compatibility: LicenseComparison = field(default_factory=LicenseComparison)


@dataclass
class CitationData:
    title: str
    authors: List[Author] = field(default_factory=list)
    version: Optional[str] = None
    date_released: Optional[str] = None
    url: Optional[str] = None
    repository: Optional[str] = None
    license: Optional[LicenseValue] = None
    keywords: Optional[List[str]] = None
    abstract: Optional[str] = None


@dataclass
class GalaxyOutput:
    name: str
    label: str
    format: str
    description: Optional[str] = None


@dataclass
class GalaxyExportConfig:
    command: Optional[str] = None
    interpreter: Optional[str] = None
    container: Optional[str] = None
    container_version: Optional[str] = None
    outputs: List[GalaxyOutput] = field(default_factory=list)
    profile: Optional[str] = "24.0"


@dataclass
class CwlOutput:
    name: str
    type: str
    glob: str
    label: Optional[str] = None
    doc: Optional[str] = None


@dataclass
class CwlExportConfig:
    cwl_version: str = "v1.2"
    outputs: List[CwlOutput] = field(default_factory=list)
    base_command: Optional[str] = None
    container: Optional[str] = None


@dataclass
class DoapConfig:
    maintainer: Optional[Author] = None
    format: str = "turtle"


@dataclass(frozen=True)
class UnifiedSoftwareMetadata:
    """Canonical record merged from every validated source, consumed by exporters."""

    name: str
    description: str
    version: str
    authors: List[Author]
    maintainers: List[Author]
    repository: RepositoryInfo
    license: LicenseInfo
    programming_language: str
    keywords: List[str]
    tool_spec: ToolSpec
    citation: CitationData
    generated_at: str
    generator: str
    generator_version: str
    galaxy_config: Optional[GalaxyExportConfig] = None


@dataclass
class AnalysisState:
    """Mutable record threaded through the pipeline; written only by the orchestrator."""

    state: str = "idle"
    repo_url: str = ""
    repo_info: Optional[RepositoryInfo] = None
    checks: Dict[str, CheckResult] = field(default_factory=dict)
    current_check: Optional[str] = None
    progress: int = 0
    tool_yaml: Optional[ToolSpec] = None
    citation_cff: Optional[CitationCff] = None
    dockerfile_cmd: Optional[str] = None
    repository_version: Optional[str] = None
    metadata: Optional[UnifiedSoftwareMetadata] = None
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    can_cancel: bool = False
    can_retry: bool = False

    def snapshot(self) -> "AnalysisState":
        """Return a deep copy safe to hand to checks and observers."""
        return copy.deepcopy(self)

    @property
    def is_terminal(self) -> bool:
        return self.state in {"completed", "error", "cancelled"}


__all__ = [
    "ANALYSIS_STATES",
    "AnalysisState",
    "Author",
    "CHECK_STATUSES",
    "CheckResult",
    "CitationCff",
    "CitationData",
    "CwlExportConfig",
    "CwlOutput",
    "DataDef",
    "DoapConfig",
    "GalaxyExportConfig",
    "GalaxyOutput",
    "LicenseComparison",
    "LicenseFileReport",
    "LicenseInfo",
    "LicenseValue",
    "PARAMETER_TYPES",
    "ParameterDef",
    "RepositoryInfo",
    "ToolSpec",
    "UnifiedSoftwareMetadata",
]
