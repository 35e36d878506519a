"""Parsers and validators for tool-spec manifests and citation metadata."""

from .base import RawDocument, RawDocumentError, ValidationReport, load_yaml
from .citation import CitationValidationResult, parse_citation_cff
from .licenses import compare_licenses, detect_license_family, normalize_license
from .tool_spec import ToolSpecValidationResult, validate_tool_spec

__all__ = [
    "CitationValidationResult",
    "RawDocument",
    "RawDocumentError",
    "ToolSpecValidationResult",
    "ValidationReport",
    "compare_licenses",
    "detect_license_family",
    "load_yaml",
    "normalize_license",
    "parse_citation_cff",
    "validate_tool_spec",
]
