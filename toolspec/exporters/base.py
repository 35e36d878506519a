"""Exporter contract shared by every output format."""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional

from ..models import LicenseValue, UnifiedSoftwareMetadata


class ExportError(RuntimeError):
    """Raised when an export cannot be produced from the given inputs."""


class Exporter(ABC):
    """Maps UnifiedSoftwareMetadata onto one serialized target format.

    ``export`` and ``validate`` are independent: exporting never enforces the
    rules ``validate`` reports, and neither mutates the metadata.
    """

    format: str = ""
    display_name: str = ""
    description: str = ""
    mime_type: str = "text/plain"
    file_extension: str = "txt"

    @abstractmethod
    def export(self, metadata: UnifiedSoftwareMetadata, config: Any = None) -> str:
        """Serialize ``metadata`` using optional format-specific ``config``."""

    def validate(self, metadata: UnifiedSoftwareMetadata, config: Any = None) -> List[str]:
        errors: List[str] = []
        if not metadata.name:
            errors.append("Name is required")
        if not metadata.description:
            errors.append("Description is required")
        if not metadata.authors:
            errors.append("At least one author is required")
        return errors

    @classmethod
    def config_from_options(
        cls,
        options: Mapping[str, Any],
        metadata: Optional[UnifiedSoftwareMetadata] = None,
    ) -> Any:
        """Build this format's config object from plain CLI/HTTP options."""
        return None

    def file_extension_for(self, config: Any = None) -> str:
        return self.file_extension

    def mime_type_for(self, config: Any = None) -> str:
        return self.mime_type

    def suggest_filename(self, metadata: UnifiedSoftwareMetadata, config: Any = None) -> str:
        stem = re.sub(r"[^a-zA-Z0-9]", "_", metadata.name) or "metadata"
        return f"{stem}.{self.file_extension_for(config)}"


def to_json(document: Mapping[str, Any]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def first_license(value: Optional[LicenseValue]) -> Optional[str]:
    if isinstance(value, list):
        return value[0] if value else None
    return value or None


__all__ = ["ExportError", "Exporter", "first_license", "to_json"]
