"""Pipeline checks in their canonical execution order."""

from __future__ import annotations

from typing import List

from .base import Check
from .citation import CitationCheck
from .conversion import MetadataConversionCheck
from .license import LicenseCheck
from .repository import RepositoryExistsCheck
from .tool_yaml import ToolYamlExistsCheck, ToolYamlValidCheck


def default_checks() -> List[Check]:
    """Return fresh instances of the six checks, ordered by dependency."""
    return [
        RepositoryExistsCheck(),
        ToolYamlExistsCheck(),
        ToolYamlValidCheck(),
        CitationCheck(),
        LicenseCheck(),
        MetadataConversionCheck(),
    ]


__all__ = [
    "Check",
    "CitationCheck",
    "LicenseCheck",
    "MetadataConversionCheck",
    "RepositoryExistsCheck",
    "ToolYamlExistsCheck",
    "ToolYamlValidCheck",
    "default_checks",
]
