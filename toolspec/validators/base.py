"""Shared result types and YAML helpers for manifest validators."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

import yaml


@dataclass
class RawDocument:
    """Successfully loaded YAML content, not yet validated."""

    content: Any


@dataclass
class RawDocumentError:
    """YAML content that could not be loaded at all."""

    message: str


RawParse = Union[RawDocument, RawDocumentError]


@dataclass
class ValidationReport:
    """Accumulates errors and warnings over a single validation pass."""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def error(self, message: str) -> None:
        self.errors.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    @property
    def ok(self) -> bool:
        return not self.errors


def load_yaml(text: str) -> RawParse:
    """Load YAML text permissively; syntax problems become a ``RawDocumentError``."""
    try:
        return RawDocument(content=yaml.safe_load(text))
    except yaml.YAMLError as exc:
        return RawDocumentError(message=" ".join(str(exc).split()))


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def as_text(value: Any) -> Optional[str]:
    """Coerce YAML scalars (numbers, dates) to strings; drop containers."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    if is_number(value):
        return str(value)
    return None


__all__ = [
    "RawDocument",
    "RawDocumentError",
    "RawParse",
    "ValidationReport",
    "as_text",
    "is_number",
    "load_yaml",
]
