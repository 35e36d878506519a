"""Export formats and the registry that exposes them."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import metadata as importlib_metadata
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .base import ExportError, Exporter
from .codemeta import CodeMetaExporter
from .cwl import CwlExporter
from .doap import DoapExporter
from .galaxy import GalaxyExporter
from .schema_org import SchemaOrgExporter
from ..models import UnifiedSoftwareMetadata

_ENTRY_POINT_GROUP = "toolspec.exporters"

DEFAULT_FORMAT_ID = "codemeta"

_BUILTIN_FACTORIES: Dict[str, Callable[[], Exporter]] = {
    "codemeta": CodeMetaExporter,
    "schema-org": SchemaOrgExporter,
    "galaxy": GalaxyExporter,
    "cwl": CwlExporter,
    "doap": DoapExporter,
}


@dataclass(frozen=True)
class ExportFormat:
    id: str
    name: str
    description: str
    exporter: Exporter


def _format_for(format_id: str, exporter: Exporter) -> ExportFormat:
    return ExportFormat(
        id=format_id,
        name=exporter.display_name or format_id,
        description=exporter.description,
        exporter=exporter,
    )


_REGISTRY: Dict[str, ExportFormat] = {
    format_id: _format_for(format_id, factory())
    for format_id, factory in _BUILTIN_FACTORIES.items()
}


def get_export_formats() -> List[ExportFormat]:
    """Return registered formats in registration order."""
    return list(_REGISTRY.values())


def get_export_format(format_id: str) -> Optional[ExportFormat]:
    return _REGISTRY.get(format_id)


def require_export_format(format_id: str) -> ExportFormat:
    export_format = _REGISTRY.get(format_id)
    if export_format is None:
        available = ", ".join(_REGISTRY)
        raise ExportError(f"Unknown export format '{format_id}'. Available formats: {available}")
    return export_format


def get_default_export_format() -> ExportFormat:
    return _REGISTRY[DEFAULT_FORMAT_ID]


def register_export_format(exporter: Exporter, format_id: Optional[str] = None) -> ExportFormat:
    """Add ``exporter`` to the registry, replacing any format with the same id."""
    if not isinstance(exporter, Exporter):
        raise TypeError("Export formats must be backed by an Exporter instance")
    key = format_id or exporter.format
    if not key:
        raise ValueError("Exporter does not declare a format id")
    export_format = _format_for(key, exporter)
    _REGISTRY[key] = export_format
    return export_format


@dataclass(frozen=True)
class ExportResult:
    format: str
    content: str
    filename: str
    mime_type: str
    validation_errors: List[str]


def export_metadata(
    format_id: str,
    metadata: UnifiedSoftwareMetadata,
    options: Optional[Mapping[str, Any]] = None,
) -> ExportResult:
    """Validate and export ``metadata`` with the format registered as ``format_id``.

    Validation errors are reported alongside the content; only hard
    preconditions inside ``export`` stop the export.
    """
    exporter = require_export_format(format_id).exporter
    config = exporter.config_from_options(options or {}, metadata)
    return ExportResult(
        format=format_id,
        content=exporter.export(metadata, config),
        filename=exporter.suggest_filename(metadata, config),
        mime_type=exporter.mime_type_for(config),
        validation_errors=exporter.validate(metadata, config),
    )


def discover_export_formats() -> List[ExportFormat]:
    """Register exporters published under the ``toolspec.exporters`` entry-point group."""
    discovered: List[ExportFormat] = []
    for entry in _iter_entry_points():
        try:
            loaded = entry.load()
        except Exception as exc:  # noqa: BLE001 - surface plugin import failures uniformly
            raise RuntimeError(f"Failed to load exporter entry point '{entry.name}': {exc}") from exc
        discovered.append(register_export_format(_coerce_exporter(loaded), entry.name))
    return discovered


def _coerce_exporter(obj: object) -> Exporter:
    if isinstance(obj, Exporter):
        return obj
    if isinstance(obj, type) and issubclass(obj, Exporter):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, Exporter):
            return instance
    raise TypeError("Exporter entry point must be an Exporter subclass or factory")


def _iter_entry_points() -> Iterable[importlib_metadata.EntryPoint]:
    entry_points = importlib_metadata.entry_points()
    if hasattr(entry_points, "select"):
        return entry_points.select(group=_ENTRY_POINT_GROUP)  # type: ignore[return-value]
    return entry_points.get(_ENTRY_POINT_GROUP, [])  # type: ignore[return-value]


__all__ = [
    "DEFAULT_FORMAT_ID",
    "ExportError",
    "ExportFormat",
    "ExportResult",
    "Exporter",
    "discover_export_formats",
    "export_metadata",
    "get_default_export_format",
    "get_export_format",
    "get_export_formats",
    "register_export_format",
    "require_export_format",
]
