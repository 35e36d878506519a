"""Galaxy ``tool.xml`` exporter rendered through a Jinja2 template."""

from __future__ import annotations

import dataclasses
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader

from ..github.dockerfile import detect_interpreter
from ..logging import get_logger
from ..models import (
    DataDef,
    GalaxyExportConfig,
    GalaxyOutput,
    LicenseValue,
    ParameterDef,
    UnifiedSoftwareMetadata,
)
from .base import ExportError, Exporter

_LOGGER = get_logger("exporters.galaxy")

_TEMPLATE_NAME = "galaxy_tool.xml.j2"
DEFAULT_PROFILE = "24.0"

_PARAMETER_TYPES: Dict[str, str] = {
    "string": "text",
    "integer": "integer",
    "float": "float",
    "boolean": "boolean",
    "enum": "select",
    "asset": "data",
}

DATATYPES: Dict[str, str] = {
    "txt": "txt",
    "tsv": "tabular",
    "csv": "csv",
    "json": "json",
    "xml": "xml",
    "fasta": "fasta",
    "fastq": "fastqsanger",
    "gff": "gff",
    "gtf": "gtf",
    "bed": "bed",
    "vcf": "vcf",
    "sam": "sam",
    "bam": "bam",
}

# Galaxy names for the interpreters detect_interpreter reports; others get no attribute.
_GALAXY_INTERPRETERS: Dict[str, str] = {
    "python": "python",
    "perl": "perl",
    "R": "Rscript",
}

_SENTENCE = re.compile(r"^[^.!?]+[.!?]")


def xml_escape(value: Any) -> str:
    """Escape the five XML metacharacters; ``None`` renders as empty text."""
    if value is None:
        return ""
    return (
        str(value)
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def _environment() -> Environment:
    loader = FileSystemLoader(str(Path(__file__).with_name("templates")))
    env = Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)
    env.filters["xml"] = xml_escape
    return env


def tool_id(repository_name: str) -> str:
    slug = re.sub(r"[^a-z0-9]", "_", repository_name.lower())
    slug = re.sub(r"_+", "_", slug).strip("_")
    return f"{slug}_v1"


def short_description(description: str) -> str:
    if not description:
        return ""
    match = _SENTENCE.match(description)
    if match:
        return match.group(0).strip()
    return description[:100].strip()


def datatype_for(extension: Optional[LicenseValue]) -> str:
    """Map a data extension (or the first of several) to a Galaxy datatype."""
    if not extension:
        return "data"
    first = extension[0] if isinstance(extension, list) else extension
    return DATATYPES.get(first.lower().lstrip("."), "data")


def with_image_tag(container: Optional[str], version: Optional[str]) -> Optional[str]:
    if not container or not version:
        return container
    name_part = container.rsplit("/", 1)[-1]
    if ":" in name_part:
        container = container[: container.rindex(":")]
    return f"{container}:{version}"


def _label(name: str) -> str:
    return re.sub(r"\b\w", lambda match: match.group(0).upper(), name.replace("_", " "))


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class GalaxyExporter(Exporter):
    format = "galaxy"
    display_name = "Galaxy"
    description = "Galaxy tool.xml format for tool integration"
    mime_type = "application/xml"
    file_extension = "xml"

    def __init__(self) -> None:
        self._env = _environment()

    def export(
        self, metadata: UnifiedSoftwareMetadata, config: Optional[GalaxyExportConfig] = None
    ) -> str:
        resolved = config or metadata.galaxy_config
        if resolved is None:
            raise ExportError("Galaxy configuration is required for export")

        command = resolved.command or ""
        context = {
            "tool_id": tool_id(metadata.repository.name),
            "name": metadata.name,
            "version": metadata.version,
            "profile": resolved.profile or DEFAULT_PROFILE,
            "short_description": short_description(metadata.description),
            "help": metadata.description,
            "command": command,
            "interpreter": resolved.interpreter or galaxy_interpreter(command),
            "inputs": self._inputs(metadata),
            "outputs": list(resolved.outputs),
            "container": with_image_tag(resolved.container, resolved.container_version),
            "citation_title": metadata.citation.title,
            "authors": [
                {"name": author.display_name(), "email": author.email}
                for author in metadata.authors
            ],
        }
        _LOGGER.debug(
            "Rendering Galaxy tool %s with %d input(s)", context["tool_id"], len(context["inputs"])
        )
        return self._env.get_template(_TEMPLATE_NAME).render(**context)

    def validate(
        self, metadata: UnifiedSoftwareMetadata, config: Optional[GalaxyExportConfig] = None
    ) -> List[str]:
        errors = super().validate(metadata, config)
        resolved = config or metadata.galaxy_config
        if resolved is None:
            errors.append("Galaxy configuration is required")
            return errors
        if not resolved.command or not resolved.command.strip():
            errors.append("Command is required for Galaxy export")
        for index, output in enumerate(resolved.outputs, start=1):
            for field_name in ("name", "label", "format"):
                value = getattr(output, field_name)
                if not value or not str(value).strip():
                    errors.append(f"Output {index}: {field_name} is required")
        return errors

    @classmethod
    def config_from_options(
        cls,
        options: Mapping[str, Any],
        metadata: Optional[UnifiedSoftwareMetadata] = None,
    ) -> Optional[GalaxyExportConfig]:
        base = metadata.galaxy_config if metadata is not None else None
        if not options:
            return base
        config = dataclasses.replace(base) if base is not None else GalaxyExportConfig()
        for key in ("command", "interpreter", "container", "container_version", "profile"):
            if options.get(key) is not None:
                setattr(config, key, str(options[key]))
        if options.get("outputs") is not None:
            config.outputs = _outputs(options["outputs"])
        return config

    def _inputs(self, metadata: UnifiedSoftwareMetadata) -> List[Dict[str, Any]]:
        inputs: List[Dict[str, Any]] = []
        data = metadata.tool_spec.data
        if isinstance(data, list):
            for item in data:
                inputs.append(_data_input(item, None))
        elif data:
            for name, definition in data.items():
                inputs.append(_data_input(name, definition))

        for name, parameter in (metadata.tool_spec.parameters or {}).items():
            inputs.append(_parameter_input(name, parameter))
        return inputs


def galaxy_interpreter(command: str) -> Optional[str]:
    detected = detect_interpreter(command)
    return _GALAXY_INTERPRETERS.get(detected) if detected else None


def _data_input(name: str, definition: Optional[DataDef]) -> Dict[str, Any]:
    attributes: List[Tuple[str, str]] = [
        ("name", name),
        ("type", "data"),
        ("label", _label(name)),
        ("format", datatype_for(definition.extension if definition else None)),
    ]
    if definition and definition.description:
        attributes.append(("help", definition.description))
    return {"attributes": attributes, "options": []}


def _parameter_input(name: str, parameter: ParameterDef) -> Dict[str, Any]:
    attributes: List[Tuple[str, str]] = [
        ("name", name),
        ("type", _PARAMETER_TYPES.get(parameter.type, "text")),
        ("label", _label(name)),
    ]
    if parameter.optional:
        attributes.append(("optional", "true"))
    if parameter.default is not None:
        key = "checked" if parameter.type == "boolean" else "value"
        attributes.append((key, _scalar(parameter.default)))
    if parameter.type in ("integer", "float"):
        if parameter.min is not None:
            attributes.append(("min", _scalar(parameter.min)))
        if parameter.max is not None:
            attributes.append(("max", _scalar(parameter.max)))
    if parameter.description:
        attributes.append(("help", parameter.description))
    options: Sequence[str] = (parameter.values or []) if parameter.type == "enum" else []
    return {"attributes": attributes, "options": list(options)}


def _outputs(raw: Any) -> List[GalaxyOutput]:
    outputs: List[GalaxyOutput] = []
    for item in raw or []:
        if isinstance(item, GalaxyOutput):
            outputs.append(item)
        elif isinstance(item, Mapping):
            outputs.append(
                GalaxyOutput(
                    name=str(item.get("name") or ""),
                    label=str(item.get("label") or ""),
                    format=str(item.get("format") or ""),
                    description=item.get("description"),
                )
            )
    return outputs


__all__ = [
    "GalaxyExporter",
    "datatype_for",
    "galaxy_interpreter",
    "short_description",
    "tool_id",
    "with_image_tag",
    "xml_escape",
]
