"""CWL ``CommandLineTool`` exporter.

Tool-spec containers read their parameters from ``/data/in/inputs.json``
rather than from command-line arguments, so CWL inputs carry no
``inputBinding``. Instead the tool runs a short shell sequence that writes
``inputs/inputs.json`` from the evaluated CWL inputs and then starts the
container with the inputs and outputs directories mounted.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional

import yaml

from ..logging import get_logger
from ..models import CwlExportConfig, CwlOutput, ParameterDef, UnifiedSoftwareMetadata
from .base import ExportError, Exporter, first_license
from .galaxy import with_image_tag

_LOGGER = get_logger("exporters.cwl")

CWL_VERSIONS = ("v1.1", "v1.2")
SCHEMA_ORG_NAMESPACE = "https://schema.org/"

_BASE_TYPES: Dict[str, str] = {
    "string": "string",
    "integer": "int",
    "float": "float",
    "boolean": "boolean",
    "asset": "File",
}


def cwl_tool_id(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]", "-", name.lower())
    return re.sub(r"-+", "-", slug).strip("-")


def cwl_type(parameter: ParameterDef) -> Any:
    """Translate a parameter definition to a CWL type expression.

    ``optional`` makes the item type nullable and ``array`` then wraps it, so an
    optional array holds nullable items. Enums are returned as declared.
    """
    if parameter.type == "enum":
        return {"type": "enum", "symbols": list(parameter.values or [])}
    base: Any = _BASE_TYPES.get(parameter.type, "string")
    if parameter.optional:
        base = ["null", base]
    if parameter.array:
        return {"type": "array", "items": base}
    return base


def _label(name: str) -> str:
    return re.sub(r"\b\w", lambda match: match.group(0).upper(), name.replace("_", " "))


class CwlExporter(Exporter):
    format = "cwl"
    display_name = "CWL"
    description = "Common Workflow Language CommandLineTool specification for workflow portability"
    mime_type = "application/x-yaml"
    file_extension = "cwl"

    def export(
        self, metadata: UnifiedSoftwareMetadata, config: Optional[CwlExportConfig] = None
    ) -> str:
        config = config or CwlExportConfig()
        version = config.cwl_version or "v1.2"
        if version not in CWL_VERSIONS:
            raise ExportError(
                f"Unsupported CWL version '{version}'. Expected one of: {', '.join(CWL_VERSIONS)}"
            )

        document: Dict[str, Any] = {
            "cwlVersion": version,
            "class": "CommandLineTool",
            "id": cwl_tool_id(metadata.name),
            "label": metadata.name,
        }
        doc = metadata.description or metadata.citation.abstract
        if doc:
            document["doc"] = doc
        document["inputs"] = self._inputs(metadata)
        document["outputs"] = self._outputs(config.outputs)

        container = config.container or self._default_container(metadata)
        if container:
            document["baseCommand"] = ["sh", "-c"]
            document["arguments"] = [self._command_sequence(metadata, config, container)]
            document["requirements"] = {
                "InitialWorkDirRequirement": {
                    "listing": [
                        {
                            "class": "Directory",
                            "basename": "inputs",
                            "listing": [],
                            "writable": True,
                        }
                    ]
                }
            }
        elif config.base_command:
            document["baseCommand"] = config.base_command

        self._embed_metadata(document, metadata, version)
        _LOGGER.debug("CWL %s document with %d input(s)", version, len(document["inputs"]))
        return yaml.safe_dump(
            document,
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
            width=float("inf"),
        )

    def validate(
        self, metadata: UnifiedSoftwareMetadata, config: Optional[CwlExportConfig] = None
    ) -> List[str]:
        errors = super().validate(metadata, config)
        config = config or CwlExportConfig()
        if not metadata.tool_spec.parameters and not config.outputs:
            errors.append("CWL CommandLineTool requires at least one input or output")
        for index, output in enumerate(config.outputs, start=1):
            if not output.name or not output.name.strip():
                errors.append(f"Output {index}: name is required")
            if not output.type or not output.type.strip():
                errors.append(f"Output {index}: type is required")
            if not output.glob or not output.glob.strip():
                errors.append(f"Output {index}: glob pattern is required")
        return errors

    @classmethod
    def config_from_options(
        cls,
        options: Mapping[str, Any],
        metadata: Optional[UnifiedSoftwareMetadata] = None,
    ) -> CwlExportConfig:
        config = CwlExportConfig()
        if options.get("cwl_version"):
            config.cwl_version = str(options["cwl_version"])
        if options.get("base_command"):
            config.base_command = str(options["base_command"])
        if options.get("container"):
            config.container = str(options["container"])
        outputs = options.get("outputs") or []
        config.outputs = [
            item
            if isinstance(item, CwlOutput)
            else CwlOutput(
                name=str(item.get("name") or ""),
                type=str(item.get("type") or ""),
                glob=str(item.get("glob") or ""),
                label=item.get("label"),
                doc=item.get("doc"),
            )
            for item in outputs
            if isinstance(item, (CwlOutput, Mapping))
        ]
        return config

    @staticmethod
    def _default_container(metadata: UnifiedSoftwareMetadata) -> Optional[str]:
        scaffold = metadata.galaxy_config
        if scaffold is None:
            return None
        return with_image_tag(scaffold.container, scaffold.container_version)

    @staticmethod
    def _inputs(metadata: UnifiedSoftwareMetadata) -> Dict[str, Any]:
        inputs: Dict[str, Any] = {}
        for name, parameter in (metadata.tool_spec.parameters or {}).items():
            entry: Dict[str, Any] = {"type": cwl_type(parameter), "label": _label(name)}
            if parameter.description:
                entry["doc"] = parameter.description
            if parameter.default is not None:
                entry["default"] = parameter.default
            inputs[name] = entry
        return inputs

    @staticmethod
    def _outputs(outputs: List[CwlOutput]) -> Dict[str, Any]:
        rendered: Dict[str, Any] = {}
        for output in outputs:
            entry: Dict[str, Any] = {"type": output.type, "outputBinding": {"glob": output.glob}}
            if output.label:
                entry["label"] = output.label
            if output.doc:
                entry["doc"] = output.doc
            rendered[output.name] = entry
        return rendered

    def _command_sequence(
        self, metadata: UnifiedSoftwareMetadata, config: CwlExportConfig, container: str
    ) -> str:
        run_tool = metadata.tool_spec.name or cwl_tool_id(metadata.name)
        docker = (
            'docker run --rm -v "$PWD/inputs:/data/in:ro" '
            '-v "$(runtime.outdir)/outputs:/data/out:rw" '
            f"-e RUN_TOOL={run_tool} {container}"
        )
        if config.base_command:
            docker = f"{docker} {config.base_command}"
        return f"{self._inputs_json_command(metadata)} && {docker}"

    @staticmethod
    def _inputs_json_command(metadata: UnifiedSoftwareMetadata) -> str:
        parameters = metadata.tool_spec.parameters or {}
        if not parameters:
            return 'echo "{}" > inputs/inputs.json'
        entries: List[str] = []
        for name, parameter in parameters.items():
            key = name.replace('"', '\\"')
            if parameter.type == "asset":
                entries.append(f'  "{key}": "$(inputs.{name}.path)"')
            elif parameter.type in ("integer", "float", "boolean"):
                entries.append(f'  "{key}": $(inputs.{name})')
            else:
                entries.append(f'  "{key}": "$(inputs.{name})"')
        body = ",\n".join(entries)
        return f"printf '{{\n{body}\n}}' > inputs/inputs.json"

    @staticmethod
    def _embed_metadata(
        document: Dict[str, Any], metadata: UnifiedSoftwareMetadata, version: str
    ) -> None:
        authors = [author.display_name() for author in metadata.authors]
        license_value = first_license(metadata.license.license)

        if version == "v1.2":
            extension: Dict[str, Any] = {}
            if authors:
                extension["s:author"] = authors
            if metadata.version:
                extension["s:version"] = metadata.version
            if license_value:
                extension["s:license"] = license_value
            if extension:
                document["$namespaces"] = {"s": SCHEMA_ORG_NAMESPACE}
                document.update(extension)
            return

        lines: List[str] = []
        if authors:
            lines.append(f"Authors: {', '.join(authors)}")
        if metadata.version:
            lines.append(f"Version: {metadata.version}")
        if license_value:
            lines.append(f"License: {license_value}")
        if lines:
            existing = document.get("doc")
            suffix = "\n".join(lines)
            document["doc"] = f"{existing}\n\n{suffix}" if existing else suffix


__all__ = ["CWL_VERSIONS", "CwlExporter", "cwl_tool_id", "cwl_type"]
