from __future__ import annotations

from dataclasses import replace

import pytest
import yaml

from toolspec.exporters.base import ExportError
from toolspec.exporters.cwl import CwlExporter, cwl_tool_id, cwl_type
from toolspec.models import CwlExportConfig, CwlOutput, ParameterDef, UnifiedSoftwareMetadata


def _load(metadata: UnifiedSoftwareMetadata, config: CwlExportConfig | None = None) -> dict:
    return yaml.safe_load(CwlExporter().export(metadata, config))


def test_type_mapping() -> None:
    assert cwl_type(ParameterDef(type="string")) == "string"
    assert cwl_type(ParameterDef(type="integer")) == "int"
    assert cwl_type(ParameterDef(type="asset")) == "File"
    assert cwl_type(ParameterDef(type="boolean", optional=True)) == ["null", "boolean"]
    assert cwl_type(ParameterDef(type="enum", values=["a", "b"])) == {
        "type": "enum",
        "symbols": ["a", "b"],
    }
    assert cwl_type(ParameterDef(type="float", array=True)) == {"type": "array", "items": "float"}


def test_optional_array_holds_nullable_items() -> None:
    assert cwl_type(ParameterDef(type="string", optional=True, array=True)) == {
        "type": "array",
        "items": ["null", "string"],
    }
    assert cwl_type(ParameterDef(type="enum", values=["a"], optional=True)) == {
        "type": "enum",
        "symbols": ["a"],
    }


def test_v12_document_embeds_schema_org_metadata(metadata: UnifiedSoftwareMetadata) -> None:
    document = _load(metadata)

    assert document["cwlVersion"] == "v1.2"
    assert document["class"] == "CommandLineTool"
    assert document["id"] == "variogram-fitter"
    assert document["label"] == "Variogram Fitter"
    assert document["$namespaces"] == {"s": "https://schema.org/"}
    assert document["s:author"] == ["Ada Lovelace", "Geo Lab"]
    assert document["s:version"] == "1.4.0"
    assert document["s:license"] == "MIT"
    assert document["doc"] == "Fits a variogram model. Supports several kernels."


def test_v11_document_appends_metadata_to_doc(metadata: UnifiedSoftwareMetadata) -> None:
    document = _load(metadata, CwlExportConfig(cwl_version="v1.1"))

    assert "$namespaces" not in document
    assert "s:author" not in document
    assert document["doc"] == (
        "Fits a variogram model. Supports several kernels.\n\n"
        "Authors: Ada Lovelace, Geo Lab\nVersion: 1.4.0\nLicense: MIT"
    )


def test_inputs_have_no_command_line_binding(metadata: UnifiedSoftwareMetadata) -> None:
    inputs = _load(metadata)["inputs"]

    assert list(inputs) == ["model", "n_lags", "verbose", "dem"]
    assert inputs["model"]["default"] == "spherical"
    assert inputs["n_lags"] == {"type": "int", "label": "N Lags", "doc": "Number of lags"}
    assert inputs["verbose"]["type"] == ["null", "boolean"]
    assert inputs["dem"]["type"] == "File"
    assert all("inputBinding" not in entry for entry in inputs.values())


def test_container_run_writes_inputs_file(metadata: UnifiedSoftwareMetadata) -> None:
    document = _load(metadata)

    assert document["baseCommand"] == ["sh", "-c"]
    (script,) = document["arguments"]
    assert "> inputs/inputs.json && docker run --rm" in script
    assert '"model": "$(inputs.model)"' in script
    assert '"n_lags": $(inputs.n_lags)' in script
    assert '"verbose": $(inputs.verbose)' in script
    assert '"dem": "$(inputs.dem.path)"' in script
    assert '-v "$PWD/inputs:/data/in:ro"' in script
    assert '-v "$(runtime.outdir)/outputs:/data/out:rw"' in script
    assert script.endswith("-e RUN_TOOL=variogram ghcr.io/geolab/variogram-fitter:latest")
    listing = document["requirements"]["InitialWorkDirRequirement"]["listing"]
    assert listing == [{"class": "Directory", "basename": "inputs", "listing": [], "writable": True}]


def test_explicit_container_and_base_command(metadata: UnifiedSoftwareMetadata) -> None:
    config = CwlExportConfig(container="docker.io/lab/fitter:1.0", base_command="fit")
    (script,) = _load(metadata, config)["arguments"]

    assert script.endswith("-e RUN_TOOL=variogram docker.io/lab/fitter:1.0 fit")


def test_without_container_uses_base_command(metadata: UnifiedSoftwareMetadata) -> None:
    document = _load(replace(metadata, galaxy_config=None), CwlExportConfig(base_command="fit"))

    assert document["baseCommand"] == "fit"
    assert "arguments" not in document
    assert "requirements" not in document


def test_outputs_are_rendered(metadata: UnifiedSoftwareMetadata) -> None:
    config = CwlExporter.config_from_options(
        {"outputs": [{"name": "fit", "type": "File", "glob": "outputs/*.json", "label": "Fit"}]}
    )
    outputs = _load(metadata, config)["outputs"]

    assert outputs == {"fit": {"type": "File", "outputBinding": {"glob": "outputs/*.json"}, "label": "Fit"}}


def test_unknown_version_is_rejected(metadata: UnifiedSoftwareMetadata) -> None:
    with pytest.raises(ExportError, match="Unsupported CWL version 'v1.0'"):
        CwlExporter().export(metadata, CwlExportConfig(cwl_version="v1.0"))


def test_validation(metadata: UnifiedSoftwareMetadata) -> None:
    exporter = CwlExporter()
    assert exporter.validate(metadata) == []

    empty = replace(metadata, tool_spec=replace(metadata.tool_spec, parameters=None))
    assert exporter.validate(empty) == ["CWL CommandLineTool requires at least one input or output"]

    config = CwlExportConfig(outputs=[CwlOutput(name="out", type="File", glob="")])
    assert exporter.validate(metadata, config) == ["Output 1: glob pattern is required"]


def test_tool_id() -> None:
    assert cwl_tool_id("My  Tool (v2)") == "my-tool-v2"
