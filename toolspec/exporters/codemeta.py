"""CodeMeta 2.0 JSON-LD exporter."""

from __future__ import annotations

from typing import Any, Dict, List

from ..logging import get_logger
from ..models import Author, ParameterDef, UnifiedSoftwareMetadata
from .base import Exporter, first_license, to_json

_LOGGER = get_logger("exporters.codemeta")

CODEMETA_CONTEXT = "https://doi.org/10.5063/schema/codemeta-2.0"


class CodeMetaExporter(Exporter):
    format = "codemeta"
    display_name = "CodeMeta"
    description = "JSON-LD metadata following the CodeMeta standard for scientific software"
    mime_type = "application/ld+json"
    file_extension = "json"

    def export(self, metadata: UnifiedSoftwareMetadata, config: Any = None) -> str:
        document: Dict[str, Any] = {
            "@context": CODEMETA_CONTEXT,
            "@type": "SoftwareSourceCode",
            "name": metadata.name,
            "description": metadata.description,
            "version": metadata.version,
            "author": [_person(author) for author in metadata.authors],
        }
        if metadata.maintainers:
            document["maintainer"] = [
                _person(maintainer, brief=True) for maintainer in metadata.maintainers
            ]
        document["codeRepository"] = metadata.repository.html_url
        document["url"] = metadata.citation.url or metadata.repository.html_url
        document["programmingLanguage"] = metadata.programming_language
        document["keywords"] = list(metadata.keywords)

        license_id = first_license(metadata.license.license)
        if license_id:
            document["license"] = license_id

        parameters = metadata.tool_spec.parameters
        if parameters is not None:
            document["softwareRequirements"] = software_requirements(parameters)
            document["parameterSummary"] = parameter_summary(parameters)

        if metadata.citation.abstract:
            document["abstract"] = metadata.citation.abstract
        if metadata.citation.date_released:
            document["datePublished"] = metadata.citation.date_released

        document["dateModified"] = metadata.generated_at
        document["generator"] = {
            "@type": "SoftwareApplication",
            "name": metadata.generator,
            "version": metadata.generator_version,
        }
        _LOGGER.debug("CodeMeta document with %d top-level keys", len(document))
        return to_json(document)

    def validate(self, metadata: UnifiedSoftwareMetadata, config: Any = None) -> List[str]:
        errors = super().validate(metadata, config)
        if not metadata.repository.html_url:
            errors.append("Repository URL is required for CodeMeta")
        return errors


def software_requirements(parameters: Dict[str, ParameterDef]) -> List[str]:
    """Describe ``asset`` parameters as software requirements."""
    return [
        f"{name}: {definition.description}"
        for name, definition in parameters.items()
        if definition.type == "asset" and definition.description
    ]


def parameter_summary(parameters: Dict[str, ParameterDef]) -> Dict[str, Any]:
    types: Dict[str, int] = {}
    optional = 0
    for definition in parameters.values():
        if definition.optional:
            optional += 1
        key = definition.type or "unknown"
        types[key] = types.get(key, 0) + 1
    return {
        "totalParameters": len(parameters),
        "requiredParameters": len(parameters) - optional,
        "optionalParameters": optional,
        "parameterTypes": types,
    }


def _person(author: Author, *, brief: bool = False) -> Dict[str, Any]:
    node: Dict[str, Any] = {"@type": "Person"}
    if author.name:
        node["name"] = author.name
    if not brief:
        if author.given_names:
            node["givenName"] = author.given_names
        if author.family_names:
            node["familyName"] = author.family_names
    if author.email:
        node["email"] = author.email
    if not brief:
        if author.affiliation:
            node["affiliation"] = author.affiliation
        if author.orcid:
            node["@id"] = author.orcid
    return node
