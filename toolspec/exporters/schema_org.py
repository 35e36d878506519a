"""Schema.org ``SoftwareApplication`` JSON-LD exporter."""

from __future__ import annotations

import datetime as dt
import re
from typing import Any, Dict, List, Optional

from ..models import Author, ParameterDef, UnifiedSoftwareMetadata
from .base import Exporter, first_license, to_json

SPDX_IDENTIFIERS: Dict[str, str] = {
    "mit": "MIT",
    "apache": "Apache-2.0",
    "apache-2.0": "Apache-2.0",
    "apache2": "Apache-2.0",
    "gpl": "GPL-3.0",
    "gpl-3.0": "GPL-3.0",
    "gpl-2.0": "GPL-2.0",
    "gplv3": "GPL-3.0",
    "gplv2": "GPL-2.0",
    "bsd": "BSD-3-Clause",
    "bsd-3-clause": "BSD-3-Clause",
    "bsd-2-clause": "BSD-2-Clause",
    "mozilla": "MPL-2.0",
    "mpl-2.0": "MPL-2.0",
    "eclipse": "EPL-1.0",
    "epl-1.0": "EPL-1.0",
    "unlicense": "Unlicense",
    "cc0": "CC0-1.0",
    "cc0-1.0": "CC0-1.0",
}

# Longest keys first so "gpl-2.0" wins over "gpl" during partial matching.
_PARTIAL_ORDER = sorted(SPDX_IDENTIFIERS, key=len, reverse=True)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}(T\d{2}:\d{2}:\d{2}(\.\d{3})?Z?)?$")


def normalize_spdx(license_value: str) -> str:
    """Map a free-text license to an SPDX identifier, or return it unchanged."""
    if not license_value:
        return ""
    normalized = re.sub(r"[^a-z0-9.\-]", "", license_value.lower()).strip()
    if not normalized:
        return license_value
    if normalized in SPDX_IDENTIFIERS:
        return SPDX_IDENTIFIERS[normalized]
    for key in _PARTIAL_ORDER:
        if key in normalized or normalized in key:
            return SPDX_IDENTIFIERS[key]
    return license_value


def format_date(value: str) -> str:
    if not value:
        return ""
    if _ISO_DATE.match(value):
        return value
    try:
        parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(dt.timezone.utc)
    return parsed.strftime("%Y-%m-%dT%H:%M:%S.") + f"{parsed.microsecond // 1000:03d}Z"


class SchemaOrgExporter(Exporter):
    format = "schema-org"
    display_name = "Schema.org"
    description = (
        "JSON-LD metadata following Schema.org SoftwareApplication standard "
        "for web discoverability"
    )
    mime_type = "application/ld+json"
    file_extension = "json"

    def export(self, metadata: UnifiedSoftwareMetadata, config: Any = None) -> str:
        repository = metadata.repository
        citation = metadata.citation
        document: Dict[str, Any] = {
            "@context": "https://schema.org",
            "@type": "SoftwareApplication",
            "name": metadata.name,
            "description": metadata.description,
        }
        if metadata.version:
            document["softwareVersion"] = metadata.version
        document["author"] = [self._person(author) for author in metadata.authors]
        if metadata.maintainers:
            document["maintainer"] = [self._person(person) for person in metadata.maintainers]

        url = citation.url or repository.html_url
        if url:
            document["url"] = url
        code_repository = repository.html_url or repository.clone_url
        if code_repository:
            document["codeRepository"] = code_repository

        if metadata.programming_language:
            document["programmingLanguage"] = metadata.programming_language
        if metadata.keywords:
            document["keywords"] = list(metadata.keywords)

        license_value = first_license(metadata.license.license)
        if license_value:
            document["license"] = normalize_spdx(license_value)

        if citation.date_released:
            document["datePublished"] = format_date(citation.date_released)
        if repository.created_at:
            document["dateCreated"] = format_date(repository.created_at)
        modified = repository.updated_at or metadata.generated_at
        if modified:
            document["dateModified"] = format_date(modified)
        if citation.abstract:
            document["abstract"] = citation.abstract

        citation_node = self._citation(metadata)
        if citation_node is not None:
            document["citation"] = citation_node

        if metadata.tool_spec.parameters is not None:
            document["softwareRequirements"] = _requirements(metadata.tool_spec.parameters)
        return to_json(document)

    def validate(self, metadata: UnifiedSoftwareMetadata, config: Any = None) -> List[str]:
        errors = super().validate(metadata, config)
        repository = metadata.repository
        if not metadata.citation.url and not repository.html_url and not repository.clone_url:
            errors.append('At least one of "url" or "codeRepository" is required for Schema.org')
        if not metadata.version:
            errors.append("Software version is required for Schema.org")
        return errors

    @staticmethod
    def _person(author: Author) -> Dict[str, Any]:
        person: Dict[str, Any] = {"@type": "Person"}
        if author.given_names or author.family_names:
            if author.given_names:
                person["givenName"] = author.given_names
            if author.family_names:
                person["familyName"] = author.family_names
        elif author.name:
            person["name"] = author.name
        if author.email:
            person["email"] = author.email
        if author.affiliation:
            person["affiliation"] = {"@type": "Organization", "name": author.affiliation}
        if author.orcid:
            person["identifier"] = {
                "@type": "PropertyValue",
                "propertyID": "ORCID",
                "value": _orcid_url(author.orcid),
            }
        return person

    def _citation(self, metadata: UnifiedSoftwareMetadata) -> Optional[Dict[str, Any]]:
        citation = metadata.citation
        if not (citation.title or citation.authors or citation.date_released or citation.url):
            return None
        node: Dict[str, Any] = {"@type": "CreativeWork"}
        if citation.title:
            node["name"] = citation.title
        if citation.authors:
            node["author"] = [self._person(author) for author in citation.authors]
        if citation.date_released:
            node["datePublished"] = format_date(citation.date_released)
        if citation.url:
            node["url"] = citation.url
        if citation.abstract:
            node["abstract"] = citation.abstract
        if citation.keywords:
            node["keywords"] = list(citation.keywords)
        return node


def _orcid_url(orcid: str) -> str:
    if orcid.startswith("http"):
        return orcid
    return f"https://orcid.org/{orcid}"


def _requirements(parameters: Dict[str, ParameterDef]) -> List[str]:
    requirements: List[str] = []
    for name, definition in parameters.items():
        if not definition.description:
            continue
        if definition.type == "asset":
            requirements.append(f"{name}: {definition.description}")
        else:
            requirements.append(f"{name} ({definition.type}): {definition.description}")
    return requirements
