"""DOAP (Description of a Project) exporter producing Turtle or RDF/XML."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote, urlparse

from ..models import Author, DoapConfig, UnifiedSoftwareMetadata
from .base import ExportError, Exporter
from .galaxy import short_description, xml_escape

DOAP_NS = "http://usefulinc.com/ns/doap#"
FOAF_NS = "http://xmlns.com/foaf/0.1/"
RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
RDFS_NS = "http://www.w3.org/2000/01/rdf-schema#"
SPDX_NS = "http://spdx.org/licenses/"

SERIALIZATIONS = ("turtle", "rdfxml")

_PREFIXES = (("doap", DOAP_NS), ("foaf", FOAF_NS), ("rdf", RDF_NS), ("rdfs", RDFS_NS))

# Left unescaped in placeholder person URIs.
_URI_COMPONENT_SAFE = "-_.!~*'()"

SPDX_LICENSES: Dict[str, str] = {
    "MIT": "MIT",
    "APACHE-2.0": "Apache-2.0",
    "APACHE2": "Apache-2.0",
    "APACHE": "Apache-2.0",
    "GPL-2.0": "GPL-2.0",
    "GPL-3.0": "GPL-3.0",
    "GPL2": "GPL-2.0",
    "GPL3": "GPL-3.0",
    "BSD-2-CLAUSE": "BSD-2-Clause",
    "BSD-3-CLAUSE": "BSD-3-Clause",
    "BSD2": "BSD-2-Clause",
    "BSD3": "BSD-3-Clause",
    "LGPL-2.1": "LGPL-2.1",
    "LGPL-3.0": "LGPL-3.0",
    "MPL-2.0": "MPL-2.0",
    "AGPL-3.0": "AGPL-3.0",
    "UNLICENSE": "Unlicense",
    "CC0-1.0": "CC0-1.0",
}


@dataclass(frozen=True)
class Triple:
    subject: str
    predicate: str
    object: str
    is_uri: bool


def spdx_uri(license_value: str) -> Optional[str]:
    """Map a license string to an SPDX URI; unknown tokens pass through normalized."""
    if not license_value or not license_value.strip():
        return None
    normalized = re.sub(r"\s+", "-", license_value.strip())
    normalized = re.sub(r"[()]", "", normalized).upper()
    return f"{SPDX_NS}{SPDX_LICENSES.get(normalized, normalized)}"


def resolve_maintainer(
    metadata: UnifiedSoftwareMetadata, config: Optional[DoapConfig] = None
) -> Optional[Author]:
    """Explicit maintainer, then repository owner, then first citation author."""
    if config is not None and config.maintainer is not None:
        return config.maintainer
    owner = metadata.repository.full_name.split("/")[0] if metadata.repository.full_name else ""
    if owner:
        return Author(name=owner)
    if metadata.authors:
        return metadata.authors[0]
    return None


def person_uri(person: Author, role: str) -> str:
    if person.orcid:
        return f"{_orcid_uri(person.orcid)}#{role}"
    if person.email:
        return f"mailto:{person.email}#{role}"
    name = person.display_name() or "unknown"
    return f"https://example.com/person/{quote(name, safe=_URI_COMPONENT_SAFE)}#{role}"


def is_valid_uri(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme) and bool(parsed.netloc or parsed.path)


def _orcid_uri(orcid: str) -> str:
    return orcid if orcid.startswith("http") else f"https://orcid.org/{orcid}"


def _slug(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "-", name)


class DoapExporter(Exporter):
    format = "doap"
    display_name = "DOAP"
    description = "RDF vocabulary for describing software projects (Description of a Project)"
    mime_type = "application/rdf+xml"
    file_extension = "rdf"

    def export(self, metadata: UnifiedSoftwareMetadata, config: Optional[DoapConfig] = None) -> str:
        serialization = (config.format if config else None) or "turtle"
        if serialization not in SERIALIZATIONS:
            raise ExportError(
                f"Unsupported DOAP format '{serialization}'. Expected one of: {', '.join(SERIALIZATIONS)}"
            )
        triples = self.build_triples(metadata, config)
        if serialization == "turtle":
            return _to_turtle(triples)
        return _to_rdfxml(triples)

    def build_triples(
        self, metadata: UnifiedSoftwareMetadata, config: Optional[DoapConfig] = None
    ) -> List[Triple]:
        repository = metadata.repository
        base = repository.html_url or f"https://example.com/{_slug(metadata.name)}"
        project = f"{base}#project"
        triples: List[Triple] = []

        def add(subject: str, predicate: str, obj: str, is_uri: bool = False) -> None:
            triples.append(Triple(subject, predicate, obj, is_uri))

        add(project, f"{RDF_NS}type", f"{DOAP_NS}Project", True)
        add(project, f"{DOAP_NS}name", metadata.name)
        add(project, f"{DOAP_NS}description", metadata.description)
        short = short_description(metadata.description)
        if short:
            add(project, f"{DOAP_NS}shortdesc", short)

        maintainer = resolve_maintainer(metadata, config)
        if maintainer is not None:
            maintainer_uri = person_uri(maintainer, "maintainer")
            self._add_person(triples, maintainer_uri, maintainer)
            add(project, f"{DOAP_NS}maintainer", maintainer_uri, True)

        homepage = metadata.citation.url or repository.html_url
        if homepage:
            add(project, f"{DOAP_NS}homepage", homepage, True)

        licenses = metadata.license.license or []
        for value in licenses if isinstance(licenses, list) else [licenses]:
            uri = spdx_uri(value)
            if uri:
                add(project, f"{DOAP_NS}license", uri, True)

        if metadata.programming_language and metadata.programming_language != "Unknown":
            add(project, f"{DOAP_NS}programming-language", metadata.programming_language)
        for keyword in metadata.keywords:
            add(project, f"{DOAP_NS}category", keyword)

        if repository.clone_url or repository.html_url:
            repo_uri = (
                f"{repository.html_url}#repository"
                if repository.html_url
                else f"https://example.com/repo/{_slug(metadata.name)}#repository"
            )
            add(project, f"{DOAP_NS}repository", repo_uri, True)
            add(repo_uri, f"{RDF_NS}type", f"{DOAP_NS}GitRepository", True)
            if repository.clone_url:
                add(repo_uri, f"{DOAP_NS}location", repository.clone_url, True)
            if repository.html_url:
                add(repo_uri, f"{DOAP_NS}browse", repository.html_url, True)

        for author in metadata.authors:
            author_uri = person_uri(author, "developer")
            self._add_person(triples, author_uri, author)
            add(project, f"{DOAP_NS}developer", author_uri, True)

        if metadata.version:
            add(project, f"{DOAP_NS}revision", metadata.version)
            if metadata.citation.date_released:
                release = f"{base}#release-{metadata.version}"
                add(project, f"{DOAP_NS}release", release, True)
                add(release, f"{RDF_NS}type", f"{DOAP_NS}Version", True)
                add(release, f"{DOAP_NS}revision", metadata.version)
                add(release, f"{DOAP_NS}created", metadata.citation.date_released)
        return triples

    def validate(
        self, metadata: UnifiedSoftwareMetadata, config: Optional[DoapConfig] = None
    ) -> List[str]:
        errors = super().validate(metadata, config)
        if resolve_maintainer(metadata, config) is None:
            errors.append(
                "Maintainer is required for DOAP (could not resolve from repository owner or authors)"
            )
        if metadata.citation.url and not is_valid_uri(metadata.citation.url):
            errors.append("Invalid URL in citation")
        if metadata.repository.html_url and not is_valid_uri(metadata.repository.html_url):
            errors.append("Invalid repository URL")
        return errors

    @classmethod
    def config_from_options(
        cls,
        options: Mapping[str, Any],
        metadata: Optional[UnifiedSoftwareMetadata] = None,
    ) -> DoapConfig:
        config = DoapConfig()
        if options.get("format"):
            config.format = str(options["format"])
        maintainer = options.get("maintainer")
        if isinstance(maintainer, Author):
            config.maintainer = maintainer
        elif isinstance(maintainer, Mapping):
            config.maintainer = Author(
                name=maintainer.get("name"),
                given_names=maintainer.get("given_names"),
                family_names=maintainer.get("family_names"),
                email=maintainer.get("email"),
                orcid=maintainer.get("orcid"),
            )
        elif maintainer:
            config.maintainer = Author(name=str(maintainer))
        return config

    def file_extension_for(self, config: Any = None) -> str:
        serialization = (config.format if isinstance(config, DoapConfig) else None) or "turtle"
        return "ttl" if serialization == "turtle" else "rdf"

    def mime_type_for(self, config: Any = None) -> str:
        return "text/turtle" if self.file_extension_for(config) == "ttl" else self.mime_type

    @staticmethod
    def _add_person(triples: List[Triple], uri: str, person: Author) -> None:
        triples.append(Triple(uri, f"{RDF_NS}type", f"{FOAF_NS}Person", True))
        name = person.display_name()
        if name:
            triples.append(Triple(uri, f"{FOAF_NS}name", name, False))
        if person.given_names:
            triples.append(Triple(uri, f"{FOAF_NS}givenName", person.given_names, False))
        if person.family_names:
            triples.append(Triple(uri, f"{FOAF_NS}familyName", person.family_names, False))
        if person.email:
            triples.append(Triple(uri, f"{FOAF_NS}mbox", f"mailto:{person.email}", True))
        if person.orcid:
            triples.append(Triple(uri, f"{FOAF_NS}account", _orcid_uri(person.orcid), True))


def _group(triples: List[Triple]) -> Dict[str, List[Triple]]:
    grouped: Dict[str, List[Triple]] = {}
    for triple in triples:
        grouped.setdefault(triple.subject, []).append(triple)
    return grouped


def _qname(uri: str) -> Optional[str]:
    for prefix, namespace in _PREFIXES:
        if uri.startswith(namespace):
            return f"{prefix}:{uri[len(namespace):]}"
    return None


def _turtle_term(uri: str) -> str:
    return _qname(uri) or f"<{uri}>"


def _turtle_literal(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def _to_turtle(triples: List[Triple]) -> str:
    lines = [f"@prefix {prefix}: <{namespace}> ." for prefix, namespace in _PREFIXES]
    output = "\n".join(lines) + "\n\n"
    for subject, entries in _group(triples).items():
        output += _turtle_term(subject) + "\n"
        for index, triple in enumerate(entries):
            obj = _turtle_term(triple.object) if triple.is_uri else _turtle_literal(triple.object)
            terminator = " .\n\n" if index == len(entries) - 1 else " ;\n"
            output += f"    {_turtle_term(triple.predicate)} {obj}{terminator}"
    return output


def _to_rdfxml(triples: List[Triple]) -> str:
    output = (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        "<rdf:RDF\n"
        f'    xmlns:rdf="{RDF_NS}"\n'
        f'    xmlns:rdfs="{RDFS_NS}"\n'
        f'    xmlns:doap="{DOAP_NS}"\n'
        f'    xmlns:foaf="{FOAF_NS}">\n'
    )
    for subject, entries in _group(triples).items():
        element = "rdf:Description"
        for triple in entries:
            if triple.predicate == f"{RDF_NS}type" and triple.is_uri:
                element = _qname(triple.object) or triple.object
                break
        output += f'  <{element} rdf:about="{xml_escape(subject)}">\n'
        for triple in entries:
            if triple.predicate == f"{RDF_NS}type":
                continue
            qname = _qname(triple.predicate) or triple.predicate
            if triple.is_uri:
                output += f'    <{qname} rdf:resource="{xml_escape(triple.object)}"/>\n'
            else:
                output += f"    <{qname}>{xml_escape(triple.object)}</{qname}>\n"
        output += f"  </{element}>\n"
    return output + "</rdf:RDF>\n"


__all__ = [
    "DoapExporter",
    "SPDX_LICENSES",
    "Triple",
    "is_valid_uri",
    "person_uri",
    "resolve_maintainer",
    "spdx_uri",
]
