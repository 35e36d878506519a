"""CITATION.cff parsing.

Parsing runs in two stages. The first stage validates the document against a
pydantic model of the Citation File Format; documents whose shape the model
rejects (wrong container types, authors that are not mappings, ...) are then
handed to a permissive key-by-key reader so the user still gets precise,
per-field errors instead of one opaque validation failure.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

from ..logging import get_logger
from ..models import Author, CitationCff, LicenseValue
from .base import RawDocumentError, ValidationReport, as_text, load_yaml

_LOGGER = get_logger("validators.citation")


def _stringify(value: Any) -> Any:
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


Text = Annotated[Optional[str], BeforeValidator(_stringify)]


class CffAuthorModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Text = None
    given_names: Text = Field(default=None, alias="given-names")
    family_names: Text = Field(default=None, alias="family-names")
    email: Text = None
    affiliation: Text = None
    orcid: Text = None


class CffDocumentModel(BaseModel):
    """Typed view of the CFF keys this project consumes."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    cff_version: Text = Field(default=None, alias="cff-version")
    message: Text = None
    title: Text = None
    authors: List[CffAuthorModel] = Field(
        default_factory=list, validation_alias=AliasChoices("authors", "author")
    )
    version: Text = None
    date_released: Text = Field(default=None, alias="date-released")
    url: Text = None
    repository: Text = None
    repository_code: Text = Field(default=None, alias="repository-code")
    license: Optional[Union[str, List[str]]] = None
    keywords: Optional[List[Annotated[str, BeforeValidator(_stringify)]]] = None
    abstract: Text = None
    preferred_citation: Optional[Dict[str, Any]] = Field(default=None, alias="preferred-citation")
    identifiers: Optional[List[Dict[str, Any]]] = None


@dataclass
class CitationValidationResult:
    is_valid: bool
    citation_cff: Optional[CitationCff]
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    parser: str = "model"


@dataclass
class _ModelRejected:
    """First-stage outcome when the document does not fit the CFF model."""

    reason: str


def parse_citation_cff(text: str) -> CitationValidationResult:
    """Parse CITATION.cff text; never raises for malformed input."""
    raw = load_yaml(text)
    if isinstance(raw, RawDocumentError):
        return CitationValidationResult(
            is_valid=False,
            citation_cff=None,
            errors=[f"CITATION.cff parsing error: {raw.message}"],
            parser="yaml",
        )

    outcome = _parse_with_model(raw.content)
    if isinstance(outcome, _ModelRejected):
        _LOGGER.debug("CFF model rejected document (%s); using manual reader", outcome.reason)
        return _parse_manually(raw.content)
    return outcome


def _parse_with_model(content: Any) -> Union[CitationValidationResult, _ModelRejected]:
    if not isinstance(content, dict):
        return _ModelRejected(reason="root is not a mapping")
    try:
        document = CffDocumentModel.model_validate(content)
    except ValidationError as exc:
        return _ModelRejected(reason=f"{exc.error_count()} validation error(s)")

    report = ValidationReport()
    if not document.title or not document.title.strip():
        report.error('Missing required field: "title"')
    if not document.authors:
        report.error('Missing required field: "authors" (must be a non-empty array)')
    for index, author in enumerate(document.authors):
        if not author.name and not author.given_names and not author.family_names:
            report.error(_author_error(index))

    _recommendation_warnings(
        report,
        date_released=document.date_released,
        license_value=document.license,
        url=document.url,
        repository=document.repository_code or document.repository,
    )

    citation = CitationCff(
        title=document.title or "",
        authors=[
            Author(
                name=author.name,
                given_names=author.given_names,
                family_names=author.family_names,
                email=author.email,
                affiliation=author.affiliation,
                orcid=author.orcid,
            )
            for author in document.authors
        ],
        cff_version=document.cff_version,
        message=document.message,
        version=document.version,
        date_released=document.date_released,
        url=document.url,
        repository=document.repository or document.repository_code,
        repository_code=document.repository_code,
        license=document.license,
        keywords=document.keywords,
        abstract=document.abstract,
        preferred_citation=document.preferred_citation,
        identifiers=document.identifiers,
    )
    return _result(report, citation, parser="model")


def _parse_manually(content: Any) -> CitationValidationResult:
    report = ValidationReport()
    if not isinstance(content, dict):
        report.error("Invalid YAML: Root must be an object")
        return CitationValidationResult(
            is_valid=False, citation_cff=None, errors=report.errors, parser="manual"
        )

    title = as_text(content.get("title"))
    if not title or not title.strip():
        report.error('Missing required field: "title"')

    raw_authors = content.get("authors", content.get("author"))
    if not isinstance(raw_authors, list) or not raw_authors:
        report.error('Missing required field: "authors" (must be a non-empty array)')
        raw_authors = raw_authors if isinstance(raw_authors, list) else []

    authors: List[Author] = []
    for index, entry in enumerate(raw_authors):
        if not isinstance(entry, dict):
            report.error(f"Author at index {index} must be an object")
            continue
        author = Author(
            name=as_text(entry.get("name")),
            given_names=as_text(entry.get("given-names")),
            family_names=as_text(entry.get("family-names")),
            email=as_text(entry.get("email")),
            affiliation=as_text(entry.get("affiliation")),
            orcid=as_text(entry.get("orcid")),
        )
        if not author.name and not author.given_names and not author.family_names:
            report.error(_author_error(index))
        authors.append(author)

    license_value = _license_value(content.get("license"))
    repository_code = as_text(content.get("repository-code"))
    url = as_text(content.get("url"))
    date_released = as_text(content.get("date-released"))
    _recommendation_warnings(
        report,
        date_released=date_released,
        license_value=license_value,
        url=url,
        repository=repository_code or as_text(content.get("repository")),
    )

    keywords = content.get("keywords")
    preferred = content.get("preferred-citation")
    identifiers = content.get("identifiers")
    citation = CitationCff(
        title=title or "",
        authors=authors,
        cff_version=as_text(content.get("cff-version")),
        message=as_text(content.get("message")),
        version=as_text(content.get("version")),
        date_released=date_released,
        url=url,
        repository=as_text(content.get("repository")) or repository_code,
        repository_code=repository_code,
        license=license_value,
        keywords=[text for text in map(as_text, keywords) if text] if isinstance(keywords, list) else None,
        abstract=as_text(content.get("abstract")),
        preferred_citation=preferred if isinstance(preferred, dict) else None,
        identifiers=[item for item in identifiers if isinstance(item, dict)]
        if isinstance(identifiers, list)
        else None,
    )
    return _result(report, citation, parser="manual")


def _license_value(value: Any) -> Optional[LicenseValue]:
    if isinstance(value, list):
        items = [text for text in map(as_text, value) if text]
        return items or None
    return as_text(value)


def _author_error(index: int) -> str:
    return f'Author at index {index} must have either "name" or "given-names"/"family-names"'


def _recommendation_warnings(
    report: ValidationReport,
    *,
    date_released: Optional[str],
    license_value: Optional[LicenseValue],
    url: Optional[str],
    repository: Optional[str],
) -> None:
    if not date_released:
        report.warn('Field "date-released" is missing (recommended for proper citation)')
    if not license_value:
        report.warn('Field "license" is missing (recommended for proper citation)')
    if not url and not repository:
        report.warn(
            'Neither "url" nor "repository-code" field is present (recommended for proper citation)'
        )


def _result(report: ValidationReport, citation: CitationCff, *, parser: str) -> CitationValidationResult:
    _LOGGER.debug(
        "CITATION.cff parsed by %s reader: %d author(s), %d error(s)",
        parser,
        len(citation.authors),
        len(report.errors),
    )
    return CitationValidationResult(
        is_valid=report.ok,
        citation_cff=citation,
        errors=report.errors,
        warnings=report.warnings,
        parser=parser,
    )


__all__ = [
    "CffAuthorModel",
    "CffDocumentModel",
    "CitationValidationResult",
    "parse_citation_cff",
]
