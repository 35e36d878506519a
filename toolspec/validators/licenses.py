"""Best-effort comparison between a CITATION.cff license and LICENSE text."""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple

from ..models import LicenseComparison, LicenseValue

# Ordered first-match table: (family, detection pattern, tokens accepted on the CFF side).
_LICENSE_FAMILIES: Tuple[Tuple[str, "re.Pattern[str]", Tuple[str, ...]], ...] = (
    ("mit", re.compile(r"\bmit\b"), ("mit",)),
    ("apache", re.compile(r"\bapache\b"), ("apache",)),
    ("gpl", re.compile(r"\b(?:gpl(?:v\d)?|gnu general public license)\b"), ("gpl",)),
    ("bsd", re.compile(r"\bbsd\b"), ("bsd",)),
    ("mozilla", re.compile(r"\bmozilla\b"), ("mozilla", "mpl")),
    ("eclipse", re.compile(r"\beclipse\b"), ("eclipse", "epl")),
    ("unlicense", re.compile(r"\bunlicense\b"), ("unlicense",)),
    ("cc0", re.compile(r"\bcc0\b"), ("cc0",)),
)


def normalize_license(value: str) -> str:
    """Lowercase and drop everything except ASCII letters and digits."""
    return re.sub(r"[^a-z0-9]", "", value.lower())


def detect_license_family(text: str) -> Optional[str]:
    lowered = text.lower()
    for family, pattern, _ in _LICENSE_FAMILIES:
        if pattern.search(lowered):
            return family
    return None


def compare_licenses(
    cff_license: Optional[LicenseValue], license_text: Optional[str]
) -> LicenseComparison:
    """Check whether the declared citation license agrees with the LICENSE file.

    Absence on either side is reported as a warning, never as a conflict.
    Failing to recognise the LICENSE text is also just a warning: only a
    positively detected, different family counts as incompatible.
    """
    warnings: List[str] = []
    declared = _as_list(cff_license)
    has_text = bool(license_text and license_text.strip())

    if not declared and not has_text:
        warnings.append("No license information found in either CITATION.cff or LICENSE file")
        return LicenseComparison(are_compatible=True, warnings=warnings)
    if not declared:
        warnings.append("No license specified in CITATION.cff, but LICENSE file is present")
        return LicenseComparison(are_compatible=True, warnings=warnings)
    if not has_text:
        warnings.append(
            "License specified in CITATION.cff, but no LICENSE file found in repository"
        )
        return LicenseComparison(are_compatible=True, warnings=warnings)

    family = detect_license_family(license_text or "")
    if family is None:
        warnings.append("Could not detect license type from LICENSE file content")
        return LicenseComparison(are_compatible=True, warnings=warnings)

    tokens = next(accepted for name, _, accepted in _LICENSE_FAMILIES if name == family)
    normalized = [normalize_license(item) for item in declared]
    compatible = any(token in candidate for candidate in normalized for token in tokens)
    if not compatible:
        warnings.append(
            f'License mismatch: CITATION.cff specifies "{", ".join(declared)}" '
            f'but LICENSE file appears to be "{family}"'
        )
    return LicenseComparison(are_compatible=compatible, warnings=warnings)


def _as_list(value: Optional[LicenseValue]) -> Sequence[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return [item for item in value if isinstance(item, str) and item.strip()]


__all__ = ["compare_licenses", "detect_license_family", "normalize_license"]
