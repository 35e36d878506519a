from __future__ import annotations

import datetime as dt

import pytest

from tests._fixtures.fake_provider import make_repo_info
from toolspec.metadata import build_unified_metadata
from toolspec.models import (
    Author,
    CitationCff,
    DataDef,
    LicenseFileReport,
    ParameterDef,
    ToolSpec,
    UnifiedSoftwareMetadata,
)


@pytest.fixture
def tool_spec() -> ToolSpec:
    return ToolSpec(
        title="Variogram Fitter",
        description="Fits a variogram model. Supports several kernels.",
        name="variogram",
        parameters={
            "model": ParameterDef(
                type="enum",
                description="Kernel to fit",
                values=["spherical", "gaussian"],
                default="spherical",
            ),
            "n_lags": ParameterDef(type="integer", description="Number of lags", min=2, max=50),
            "verbose": ParameterDef(type="boolean", optional=True, default=False),
            "dem": ParameterDef(type="asset", description="Digital elevation model"),
        },
        data={"samples": DataDef(description="Sample points", extension="csv")},
    )


@pytest.fixture
def citation() -> CitationCff:
    return CitationCff(
        title="Variogram Fitter",
        authors=[
            Author(
                given_names="Ada",
                family_names="Lovelace",
                email="ada@example.org",
                orcid="0000-0002-1825-0097",
                affiliation="Analytical Engines Ltd",
            ),
            Author(name="Geo Lab"),
        ],
        version="1.4.0",
        date_released="2024-03-01",
        url="https://variogram.example.org",
        license="MIT",
        keywords=["geostatistics", "python"],
        abstract="Variogram fitting for tool-spec containers.",
    )


@pytest.fixture
def metadata(tool_spec: ToolSpec, citation: CitationCff) -> UnifiedSoftwareMetadata:
    return build_unified_metadata(
        make_repo_info("geolab", "variogram-fitter"),
        tool_spec,
        citation,
        LicenseFileReport(license_exists=True, license_file_length=1071),
        dockerfile_cmd="python /src/run.py",
        now=dt.datetime(2024, 5, 1, 8, 30, tzinfo=dt.timezone.utc),
    )
