"""Shared fixtures for GenMatch tests."""

import pytest

from genmatch.config import reset_config
from genmatch.models.candidate import CandidateRecord
from genmatch.models.subject import PersonRef, SpouseRef, Subject


@pytest.fixture(autouse=True)
def _fresh_config():
    """Each test reads configuration from a clean slate."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def william_smith() -> Subject:
    """A subject with full vital data and family context."""
    return Subject(
        id="I1",
        given_names="William",
        family_names="Smith",
        sex="M",
        birth_date="1920-03-15",
        birth_place="Boston, Massachusetts, USA",
        death_date="1985-06-02",
        father=PersonRef(given_names="Thomas", family_names="Smith", birth_date="1890"),
        mother=PersonRef(given_names="Mary", family_names="Smith", maiden_name="Kelly", birth_date="1893"),
        spouses=(
            SpouseRef(
                given_names="Helen",
                family_names="Smith",
                birth_date="1922",
                marriage_date="1946-06-10",
            ),
        ),
    )


@pytest.fixture
def matching_candidate() -> CandidateRecord:
    return CandidateRecord(
        id="LZX1-ABC",
        source="FamilySearch",
        name="William Smith",
        birth="15 March 1920",
        death="1985",
        location="Boston, Massachusetts, USA",
        url="https://www.familysearch.org/tree/person/details/LZX1-ABC",
        additional_info="Death: 1985 Boston",
        confidence=0.9,
    )


@pytest.fixture
def distant_candidate() -> CandidateRecord:
    return CandidateRecord(
        id="Jones-42",
        source="WikiTree",
        name="Margaret Jones",
        birth="1871",
        location="Cardiff, Wales",
        confidence=0.6,
    )
