"""Shared pytest fixtures for Irene tests."""
import pytest
import uuid
from datetime import datetime, timedelta, timezone

from irene.schemas.profile import Interest, PersonalityProfile, ProfileSnapshot
from irene.services.compatibility_service import CompatibilityScorer


@pytest.fixture
def as_of():
    """Fixed reference time so activity scoring is reproducible."""
    return datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def scorer():
    return CompatibilityScorer()


@pytest.fixture
def neutral_personality():
    return PersonalityProfile(
        extraversion=3, agreeableness=3, conscientiousness=3, neuroticism=3, openness=3
    )


@pytest.fixture
def twin_profile(as_of, neutral_personality):
    """The identical-twins scenario: everything shared, both active now."""
    return ProfileSnapshot(
        user_id=str(uuid.uuid4()),
        age=28,
        location="Nairobi, Kenya",
        last_active_at=as_of,
        personality=neutral_personality,
        interests=[Interest(name="music", level=4)],
    )


@pytest.fixture
def empty_profile():
    return ProfileSnapshot()


@pytest.fixture
def make_profile(as_of):
    """Factory for candidate snapshots with sensible defaults."""

    def _make(**overrides):
        data = {
            "user_id": str(uuid.uuid4()),
            "age": 30,
            "location": "Nairobi, Kenya",
            "gender": "Woman",
            "seeking_gender": "Men",
            "last_active_at": as_of - timedelta(hours=2),
            "personality": PersonalityProfile(
                extraversion=3.5,
                agreeableness=4.0,
                conscientiousness=3.5,
                neuroticism=2.0,
                openness=4.5,
            ),
            "interests": [
                Interest(name="hiking", level=4),
                Interest(name="cooking", level=3),
            ],
        }
        data.update(overrides)
        return ProfileSnapshot(**data)

    return _make


@pytest.fixture
def seeker(make_profile):
    """A man seeking women, used as the 'current user' in matching tests."""
    return make_profile(gender="Man", seeking_gender="Women", age=31)
