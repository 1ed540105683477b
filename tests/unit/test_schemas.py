"""Tests for core data models."""

import pytest
from pydantic import SecretStr, ValidationError

from jobagent.core.schemas import (
    ScheduleConfig,
    ScrapedOffer,
    SearchCriteria,
    StoredSearchConfig,
    UserProfile,
)


def _criteria(**kw: object) -> SearchCriteria:
    defaults: dict[str, object] = {
        "query": "Python developer",
        "location": "Paris",
        "linkedin_email": "alice@example.com",
        "linkedin_password": "s3cret",
    }
    defaults.update(kw)
    return SearchCriteria(**defaults)  # type: ignore[arg-type]


class TestSearchCriteria:
    """SearchCriteria: defaults, frozen, secret password."""

    def test_defaults(self) -> None:
        c = _criteria()
        assert c.sites == ["linkedin"]
        assert c.contract_types == []
        assert c.remote is False
        assert c.exclude_keywords == []

    def test_query_stripped(self) -> None:
        assert _criteria(query="  Data engineer ").query == "Data engineer"

    def test_empty_query_rejected(self) -> None:
        with pytest.raises(ValidationError, match="query must not be empty"):
            _criteria(query="   ")

    def test_sites_normalized(self) -> None:
        assert _criteria(sites=[" LinkedIn "]).sites == ["linkedin"]

    def test_no_site_rejected(self) -> None:
        with pytest.raises(ValidationError, match="at least one site"):
            _criteria(sites=[])

    def test_password_hidden_in_repr(self) -> None:
        c = _criteria()
        assert "s3cret" not in repr(c)
        assert c.linkedin_password.get_secret_value() == "s3cret"

    def test_frozen(self) -> None:
        c = _criteria()
        with pytest.raises(ValidationError):
            c.query = "other"  # type: ignore[misc]


class TestScrapedOffer:
    """ScrapedOffer: required title and url, optional fields."""

    def test_minimal(self) -> None:
        o = ScrapedOffer(title="Dev", url="https://x/1", source="linkedin")
        assert o.company == ""
        assert o.salary is None
        assert o.contract_type is None

    def test_blank_title_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ScrapedOffer(title=" ", url="https://x/1", source="linkedin")

    def test_blank_url_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ScrapedOffer(title="Dev", url="", source="linkedin")

    def test_model_copy_replaces_description(self) -> None:
        o = ScrapedOffer(title="Dev", url="https://x/1", source="linkedin", description="short")
        enriched = o.model_copy(update={"description": "long"})
        assert enriched.description == "long"
        assert o.description == "short"


class TestUserProfile:
    """UserProfile: has_credentials."""

    def test_has_credentials(self) -> None:
        p = UserProfile(user_id="u1", linkedin_email="a@b.c", linkedin_password=SecretStr("pw"))
        assert p.has_credentials is True

    def test_missing_password(self) -> None:
        assert UserProfile(user_id="u1", linkedin_email="a@b.c").has_credentials is False

    def test_empty_password(self) -> None:
        p = UserProfile(user_id="u1", linkedin_email="a@b.c", linkedin_password=SecretStr(""))
        assert p.has_credentials is False


class TestStoredSearchConfig:
    """StoredSearchConfig: conversion to SearchCriteria."""

    def test_to_criteria(self) -> None:
        config = StoredSearchConfig(
            user_id="u1", name="Paris", query="Python", location="Paris",
            remote=True, exclude_keywords=["PHP"],
        )
        profile = UserProfile(
            user_id="u1", linkedin_email="a@b.c", linkedin_password=SecretStr("pw"),
        )
        criteria = config.to_criteria(profile)
        assert criteria.query == "Python"
        assert criteria.remote is True
        assert criteria.exclude_keywords == ["PHP"]
        assert criteria.linkedin_email == "a@b.c"
        assert criteria.linkedin_password.get_secret_value() == "pw"

    def test_to_criteria_without_credentials(self) -> None:
        config = StoredSearchConfig(user_id="u1", name="Paris", query="Python")
        with pytest.raises(ValueError, match="no credentials"):
            config.to_criteria(UserProfile(user_id="u1"))


class TestScheduleConfig:
    """ScheduleConfig: defaults, hour and minute bounds."""

    def test_defaults(self) -> None:
        s = ScheduleConfig(user_id="u1")
        assert s.hour == 8
        assert s.minute == 0
        assert s.timezone == "Europe/Paris"
        assert s.is_active is False

    def test_hour_bounds(self) -> None:
        with pytest.raises(ValidationError):
            ScheduleConfig(user_id="u1", hour=24)

    def test_minute_bounds(self) -> None:
        with pytest.raises(ValidationError):
            ScheduleConfig(user_id="u1", minute=60)
