"""Tests for structured offer extraction: prompt, parsing, keyword exclusion."""

import json
from typing import Any

from jobagent.core.config import ExtractionConfig, LLMConfig
from jobagent.core.schemas import PageLink, ScrapedOffer, SearchCriteria
from jobagent.pipeline.extractor import (
    UNKNOWN_COMPANY,
    build_extraction_prompt,
    exclude_by_keywords,
    extract_offers,
    parse_offers,
)


def _criteria(**kw: object) -> SearchCriteria:
    defaults: dict[str, object] = {
        "query": "Python developer",
        "location": "Paris",
        "linkedin_email": "a@b.c",
        "linkedin_password": "pw",
    }
    defaults.update(kw)
    return SearchCriteria(**defaults)  # type: ignore[arg-type]


def _offer(title: str, n: int = 1) -> ScrapedOffer:
    return ScrapedOffer(title=title, url=f"https://x/{n}", source="linkedin")


# ---------------------------------------------------------------------------
# TestParseOffers
# ---------------------------------------------------------------------------


class TestParseOffers:
    """parse_offers: JSON recovery, required fields, caps, URL resolution."""

    def test_prose_around_array_ignored(self) -> None:
        raw = 'Here are the offers: [{"title":"Dev","url":"https://x/1"}] Thanks!'
        offers = parse_offers(raw)
        assert len(offers) == 1
        assert offers[0].title == "Dev"
        assert offers[0].url == "https://x/1"

    def test_fields_mapped(self) -> None:
        raw = json.dumps([{
            "title": "Backend Engineer",
            "company": "Acme",
            "location": "Lyon",
            "url": "https://www.linkedin.com/jobs/view/42/",
            "description": "APIs in Python",
            "salary": "55-65k",
            "contractType": "CDI",
        }])
        offer = parse_offers(raw)[0]
        assert offer.company == "Acme"
        assert offer.location == "Lyon"
        assert offer.description == "APIs in Python"
        assert offer.salary == "55-65k"
        assert offer.contract_type == "CDI"
        assert offer.source == "linkedin"

    def test_missing_optional_fields(self) -> None:
        offer = parse_offers('[{"title":"Dev","url":"https://x/1","salary":null}]',
                             default_location="Paris")[0]
        assert offer.company == UNKNOWN_COMPANY
        assert offer.location == "Paris"
        assert offer.salary is None
        assert offer.contract_type is None
        assert offer.description == ""

    def test_relative_url_resolved(self) -> None:
        offer = parse_offers('[{"title":"Dev","url":"/jobs/view/7/"}]')[0]
        assert offer.url == "https://www.linkedin.com/jobs/view/7/"

    def test_entries_without_title_or_url_dropped(self) -> None:
        raw = json.dumps([
            {"title": "Dev", "url": "https://x/1"},
            {"title": "", "url": "https://x/2"},
            {"title": "No link"},
            {"url": "https://x/4"},
            {"title": "  ", "url": "https://x/5"},
            "not an object",
            {"title": "Ops", "url": "https://x/6"},
        ])
        offers = parse_offers(raw)
        assert [o.title for o in offers] == ["Dev", "Ops"]

    def test_capped(self) -> None:
        raw = json.dumps([{"title": f"Job {i}", "url": f"https://x/{i}"} for i in range(100)])
        offers = parse_offers(raw, max_offers=75)
        assert len(offers) == 75
        assert offers[-1].title == "Job 74"

    def test_no_array_returns_empty(self) -> None:
        assert parse_offers("I could not find any offers.") == []

    def test_invalid_json_returns_empty(self) -> None:
        assert parse_offers('[{"title": "Dev", "url": }]') == []

    def test_empty_text_returns_empty(self) -> None:
        assert parse_offers("") == []

    def test_non_string_values_coerced(self) -> None:
        offer = parse_offers('[{"title":"Dev","url":"https://x/1","salary":60000}]')[0]
        assert offer.salary == "60000"


# ---------------------------------------------------------------------------
# TestExcludeByKeywords
# ---------------------------------------------------------------------------


class TestExcludeByKeywords:
    """exclude_by_keywords: case-insensitive title match."""

    def test_case_insensitive_title_match(self) -> None:
        offers = [_offer("Senior Python Dev", 1), _offer("PHP Developer", 2)]
        assert [o.title for o in exclude_by_keywords(offers, ["php"])] == ["Senior Python Dev"]

    def test_no_keywords_keeps_all(self) -> None:
        offers = [_offer("Dev")]
        assert exclude_by_keywords(offers, []) == offers

    def test_blank_keywords_ignored(self) -> None:
        offers = [_offer("Dev")]
        assert exclude_by_keywords(offers, ["  "]) == offers


# ---------------------------------------------------------------------------
# TestBuildExtractionPrompt
# ---------------------------------------------------------------------------


class TestBuildExtractionPrompt:
    """build_extraction_prompt: truncation, link list, exclusion line."""

    def test_contains_criteria_and_rules(self) -> None:
        prompt = build_extraction_prompt("- snapshot", [], _criteria(), ExtractionConfig())
        assert '"Python developer" in "Paris"' in prompt
        assert "Return ONLY a JSON array" in prompt
        assert "https://www.linkedin.com" in prompt
        assert "- snapshot" in prompt

    def test_exclusions_listed(self) -> None:
        prompt = build_extraction_prompt(
            "s", [], _criteria(exclude_keywords=["PHP", "Junior"]), ExtractionConfig(),
        )
        assert "PHP, Junior" in prompt

    def test_no_exclusion_line_without_keywords(self) -> None:
        prompt = build_extraction_prompt("s", [], _criteria(), ExtractionConfig())
        assert "Exclude offers" not in prompt

    def test_links_numbered_and_capped(self) -> None:
        links = [PageLink(text=f"Job {i}", href=f"/jobs/view/{i}/") for i in range(80)]
        prompt = build_extraction_prompt("s", links, _criteria(), ExtractionConfig())
        assert '1. "Job 0" -> /jobs/view/0/' in prompt
        assert '75. "Job 74" -> /jobs/view/74/' in prompt
        assert "Job 75" not in prompt

    def test_snapshot_truncated(self) -> None:
        config = ExtractionConfig(snapshot_char_limit=1000)
        prompt = build_extraction_prompt("y" * 5000, [], _criteria(), config)
        assert "y" * 1000 + "\n... (truncated)" in prompt
        assert "y" * 1001 not in prompt


# ---------------------------------------------------------------------------
# TestExtractOffers
# ---------------------------------------------------------------------------


class TestExtractOffers:
    """extract_offers: model choice and filtering end to end."""

    async def test_single_call_with_extraction_model(self, provider: Any) -> None:
        provider.extraction_answer = '[{"title":"Dev","url":"https://x/1"}]'
        offers = await extract_offers(
            provider, "snapshot", [], _criteria(),
            config=ExtractionConfig(), llm=LLMConfig(),
        )
        assert len(offers) == 1
        assert len(provider.calls) == 1
        assert provider.calls[0]["model"] == "fake-large"
        assert provider.calls[0]["max_tokens"] == 4096

    async def test_model_override(self, provider: Any) -> None:
        await extract_offers(
            provider, "snapshot", [], _criteria(),
            config=ExtractionConfig(), llm=LLMConfig(extraction_model="custom-model"),
        )
        assert provider.calls[0]["model"] == "custom-model"

    async def test_empty_answer(self, provider: Any) -> None:
        provider.extraction_answer = ""
        offers = await extract_offers(
            provider, "snapshot", [], _criteria(),
            config=ExtractionConfig(), llm=LLMConfig(),
        )
        assert offers == []

    async def test_excluded_titles_filtered(self, provider: Any) -> None:
        provider.extraction_answer = json.dumps([
            {"title": "Python Dev", "url": "https://x/1"},
            {"title": "Junior PHP Dev", "url": "https://x/2"},
        ])
        offers = await extract_offers(
            provider, "snapshot", [], _criteria(exclude_keywords=["PHP"]),
            config=ExtractionConfig(), llm=LLMConfig(),
        )
        assert [o.title for o in offers] == ["Python Dev"]
