"""Shared fakes: a scripted browser session manager and a scripted LLM provider."""

import sqlite3
from collections.abc import Callable
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, urlparse

import pytest

from jobagent.core.db import init_db
from jobagent.core.errors import ConfigurationError, SessionNotFoundError
from jobagent.core.schemas import PageLink
from jobagent.llm.base import LLMProvider

# ---------------------------------------------------------------------------
# Browser fake
# ---------------------------------------------------------------------------


class FakeSessionManager:
    """Implements the BrowserSessionManager coroutines without a browser.

    Search result pages are keyed by their index (``start // 25``):
    ``snapshots[i]`` and ``links[i]`` describe page ``i``.
    """

    def __init__(self) -> None:
        self.login_landing = "https://www.linkedin.com/feed/"
        self.redirects: dict[str, str] = {}
        self.snapshots: list[str] = []
        self.links: list[list[PageLink]] = []
        self.descriptions: dict[str, str] = {}
        self.failing_urls: set[str] = set()
        self.launch_error: Exception | None = None

        self.open: set[str] = set()
        self.launched: list[str] = []
        self.closed: list[str] = []
        self.navigations: list[str] = []
        self.search_pages: list[int] = []
        self.fills: list[tuple[str, str]] = []
        self.waits: list[int] = []
        self.current_url = "about:blank"

    def _check(self, name: str) -> None:
        if name not in self.open:
            msg = f"Session '{name}' not found. Call launch() first."
            raise SessionNotFoundError(msg)

    def _page_index(self) -> int:
        start = parse_qs(urlparse(self.current_url).query).get("start", ["0"])[0]
        return int(start) // 25

    async def launch(self, name: str) -> None:
        if self.launch_error is not None:
            raise self.launch_error
        self.launched.append(name)
        self.open.add(name)

    async def navigate(self, name: str, url: str) -> str:
        self._check(name)
        self.navigations.append(url)
        if url in self.failing_urls:
            msg = f"net::ERR_TIMED_OUT at {url}"
            raise RuntimeError(msg)
        self.current_url = self.redirects.get(url, url)
        if "/jobs/search" in url:
            self.search_pages.append(self._page_index())
        return "Page"

    async def fill(self, name: str, selector: str, value: str) -> None:
        self._check(name)
        self.fills.append((selector, value))

    async def click(self, name: str, selector: str) -> None:
        self._check(name)
        self.current_url = self.login_landing

    async def wait(self, name: str, ms: int) -> int:
        self._check(name)
        self.waits.append(ms)
        return ms

    async def scroll(self, name: str, steps: int = 3) -> None:
        self._check(name)

    async def snapshot(self, name: str) -> str:
        self._check(name)
        index = self._page_index()
        return self.snapshots[index] if index < len(self.snapshots) else ""

    async def extract_links(self, name: str, selector: str) -> list[PageLink]:
        self._check(name)
        index = self._page_index()
        return list(self.links[index]) if index < len(self.links) else []

    async def get_url(self, name: str) -> str:
        self._check(name)
        return self.current_url

    async def get_job_description(self, name: str, max_length: int = 8000) -> str:
        self._check(name)
        return self.descriptions.get(self.current_url, "")[:max_length]

    async def close(self, name: str) -> None:
        if name in self.open:
            self.open.discard(name)
            self.closed.append(name)

    async def close_all(self) -> None:
        for name in list(self.open):
            await self.close(name)


# ---------------------------------------------------------------------------
# LLM fake
# ---------------------------------------------------------------------------


class FakeProvider(LLMProvider):
    """Answers extraction prompts with ``extraction_answer`` and cleanup prompts via ``cleanup``."""

    def __init__(self) -> None:
        self.extraction_answer = "[]"
        self.cleanup: Callable[[str], str] = lambda prompt: ""
        self.configured = True
        self.calls: list[dict[str, Any]] = []

    @property
    def provider_id(self) -> str:
        return "fake"

    @property
    def default_model(self) -> str:
        return "fake-large"

    @property
    def cleanup_model(self) -> str:
        return "fake-small"

    @property
    def env_var(self) -> str:
        return "FAKE_API_KEY"

    def api_key(self) -> str:
        if not self.configured:
            msg = f"{self.env_var} is not configured. Add your key to the environment."
            raise ConfigurationError(msg)
        return "test-key"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        max_tokens: int = 1024,
    ) -> str:
        self.calls.append({"prompt": prompt, "model": model, "max_tokens": max_tokens})
        if model == self.cleanup_model:
            return self.cleanup(prompt)
        return self.extraction_answer


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sessions() -> FakeSessionManager:
    return FakeSessionManager()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def db(tmp_path: Path) -> sqlite3.Connection:
    return init_db(tmp_path / "test.db")
