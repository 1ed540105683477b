"""Job description extraction from a serialized detail page.

Three tiers, first hit wins:
  1. Elements whose class or id names a description block
     ("description", "job-detail", "job-content") with enough text.
  2. Text-density ranking of block elements outside nav/header/footer/aside:
     text length divided by the number of descendant elements. Counting
     descendants rather than direct children keeps a wrapped link list
     (one <ul> child holding many <li>) from outranking prose.
  3. The main content region, or the whole page text.

Class names on job sites churn; tier 2 keeps working when tier 1 selectors rot.
"""

import logging

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

SEMANTIC_KEYWORDS: tuple[str, ...] = ("description", "job-detail", "job-content")
MIN_BLOCK_CHARS = 200

_NOISE_TAGS = "script, style, noscript, svg, template, iframe"
_LANDMARK_TAGS = "nav, header, footer, aside"
_BLOCK_TAGS = ("div", "section", "article", "main")


def extract_job_description(html: str, max_length: int = 8000) -> str:
    """Return the best description text found in ``html``, capped at ``max_length``."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.select(_NOISE_TAGS):
        tag.decompose()

    text = _by_semantic_name(soup)
    if text:
        logger.debug("Description found by semantic name (%d chars)", len(text))
    else:
        for tag in soup.select(_LANDMARK_TAGS):
            tag.decompose()
        text = _by_text_density(soup)
        if text:
            logger.debug("Description found by text density (%d chars)", len(text))
        else:
            text = _main_content(soup)
            logger.debug("Description fell back to main content (%d chars)", len(text))

    return text[:max_length]


def _by_semantic_name(soup: BeautifulSoup) -> str:
    for keyword in SEMANTIC_KEYWORDS:
        for el in soup.find_all(True):
            if not _name_contains(el, keyword):
                continue
            text = _text_of(el)
            if len(text) > MIN_BLOCK_CHARS:
                return text
    return ""


def _by_text_density(soup: BeautifulSoup) -> str:
    best_text = ""
    best_score = 0.0
    for el in soup.find_all(_BLOCK_TAGS):
        text = _text_of(el)
        if len(text) <= MIN_BLOCK_CHARS:
            continue
        score = len(text) / (len(el.find_all(True)) + 1)
        if score > best_score:
            best_score = score
            best_text = text
    return best_text


def _main_content(soup: BeautifulSoup) -> str:
    root = (
        soup.find("article")
        or soup.find("main")
        or soup.find(attrs={"role": "main"})
        or soup.body
        or soup
    )
    return _text_of(root)


def _name_contains(el: Tag, keyword: str) -> bool:
    classes = el.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    el_id = el.get("id") or ""
    names = " ".join([*classes, str(el_id)]).lower()
    return keyword in names


def _text_of(el: Tag | BeautifulSoup) -> str:
    """Visible text with one line per block and blank lines dropped."""
    raw = el.get_text(separator="\n")
    lines = (" ".join(line.split()) for line in raw.splitlines())
    return "\n".join(line for line in lines if line)
