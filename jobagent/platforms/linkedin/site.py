"""LinkedIn site configuration and search URL builder.

Pure functions, no browser dependency.
"""

import logging
from urllib.parse import quote, urlencode

from pydantic import BaseModel, ConfigDict

from jobagent.core.errors import ConfigurationError
from jobagent.core.schemas import SearchCriteria
from jobagent.platforms.linkedin import selectors

logger = logging.getLogger(__name__)

RESULTS_PER_PAGE = 25

# --- Mapping dicts (URL concern) ---

REMOTE_WORKPLACE_CODE = "2"

JOB_TYPE_MAP: dict[str, str] = {
    "cdi": "F",
    "full-time": "F",
    "fulltime": "F",
    "cdd": "T",
    "temporary": "T",
    "interim": "T",
    "freelance": "C",
    "contract": "C",
    "part-time": "P",
    "stage": "I",
    "internship": "I",
    "alternance": "I",
    "volunteer": "V",
}


class SiteConfig(BaseModel):
    """Everything the pipeline needs to know about one job site."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    base_url: str
    login_url: str
    search_url: str
    email_input: str
    password_input: str
    submit_button: str
    job_link_selectors: tuple[str, ...]
    login_success_prefixes: tuple[str, ...]
    login_challenge_prefixes: tuple[str, ...]
    login_failure_prefixes: tuple[str, ...]
    block_url_indicators: tuple[str, ...]


LINKEDIN_CONFIG = SiteConfig(
    id="linkedin",
    name="LinkedIn Jobs",
    base_url="https://www.linkedin.com",
    login_url="https://www.linkedin.com/login",
    search_url="https://www.linkedin.com/jobs/search/",
    email_input=selectors.LOGIN_EMAIL_INPUT,
    password_input=selectors.LOGIN_PASSWORD_INPUT,
    submit_button=selectors.LOGIN_SUBMIT_BUTTON,
    job_link_selectors=selectors.JOB_LINK_SELECTORS,
    login_success_prefixes=selectors.LOGIN_SUCCESS_PREFIXES,
    login_challenge_prefixes=selectors.LOGIN_CHALLENGE_PREFIXES,
    login_failure_prefixes=selectors.LOGIN_FAILURE_PREFIXES,
    block_url_indicators=selectors.BLOCK_URL_INDICATORS,
)

SITE_CONFIGS: dict[str, SiteConfig] = {
    LINKEDIN_CONFIG.id: LINKEDIN_CONFIG,
}


def get_site_config(site_id: str) -> SiteConfig:
    """Return the configuration of a supported site.

    Raises:
        ConfigurationError: If the site is not supported.
    """
    config = SITE_CONFIGS.get(site_id.lower().strip())
    if config is None:
        msg = f"Site '{site_id}' is not supported. Available: {', '.join(supported_sites())}"
        raise ConfigurationError(msg)
    return config


def supported_sites() -> list[str]:
    return sorted(SITE_CONFIGS)


def build_search_url(
    criteria: SearchCriteria,
    page: int = 0,
    results_per_page: int = RESULTS_PER_PAGE,
    site: SiteConfig = LINKEDIN_CONFIG,
) -> str:
    """Build a result-page URL for the given criteria and zero-based page.

    The ``start`` offset is always present (``page * results_per_page``) so
    every page of one search shares the same parameter layout.
    """
    params: dict[str, str] = {"keywords": criteria.query}
    if criteria.location:
        params["location"] = criteria.location

    if criteria.remote:
        params["f_WT"] = REMOTE_WORKPLACE_CODE

    job_types = _map_contract_types(criteria.contract_types)
    if job_types:
        params["f_JT"] = ",".join(job_types)

    params["start"] = str(page * results_per_page)
    return f"{site.search_url}?{urlencode(params, quote_via=quote)}"


def resolve_url(href: str, site: SiteConfig = LINKEDIN_CONFIG) -> str:
    """Prefix relative hrefs with the site base URL."""
    href = href.strip()
    if href.startswith("/"):
        return f"{site.base_url}{href}"
    return href


def _map_contract_types(values: list[str]) -> list[str]:
    """Map user-facing contract types to job-type codes, deduplicated in order.

    Unknown values are logged and skipped (never crash).
    """
    codes: list[str] = []
    for v in values:
        code = JOB_TYPE_MAP.get(v.lower().strip())
        if code is None:
            logger.warning("Unknown contract type '%s', skipping", v)
        elif code not in codes:
            codes.append(code)
    return codes
