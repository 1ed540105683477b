"""Core data models for the job-discovery agent."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class SearchCriteria(BaseModel):
    """Input of one run: what to search for and how to log in.

    Frozen: a run never alters its criteria.
    """

    model_config = ConfigDict(frozen=True)

    query: str
    location: str = ""
    sites: list[str] = Field(default_factory=lambda: ["linkedin"])
    contract_types: list[str] = Field(default_factory=list)
    remote: bool = False
    salary_min: int | None = None
    exclude_keywords: list[str] = Field(default_factory=list)
    linkedin_email: str
    linkedin_password: SecretStr

    @field_validator("query")
    @classmethod
    def query_not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "query must not be empty"
            raise ValueError(msg)
        return v.strip()

    @field_validator("sites")
    @classmethod
    def at_least_one_site(cls, v: list[str]) -> list[str]:
        sites = [s.lower().strip() for s in v if s.strip()]
        if not sites:
            msg = "at least one site must be given"
            raise ValueError(msg)
        return sites


class PageLink(BaseModel):
    """A link captured from a result page."""

    model_config = ConfigDict(frozen=True)

    text: str = ""
    href: str = ""


class ScrapedOffer(BaseModel):
    """A job offer produced by extraction.

    Frozen: enrichment swaps the description via ``model_copy``.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    company: str = ""
    location: str = ""
    url: str
    description: str = ""
    salary: str | None = None
    contract_type: str | None = None
    source: str

    @field_validator("title", "url")
    @classmethod
    def required_text(cls, v: str) -> str:
        if not v or not v.strip():
            msg = "must not be empty"
            raise ValueError(msg)
        return v.strip()


class UserProfile(BaseModel):
    """Stored credentials used to log in on behalf of a user."""

    user_id: str
    linkedin_email: str | None = None
    linkedin_password: SecretStr | None = None

    @property
    def has_credentials(self) -> bool:
        return bool(
            self.linkedin_email
            and self.linkedin_password is not None
            and self.linkedin_password.get_secret_value()
        )


class StoredSearchConfig(BaseModel):
    """A named, persisted set of search criteria owned by a user."""

    id: int | None = None
    user_id: str
    name: str
    query: str
    location: str = ""
    sites: list[str] = Field(default_factory=lambda: ["linkedin"])
    contract_types: list[str] = Field(default_factory=list)
    remote: bool = False
    salary_min: int | None = None
    exclude_keywords: list[str] = Field(default_factory=list)
    is_active: bool = True

    def to_criteria(self, profile: UserProfile) -> SearchCriteria:
        """Combine with the owner's credentials into the input of a run."""
        if not profile.has_credentials:
            msg = f"profile of user '{profile.user_id}' has no credentials"
            raise ValueError(msg)
        return SearchCriteria(
            query=self.query,
            location=self.location,
            sites=self.sites,
            contract_types=self.contract_types,
            remote=self.remote,
            salary_min=self.salary_min,
            exclude_keywords=self.exclude_keywords,
            linkedin_email=profile.linkedin_email or "",
            linkedin_password=profile.linkedin_password or SecretStr(""),
        )


class ScheduleConfig(BaseModel):
    """Per-user daily trigger time. Read-only for the scheduling layer."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    is_active: bool = False
    hour: int = Field(default=8, ge=0, le=23)
    minute: int = Field(default=0, ge=0, le=59)
    timezone: str = "Europe/Paris"
    search_config_id: int | None = None


class RunStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class AgentRun(BaseModel):
    """Status row observed by status-reporting collaborators."""

    id: int
    user_id: str
    type: str
    status: RunStatus
    label: str
    result: dict[str, object] | None = None
    error: str | None = None
    created_at: datetime
    updated_at: datetime
