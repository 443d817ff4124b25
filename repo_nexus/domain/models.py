from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict


class TimeWindow(str, Enum):
    """Trailing window a trending request looks back over."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def days(self) -> int:
        return {"daily": 1, "weekly": 7, "monthly": 30}[self.value]

    @classmethod
    def parse(cls, value: Optional[str]) -> "TimeWindow":
        """Unknown or empty values fall back to daily."""
        try:
            return cls(value)
        except ValueError:
            return cls.DAILY


class DateRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    since: TimeWindow
    from_date: date
    to_date: date

    @classmethod
    def for_window(cls, window: TimeWindow, now: datetime) -> "DateRange":
        """Day-granularity cutoff `now - window.days`, taken from the caller's clock."""
        return cls(
            since=window,
            from_date=(now - timedelta(days=window.days)).date(),
            to_date=now.date(),
        )


class RepositoryOwner(BaseModel):
    model_config = ConfigDict(frozen=True)

    login: str
    avatar_url: Optional[str] = None
    html_url: Optional[str] = None
    type: Optional[str] = None


class RepositoryLicense(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    spdx_id: Optional[str] = None


class RepositoryMetric(BaseModel):
    """
    Immutable snapshot of a repository as returned by the search API.
    Lives only for the duration of one request.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="GitHub numeric repository id, the identity used for deduplication")
    name: str
    full_name: str
    description: Optional[str] = None
    html_url: Optional[str] = None
    stargazers_count: int = Field(0, ge=0)
    forks_count: int = Field(0, ge=0)
    watchers_count: int = Field(0, ge=0)
    open_issues_count: int = Field(0, ge=0)
    language: Optional[str] = None
    topics: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    pushed_at: datetime
    owner: Optional[RepositoryOwner] = None
    license: Optional[RepositoryLicense] = None
    homepage: Optional[str] = None


class ScoredRepository(RepositoryMetric):
    """A RepositoryMetric with the trending scores derived for its batch."""

    raw_trending_score: float = Field(..., ge=0)
    z_score: float
    final_trending_score: float = Field(..., ge=0)
    stars_velocity: float = Field(..., ge=0)


class PopularRepo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    stargazers_count: int = 0
    html_url: Optional[str] = None


class TrendingDeveloper(BaseModel):
    model_config = ConfigDict(frozen=True)

    login: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    html_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    company: Optional[str] = None
    followers: int = 0
    following: int = 0
    public_repos: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    popularRepo: Optional[PopularRepo] = None


class UserRepo(BaseModel):
    """Minimal repository listing entry used when decorating developers."""
    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    stargazers_count: int = 0
    html_url: Optional[str] = None
    updated_at: datetime


class IssueUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    login: str
    avatar_url: Optional[str] = None
    html_url: Optional[str] = None


class IssueLabel(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    name: str
    color: Optional[str] = None
    description: Optional[str] = None


class Issue(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    number: int
    title: str
    state: str
    html_url: Optional[str] = None
    body: Optional[str] = None
    user: Optional[IssueUser] = None
    labels: List[IssueLabel] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    comments: int = 0
    is_pull_request: bool = Field(False, exclude=True)


class RateLimitStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    limit: int
    remaining: int
    reset: datetime


class RepositoryDetails(BaseModel):
    """Repository metadata used by the README and architecture features."""
    model_config = ConfigDict(frozen=True)

    name: str
    full_name: str
    description: Optional[str] = None
    language: Optional[str] = None
    topics: List[str] = Field(default_factory=list)
    stargazers_count: int = 0
    forks_count: int = 0
    default_branch: str = "main"


class ContentEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    type: str
    size: Optional[int] = None


class RepositoryReference(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class ProjectManifest(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str
    dependencies: Optional[Dict[str, str]] = None
    scripts: Optional[Dict[str, str]] = None
