"""Structured data passed between fetching, summarizing and rendering."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Period:
    """A Monday-aligned 7-day reporting window, both bounds inclusive."""
    week: int
    start: datetime
    end: datetime


@dataclass(frozen=True)
class RepositoryRef:
    """A tracked repository and the name shown for it in reports."""
    owner: str
    name: str
    display_name: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def label(self) -> str:
        return self.display_name or self.name


@dataclass
class RepoInfo:
    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    language: Optional[str] = None
    description: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class Release:
    tag_name: str
    name: Optional[str]
    published_at: str
    prerelease: bool = False
    draft: bool = False
    body: str = ""
    url: Optional[str] = None


@dataclass
class PullRequestSummary:
    number: int
    title: str
    state: str
    user: str
    created_at: str
    merged_at: Optional[str] = None
    url: Optional[str] = None


@dataclass
class PullRequestStats:
    total: int = 0
    merged: int = 0
    open: int = 0
    items: List[PullRequestSummary] = field(default_factory=list)


@dataclass
class IssueSummary:
    number: int
    title: str
    state: str
    user: str
    reactions: int = 0
    created_at: Optional[str] = None
    closed_at: Optional[str] = None
    url: Optional[str] = None


@dataclass
class IssueStats:
    total: int = 0
    top_issues: List[IssueSummary] = field(default_factory=list)


@dataclass
class RepositorySnapshot:
    """Activity for one repository over one period."""
    repo: RepositoryRef
    period: Period
    info: Optional[RepoInfo] = None
    commit_count: int = 0
    releases: List[Release] = field(default_factory=list)
    pull_requests: PullRequestStats = field(default_factory=PullRequestStats)
    issues: IssueStats = field(default_factory=IssueStats)

    @property
    def has_activity(self) -> bool:
        """Whether the repository had any PRs or issues opened in the period."""
        return self.pull_requests.total > 0 or self.issues.total > 0

    def to_payload(self) -> Dict[str, Any]:
        """Plain, JSON-serializable view of the snapshot, as sent to the AI backends."""
        data = asdict(self)
        data["period"] = {
            "week": self.period.week,
            "start": self.period.start.isoformat(),
            "end": self.period.end.isoformat(),
        }
        return data


@dataclass
class IndexEntry:
    """One generated issue as it appears in the sidebar and on the homepage."""
    week: int
    title: str
    link: str
    month: str
    end: datetime
