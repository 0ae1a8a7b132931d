"""Repository, account and pull request value objects."""

import re
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urlparse

GITHUB_HOST = "github.com"
GITHUB_API_ENDPOINT = "https://api.github.com"

_SCP_LIKE_URL = re.compile(r"^[\w.-]+@(?P<host>[^:]+):(?P<path>.+)$")


def endpoint_for_host(host: str) -> str:
    """Return the REST API endpoint serving the given web host."""
    if host.lower() == GITHUB_HOST:
        return GITHUB_API_ENDPOINT
    return f"https://{host}/api/v3"


@dataclass(frozen=True)
class GitHubRepository:
    """Identity of a repository on a GitHub host."""

    owner: str
    name: str
    endpoint: str = GITHUB_API_ENDPOINT

    @property
    def full_name(self) -> str:
        """Repository name in owner/name format."""
        return f"{self.owner}/{self.name}"

    @classmethod
    def from_url(cls, url: str) -> "GitHubRepository":
        """Build a repository identity from a clone or web URL.

        Accepts ``https://host/owner/name(.git)`` and
        ``git@host:owner/name(.git)`` forms. Hosts other than github.com are
        treated as GitHub Enterprise servers.

        Raises:
            ValueError: If the URL does not name an owner and repository
        """
        scp_match = _SCP_LIKE_URL.match(url)
        if scp_match:
            host, path = scp_match.group("host"), scp_match.group("path")
        else:
            parsed = urlparse(url)
            host, path = parsed.hostname or "", parsed.path

        path_parts = [part for part in path.strip("/").split("/") if part]
        if not host or len(path_parts) < 2:
            raise ValueError(f"Invalid repository URL: {url}")

        owner, name = path_parts[0], path_parts[1]
        if name.endswith(".git"):
            name = name[:-4]

        return cls(owner=owner, name=name, endpoint=endpoint_for_host(host))


@dataclass(frozen=True)
class Repository:
    """A locally known repository, optionally linked to a GitHub repository."""

    name: str
    path: str | None = None
    github_repository: GitHubRepository | None = None

    @property
    def has_github_repository(self) -> bool:
        """Check if the repository is linked to a remote-host identity."""
        return self.github_repository is not None

    def __str__(self) -> str:
        """Return human-readable string representation."""
        if self.github_repository:
            return f"{self.name} ({self.github_repository.full_name})"
        return self.name


@dataclass(frozen=True)
class Account:
    """Credentials of a user on a GitHub endpoint."""

    login: str
    endpoint: str
    token: str

    def __repr__(self) -> str:
        """Return representation without the token."""
        return f"Account(login={self.login!r}, endpoint={self.endpoint!r})"


@dataclass(frozen=True)
class PullRequestRef:
    """A branch of a pull request and the commit it points to."""

    ref: str
    sha: str


@dataclass(frozen=True)
class PullRequest:
    """Pull request handed to observers of failed checks."""

    number: int
    title: str
    author: str
    head: PullRequestRef
    base: PullRequestRef
    created_at: datetime
    draft: bool = False
    html_url: str | None = None

    def __str__(self) -> str:
        """Return human-readable string representation."""
        return f"#{self.number}: {self.title}"
