from dataclasses import dataclass

from branchsync.github_client import GitHubClient


@dataclass(frozen=True)
class SyncContext:
    """Authenticated client plus repository coordinates shared by every step."""

    client: GitHubClient
    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"
