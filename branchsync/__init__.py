"""Keep a content branch in sync on GitHub and open a pull request for it."""

__version__ = "0.1.0"

from .github_exceptions import (  # noqa: E402
    GithubError,
    GithubConfigurationError,
    GithubApiError,
    GithubRateLimitError,
    GithubRetryableError,
    GithubTransportError,
    AuthError,
    InstallationNotFoundError,
)
from .github_client import GitHubClient  # noqa: E402

__all__ = [
    "__version__",
    "GithubError",
    "GithubConfigurationError",
    "GithubApiError",
    "GithubRateLimitError",
    "GithubRetryableError",
    "GithubTransportError",
    "AuthError",
    "InstallationNotFoundError",
    "GitHubClient",
]
