"""Lightweight GitHub REST client covering git data, contents and pull requests."""

from __future__ import annotations

import base64
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional
from urllib.parse import quote

import httpx

from . import __version__
from .github_exceptions import (
    GithubApiError,
    GithubAuthenticationError,
    GithubConfigurationError,
    GithubConflictError,
    GithubNotFoundError,
    GithubRateLimitError,
    GithubRetryableError,
    GithubTransportError,
    GithubValidationError,
)

logger = logging.getLogger(__name__)

API_PREVIEW_HEADERS = {
    "Accept": "application/vnd.github+json",
}
API_VERSION = "2022-11-28"
USER_AGENT = f"branchsync/{__version__}"

_STATUS_ERRORS = {
    401: GithubAuthenticationError,
    403: GithubAuthenticationError,
    404: GithubNotFoundError,
    409: GithubConflictError,
    422: GithubValidationError,
}


def _error_message(response: httpx.Response) -> tuple[str, Optional[str]]:
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase, None
    if not isinstance(data, dict):
        return response.text, None
    message = data.get("message") or response.reason_phrase
    details = []
    for item in data.get("errors") or []:
        if isinstance(item, dict):
            details.append(item.get("message") or item.get("code") or "")
        else:
            details.append(str(item))
    details = [d for d in details if d]
    if details:
        message = f"{message} ({'; '.join(details)})"
    return message, data.get("documentation_url")


class GitHubClient:
    """Bearer-authenticated client; the credential is fixed for its lifetime."""

    def __init__(
        self,
        token: str | None,
        api_url: str = "https://api.github.com",
        timeout: float = 30,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not token:
            raise GithubConfigurationError("GitHub token is required to call the API")
        self._token = token
        self._api_url = api_url.rstrip("/")
        transport = transport or httpx.HTTPTransport(retries=3)
        self._rest = httpx.Client(
            base_url=self._api_url, timeout=timeout, transport=transport
        )

    @property
    def api_url(self) -> str:
        return self._api_url

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": USER_AGENT,
        }
        headers.update(API_PREVIEW_HEADERS)
        return headers

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        if response.is_success:
            return response

        status = response.status_code
        if status in (403, 429) and (
            "rate limit" in response.text.lower()
            or response.headers.get("X-RateLimit-Remaining") == "0"
        ):
            self._handle_rate_limit(response)

        message, doc_url = _error_message(response)
        logger.debug(
            "GitHub API error",
            extra={
                "status_code": status,
                "method": response.request.method,
                "path": response.request.url.path,
            },
        )
        if status >= 500:
            raise GithubRetryableError(message, status, doc_url)
        error_cls = _STATUS_ERRORS.get(status, GithubApiError)
        raise error_cls(message, status, doc_url)

    def _handle_rate_limit(self, response: httpx.Response) -> None:
        reset_header = response.headers.get("X-RateLimit-Reset")
        retry_after_header = response.headers.get("Retry-After")
        wait_seconds = 60.0

        if retry_after_header:
            try:
                wait_seconds = float(retry_after_header)
            except ValueError:
                pass
        elif reset_header:
            try:
                reset_epoch = float(reset_header)
                now_epoch = datetime.now(timezone.utc).timestamp()
                wait_seconds = max(reset_epoch - now_epoch, 1.0)
            except ValueError:
                pass

        raise GithubRateLimitError(
            "GitHub rate limit reached",
            status_code=response.status_code,
            retry_after=wait_seconds,
        )

    def _send(self, request_func: Callable[[], httpx.Response]) -> httpx.Response:
        try:
            response = request_func()
        except httpx.TimeoutException as exc:
            raise GithubTransportError(f"GitHub request timed out: {exc}") from exc
        except httpx.RequestError as exc:
            raise GithubTransportError(f"GitHub request failed: {exc}") from exc
        return self._handle_response(response)

    def _rest_request(self, method: str, path: str, **kwargs: Any) -> Any:
        def _do_request():
            return self._rest.request(method, path, headers=self._headers(), **kwargs)

        response = self._send(_do_request)
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    def _paginate(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Iterator[Dict[str, Any]]:
        url = path
        query = {"per_page": 100, **(params or {})}
        while url:
            def _do_request():
                return self._rest.get(url, headers=self._headers(), params=query)

            response = self._send(_do_request)
            items = response.json()
            if isinstance(items, list):
                yield from items
            else:
                yield items
                break
            url = None
            link_header = response.headers.get("Link")
            if link_header:
                for part in link_header.split(","):
                    segment = part.strip()
                    if segment.endswith('rel="next"'):
                        url = segment[segment.find("<") + 1 : segment.find(">")]
                        query = None
                        break

    @staticmethod
    def _repo_path(owner: str, repo: str) -> str:
        return f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"

    @staticmethod
    def _short_ref(ref: str) -> str:
        return ref[len("refs/"):] if ref.startswith("refs/") else ref

    # GitHub App endpoints (require the app JWT as credential)
    def list_app_installations(self) -> List[Dict[str, Any]]:
        return list(self._paginate("/app/installations"))

    def create_installation_token(self, installation_id: int) -> Dict[str, Any]:
        return self._rest_request(
            "POST", f"/app/installations/{installation_id}/access_tokens"
        )

    # Git references
    def list_references(self, owner: str, repo: str) -> List[Dict[str, Any]]:
        return list(self._paginate(f"{self._repo_path(owner, repo)}/git/refs"))

    def get_reference(self, owner: str, repo: str, ref: str) -> Dict[str, Any]:
        return self._rest_request(
            "GET", f"{self._repo_path(owner, repo)}/git/ref/{self._short_ref(ref)}"
        )

    def create_reference(self, owner: str, repo: str, ref: str, sha: str) -> Dict[str, Any]:
        return self._rest_request(
            "POST",
            f"{self._repo_path(owner, repo)}/git/refs",
            json={"ref": ref, "sha": sha},
        )

    def update_reference(
        self, owner: str, repo: str, ref: str, sha: str, force: bool = False
    ) -> Dict[str, Any]:
        return self._rest_request(
            "PATCH",
            f"{self._repo_path(owner, repo)}/git/refs/{self._short_ref(ref)}",
            json={"sha": sha, "force": force},
        )

    # Git objects
    def create_blob(
        self, owner: str, repo: str, content: str, encoding: str = "utf-8"
    ) -> Dict[str, Any]:
        return self._rest_request(
            "POST",
            f"{self._repo_path(owner, repo)}/git/blobs",
            json={"content": content, "encoding": encoding},
        )

    def get_blob(self, owner: str, repo: str, sha: str) -> Dict[str, Any]:
        return self._rest_request("GET", f"{self._repo_path(owner, repo)}/git/blobs/{sha}")

    def create_tree(
        self,
        owner: str,
        repo: str,
        tree: List[Dict[str, Any]],
        base_tree: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"tree": tree}
        if base_tree:
            payload["base_tree"] = base_tree
        return self._rest_request(
            "POST", f"{self._repo_path(owner, repo)}/git/trees", json=payload
        )

    def get_commit(self, owner: str, repo: str, sha: str) -> Dict[str, Any]:
        return self._rest_request("GET", f"{self._repo_path(owner, repo)}/git/commits/{sha}")

    def create_commit(
        self, owner: str, repo: str, message: str, tree: str, parents: List[str]
    ) -> Dict[str, Any]:
        return self._rest_request(
            "POST",
            f"{self._repo_path(owner, repo)}/git/commits",
            json={"message": message, "tree": tree, "parents": parents},
        )

    # Repository contents
    def create_file(
        self,
        owner: str,
        repo: str,
        path: str,
        message: str,
        content: str,
        branch: str,
    ) -> Dict[str, Any]:
        encoded = base64.b64encode(content.encode("utf-8")).decode("ascii")
        return self._rest_request(
            "PUT",
            f"{self._repo_path(owner, repo)}/contents/{quote(path.lstrip('/'))}",
            json={"message": message, "content": encoded, "branch": branch},
        )

    def get_file_contents(self, owner: str, repo: str, path: str, ref: str) -> Dict[str, Any]:
        return self._rest_request(
            "GET",
            f"{self._repo_path(owner, repo)}/contents/{quote(path.lstrip('/'))}",
            params={"ref": ref},
        )

    # Pull requests and issues
    def create_pull_request(
        self, owner: str, repo: str, title: str, head: str, base: str, body: str = ""
    ) -> Dict[str, Any]:
        return self._rest_request(
            "POST",
            f"{self._repo_path(owner, repo)}/pulls",
            json={"title": title, "head": head, "base": base, "body": body},
        )

    def get_pull_request(self, owner: str, repo: str, number: int) -> Dict[str, Any]:
        return self._rest_request("GET", f"{self._repo_path(owner, repo)}/pulls/{number}")

    def request_reviewers(
        self,
        owner: str,
        repo: str,
        number: int,
        reviewers: List[str],
    ) -> Dict[str, Any]:
        return self._rest_request(
            "POST",
            f"{self._repo_path(owner, repo)}/pulls/{number}/requested_reviewers",
            json={"reviewers": reviewers},
        )

    def add_assignees(
        self, owner: str, repo: str, number: int, assignees: List[str]
    ) -> Dict[str, Any]:
        return self._rest_request(
            "POST",
            f"{self._repo_path(owner, repo)}/issues/{number}/assignees",
            json={"assignees": assignees},
        )

    def add_labels(
        self, owner: str, repo: str, number: int, labels: List[str]
    ) -> List[Dict[str, Any]]:
        return self._rest_request(
            "POST",
            f"{self._repo_path(owner, repo)}/issues/{number}/labels",
            json={"labels": labels},
        )

    def close(self) -> None:
        self._rest.close()

    def __enter__(self) -> "GitHubClient":  # pragma: no cover
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover
        self.close()
