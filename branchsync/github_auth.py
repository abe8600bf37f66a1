"""GitHub App authentication utilities."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import httpx
from jose import jwt
from jose.exceptions import JOSEError

from .github_client import GitHubClient
from .github_exceptions import (
    AssertionExpiredError,
    AssertionValidationError,
    AuthError,
    GithubApiError,
    GithubConfigurationError,
    GithubTransportError,
    InstallationNotFoundError,
)
from .models import AppAssertion, ApplicationIdentity, Installation, InstallationToken

logger = logging.getLogger(__name__)

# GitHub rejects app JWTs that expire more than ten minutes after issuance
MAX_ASSERTION_SECONDS = 600
CLOCK_SKEW_SECONDS = 60


def load_private_key(raw: str) -> str:
    """Load private key from string or file path."""
    if "PRIVATE KEY-----" in raw:
        return raw.replace("\\n", "\n")
    path = Path(raw.strip().strip('"')).expanduser()
    try:
        is_file = path.is_file()
    except OSError:
        # e.g. a bare base64 key body, too long to be a file name
        is_file = False
    if is_file:
        return path.read_text()
    raise GithubConfigurationError(
        "GITHUB_APP_PRIVATE_KEY must be a PEM string or path to a private key file",
    )


def generate_jwt(
    identity: ApplicationIdentity,
    expires_in: int = MAX_ASSERTION_SECONDS,
    now: Optional[float] = None,
) -> AppAssertion:
    """Generate a JWT for GitHub App authentication."""
    if expires_in <= 0 or expires_in > MAX_ASSERTION_SECONDS:
        raise AssertionValidationError(
            f"Assertion expiration must be within 1..{MAX_ASSERTION_SECONDS} seconds, "
            f"got {expires_in}"
        )

    # Backdated for clock drift; the lifetime is measured from the signed iat
    issued = int(now if now is not None else time.time()) - CLOCK_SKEW_SECONDS
    expires = issued + expires_in
    payload = {
        "iat": issued,
        "exp": expires,
        "iss": identity.app_id,
    }
    try:
        pem = load_private_key(identity.private_key.get_secret_value())
    except GithubConfigurationError as exc:
        raise AuthError(f"Unable to load GitHub App private key: {exc}") from exc
    try:
        token = jwt.encode(payload, pem, algorithm="RS256")
    except JOSEError as exc:
        raise AuthError(f"Unable to sign GitHub App assertion: {exc}") from exc
    return AppAssertion(token=token, issued_at=issued, expires_at=expires)


def find_installation(
    installations: Iterable[Dict[str, Any]], target_account_login: str
) -> Installation:
    """Locate the installation whose account login matches exactly."""
    seen = []
    for payload in installations:
        installation = Installation.from_api(payload)
        if installation.account_login == target_account_login:
            return installation
        seen.append(installation.account_login)
    raise InstallationNotFoundError(target_account_login, available=seen)


def request_installation_token(
    client: GitHubClient,
    installation_id: int,
    assertion: AppAssertion,
    now: Optional[float] = None,
) -> InstallationToken:
    """Request an installation access token from GitHub."""
    if assertion.is_expired(now):
        raise AssertionExpiredError(
            "GitHub App assertion expired before the installation token was requested"
        )
    try:
        data = client.create_installation_token(installation_id)
    except GithubApiError as exc:
        raise AuthError(
            f"Installation token request failed: {exc.message}",
            status_code=exc.status_code,
        ) from exc
    except GithubTransportError as exc:
        raise AuthError(f"Installation token request failed: {exc}") from exc

    token = data.get("token")
    expires_at_raw = data.get("expires_at")
    if not token or not expires_at_raw:
        raise AuthError("GitHub installation token response missing token or expires_at")
    expires_at = datetime.fromisoformat(expires_at_raw.replace("Z", "+00:00"))
    return InstallationToken(
        token=token, installation_id=installation_id, expires_at=expires_at
    )


def authenticate(
    identity: ApplicationIdentity,
    target_account_login: str,
    api_url: str = "https://api.github.com",
    expires_in: int = MAX_ASSERTION_SECONDS,
    timeout: float = 30,
    transport: httpx.BaseTransport | None = None,
) -> InstallationToken:
    """
    Exchange the app identity for an installation token.

    Args:
        identity: GitHub App id and private key
        target_account_login: Account (user or organization) the app is installed on
        api_url: GitHub API URL
        expires_in: Assertion lifetime in seconds, at most 600
        timeout: HTTP timeout for both calls
        transport: Optional httpx transport (tests)
    """
    assertion = generate_jwt(identity, expires_in=expires_in)
    app_client = GitHubClient(
        token=assertion.token.get_secret_value(),
        api_url=api_url,
        timeout=timeout,
        transport=transport,
    )
    try:
        try:
            installations = app_client.list_app_installations()
        except GithubApiError as exc:
            raise AuthError(
                f"Listing GitHub App installations failed: {exc.message}",
                status_code=exc.status_code,
            ) from exc
        except GithubTransportError as exc:
            raise AuthError(f"Listing GitHub App installations failed: {exc}") from exc

        installation = find_installation(installations, target_account_login)
        logger.info(
            "Found GitHub App installation",
            extra={"installation_id": installation.id, "account": target_account_login},
        )
        token = request_installation_token(app_client, installation.id, assertion)
    finally:
        app_client.close()

    logger.info(
        "Issued installation token",
        extra={
            "installation_id": token.installation_id,
            "expires_at": token.expires_at.isoformat(),
        },
    )
    return token


def authenticate_with_restart(
    identity: ApplicationIdentity, target_account_login: str, **kwargs: Any
) -> InstallationToken:
    """Run the exchange, starting over once if the assertion expired midway."""
    try:
        return authenticate(identity, target_account_login, **kwargs)
    except AssertionExpiredError:
        logger.warning("GitHub App assertion expired, restarting token exchange")
        return authenticate(identity, target_account_login, **kwargs)
