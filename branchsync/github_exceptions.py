from typing import Optional, Union


class GithubError(Exception):
    pass


class GithubConfigurationError(GithubError):
    pass


class GithubTransportError(GithubError):
    """Raised when the request never produced an HTTP response."""


class GithubApiError(GithubError):
    def __init__(
        self,
        message: str,
        status_code: int,
        documentation_url: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.documentation_url = documentation_url

    def __str__(self) -> str:
        return f"{self.status_code}: {self.message}"


class GithubAuthenticationError(GithubApiError):
    pass


class GithubNotFoundError(GithubApiError):
    pass


class GithubConflictError(GithubApiError):
    pass


class GithubValidationError(GithubApiError):
    pass


class GithubRetryableError(GithubApiError):
    pass


class GithubRateLimitError(GithubApiError):
    def __init__(
        self,
        message: str,
        status_code: int = 403,
        retry_after: Union[int, float, None] = None,
    ):
        super().__init__(message, status_code)
        self.retry_after = retry_after


class AuthError(GithubError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AssertionValidationError(AuthError):
    pass


class AssertionExpiredError(AuthError):
    pass


class InstallationNotFoundError(AuthError):
    def __init__(self, account_login: str, available: Optional[list] = None):
        super().__init__(
            f"No GitHub App installation found for account '{account_login}'"
        )
        self.account_login = account_login
        self.available = available or []
