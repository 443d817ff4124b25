from typing import Optional


class NexusException(Exception):
    """Base exception for all application errors."""
    pass

class GitHubAPIError(NexusException):
    """
    Raised when a GitHub REST call fails.

    `status` carries the upstream HTTP status, or None when the request never
    produced a response (connection error, timeout).
    """
    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        self.message = message
        super().__init__(f"GitHub API error ({status}): {message}" if status else f"GitHub API error: {message}")

class RateLimitExceededException(GitHubAPIError):
    """Raised when the GitHub REST rate limit is hit."""
    def __init__(
        self,
        reset_at: Optional[str],
        message: str = "GitHub API rate limit exceeded.",
        status: int = 403,
    ):
        self.reset_at = reset_at
        super().__init__(f"{message} Resets at: {reset_at}", status=status)

class MissingTokenError(NexusException):
    """Raised when an operation needs a GitHub token and none is configured."""
    pass

class InvalidRepositoryError(NexusException):
    """Raised when a repository reference cannot be parsed into owner/name."""
    pass

class ConfigurationError(NexusException):
    """Raised when a required setting (e.g. an API key) is missing."""
    pass

class GenerationError(NexusException):
    """Raised when the generative model fails or returns no text."""
    pass
