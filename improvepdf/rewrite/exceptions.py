class RewriteError(Exception):
    """Raised when the rewrite step cannot produce text."""


class RewriteNetworkError(RewriteError):
    """Raised when the AI provider call fails due to network/infrastructure issues."""
