"""Google authentication exceptions."""


class GoogleAuthError(Exception):
    """Base exception for Google authentication errors."""

    pass


class NotConfigured(GoogleAuthError):
    """Raised when the OAuth client configuration is incomplete."""

    def __init__(self, missing: list[str] | None = None, message: str | None = None):
        self.missing = list(missing or [])
        if message is None:
            if self.missing:
                message = (
                    f"Google OAuth not configured: missing {', '.join(self.missing)}. "
                    "Set GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET and GOOGLE_REDIRECT_URI."
                )
            else:
                message = "Google OAuth not configured"
        super().__init__(message)


class AuthError(GoogleAuthError):
    """Raised when the authorization-code exchange fails.

    Authorization codes are single-use, so the caller has to restart the
    authorization flow.
    """

    def __init__(self, message: str, error: str | None = None, description: str | None = None):
        self.error = error
        self.description = description
        super().__init__(message)
