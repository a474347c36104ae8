from typing import Optional


class PreflightError(Exception):
    """
    Base class for a failed preflight. Never escapes a checker's run(): it is
    turned into a failed PreflightResult.
    """

    def __init__(
        self,
        message: str,
        *,
        grant_command: Optional[str] = None,
        login_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.grant_command = grant_command
        self.login_message = login_message


class ConfigurationError(PreflightError):
    """Target scope or subscription id missing."""


class AuthenticationError(PreflightError):
    """The Azure CLI has no usable login."""


class IdentityResolutionError(PreflightError):
    """The calling principal's object id could not be resolved."""


class AuthorizationError(PreflightError):
    """Insufficient role at management-group, subscription or directory level."""


class GrantError(AuthorizationError):
    """A temporary self-grant was attempted and failed."""


class DelegatedCheckError(PreflightError):
    """The external preflight tool failed or could not be run."""
