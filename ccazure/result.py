from dataclasses import dataclass
from typing import Optional

from ccazure.errors import PreflightError


@dataclass
class PreflightResult:
    ok: bool
    error: Optional[str] = None
    output: Optional[str] = None
    granted_temp_role: bool = False
    cleanup_command: Optional[str] = None
    grant_command: Optional[str] = None
    login_message: Optional[str] = None

    @classmethod
    def passed(cls, **kwargs) -> "PreflightResult":
        return cls(ok=True, **kwargs)

    @classmethod
    def from_error(cls, err: PreflightError, **kwargs) -> "PreflightResult":
        kwargs.setdefault("grant_command", err.grant_command)
        kwargs.setdefault("login_message", err.login_message)
        return cls(ok=False, error=err.message, **kwargs)
