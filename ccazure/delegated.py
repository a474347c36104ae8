"""
Delegated preflight: permission verification is done by the version-pinned
external preflight tool. Only its exit code drives the result; the console
transcript is kept as diagnostics.
"""
import json
import logging
import os
import re
import subprocess
import tempfile
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from ccazure.errors import ConfigurationError, DelegatedCheckError, PreflightError
from ccazure.preflight import MISSING_SCOPE_MESSAGE
from ccazure.result import PreflightResult
from context.config import BootstrapConfig
from context.logger import log_func
from util.sanitization import strip_ansi, to_json_string
from util.shell.cmd import CMD

logger = logging.getLogger(__name__)

AUDIT_LOGS_PREFIX = "AUDIT_LOGS-"
_AUDIT_KEY = re.compile(r'"' + re.escape(AUDIT_LOGS_PREFIX) + r'[^"]+"\s*:')

ONBOARDING_TYPES = ("tenant", "mg")


def audit_logs_requested(template_version: str) -> bool:
    """
    True when the template-version map declares a key starting with AUDIT_LOGS-,
    e.g. {'BASE-arm_org_base': '1.0.0', 'AUDIT_LOGS-arm_organization_audit': '1.0.0'}.
    """
    normalized = to_json_string(template_version or "")
    if not normalized:
        return False
    try:
        parsed = json.loads(normalized)
    except json.JSONDecodeError:
        return bool(_AUDIT_KEY.search(normalized))
    if isinstance(parsed, dict):
        return any(str(k).startswith(AUDIT_LOGS_PREFIX) for k in parsed)
    return False


def normalize_onboarding_type(value: Optional[str]) -> str:
    """Anything other than "tenant" onboards a management group."""
    return "tenant" if (value or "").strip().lower() == "tenant" else "mg"


@dataclass(frozen=True)
class PreflightRequest:
    onboarding_type: str
    target_id: str
    audit_logs: bool = False

    def __post_init__(self):
        if self.onboarding_type not in ONBOARDING_TYPES:
            raise ConfigurationError(
                f"Unknown onboarding type '{self.onboarding_type}'; expected one of {', '.join(ONBOARDING_TYPES)}."
            )

    def menu_input(self) -> str:
        """
        Renders the request as the tool's scripted menu answers:
        tenant -> option 5, mg -> option 4 followed by the management group id,
        then the audit-logs answer.
        """
        audit = "y" if self.audit_logs else "n"
        if self.onboarding_type == "tenant":
            return f"5\n{audit}\n"
        return f"4\n{self.target_id}\n{audit}\n"


class Requests:
    """Shared HTTP session for downloading the preflight tool."""

    session = requests.Session()

    @staticmethod
    def http_get_text(url: str, timeout: float) -> str:
        resp = Requests.session.get(url, timeout=timeout)
        resp.raise_for_status()
        return resp.text


class DelegatedPreflight:
    def __init__(
        self,
        config: Optional[BootstrapConfig] = None,
        runner: Callable[..., subprocess.CompletedProcess] = None,
        fetch: Callable[[str, float], str] = None,
    ):
        self.config = config or BootstrapConfig()
        self._runner = runner or CMD.run
        self._fetch = fetch or Requests.http_get_text

    def run(
        self,
        target_id: str,
        subscription_id: str,
        enabled: bool = True,
        onboarding_type: str = "mg",
        template_version: str = "",
    ) -> PreflightResult:
        if not enabled:
            logger.info("[DelegatedPreflight] Disabled; skipping permission checks")
            return PreflightResult.passed()

        try:
            with log_func("delegated_preflight"):
                if not target_id or not subscription_id:
                    raise ConfigurationError(MISSING_SCOPE_MESSAGE)
                request = PreflightRequest(
                    onboarding_type=normalize_onboarding_type(onboarding_type),
                    target_id=target_id,
                    audit_logs=audit_logs_requested(template_version),
                )
                return self.execute(request)
        except PreflightError as err:
            logger.warning("[DelegatedPreflight] ❌ %s", err.message)
            return PreflightResult.from_error(err)
        except Exception as err:
            logger.exception("[DelegatedPreflight] Unexpected failure")
            return PreflightResult(ok=False, error=f"Preflight checks could not complete: {err}")

    def download_tool(self) -> str:
        url = self.config.preflight_tool_url
        logger.info("[DelegatedPreflight] Fetching preflight tool %s", url)
        try:
            script = self._fetch(url, self.config.download_timeout)
        except requests.RequestException as e:
            raise DelegatedCheckError(f"Could not download the preflight tool from {url}: {e}") from e
        if not script or not script.strip():
            raise DelegatedCheckError(f"The preflight tool downloaded from {url} is empty.")
        return script

    def execute(self, request: PreflightRequest) -> PreflightResult:
        """
        Runs the external tool for `request` and maps its exit code to a result.

        Raises:
            DelegatedCheckError: The tool could not be downloaded or started.
        """
        script = self.download_tool()
        logger.info(
            "[DelegatedPreflight] Running %s onboarding check (audit logs: %s)",
            request.onboarding_type, "yes" if request.audit_logs else "no",
        )

        fd, path = tempfile.mkstemp(prefix="cc-preflight-", suffix=".sh")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(script)
            completed = self._runner(
                ["bash", path],
                input=request.menu_input(),
                check=False,
                text=True,
                merge_stderr=True,
                timeout=self.config.command_timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise DelegatedCheckError(f"Preflight tool timed out after {e.timeout}s.") from e
        except OSError as e:
            raise DelegatedCheckError(f"Could not run the preflight tool: {e}") from e
        finally:
            try:
                os.unlink(path)
            except OSError:
                pass

        transcript = strip_ansi(completed.stdout or "")
        if completed.returncode == 0:
            logger.info("[DelegatedPreflight] ✅ Preflight tool passed")
            return PreflightResult.passed(output=transcript)

        logger.warning("[DelegatedPreflight] Preflight tool exited with %s", completed.returncode)
        return PreflightResult(
            ok=False,
            error=f"Preflight check failed (exit code: {completed.returncode}). See preflight_output for details.",
            output=transcript,
        )
