import json
import logging
import subprocess
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from util.shell.cmd import CMD

logger = logging.getLogger(__name__)


@dataclass
class AzResult:
    ok: bool
    data: Any = None
    stdout: str = ""
    stderr: str = ""
    returncode: Optional[int] = None


class AzureCLI:
    """
    Best-effort runner for `az` commands.

    A failing command never raises: it comes back as AzResult(ok=False) with the
    captured stderr, and callers read that as a negative answer. Nothing is retried.
    """

    def __init__(self, runner: Callable[..., subprocess.CompletedProcess] = None, timeout: Optional[float] = None):
        self._runner = runner or CMD.run
        self.timeout = timeout

    @staticmethod
    def _resolve_command_path(cmd: List[str]) -> List[str]:
        resolved = CMD.which(cmd[0])
        if resolved:
            return [resolved] + cmd[1:]
        return list(cmd)

    def run(self, cmd: List[str], *, expect_json: bool = True) -> AzResult:
        """
        Run an Azure CLI command.

        Args:
            cmd: Full command, starting with "az".
            expect_json: Append `--output json` and parse stdout.

        Returns:
            AzResult: ok=False on non-zero exit, missing binary, timeout or
            unparseable JSON.
        """
        full_cmd = self._resolve_command_path(cmd) + (["--output", "json"] if expect_json else [])
        logger.info("[AzureCLI] ▶ %s", " ".join(cmd))

        try:
            completed = self._runner(
                full_cmd,
                capture_output=True,
                check=False,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning("[AzureCLI] Timed out after %ss: %s", self.timeout, " ".join(cmd))
            return AzResult(ok=False, stderr=f"timed out after {self.timeout}s")
        except OSError as ex:
            logger.warning("[AzureCLI] Could not start Azure CLI: %s", ex)
            return AzResult(ok=False, stderr=str(ex))

        stdout = completed.stdout or ""
        stderr = completed.stderr or ""
        if completed.returncode != 0:
            logger.warning("[AzureCLI] Command failed (code %s): %s", completed.returncode, stderr.strip()[:500])
            return AzResult(ok=False, stdout=stdout, stderr=stderr, returncode=completed.returncode)

        if not expect_json or not stdout.strip():
            return AzResult(ok=True, stdout=stdout, stderr=stderr, returncode=0)

        try:
            data = json.loads(stdout)
        except json.JSONDecodeError as jde:
            logger.warning("[AzureCLI] Expected JSON but got invalid output: %s", jde)
            return AzResult(ok=False, stdout=stdout, stderr=stderr, returncode=0)

        return AzResult(ok=True, data=data, stdout=stdout, stderr=stderr, returncode=0)

    def query(self, cmd: List[str], default: Any = None) -> Any:
        """Parsed JSON of a successful command, otherwise `default`."""
        result = self.run(cmd)
        if not result.ok or result.data is None:
            return default
        return result.data
