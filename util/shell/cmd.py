# cmd.py

import logging
import platform
import shlex
import subprocess
from pathlib import Path
from shutil import which as std_which
from typing import Union, List, Optional, Dict

logger = logging.getLogger(__name__)


class CMD:
    @staticmethod
    def run(
            cmd: Union[str, List[str]],
            *,
            shell: bool = False,
            capture_output: bool = True,
            check: bool = True,
            text: bool = True,
            env: Optional[Dict[str, str]] = None,
            cwd: Optional[Union[str, Path]] = None,
            input: Optional[str] = None,
            merge_stderr: bool = False,
            timeout: Optional[float] = None,
    ) -> subprocess.CompletedProcess:
        """
        Runs a subprocess command and logs the invocation and its outcome.

        - If `cmd` is a string and shell=False, splits with shlex.
        - `input` is written to the child's stdin.
        - `merge_stderr` interleaves stderr into stdout (like `2>&1`), so the
          returned stdout is the full console transcript.
        - `timeout` is passed through; None blocks until the child exits.
        """
        # --- Type checks ---
        if not isinstance(cmd, (str, list)):
            raise TypeError(f"[CMD.run] 'cmd' must be a str or list, got {type(cmd).__name__}")
        if env is not None and not isinstance(env, dict):
            raise TypeError(f"[CMD.run] 'env' must be a dict or None, got {type(env).__name__}")
        if cwd is not None and not isinstance(cwd, (str, Path)):
            raise TypeError(f"[CMD.run] 'cwd' must be str, pathlib.Path, or None, got {type(cwd).__name__}")

        cwd_str = str(cwd) if isinstance(cwd, Path) else cwd

        if isinstance(cmd, str) and not shell:
            cmd = shlex.split(cmd)

        logger.debug("[CMD] Running command: %r (cwd=%r)", cmd, cwd_str)

        kwargs = {}
        if merge_stderr:
            kwargs.update(stdout=subprocess.PIPE, stderr=subprocess.STDOUT)
        else:
            kwargs.update(capture_output=capture_output)

        try:
            result = subprocess.run(
                cmd,
                shell=shell,
                check=check,
                text=text,
                env=env,
                cwd=cwd_str,
                input=input,
                timeout=timeout,
                **kwargs,
            )
        except subprocess.CalledProcessError as exc:
            stderr_text = exc.stderr if exc.stderr else ""
            logger.debug(
                "[CMD] Command failed (returncode=%d). cmd=%r%s",
                exc.returncode,
                cmd,
                f", stderr={stderr_text!r}" if stderr_text else ""
            )
            raise

        if result.returncode == 0:
            logger.debug("[CMD] Command succeeded (returncode=0)")
        else:
            logger.debug("[CMD] Command completed with non-zero exit (returncode=%d)", result.returncode)

        return result

    @staticmethod
    def which(binary: str) -> Optional[str]:
        """
        Return the full unquoted path to a binary if found in PATH,
        or check common Azure CLI install locations on Windows.
        """
        path = std_which(binary)
        if path:
            return path

        if binary.lower() == "az" and platform.system() == "Windows":
            fallback_paths = [
                r"C:\Program Files (x86)\Microsoft SDKs\Azure\CLI2\wbin\az.cmd",
                r"C:\Program Files\Microsoft SDKs\Azure\CLI2\wbin\az.cmd",
            ]
            for fb in fallback_paths:
                fb_path = Path(fb)
                if fb_path.exists():
                    logger.debug("[CMD.which] Fallback found for %s: %s", binary, fb_path)
                    return str(fb_path)

        return None
