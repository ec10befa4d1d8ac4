# docflow/tools/invoker.py
# ============================================================
# Tool Invoker — External Command Execution
# ============================================================
# Runs the external CLI tools (extractor, LLM caller, media
# transcoder) as child processes and classifies failures so
# callers can react precisely:
#
#   1. BLOCKED    — command is not on the configured allow-list
#   2. NOT_FOUND  — the executable does not exist
#   3. FAILED     — nonzero exit, timeout or other runtime error
#
# invoke() never raises for a tool failure; it returns a
# ToolResult with error_kind set. probe() is the fail-fast
# availability check run before any real work and raises
# ToolUnavailableError.
# ============================================================

import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence, Union

from config.settings import settings
from docflow.errors import ErrorKind, ToolUnavailableError
from docflow.utils.logger import get_logger
from docflow.utils.text import excerpt_lines

logger = get_logger(__name__)


@dataclass
class ToolResult:
    """Holds the outcome of a single tool invocation."""
    tool: str
    args: list[str] = field(default_factory=list)
    stdout: str = ""
    stderr: str = ""
    returncode: Optional[int] = None
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None

    @property
    def output(self) -> str:
        """Whatever the tool printed, stdout first."""
        return self.stdout or self.stderr


def _decode(stream: Union[str, bytes, None]) -> str:
    # TimeoutExpired carries bytes even when text=True was requested
    if stream is None:
        return ""
    if isinstance(stream, bytes):
        return stream.decode("utf-8", errors="replace")
    return stream


class ToolInvoker:
    """
    Runs external commands with timeout and interactive semantics.

    Example:
        >>> invoker = ToolInvoker()
        >>> invoker.probe("doc-to-text")
        >>> result = invoker.invoke("doc-to-text", ["scan.pdf", "-o", "scan.txt"])
        >>> result.ok
        True
    """

    def __init__(
        self,
        allowed_commands: Optional[Iterable[str]] = None,
        probe_timeout: Optional[int] = None,
    ):
        """
        Initialize the invoker.

        Args:
            allowed_commands: Commands that may be executed. Empty or None
                              (with an empty setting) means no restriction.
            probe_timeout: Timeout for availability probes, in seconds.
        """
        if allowed_commands is None:
            allowed_commands = settings.allowed_commands
        self.allowed_commands = frozenset(allowed_commands)
        self.probe_timeout = probe_timeout or settings.probe_timeout

    def is_allowed(self, tool: str) -> bool:
        """Check a command against the allow-list (by name or full path)."""
        if not self.allowed_commands:
            return True
        return tool in self.allowed_commands or Path(tool).name in self.allowed_commands

    def invoke(
        self,
        tool: str,
        args: Sequence[str],
        timeout: Optional[int] = None,
        interactive: bool = False,
        cwd: Optional[Union[str, Path]] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> ToolResult:
        """
        Run a tool and capture its output.

        Args:
            tool: Command name or path.
            args: Arguments passed verbatim (no shell).
            timeout: Seconds before the process is killed. Defaults to
                     settings.tool_timeout (or settings.interactive_timeout
                     in interactive mode).
            interactive: Inherit the terminal so the tool can prompt the
                         operator. stdout/stderr are not captured.
            cwd: Working directory for the child process.
            env: Extra environment variables layered over os.environ.

        Returns:
            ToolResult; check `ok` / `error_kind` for the outcome.
        """
        args = [str(a) for a in args]
        result = ToolResult(tool=tool, args=args)

        if not self.is_allowed(tool):
            result.error_kind = ErrorKind.BLOCKED
            result.error = f"'{tool}' is not in the allowed CLI commands list"
            return result

        if timeout is None:
            timeout = settings.interactive_timeout if interactive else settings.tool_timeout

        run_env = {**os.environ, **env} if env else None
        logger.debug(
            f"Running {tool} ({len(args)} args, timeout {timeout}s"
            f"{', interactive' if interactive else ''})"
        )

        try:
            if interactive:
                completed = subprocess.run(
                    [tool, *args],
                    timeout=timeout,
                    cwd=cwd,
                    env=run_env,
                )
            else:
                completed = subprocess.run(
                    [tool, *args],
                    stdin=subprocess.DEVNULL,
                    capture_output=True,
                    text=True,
                    errors="replace",
                    timeout=timeout,
                    cwd=cwd,
                    env=run_env,
                )
        except FileNotFoundError as e:
            if cwd is not None and not Path(cwd).is_dir():
                result.error_kind = ErrorKind.FAILED
                result.error = f"{tool} could not be started: working directory {cwd} does not exist"
                return result
            result.error_kind = ErrorKind.NOT_FOUND
            result.error = f"{tool}: command not found ({e.strerror or e})"
            return result
        except subprocess.TimeoutExpired as e:
            result.stdout = _decode(e.stdout)
            result.stderr = _decode(e.stderr)
            result.error_kind = ErrorKind.FAILED
            result.error = f"{tool} timed out after {timeout}s"
            return result
        except OSError as e:
            result.error_kind = ErrorKind.FAILED
            result.error = f"{tool} could not be started: {e}"
            return result
        except ValueError as e:
            # e.g. an embedded NUL byte in an argument
            result.error_kind = ErrorKind.FAILED
            result.error = f"{tool} could not be started: {e}"
            return result

        result.stdout = _decode(completed.stdout)
        result.stderr = _decode(completed.stderr)
        result.returncode = completed.returncode
        if completed.returncode != 0:
            result.error_kind = ErrorKind.FAILED
            result.error = f"{tool} exited with status {completed.returncode}"
        return result

    def probe(
        self,
        tool: str,
        args: Sequence[str] = ("-h",),
        timeout: Optional[int] = None,
        marker: Optional[str] = None,
    ) -> ToolResult:
        """
        Check that a tool can be run before starting a batch.

        A tool counts as available when it is allowed, exists, and either
        exits cleanly or prints something (many tools exit nonzero on -h).
        When `marker` is given, the combined output must contain it.

        Raises:
            ToolUnavailableError: With the failure kind and an excerpt of
                the tool's output.
        """
        result = self.invoke(tool, args, timeout=timeout or self.probe_timeout)

        if result.error_kind in (ErrorKind.BLOCKED, ErrorKind.NOT_FOUND):
            raise ToolUnavailableError(tool, result.error_kind, result.error or "")

        combined = result.stdout + result.stderr
        limit = settings.probe_excerpt_lines
        if marker is not None:
            if marker not in combined:
                raise ToolUnavailableError(
                    tool,
                    ErrorKind.FAILED,
                    result.error or f"output does not mention '{marker}'",
                    excerpt_lines(result.stderr, limit) + excerpt_lines(result.stdout, limit),
                )
        elif not (combined.strip() or result.ok):
            raise ToolUnavailableError(
                tool,
                ErrorKind.FAILED,
                result.error or "no output",
                excerpt_lines(result.stderr, limit) + excerpt_lines(result.stdout, limit),
            )

        logger.info(f"✅ [bold]{tool}[/bold] is available")
        return result
