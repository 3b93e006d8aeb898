# ============================================================================
# SOURCEFILE: tools.py
# RELPATH: build_report_inspector/src/build_report_inspector/tools.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Blocking invocation of external platform tools
# ============================================================================

"""
External Tool Invocation.

Each call supplies an executable and its arguments, captures stdout and
stderr as one combined stream, and reports the exit code. A non-zero exit
code is always a failure, with the captured output as the diagnostic.
"""

import subprocess
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from build_report_inspector.exceptions import ToolExecutionError, ToolNotFoundError
from build_report_inspector.logging import StructuredLogger

DEFAULT_TIMEOUT_SECONDS = 600


@dataclass
class ToolResult:
    """Combined output and exit code of one tool run."""
    executable: str
    arguments: List[str]
    output: str
    exit_code: int

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    def check(self) -> "ToolResult":
        """
        Return self if the tool succeeded.

        Raises:
            ToolExecutionError: On a non-zero exit code
        """
        if self.exit_code != 0:
            raise ToolExecutionError(self.executable, self.exit_code, self.output)
        return self


ToolRunner = Callable[[str, List[str]], ToolResult]


def run_tool(executable: str,
             arguments: List[str],
             timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
             logger: Optional[StructuredLogger] = None) -> ToolResult:
    """
    Run an external tool and capture its combined output.

    Args:
        executable: Path or name of the executable
        arguments: Argument list (no shell parsing)
        timeout: Seconds before the tool is killed; None waits forever
        logger: Optional structured logger for the invocation record

    Returns:
        ToolResult; the exit code is not checked here

    Raises:
        ToolNotFoundError: If the executable does not exist
        ToolExecutionError: If the tool times out or cannot be started
    """
    started = time.monotonic()
    exit_code: Optional[int] = None
    try:
        completed = subprocess.run(
            [executable, *arguments],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            timeout=timeout,
        )
        exit_code = completed.returncode
        return ToolResult(executable, list(arguments), completed.stdout or "", completed.returncode)
    except FileNotFoundError:
        raise ToolNotFoundError(executable, [executable])
    except subprocess.TimeoutExpired as e:
        output = e.output if isinstance(e.output, str) else ""
        raise ToolExecutionError(executable, output=output, reason=f"timed out after {timeout} seconds")
    except OSError as e:
        raise ToolExecutionError(executable, reason=str(e))
    finally:
        if logger is not None:
            elapsed_ms = int((time.monotonic() - started) * 1000)
            logger.log_tool_invocation(executable, list(arguments), exit_code, elapsed_ms)


def make_runner(timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
                logger: Optional[StructuredLogger] = None) -> ToolRunner:
    """Bind a timeout and logger into a two-argument runner."""
    def runner(executable: str, arguments: List[str]) -> ToolResult:
        return run_tool(executable, arguments, timeout=timeout, logger=logger)
    return runner
