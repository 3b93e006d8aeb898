# ============================================================================
# SOURCEFILE: logging.py
# RELPATH: build_report_inspector/src/build_report_inspector/logging.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Structured JSON logging for analyses, tool runs and appendices
# ============================================================================

"""
Structured Logging Module.

Provides JSON-lines logging for every analysis step, enabling automated
testing, diagnostics, and an audit trail of external tool invocations.
"""

from __future__ import annotations

import io
import json
import uuid
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Any, Iterable
from enum import Enum
import sys


def _ensure_stream_utf8(stream: Optional[io.TextIOBase]) -> Optional[io.TextIOBase]:
    """Ensure a text stream writes UTF-8, wrapping if necessary."""
    if stream is None:
        return None

    encoding = getattr(stream, "encoding", None)
    if isinstance(encoding, str) and encoding.lower() == "utf-8":
        return stream

    reconfigure = getattr(stream, "reconfigure", None)
    if callable(reconfigure):
        try:
            reconfigure(encoding="utf-8", errors="backslashreplace")
            return stream
        except (ValueError, io.UnsupportedOperation):
            pass

    buffer = getattr(stream, "buffer", None)
    if buffer is None:
        return stream

    stream.flush()
    return io.TextIOWrapper(buffer, encoding="utf-8", errors="backslashreplace")


def configure_utf8_logging(force: bool = False) -> None:
    """Configure stdout/stderr and root logger handlers for UTF-8 output.

    Asset paths routinely contain non-Latin characters, which consoles on
    cp1252 cannot encode. Safe to call multiple times.
    """
    streams: Iterable[str] = ("stdout", "stderr")
    for name in streams:
        stream = getattr(sys, name, None)
        if stream is None:
            continue

        new_stream = _ensure_stream_utf8(stream)
        if new_stream is not None and new_stream is not stream:
            setattr(sys, name, new_stream)

    root = logging.getLogger()
    if force and not root.handlers:
        root.addHandler(logging.StreamHandler(sys.stderr))

    for handler in root.handlers:
        stream = getattr(handler, "stream", None)
        if stream is None:
            continue
        new_stream = _ensure_stream_utf8(stream)
        if new_stream is not None and new_stream is not stream:
            handler.setStream(new_stream)


class LogEvent(Enum):
    """Enumeration of loggable events."""
    ANALYSIS_START = "analysis_start"
    ANALYSIS_COMPLETE = "analysis_complete"
    ERROR = "error"
    WARNING = "warning"
    VALIDATION = "validation"
    TOOL_INVOKED = "tool_invoked"
    APPENDIX_SAVED = "appendix_saved"
    APPENDIX_LOADED = "appendix_loaded"


class StructuredLogger:
    """
    JSON-structured logger for Build Report Inspector operations.

    Every entry has the shape ``{sessionId, timestamp, event, details}`` and is
    appended to the session file as one line.
    """

    def __init__(self, log_dir: str = "logs", session_id: Optional[str] = None):
        """
        Initialize structured logger.

        Args:
            log_dir: Directory for log files
            session_id: Optional session ID (generated if not provided)
        """
        self.log_dir = Path(log_dir)
        self.session_id = session_id or str(uuid.uuid4())
        self.start_time = datetime.now(timezone.utc)

        timestamp = self.start_time.strftime("%Y%m%d_%H%M%S")
        self.log_file = self.log_dir / f"inspector_session_{timestamp}_{self.session_id[:8]}.json"
        self._ensure_log_file_exists()

        # In-memory log buffer (for testing/inspection)
        self.log_buffer: List[Dict] = []

    def _ensure_log_file_exists(self) -> None:
        """Create the log directory and touch the session file; never raises."""
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self.log_file.touch(exist_ok=True)
        except OSError as e:
            print(f"Warning: Failed to create log file {self.log_file}: {e}", file=sys.stderr)

    def log_analysis_start(self, kind: str, source: str) -> None:
        """
        Log the start of an analysis.

        Args:
            kind: Analysis kind ('content', 'duplicates', 'summary', 'mobile')
            source: Report or package path
        """
        entry = self._create_log_entry(
            event=LogEvent.ANALYSIS_START,
            details={"kind": kind, "source": source}
        )
        self._write_log_entry(entry)

    def log_analysis_complete(self,
                              kind: str,
                              source: str,
                              counts: Dict[str, Any],
                              elapsed_ms: int) -> None:
        """
        Log successful completion of an analysis.

        Args:
            kind: Analysis kind
            source: Report or package path
            counts: Result counters (entries, assets, architectures...)
            elapsed_ms: Duration in milliseconds
        """
        entry = self._create_log_entry(
            event=LogEvent.ANALYSIS_COMPLETE,
            details={
                "kind": kind,
                "source": source,
                "counts": counts,
                "elapsedMs": elapsed_ms
            }
        )
        self._write_log_entry(entry)

    def log_error(self,
                  kind: str,
                  source: str,
                  error_message: str,
                  error_type: str,
                  file_path: Optional[str] = None) -> None:
        """
        Log an error during an analysis.

        Args:
            kind: Analysis kind
            source: Report or package path
            error_message: Human-readable error message
            error_type: Exception class name
            file_path: Specific file that caused the error (if applicable)
        """
        entry = self._create_log_entry(
            event=LogEvent.ERROR,
            details={
                "kind": kind,
                "source": source,
                "errorMessage": error_message,
                "errorType": error_type,
                "filePath": file_path
            }
        )
        self._write_log_entry(entry)

    def log_warning(self, message: str, context: Optional[Dict] = None) -> None:
        entry = self._create_log_entry(
            event=LogEvent.WARNING,
            details={"message": message, "context": context or {}}
        )
        self._write_log_entry(entry)

    def log_validation(self, path: str, valid: bool, package_kind: Optional[str] = None,
                       reason: Optional[str] = None) -> None:
        """
        Log a package validation result.

        Args:
            path: Package path
            valid: Whether a platform marker was found
            package_kind: Detected kind ('apk', 'aab', 'ipa')
            reason: Failure explanation
        """
        entry = self._create_log_entry(
            event=LogEvent.VALIDATION,
            details={
                "path": path,
                "valid": valid,
                "packageKind": package_kind,
                "reason": reason
            }
        )
        self._write_log_entry(entry)

    def log_tool_invocation(self, executable: str, arguments: List[str],
                            exit_code: Optional[int], elapsed_ms: int) -> None:
        entry = self._create_log_entry(
            event=LogEvent.TOOL_INVOKED,
            details={
                "executable": executable,
                "arguments": arguments,
                "exitCode": exit_code,
                "elapsedMs": elapsed_ms
            }
        )
        self._write_log_entry(entry)

    def log_appendix_saved(self, guid: str, path: str, architectures: int) -> None:
        entry = self._create_log_entry(
            event=LogEvent.APPENDIX_SAVED,
            details={"guid": guid, "path": path, "architectures": architectures}
        )
        self._write_log_entry(entry)

    def log_appendix_loaded(self, guid: str, path: str) -> None:
        entry = self._create_log_entry(
            event=LogEvent.APPENDIX_LOADED,
            details={"guid": guid, "path": path}
        )
        self._write_log_entry(entry)

    def _create_log_entry(self, event: LogEvent, details: Dict[str, Any]) -> Dict:
        return {
            "sessionId": self.session_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": event.value,
            "details": details
        }

    def _write_log_entry(self, entry: Dict) -> None:
        """
        Write log entry to file and buffer.

        Args:
            entry: Log entry to write
        """
        self.log_buffer.append(entry)

        try:
            with open(self.log_file, 'a', encoding='utf-8') as f:
                f.write(json.dumps(entry, ensure_ascii=False) + '\n')
        except OSError as e:
            # Log write failure shouldn't crash the analysis
            print(f"Warning: Failed to write log entry: {e}", file=sys.stderr)

    def get_session_logs(self) -> List[Dict]:
        return list(self.log_buffer)

    def export_session_summary(self) -> Dict:
        """
        Export session summary statistics.

        Returns:
            Summary dictionary with counts and metrics
        """
        summary = {
            "sessionId": self.session_id,
            "startTime": self.start_time.isoformat(),
            "endTime": datetime.now(timezone.utc).isoformat(),
            "totalEvents": len(self.log_buffer),
            "eventCounts": {}
        }

        for entry in self.log_buffer:
            event_type = entry["event"]
            summary["eventCounts"][event_type] = summary["eventCounts"].get(event_type, 0) + 1

        return summary


# ============================================================================
# Global Logger Instance
# ============================================================================

_global_logger: Optional[StructuredLogger] = None


def get_logger(log_dir: str = "logs") -> StructuredLogger:
    """
    Get the global logger instance.

    Args:
        log_dir: Directory for log files

    Returns:
        StructuredLogger instance
    """
    global _global_logger
    if _global_logger is None:
        _global_logger = StructuredLogger(log_dir)
    return _global_logger


def new_session(log_dir: str = "logs") -> StructuredLogger:
    """
    Start a new logging session.

    Args:
        log_dir: Directory for log files

    Returns:
        New StructuredLogger instance
    """
    global _global_logger
    _global_logger = StructuredLogger(log_dir)
    return _global_logger


# ============================================================================
# LIFECYCLE STATUS: Active
# DEPENDENCIES: None (standalone logging)
# TESTS: tests/unit/test_logging.py
# ============================================================================
