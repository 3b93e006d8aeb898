# ============================================================================
# FILE: exceptions.py
# RELPATH: build_report_inspector/src/build_report_inspector/exceptions.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Exception hierarchy for Build Report Inspector
# ============================================================================

"""
Exception classes for Build Report Inspector.

This module defines a hierarchical exception structure for all error conditions
in the analysis engine. Archive, validation and tool errors are scoped to one
slice of the analysis; callers catch them at the component boundary and carry
on with the rest of the report.
"""

from typing import List, Optional


class BuildReportInspectorError(Exception):
    """Base exception for all Build Report Inspector errors."""
    pass


# ============================================================================
# Archive-Related Exceptions
# ============================================================================

class ArchiveError(BuildReportInspectorError):
    """Base exception for archive reading errors."""
    pass


class ArchiveFormatError(ArchiveError):
    """
    Raised when a ZIP structure is missing or malformed.

    Attributes:
        path: Path of the archive being read
        reason: Human-readable explanation of the failure
    """
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Archive '{path}' is invalid: {reason}")


class PackageReadError(ArchiveError):
    """
    Raised when a package file cannot be opened at all.

    Attributes:
        path: Path of the package
        reason: Explanation of the failure
    """
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to open package '{path}': {reason}")


# ============================================================================
# Validation-Related Exceptions
# ============================================================================

class ValidationError(BuildReportInspectorError):
    """Base exception for 'not applicable' conditions during analysis."""
    pass


class PlatformMarkerError(ValidationError):
    """
    Raised when a package does not contain a recognized platform marker entry.

    Attributes:
        path: Path of the package
        expected_markers: Marker entries that were looked for
    """
    def __init__(self, path: str, expected_markers: Optional[List[str]] = None):
        self.path = path
        self.expected_markers = expected_markers or []
        msg = f"Package '{path}' is not a recognized mobile build"
        if self.expected_markers:
            msg += f". Expected one of: {', '.join(self.expected_markers)}"
        super().__init__(msg)


class MissingBuildGuidError(ValidationError):
    """
    Raised when a package carries no embedded build GUID.

    Attributes:
        path: Path of the package
    """
    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Package '{path}' has no build GUID; it was built before the "
            f"inspector was added to the project"
        )


class BuildGuidMismatchError(ValidationError):
    """
    Raised when the embedded build GUID differs from the requested one.

    Attributes:
        expected: GUID of the selected build report
        actual: GUID found inside the package
    """
    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Build GUID mismatch: expected {expected} but got {actual}"
        )


class ArchitectureDetectionError(ValidationError):
    """
    Raised when no CPU architecture can be extracted from a package.

    Attributes:
        path: Path of the package
        reason: Explanation of the failure
    """
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Architecture detection failed for '{path}': {reason}")


# ============================================================================
# Tool-Related Exceptions
# ============================================================================

class ToolExecutionError(BuildReportInspectorError):
    """
    Raised when an external tool fails.

    Attributes:
        executable: Tool that was invoked
        exit_code: Process exit code (None if it never ran to completion)
        output: Captured combined stdout and stderr
    """
    def __init__(self, executable: str, exit_code: Optional[int] = None,
                 output: str = "", reason: Optional[str] = None):
        self.executable = executable
        self.exit_code = exit_code
        self.output = output
        self.reason = reason

        msg = f"Tool '{executable}' failed"
        if exit_code is not None:
            msg += f" with exit code {exit_code}"
        if reason:
            msg += f": {reason}"
        if output:
            msg += f"\n{output.strip()}"
        super().__init__(msg)


class ToolNotFoundError(ToolExecutionError):
    """
    Raised when an external tool cannot be located on the filesystem.

    Attributes:
        tool_name: Logical name of the tool (e.g. 'bundletool')
        searched_locations: Paths that were checked
    """
    def __init__(self, tool_name: str, searched_locations: Optional[List[str]] = None):
        self.tool_name = tool_name
        self.searched_locations = searched_locations or []
        reason = "not found"
        if self.searched_locations:
            reason += f" (searched: {', '.join(self.searched_locations)})"
        super().__init__(tool_name, reason=reason)


class PlatformNotFoundError(BuildReportInspectorError):
    """
    Raised when a requested platform strategy is not registered.

    Attributes:
        platform_name: Name that was requested
        available_platforms: Names that are registered
    """
    def __init__(self, platform_name: str, available_platforms: Optional[List[str]] = None):
        self.platform_name = platform_name
        self.available_platforms = available_platforms or []
        msg = f"Platform '{platform_name}' not found"
        if self.available_platforms:
            msg += f". Available: {', '.join(self.available_platforms)}"
        super().__init__(msg)


# ============================================================================
# Configuration-Related Exceptions
# ============================================================================

class ConfigError(BuildReportInspectorError):
    """Base exception for configuration-related errors."""
    pass


class ConfigLoadError(ConfigError):
    """
    Raised when configuration file cannot be loaded.

    Attributes:
        config_file: Path to the configuration file
        reason: Explanation of the failure
    """
    def __init__(self, config_file: str, reason: str):
        self.config_file = config_file
        self.reason = reason
        super().__init__(f"Failed to load config '{config_file}': {reason}")


class ConfigValidationError(ConfigError):
    """
    Raised when configuration data fails validation.

    Attributes:
        key: Configuration key that failed validation
        value: The invalid value
        reason: Explanation of why validation failed
    """
    def __init__(self, key: str, value: object, reason: str):
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid config value for '{key}': {reason}")


# ============================================================================
# Report I/O Exceptions
# ============================================================================

class ReportIOError(BuildReportInspectorError):
    """Base exception for report input/output errors."""
    pass


class ReportLoadError(ReportIOError):
    """
    Raised when a build report export cannot be read.

    Attributes:
        path: Path to the report file
        reason: Explanation of the failure
    """
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load build report '{path}': {reason}")


class CsvExportError(ReportIOError):
    """
    Raised when content rows cannot be written to CSV.

    Attributes:
        path: Destination CSV path
        reason: Explanation of the failure
    """
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"An error occurred while writing CSV '{path}': {reason}")


class AppendixStoreError(ReportIOError):
    """
    Raised when a stored mobile appendix cannot be read or written.

    Attributes:
        path: Appendix file path
        reason: Explanation of the failure
    """
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Mobile appendix '{path}' unusable: {reason}")


class SnapshotError(ReportIOError):
    """
    Raised when an AssetBundle build snapshot cannot be read or written.

    Attributes:
        path: Snapshot file path
        reason: Explanation of the failure
    """
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Bundle snapshot '{path}' unusable: {reason}")


# ============================================================================
# LIFECYCLE STATUS: Active
# DEPENDENCIES: None (base exception definitions)
# TESTS: tests/unit/test_exceptions.py
# ============================================================================
