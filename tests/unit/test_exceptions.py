# ============================================================================
# FILE: test_exceptions.py
# RELPATH: build_report_inspector/tests/unit/test_exceptions.py
# ============================================================================

"""Unit tests for the exception hierarchy."""

import pytest

from build_report_inspector.exceptions import (
    AppendixStoreError,
    ArchitectureDetectionError,
    ArchiveError,
    ArchiveFormatError,
    BuildGuidMismatchError,
    BuildReportInspectorError,
    ConfigError,
    ConfigValidationError,
    MissingBuildGuidError,
    PackageReadError,
    PlatformMarkerError,
    PlatformNotFoundError,
    ReportIOError,
    ReportLoadError,
    SnapshotError,
    ToolExecutionError,
    ToolNotFoundError,
    ValidationError,
)


class TestHierarchy:
    """Tests for exception inheritance."""

    @pytest.mark.parametrize("error, parent", [
        (ArchiveFormatError("a.zip", "bad"), ArchiveError),
        (PackageReadError("a.zip", "denied"), ArchiveError),
        (PlatformMarkerError("a.zip"), ValidationError),
        (MissingBuildGuidError("a.ipa"), ValidationError),
        (BuildGuidMismatchError("x", "y"), ValidationError),
        (ArchitectureDetectionError("a.apk", "none"), ValidationError),
        (ToolNotFoundError("bundletool"), ToolExecutionError),
        (ConfigValidationError("k", 1, "bad"), ConfigError),
        (ReportLoadError("r.json", "bad"), ReportIOError),
        (AppendixStoreError("g.json", "bad"), ReportIOError),
        (SnapshotError("s.json", "bad"), ReportIOError),
        (PlatformNotFoundError("windows"), BuildReportInspectorError),
    ])
    def test_parents(self, error, parent):
        """Test every error can be caught by its family and the base class."""
        assert isinstance(error, parent)
        assert isinstance(error, BuildReportInspectorError)


class TestMessages:
    """Tests for exception messages and attributes."""

    def test_guid_mismatch(self):
        """Test both GUIDs appear in the message."""
        error = BuildGuidMismatchError("aaaa", "bbbb")

        assert str(error) == "Build GUID mismatch: expected aaaa but got bbbb"
        assert error.expected == "aaaa"
        assert error.actual == "bbbb"

    def test_platform_marker_lists_expected(self):
        """Test expected markers are listed."""
        error = PlatformMarkerError("a.zip", ["AndroidManifest.xml", "Info.plist"])

        assert "AndroidManifest.xml, Info.plist" in str(error)

    def test_tool_execution_message(self):
        """Test exit code, reason and output are included."""
        error = ToolExecutionError("java", exit_code=2, output="boom\n", reason="build-apks failed")

        assert str(error) == "Tool 'java' failed with exit code 2: build-apks failed\nboom"

    def test_tool_not_found_locations(self):
        """Test searched locations are reported."""
        error = ToolNotFoundError("apkanalyzer", ["/sdk/tools/bin"])

        assert error.tool_name == "apkanalyzer"
        assert error.exit_code is None
        assert "searched: /sdk/tools/bin" in str(error)

    def test_platform_not_found(self):
        """Test available platforms are listed."""
        error = PlatformNotFoundError("windows", ["android", "apple"])

        assert str(error) == "Platform 'windows' not found. Available: android, apple"
