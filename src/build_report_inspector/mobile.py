# ============================================================================
# SOURCEFILE: mobile.py
# RELPATH: build_report_inspector/src/build_report_inspector/mobile.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Mobile package analysis and the per-build appendix cache
# ============================================================================

"""
Mobile Archive Analysis.

MobileArchiveAnalyzer walks a finished APK, AAB or IPA through

    unvalidated -> validated -> architectures detected -> complete

Validation requires a platform marker entry. Architecture detection and
download-size estimation are delegated to the injected PlatformUtilities
strategy. A failure at any step yields an explicit failed result; only a
package that cannot be opened at all raises.

The result is cached per build GUID as a MobileAppendix JSON document.
"""

import json
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from build_report_inspector.exceptions import (
    AppendixStoreError,
    ArchiveFormatError,
    BuildReportInspectorError,
    ToolExecutionError,
    ValidationError,
)
from build_report_inspector.logging import StructuredLogger
from build_report_inspector.models import MobileAppendix, MobileArchInfo, MobileFile
from build_report_inspector.platforms import AndroidUtilities, AppleUtilities
from build_report_inspector.platforms.base import PlatformUtilities
from build_report_inspector.validators import PackageKind, validate_package, verify_build_guid
from build_report_inspector.zip_reader import ZipDirectoryReader

DEFAULT_APPENDIX_DIR = "BuildReports/Mobile"
APPENDIX_SUFFIX = ".json"


@dataclass
class ArchitectureAnalysis:
    """Outcome of MobileArchiveAnalyzer.analyze()."""
    architectures: List[MobileArchInfo] = field(default_factory=list)
    success: bool = False
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: BuildReportInspectorError) -> "ArchitectureAnalysis":
        return cls(architectures=[], success=False, error=str(error))


class MobileArchiveAnalyzer:
    """
    Analyze mobile packages with an injected platform strategy.

    Example:
        analyzer = MobileArchiveAnalyzer(AndroidUtilities())
        result = analyzer.analyze("Builds/game.apk")
        if result.success:
            for arch in result.architectures:
                print(arch.name, arch.download_size)
    """

    def __init__(self, platform: PlatformUtilities,
                 logger: Optional[StructuredLogger] = None):
        self.platform = platform
        self.logger = logger

    def validate(self, path: str) -> PackageKind:
        """
        Check that the package carries a recognized platform marker.

        Raises:
            PlatformMarkerError: If no marker is present
            ArchiveFormatError: If the package is not a ZIP archive
            PackageReadError: If the package cannot be opened
        """
        try:
            with ZipDirectoryReader(path) as reader:
                kind = validate_package(path, reader.entries)
        except (ArchiveFormatError, ValidationError) as e:
            if self.logger:
                self.logger.log_validation(path, False, reason=str(e))
            raise

        if self.logger:
            self.logger.log_validation(path, True, package_kind=kind.value)
        return kind

    def analyze(self, path: str) -> ArchitectureAnalysis:
        """
        Detect architectures and estimate their download sizes.

        Returns:
            ArchitectureAnalysis; ``success`` is False with an ``error``
            message for any format, validation or tool failure

        Raises:
            PackageReadError: If the package cannot be opened at all
        """
        started = time.monotonic()
        if self.logger:
            self.logger.log_analysis_start("mobile", path)

        try:
            self.validate(path)
            architectures = self.platform.get_architecture_info(path)
        except (ArchiveFormatError, ValidationError, ToolExecutionError) as e:
            if self.logger:
                self.logger.log_error("mobile", path, str(e), type(e).__name__, file_path=path)
            return ArchitectureAnalysis.failed(e)

        if self.logger:
            self.logger.log_analysis_complete(
                "mobile", path,
                {"architectures": len(architectures)},
                int((time.monotonic() - started) * 1000),
            )
        return ArchitectureAnalysis(architectures=architectures, success=True)

    def create_appendix(self, path: str) -> Optional[MobileAppendix]:
        """
        Build the appendix for a package.

        Returns:
            MobileAppendix with ``architectures`` set to None if detection
            failed, or None if the package is not a recognized mobile build
        """
        try:
            self.validate(path)
        except (ArchiveFormatError, ValidationError) as e:
            if self.logger:
                self.logger.log_error("mobile", path, str(e), type(e).__name__, file_path=path)
            return None

        with ZipDirectoryReader(path) as reader:
            files = [
                MobileFile(entry.full_name, entry.compressed_size, entry.uncompressed_size)
                for entry in reader.entries
                if entry.uncompressed_size != 0
            ]

        analysis = self.analyze(path)
        return MobileAppendix(
            build_size=os.path.getsize(path),
            files=files,
            architectures=analysis.architectures if analysis.success else None,
        )


class AppendixStore:
    """
    Flat directory of appendices, one ``<guid>.json`` file per build.

    Concurrent writers to the same GUID are not coordinated; the last write wins.
    """

    def __init__(self, directory: Union[str, Path] = DEFAULT_APPENDIX_DIR,
                 logger: Optional[StructuredLogger] = None):
        self.directory = Path(directory)
        self.logger = logger

    def path_for(self, guid: str) -> Path:
        """
        File holding the appendix of ``guid``.

        Raises:
            AppendixStoreError: If the GUID would name a file outside the store
        """
        if not guid or guid in (".", "..") or any(sep in guid for sep in ("/", "\\", "\0")):
            raise AppendixStoreError(str(self.directory), f"invalid build GUID {guid!r}")
        return self.directory / f"{guid}{APPENDIX_SUFFIX}"

    def exists(self, guid: str) -> bool:
        return self.path_for(guid).is_file()

    def save(self, guid: str, appendix: MobileAppendix) -> Path:
        """
        Persist an appendix, replacing any previous one for the GUID.

        Raises:
            AppendixStoreError: If the file cannot be written
        """
        path = self.path_for(guid)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(appendix.to_dict(), f, indent=2)
        except OSError as e:
            raise AppendixStoreError(str(path), str(e))

        if self.logger:
            architectures = len(appendix.architectures) if appendix.architectures else 0
            self.logger.log_appendix_saved(guid, str(path), architectures)
        return path

    def load(self, guid: str) -> Optional[MobileAppendix]:
        """
        Load the appendix for a GUID.

        Returns:
            MobileAppendix, or None if none was stored

        Raises:
            AppendixStoreError: If the stored document is unreadable
        """
        path = self.path_for(guid)
        if not path.is_file():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                appendix = MobileAppendix.from_dict(json.load(f))
        except (OSError, json.JSONDecodeError) as e:
            raise AppendixStoreError(str(path), str(e))
        except (KeyError, TypeError, ValueError) as e:
            raise AppendixStoreError(str(path), f"malformed appendix: {e}")

        if self.logger:
            self.logger.log_appendix_loaded(guid, str(path))
        return appendix


def generate_appendix(analyzer: MobileArchiveAnalyzer, store: AppendixStore,
                      package_path: str, guid: str) -> Optional[MobileAppendix]:
    """Create and persist the appendix for a package; None if it is not a mobile build."""
    appendix = analyzer.create_appendix(package_path)
    if appendix is None:
        return None
    store.save(guid, appendix)
    return appendix


def generate_android_appendix(package_path: str, guid: str,
                              store: Optional[AppendixStore] = None,
                              platform: Optional[PlatformUtilities] = None,
                              logger: Optional[StructuredLogger] = None) -> Optional[MobileAppendix]:
    """Analyze an APK or AAB after an Android build and cache the result."""
    analyzer = MobileArchiveAnalyzer(platform or AndroidUtilities(logger=logger), logger=logger)
    return generate_appendix(analyzer, store or AppendixStore(logger=logger), package_path, guid)


def generate_apple_appendix(package_path: str, guid: str,
                            store: Optional[AppendixStore] = None,
                            platform: Optional[PlatformUtilities] = None,
                            logger: Optional[StructuredLogger] = None) -> Optional[MobileAppendix]:
    """
    Analyze an IPA and cache the result.

    The package must embed the GUID of the build that produced it; a
    missing or different GUID is logged and nothing is stored.
    """
    try:
        verify_build_guid(package_path, guid)
    except (ArchiveFormatError, ValidationError) as e:
        if logger:
            logger.log_error("mobile", package_path, str(e), type(e).__name__, file_path=package_path)
        return None

    analyzer = MobileArchiveAnalyzer(platform or AppleUtilities(logger=logger), logger=logger)
    return generate_appendix(analyzer, store or AppendixStore(logger=logger), package_path, guid)


# ============================================================================
# LIFECYCLE STATUS: Active
# DEPENDENCIES: zip_reader.py, validators.py, platforms/
# TESTS: tests/unit/test_mobile.py
# ============================================================================
