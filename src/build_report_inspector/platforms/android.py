# ============================================================================
# FILE: android.py
# RELPATH: build_report_inspector/src/build_report_inspector/platforms/android.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Android (APK/AAB) architecture detection and download sizes
# ============================================================================

"""
Android Platform Utilities.

Architectures are found from the ``lib/<abi>/libunity.so`` entries of the
package. Download sizes come from external tools:

- APK: ``apkanalyzer apk download-size <apk>`` prints one number, used for
  every architecture.
- AAB: ``bundletool build-apks`` followed by
  ``bundletool get-size total --dimensions=ABI`` prints CSV lines such as
  ``,arm64-v8a,1000,1200``; the last field is taken as the download size.
"""

import os
import posixpath
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

from build_report_inspector.exceptions import (
    ArchitectureDetectionError,
    ToolExecutionError,
    ToolNotFoundError,
)
from build_report_inspector.models import MobileArchInfo
from build_report_inspector.platforms.base import PlatformUtilities
from build_report_inspector.validators import PackageKind, get_android_application_type
from build_report_inspector.zip_reader import ZipDirectoryReader

NATIVE_LIBRARY_MARKER = "libunity.so"
IS_WINDOWS = os.name == "nt"


@dataclass
class AndroidToolPaths:
    """
    Locations of the JDK, Android SDK and bundletool.

    Empty values fall back to the JAVA_HOME, ANDROID_SDK_ROOT and
    ANDROID_HOME environment variables.
    """
    java_home: str = ""
    android_sdk_root: str = ""
    bundletool_path: str = ""
    android_tools_dir: str = ""

    @classmethod
    def from_config(cls, config: Any) -> "AndroidToolPaths":
        """Read the ``tools.*`` keys of a ConfigManager."""
        return cls(
            java_home=config.get("tools.java_home", "") or "",
            android_sdk_root=config.get("tools.android_sdk_root", "") or "",
            bundletool_path=config.get("tools.bundletool_path", "") or "",
            android_tools_dir=config.get("tools.android_tools_dir", "") or "",
        )

    def java_executable(self) -> str:
        java_home = self.java_home or os.environ.get("JAVA_HOME", "")
        if not java_home or not Path(java_home).is_dir():
            raise ToolNotFoundError("java", [java_home or "$JAVA_HOME"])

        java = Path(java_home) / "bin" / ("java.exe" if IS_WINDOWS else "java")
        if not java.is_file():
            raise ToolNotFoundError("java", [str(java)])
        return str(java)

    def bundletool(self) -> str:
        if self.bundletool_path:
            if Path(self.bundletool_path).is_file():
                return self.bundletool_path
            raise ToolNotFoundError("bundletool", [self.bundletool_path])

        if self.android_tools_dir:
            matches = sorted(Path(self.android_tools_dir).glob("bundletool*.jar"))
            if len(matches) == 1:
                return str(matches[0])
        raise ToolNotFoundError(
            "bundletool", [str(Path(self.android_tools_dir or ".") / "bundletool*.jar")]
        )

    def apkanalyzer(self) -> str:
        sdk_root = (
            self.android_sdk_root
            or os.environ.get("ANDROID_SDK_ROOT", "")
            or os.environ.get("ANDROID_HOME", "")
        )
        if not sdk_root or not Path(sdk_root).is_dir():
            raise ToolNotFoundError("apkanalyzer", [sdk_root or "$ANDROID_SDK_ROOT"])

        name = "apkanalyzer.bat" if IS_WINDOWS else "apkanalyzer"
        candidates = [
            Path(sdk_root) / "cmdline-tools" / "latest" / "bin" / name,
            Path(sdk_root) / "tools" / "bin" / name,
        ]
        for candidate in candidates:
            if candidate.is_file():
                return str(candidate)
        raise ToolNotFoundError("apkanalyzer", [str(c) for c in candidates])


class AndroidUtilities(PlatformUtilities):
    """Architecture and download-size extraction for APK and AAB packages."""

    def __init__(self, tool_paths: Optional[AndroidToolPaths] = None, **kwargs):
        super().__init__(**kwargs)
        self.tool_paths = tool_paths or AndroidToolPaths()

    @property
    def platform_name(self) -> str:
        return "android"

    def get_architecture_info(self, application_path: str) -> List[MobileArchInfo]:
        with ZipDirectoryReader(application_path) as reader:
            entries = reader.entries

        architectures = self.find_architectures(entries)
        if not architectures:
            raise ArchitectureDetectionError(
                application_path, f"no {NATIVE_LIBRARY_MARKER} found in the package"
            )

        application_type = get_android_application_type(application_path, entries)
        if application_type == PackageKind.AAB:
            self.get_aab_download_sizes(application_path, architectures)
        else:
            download_size = self.get_apk_download_size(application_path)
            for arch in architectures:
                arch.download_size = download_size

        return architectures

    @staticmethod
    def find_architectures(entries) -> List[MobileArchInfo]:
        """One MobileArchInfo per directory holding the native engine library."""
        names: List[str] = []
        for entry in entries:
            if entry.name != NATIVE_LIBRARY_MARKER:
                continue
            architecture = posixpath.basename(posixpath.dirname(entry.full_name))
            if architecture and architecture not in names:
                names.append(architecture)
        return [MobileArchInfo(name) for name in names]

    def get_aab_download_sizes(self, application_path: str,
                               architectures: List[MobileArchInfo]) -> None:
        """
        Fill in per-ABI download sizes of an app bundle using bundletool.

        Raises:
            ToolExecutionError: If bundletool fails
            ArchitectureDetectionError: If bundletool reports other ABIs than the package
        """
        java = self.tool_paths.java_executable()
        bundletool = self.tool_paths.bundletool()

        with tempfile.TemporaryDirectory() as temporary_folder:
            apks_path = str(Path(temporary_folder) / f"{Path(application_path).stem}.apks")

            self.runner(java, [
                "-jar", bundletool, "build-apks",
                "--bundle", application_path,
                "--output", apks_path,
            ]).check()

            output = self.runner(java, [
                "-jar", bundletool, "get-size", "total",
                "--apks", apks_path,
                "--dimensions=ABI",
            ]).check().output

        if not all(arch.name in output for arch in architectures):
            raise ArchitectureDetectionError(
                application_path,
                "mismatch between architectures found in build and reported by bundletool"
            )

        for line in output.splitlines():
            fields = [f.strip() for f in line.split(",")]
            for arch in architectures:
                if arch.name not in fields:
                    continue
                try:
                    arch.download_size = int(fields[-1])
                except ValueError:
                    continue

    def get_apk_download_size(self, application_path: str) -> int:
        """
        Query apkanalyzer for the download size of an APK.

        Raises:
            ToolExecutionError: If apkanalyzer fails or prints something unexpected
        """
        apkanalyzer = self.tool_paths.apkanalyzer()
        result = self.runner(apkanalyzer, ["apk", "download-size", application_path]).check()
        try:
            return int(result.output.strip())
        except ValueError:
            raise ToolExecutionError(
                apkanalyzer, result.exit_code, result.output,
                reason="failed to estimate the apk size"
            )
