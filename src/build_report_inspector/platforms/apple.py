# ============================================================================
# FILE: apple.py
# RELPATH: build_report_inspector/src/build_report_inspector/platforms/apple.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: iOS/tvOS (IPA) architecture detection and download sizes
# ============================================================================

"""
Apple Platform Utilities.

The UnityFramework binary is extracted from the IPA; ``file -b`` lists its
architectures and ``size -m -arch <arch>`` its Mach-O segment sizes. The App
Store download size is then estimated as

    whole package - compressed framework + __TEXT + __DATA / 5

an empirical approximation of App Store thinning, not a measurement.
"""

import tempfile
import zipfile
from pathlib import Path
from typing import List

from build_report_inspector.exceptions import (
    ArchitectureDetectionError,
    ArchiveFormatError,
    ToolExecutionError,
)
from build_report_inspector.models import ExecutableSegments, MobileArchInfo
from build_report_inspector.platforms.base import PlatformUtilities
from build_report_inspector.zip_reader import ZipDirectoryReader

UNITY_FRAMEWORK_RELATIVE_PATH = "Frameworks/UnityFramework.framework/UnityFramework"
DEFAULT_SIZE_TOOL = "/usr/bin/size"
DEFAULT_FILE_TOOL = "/usr/bin/file"
SEGMENT_PREFIX = "Segment __"


def estimate_download_size(app_size_without_framework: int, segments: ExecutableSegments) -> int:
    return app_size_without_framework + segments.text_size + segments.data_size // 5


def parse_architectures(file_output: str) -> List[str]:
    """
    Extract architectures from ``file -b`` output.

    The last word of each line naming an ARM slice is used, with
    underscores removed ('arm_v7' -> 'armv7').
    """
    architectures: List[str] = []
    for line in file_output.splitlines():
        line = line.strip()
        if not line:
            continue
        arch = line[line.rfind(" ") + 1:].strip("[]")
        if arch.startswith("arm"):
            arch = arch.replace("_", "")
            if arch not in architectures:
                architectures.append(arch)
    return architectures


def parse_segments(size_output: str) -> ExecutableSegments:
    """
    Parse ``size -m`` output lines such as ``Segment __TEXT: 16384``.

    Raises:
        ValueError: If a segment line does not end in a number
    """
    segments = ExecutableSegments()
    for line in size_output.splitlines():
        if not line.startswith(SEGMENT_PREFIX):
            continue
        segment_size = int(line[line.rfind(" ") + 1:])
        if "__TEXT" in line:
            segments.text_size = segment_size
        elif "__DATA" in line:
            segments.data_size = segment_size
        elif "__LLVM" in line:
            segments.llvm_size = segment_size
        elif "__LINKEDIT" in line:
            segments.linkedit_size = segment_size
    return segments


class AppleUtilities(PlatformUtilities):
    """Architecture and download-size extraction for IPA packages."""

    def __init__(self, size_tool: str = DEFAULT_SIZE_TOOL,
                 file_tool: str = DEFAULT_FILE_TOOL, **kwargs):
        super().__init__(**kwargs)
        self.size_tool = size_tool
        self.file_tool = file_tool

    @property
    def platform_name(self) -> str:
        return "apple"

    def get_architecture_info(self, application_path: str) -> List[MobileArchInfo]:
        with ZipDirectoryReader(application_path) as reader:
            framework = next(
                (e for e in reader.entries if e.full_name.endswith(UNITY_FRAMEWORK_RELATIVE_PATH)),
                None,
            )
            package_size = reader.length
        if framework is None:
            raise ArchitectureDetectionError(
                application_path, "failed to locate UnityFramework file in the build"
            )

        app_size_without_framework = package_size - framework.compressed_size

        with tempfile.TemporaryDirectory() as temporary_folder:
            framework_file = str(Path(temporary_folder) / "UnityFramework")
            self._extract(application_path, framework.full_name, framework_file)

            file_result = self.runner(self.file_tool, ["-b", framework_file]).check()
            architectures = []
            for arch in parse_architectures(file_result.output):
                size_args = ["-m", "-arch", arch, framework_file]
                size_result = self.runner(self.size_tool, size_args).check()
                try:
                    segments = parse_segments(size_result.output)
                except ValueError as e:
                    raise ToolExecutionError(
                        self.size_tool, size_result.exit_code, size_result.output, reason=str(e)
                    )
                architectures.append(MobileArchInfo(
                    name=arch,
                    download_size=estimate_download_size(app_size_without_framework, segments),
                    segments=segments,
                ))

        if not architectures:
            raise ArchitectureDetectionError(
                application_path, "couldn't extract architecture info from the framework"
            )
        return architectures

    @staticmethod
    def _extract(application_path: str, member: str, destination: str) -> None:
        try:
            with zipfile.ZipFile(application_path) as archive:
                with archive.open(member) as source, open(destination, "wb") as target:
                    while True:
                        chunk = source.read(1024 * 1024)
                        if not chunk:
                            break
                        target.write(chunk)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, KeyError) as e:
            raise ArchiveFormatError(application_path, f"cannot extract {member}: {e}")
