# ============================================================================
# FILE: validators.py
# RELPATH: build_report_inspector/src/build_report_inspector/validators.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Mobile package classification and build GUID checks
# ============================================================================

"""
Validators Module.

Classifies mobile packages by their platform marker entries and checks the
build GUID embedded into Apple builds against the selected build report.
"""

import zipfile
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Union

from build_report_inspector.exceptions import (
    ArchiveFormatError,
    BuildGuidMismatchError,
    MissingBuildGuidError,
    PackageReadError,
    PlatformMarkerError,
)
from build_report_inspector.models import ZipEntry

ANDROID_MANIFEST = "AndroidManifest.xml"
BUNDLE_CONFIG = "BundleConfig.pb"
INFO_PLIST = "Info.plist"
BUILD_GUID_FILE_NAME = "UnityBuildGuid.txt"

PLATFORM_MARKERS = [ANDROID_MANIFEST, BUNDLE_CONFIG, f"Payload/*.app/{INFO_PLIST}"]


class PackageKind(Enum):
    """Recognized mobile package formats."""
    APK = "apk"
    AAB = "aab"
    IPA = "ipa"

    @property
    def is_android(self) -> bool:
        return self in (PackageKind.APK, PackageKind.AAB)


def _is_app_info_plist(full_name: str) -> bool:
    """True for 'Payload/<Name>.app/Info.plist'."""
    parts = full_name.split("/")
    return (
        len(parts) == 3
        and parts[0] == "Payload"
        and parts[1].endswith(".app")
        and parts[2] == INFO_PLIST
    )


def detect_package_kind(entries: Iterable[ZipEntry]) -> Optional[PackageKind]:
    """
    Classify a package from its central directory entries.

    An AAB also carries an AndroidManifest.xml below base/manifest/, so the
    bundle config marker is checked first.

    Returns:
        PackageKind, or None if no marker is present
    """
    names = [entry.full_name for entry in entries]
    if BUNDLE_CONFIG in names:
        return PackageKind.AAB
    if ANDROID_MANIFEST in names:
        return PackageKind.APK
    if any(_is_app_info_plist(name) for name in names):
        return PackageKind.IPA
    return None


def validate_package(path: str, entries: Iterable[ZipEntry]) -> PackageKind:
    """
    Require a recognized platform marker.

    Raises:
        PlatformMarkerError: If the package matches no known format
    """
    kind = detect_package_kind(entries)
    if kind is None:
        raise PlatformMarkerError(path, PLATFORM_MARKERS)
    return kind


def get_android_application_type(path: str, entries: Iterable[ZipEntry]) -> PackageKind:
    """
    Return APK or AAB for an Android package.

    Raises:
        PlatformMarkerError: If neither BundleConfig.pb nor AndroidManifest.xml exists
    """
    names = [entry.full_name for entry in entries]
    if BUNDLE_CONFIG in names:
        return PackageKind.AAB
    if ANDROID_MANIFEST in names:
        return PackageKind.APK
    raise PlatformMarkerError(path, [BUNDLE_CONFIG, ANDROID_MANIFEST])


def read_build_guid(package_path: Union[str, Path]) -> str:
    """
    Read the build GUID written into the package at build time.

    Raises:
        MissingBuildGuidError: If the package has no GUID entry
        ArchiveFormatError: If the package is not a ZIP archive
        PackageReadError: If the package cannot be opened
    """
    path = str(package_path)
    try:
        with zipfile.ZipFile(path) as archive:
            guid_entries: List[str] = [
                name for name in archive.namelist()
                if name.rsplit("/", 1)[-1] == BUILD_GUID_FILE_NAME
            ]
            if not guid_entries:
                raise MissingBuildGuidError(path)
            return archive.read(guid_entries[0]).decode("utf-8", errors="replace").strip()
    except zipfile.BadZipFile as e:
        raise ArchiveFormatError(path, str(e))
    except OSError as e:
        raise PackageReadError(path, str(e))


def verify_build_guid(package_path: Union[str, Path], expected_guid: str) -> str:
    """
    Check that the package was produced by the build with ``expected_guid``.

    Returns:
        The embedded GUID

    Raises:
        BuildGuidMismatchError: If the GUIDs differ
    """
    actual = read_build_guid(package_path)
    if actual != expected_guid:
        raise BuildGuidMismatchError(expected_guid, actual)
    return actual


# ============================================================================
# LIFECYCLE STATUS: Active
# DEPENDENCIES: exceptions.py, models.py
# TESTS: tests/unit/test_validators.py
# ============================================================================
