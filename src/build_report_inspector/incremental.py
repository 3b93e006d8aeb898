# ============================================================================
# SOURCEFILE: incremental.py
# RELPATH: build_report_inspector/src/build_report_inspector/incremental.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Before/after comparison of incremental AssetBundle builds
# ============================================================================

"""
Incremental AssetBundle Build Comparison.

Take a snapshot of an AssetBundle output folder before an incremental build,
another one after it, and compare the two to see which bundles were rebuilt,
which were reused, and which appeared or disappeared.

Per bundle the snapshot records:

    bundle hash   AssetFileHash from ``<bundle>.manifest``
    CRC           from ``<bundle>.manifest``
    write time    file modification time in nanoseconds
    content hash  MD5 of the bundle file

The bundle list comes from the root manifest ``<build>/<build dir name>.manifest``.

Example:
    before = collect_build_info("Build/Bundles")
    before.save("before.json")
    # ... run the incremental build ...
    changes = compare_builds(BuildSnapshot.load("before.json"),
                             collect_build_info("Build/Bundles"))
"""

import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from build_report_inspector.exceptions import SnapshotError
from build_report_inspector.logging import StructuredLogger

MANIFEST_SUFFIX = ".manifest"
HASH_CHUNK_SIZE = 8192


@dataclass
class BundleBuildInfo:
    """Identity of one built AssetBundle file."""
    bundle_hash: str
    crc: int
    timestamp: int
    content_hash: str

    def __str__(self) -> str:
        written = datetime.fromtimestamp(self.timestamp / 1e9).isoformat(sep=" ")
        return (f"Hash: {self.bundle_hash} Content MD5: {self.content_hash} "
                f"CRC: {self.crc:08X} Write time: {written}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bundleHash": self.bundle_hash,
            "crc": self.crc,
            "timestamp": self.timestamp,
            "contentHash": self.content_hash,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BundleBuildInfo":
        return cls(
            bundle_hash=data["bundleHash"],
            crc=int(data["crc"]),
            timestamp=int(data["timestamp"]),
            content_hash=data["contentHash"],
        )


@dataclass
class BuildSnapshot:
    """
    State of an AssetBundle build folder at one point in time.

    Attributes:
        build_path: Build output folder
        bundles: Bundle path relative to ``build_path`` -> BundleBuildInfo
        problems: Bundles listed by the manifest that could not be read
        manifest_found: False when the folder holds no build yet
    """
    build_path: str
    bundles: Dict[str, BundleBuildInfo] = field(default_factory=dict)
    problems: List[str] = field(default_factory=list)
    manifest_found: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "buildPath": self.build_path,
            "manifestFound": self.manifest_found,
            "bundles": {name: info.to_dict() for name, info in self.bundles.items()},
            "problems": list(self.problems),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuildSnapshot":
        return cls(
            build_path=data["buildPath"],
            bundles={
                name: BundleBuildInfo.from_dict(info)
                for name, info in data.get("bundles", {}).items()
            },
            problems=list(data.get("problems", [])),
            manifest_found=bool(data.get("manifestFound", True)),
        )

    def save(self, path: Union[str, Path]) -> Path:
        """
        Write the snapshot as JSON.

        Raises:
            SnapshotError: If the file cannot be written
        """
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2)
        except OSError as e:
            raise SnapshotError(str(path), str(e))
        return path

    @classmethod
    def load(cls, path: Union[str, Path]) -> "BuildSnapshot":
        """
        Read a snapshot written by save().

        Raises:
            SnapshotError: If the file is missing, unreadable or malformed
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                return cls.from_dict(json.load(f))
        except FileNotFoundError:
            raise SnapshotError(str(path), "file not found")
        except (OSError, json.JSONDecodeError) as e:
            raise SnapshotError(str(path), str(e))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise SnapshotError(str(path), f"malformed snapshot: {e}")


class BundleStatus(Enum):
    """Outcome of an incremental build for one bundle."""
    NOT_REBUILT = "Not rebuilt"
    TIMESTAMP_MATCH_NEW_CONTENT = "Timestamp match with new content"
    NEW_CRC_UNCHANGED_HASH = "New CRC content, but unchanged hash"
    NEW_CONTENT_UNCHANGED_HASH = "New file content, unchanged hash"
    REBUILT_IDENTICAL_CONTENT = "Rebuilt, identical content"
    REBUILT_NEW_HASH_IDENTICAL_CONTENT = "Rebuilt, new hash produced identical content"
    REBUILT_NEW_CONTENT = "Rebuilt, new content"
    BRAND_NEW = "Brand new"
    OBSOLETE = "Obsolete bundle"

    @property
    def severity(self) -> str:
        """'unexpected', 'warning' or '' for normal outcomes."""
        if self is BundleStatus.TIMESTAMP_MATCH_NEW_CONTENT:
            return "unexpected"
        if self in (BundleStatus.NEW_CRC_UNCHANGED_HASH, BundleStatus.NEW_CONTENT_UNCHANGED_HASH):
            return "warning"
        return ""


@dataclass
class BundleChange:
    """Comparison result for one bundle path."""
    path: str
    status: BundleStatus
    current: Optional[BundleBuildInfo] = None
    previous: Optional[BundleBuildInfo] = None

    def describe(self) -> str:
        label = f"[{self.status.value}]"
        if self.status.severity:
            label = f"*{self.status.severity.upper()}* {label}"
        lines = [f"{label}: {self.path}"]
        if self.current is not None and self.previous is not None:
            lines.append(f"\tNow: {self.current}")
            lines.append(f"\tWas: {self.previous}")
        else:
            lines.append(f"\t{self.current or self.previous}")
        return "\n".join(lines)


def file_md5(path: Union[str, Path]) -> str:
    """MD5 of a file's content as lowercase hex."""
    md5 = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            md5.update(chunk)
    return md5.hexdigest().lower()


def _manifest_value(line: str) -> str:
    return line.split(":", 1)[1].strip().strip("'\"")


def read_bundle_names(manifest_path: Path) -> List[str]:
    """Bundle names listed under AssetBundleInfos of a root manifest."""
    names = []
    in_infos = False
    with open(manifest_path, "r", encoding="utf-8") as f:
        for line in f:
            stripped = line.strip()
            if stripped == "AssetBundleInfos:":
                in_infos = True
            elif in_infos and stripped.startswith("Name:"):
                names.append(_manifest_value(stripped))
    return names


def read_bundle_manifest(manifest_path: Path) -> Optional[Dict[str, Any]]:
    """
    CRC and AssetFileHash of one bundle manifest.

    Returns:
        {"crc": int, "hash": str}, or None if the CRC is missing or invalid
    """
    crc = None
    bundle_hash = ""
    section = ""
    with open(manifest_path, "r", encoding="utf-8") as f:
        for line in f:
            stripped = line.strip()
            if not line[:1].isspace() and stripped.startswith("CRC:"):
                value = _manifest_value(stripped)
                if value.isdigit():
                    crc = int(value)
            elif stripped.endswith(":") and " " not in stripped:
                section = stripped[:-1]
            elif section == "AssetFileHash" and stripped.startswith("Hash:") and not bundle_hash:
                bundle_hash = _manifest_value(stripped)

    if crc is None:
        return None
    return {"crc": crc, "hash": bundle_hash}


def collect_build_info(build_path: Union[str, Path],
                       logger: Optional[StructuredLogger] = None) -> BuildSnapshot:
    """
    Snapshot every bundle listed by the root manifest of ``build_path``.

    Bundles that are missing from disk or whose manifest has no CRC are
    recorded in ``problems`` and left out of ``bundles``. A folder without
    a root manifest yields an empty snapshot with ``manifest_found`` False.

    Raises:
        SnapshotError: If a manifest exists but cannot be read
    """
    build_path = Path(build_path)
    snapshot = BuildSnapshot(build_path=str(build_path))
    root_manifest = build_path / f"{build_path.name}{MANIFEST_SUFFIX}"

    if not root_manifest.is_file():
        snapshot.manifest_found = False
        if logger:
            logger.log_warning("No previous build found; all AssetBundles will be rebuilt",
                               {"manifest": str(root_manifest)})
        return snapshot

    try:
        names = read_bundle_names(root_manifest)
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotError(str(root_manifest), str(e))

    for name in names:
        bundle_path = build_path / name
        if not bundle_path.is_file():
            snapshot.problems.append(f"AssetBundle {bundle_path} is missing from disk")
            continue

        manifest_path = bundle_path.with_name(bundle_path.name + MANIFEST_SUFFIX)
        try:
            manifest = read_bundle_manifest(manifest_path) if manifest_path.is_file() else None
            if manifest is None:
                snapshot.problems.append(f"Failed to read CRC from manifest file of {bundle_path}")
                continue

            snapshot.bundles[name] = BundleBuildInfo(
                bundle_hash=manifest["hash"],
                crc=manifest["crc"],
                timestamp=bundle_path.stat().st_mtime_ns,
                content_hash=file_md5(bundle_path),
            )
        except (OSError, UnicodeDecodeError) as e:
            raise SnapshotError(str(bundle_path), str(e))

    if logger:
        for problem in snapshot.problems:
            logger.log_warning(problem, {"build_path": str(build_path)})
    return snapshot


def classify_change(previous: BundleBuildInfo, current: BundleBuildInfo) -> BundleStatus:
    """Decide what an incremental build did to a bundle present before and after."""
    if previous.timestamp == current.timestamp:
        # Same write time: the bundle should be byte-identical
        if previous.crc != current.crc or previous.content_hash != current.content_hash:
            return BundleStatus.TIMESTAMP_MATCH_NEW_CONTENT
        return BundleStatus.NOT_REBUILT

    if previous.bundle_hash == current.bundle_hash:
        if previous.crc != current.crc:
            return BundleStatus.NEW_CRC_UNCHANGED_HASH
        if previous.content_hash != current.content_hash:
            return BundleStatus.NEW_CONTENT_UNCHANGED_HASH
        return BundleStatus.REBUILT_IDENTICAL_CONTENT

    if previous.content_hash == current.content_hash:
        return BundleStatus.REBUILT_NEW_HASH_IDENTICAL_CONTENT
    return BundleStatus.REBUILT_NEW_CONTENT


def compare_builds(previous: BuildSnapshot, current: BuildSnapshot) -> List[BundleChange]:
    """
    Compare two snapshots of the same build folder.

    Returns:
        One change per bundle of ``current`` in its order, followed by the
        bundles only ``previous`` had (obsolete)
    """
    remaining = dict(previous.bundles)
    changes = []

    for name, info in current.bundles.items():
        before = remaining.pop(name, None)
        if before is None:
            changes.append(BundleChange(name, BundleStatus.BRAND_NEW, current=info))
        else:
            changes.append(BundleChange(name, classify_change(before, info),
                                        current=info, previous=before))

    for name, info in remaining.items():
        changes.append(BundleChange(name, BundleStatus.OBSOLETE, previous=info))

    return changes


# ============================================================================
# LIFECYCLE STATUS: Active
# DEPENDENCIES: exceptions.py, logging.py
# TESTS: tests/unit/test_incremental.py
# ============================================================================
