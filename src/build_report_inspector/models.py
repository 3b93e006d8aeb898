# ============================================================================
# SOURCEFILE: models.py
# RELPATH: build_report_inspector/src/build_report_inspector/models.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Core data models for build reports, aggregates and mobile appendices
# ============================================================================

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
import posixpath


# Roles reported for output files by the build pipeline
ROLE_ASSET_BUNDLE = "AssetBundle"
ROLE_MANIFEST_ASSET_BUNDLE = "ManifestAssetBundle"
ROLE_STREAMING_RESOURCE_FILE = "StreamingResourceFile"

ARCHIVE_ROLES = frozenset({ROLE_ASSET_BUNDLE, ROLE_MANIFEST_ASSET_BUNDLE})

BUILD_TYPE_PLAYER = "Player"
BUILD_TYPE_ASSET_BUNDLE = "AssetBundle"

RESOURCE_FILE_SUFFIXES = (".resS", ".resource")


def normalize_path(path: str) -> str:
    """Return ``path`` with Windows separators replaced by forward slashes."""
    return path.replace("\\", "/")


@dataclass
class PackedObjectRecord:
    """
    One object or resource blob packed into an output file.

    Attributes:
        containing_file: Short name of the output (or internal) file
        source_asset_id: Asset GUID; empty for generated/internal objects
        source_asset_path: Project path of the source asset; may be empty
        type: Type name as reported by the build
        packed_size: Size in bytes
    """
    containing_file: str
    source_asset_id: str
    source_asset_path: str
    type: str
    packed_size: int

    def __post_init__(self) -> None:
        if self.source_asset_id is None:
            self.source_asset_id = ""
        if self.source_asset_path is None:
            self.source_asset_path = ""
        if not isinstance(self.packed_size, int) or self.packed_size < 0:
            raise ValueError(
                f"Invalid packed_size: {self.packed_size}. Must be non-negative integer"
            )

    @property
    def is_internal(self) -> bool:
        """True for generated objects that cannot be traced to a project asset."""
        return not self.source_asset_id and not self.source_asset_path


@dataclass
class PackedFile:
    """
    Packed objects of a single output file, in build order.

    Attributes:
        short_path: File name as reported by the build (internal name for bundles)
        overhead: Header size of the file in bytes
        contents: PackedObjectRecord list
    """
    short_path: str
    overhead: int = 0
    contents: List[PackedObjectRecord] = field(default_factory=list)

    @property
    def is_resource_file(self) -> bool:
        """Resource files hold blobs referenced from serialized objects."""
        return self.short_path.endswith(RESOURCE_FILE_SUFFIXES)

    def get_total_size(self) -> int:
        """Return overhead plus the packed size of every object."""
        return self.overhead + sum(r.packed_size for r in self.contents)


@dataclass
class OutputFileRecord:
    """
    One file written by the build.

    Attributes:
        path: Absolute or build-relative path
        role: Role tag (e.g. 'AssetBundle', 'StreamingResourceFile')
        size: File size in bytes
    """
    path: str
    role: str
    size: int = 0

    def __post_init__(self) -> None:
        if not self.path:
            raise ValueError("OutputFileRecord path cannot be empty")
        self.path = normalize_path(self.path)

    @property
    def file_name(self) -> str:
        return posixpath.basename(self.path)

    @property
    def directory(self) -> str:
        return posixpath.dirname(self.path)

    @property
    def is_archive(self) -> bool:
        return self.role in ARCHIVE_ROLES


@dataclass
class BuildMessage:
    """Console message emitted during a build step."""
    type: str
    content: str = ""


@dataclass
class BuildStep:
    """
    One step of the build as reported, in report order.

    Attributes:
        name: Step title
        depth: Nesting level; 0 for top-level steps
        duration: Duration in seconds
        messages: Messages logged while the step ran
    """
    name: str
    depth: int = 0
    duration: float = 0.0
    messages: List[BuildMessage] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.depth < 0:
            raise ValueError(f"Invalid depth: {self.depth}. Must be non-negative")
        if self.duration < 0:
            raise ValueError(f"Invalid duration: {self.duration}. Must be non-negative")


@dataclass
class ScenesUsingAsset:
    """Scenes that reference one asset (detailed build reports only)."""
    asset_path: str
    scene_paths: List[str] = field(default_factory=list)


@dataclass
class BuildReport:
    """
    Structured build report supplied by the build pipeline.

    Attributes:
        guid: Build GUID
        build_type: 'Player' or 'AssetBundle'
        files: Output files in report order
        packed_files: Packed objects grouped by containing file
        platform: Target platform name
        total_size: Total size reported by the build summary
        output_path: Build output location
        steps: Build steps in execution order
        scenes_using_assets: Asset to scene references; None when the report
            was not a detailed build report
    """
    guid: str = ""
    build_type: str = BUILD_TYPE_ASSET_BUNDLE
    files: List[OutputFileRecord] = field(default_factory=list)
    packed_files: List[PackedFile] = field(default_factory=list)
    platform: str = ""
    total_size: int = 0
    output_path: str = ""
    steps: List[BuildStep] = field(default_factory=list)
    scenes_using_assets: Optional[List[ScenesUsingAsset]] = None

    def iter_records(self):
        """Yield every PackedObjectRecord in report order."""
        for packed_file in self.packed_files:
            yield from packed_file.contents

    def get_record_count(self) -> int:
        return sum(len(p.contents) for p in self.packed_files)


def group_records(records) -> List[PackedFile]:
    """
    Group a flat record stream by containing file, keeping first-seen order.

    Args:
        records: Iterable of PackedObjectRecord

    Returns:
        List of PackedFile groups with zero overhead
    """
    groups: Dict[str, PackedFile] = {}
    for record in records:
        group = groups.get(record.containing_file)
        if group is None:
            group = PackedFile(short_path=record.containing_file)
            groups[record.containing_file] = group
        group.contents.append(record)
    return list(groups.values())


# ============================================================================
# Aggregates
# ============================================================================

@dataclass
class TypeAggregate:
    """Size and counts accumulated for one type."""
    type: str
    size: int = 0
    object_count: int = 0
    resource_count: int = 0

    def add(self, packed_size: int, is_resource: bool) -> None:
        self.size += packed_size
        if is_resource:
            self.resource_count += 1
        else:
            self.object_count += 1


@dataclass
class AssetAggregate:
    """Size and counts accumulated for one source asset."""
    source_asset_id: str
    source_asset_path: str
    size: int = 0
    object_count: int = 0
    resource_count: int = 0

    def add(self, packed_size: int, is_resource: bool) -> None:
        self.size += packed_size
        if is_resource:
            self.resource_count += 1
        else:
            self.object_count += 1


@dataclass
class ContentEntry:
    """
    Total size of one type from one source asset within one output file.

    Attributes:
        path: Source asset path ('Generated' for build-generated content)
        size: Summed packed size in bytes
        output_file: Output file name (archive name for AssetBundles)
        internal_archive_path: File name inside the archive; empty for Player builds
        type: Type name with any 'Importer' suffix stripped
        object_count: Number of coalesced objects
        extension: Extension of ``path`` (e.g. '.png')
        source_asset_id: GUID the entry was keyed on
    """
    path: str
    size: int
    output_file: str
    internal_archive_path: str
    type: str
    object_count: int
    extension: str
    source_asset_id: str = ""


@dataclass
class AssetInBundleStats:
    """
    How one source asset is spread over AssetBundles.

    Attributes:
        total_size: Size from this asset across all bundles
        archive_sizes: Bundle name -> size contributed by this asset
    """
    total_size: int = 0
    archive_sizes: Dict[str, int] = field(default_factory=dict)

    def add(self, archive_name: str, packed_size: int) -> None:
        self.total_size += packed_size
        self.archive_sizes[archive_name] = self.archive_sizes.get(archive_name, 0) + packed_size

    @property
    def archive_count(self) -> int:
        return len(self.archive_sizes)


# ============================================================================
# ZIP and mobile models
# ============================================================================

@dataclass(frozen=True)
class ZipEntry:
    """Central directory entry of a ZIP archive."""
    full_name: str
    compressed_size: int
    uncompressed_size: int

    @property
    def name(self) -> str:
        """File name without its directory part."""
        return posixpath.basename(self.full_name)


@dataclass
class MobileFile:
    """A file inside a mobile package."""
    path: str
    compressed_size: int
    uncompressed_size: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "compressedSize": self.compressed_size,
            "uncompressedSize": self.uncompressed_size,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MobileFile":
        return cls(
            path=data["path"],
            compressed_size=int(data["compressedSize"]),
            uncompressed_size=int(data["uncompressedSize"]),
        )


@dataclass
class ExecutableSegments:
    """Mach-O segment sizes of an Apple executable."""
    text_size: int = 0
    data_size: int = 0
    llvm_size: int = 0
    linkedit_size: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "text": self.text_size,
            "data": self.data_size,
            "llvm": self.llvm_size,
            "linkedit": self.linkedit_size,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExecutableSegments":
        return cls(
            text_size=int(data.get("text", 0)),
            data_size=int(data.get("data", 0)),
            llvm_size=int(data.get("llvm", 0)),
            linkedit_size=int(data.get("linkedit", 0)),
        )


@dataclass
class MobileArchInfo:
    """
    One CPU architecture found in a mobile package.

    Attributes:
        name: Architecture name (e.g. 'arm64-v8a', 'arm64')
        download_size: Estimated download size in bytes; 0 when unknown
        segments: Executable segment sizes (Apple only)
    """
    name: str
    download_size: int = 0
    segments: Optional[ExecutableSegments] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "downloadSize": self.download_size}
        if self.segments is not None:
            data["segments"] = self.segments.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MobileArchInfo":
        segments = data.get("segments")
        return cls(
            name=data["name"],
            download_size=int(data.get("downloadSize", 0)),
            segments=ExecutableSegments.from_dict(segments) if segments is not None else None,
        )


@dataclass
class MobileAppendix:
    """
    Cached mobile analysis of one build.

    Attributes:
        build_size: Package size on disk in bytes
        files: Non-empty entries of the package
        architectures: Detected architectures, or None if extraction failed
    """
    build_size: int
    files: List[MobileFile] = field(default_factory=list)
    architectures: Optional[List[MobileArchInfo]] = None

    def get_total_compressed_size(self) -> int:
        return sum(f.compressed_size for f in self.files)

    def get_total_uncompressed_size(self) -> int:
        return sum(f.uncompressed_size for f in self.files)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "buildSize": self.build_size,
            "files": [f.to_dict() for f in self.files],
            "architectures": (
                [a.to_dict() for a in self.architectures]
                if self.architectures is not None else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MobileAppendix":
        architectures = data.get("architectures")
        return cls(
            build_size=int(data["buildSize"]),
            files=[MobileFile.from_dict(f) for f in data.get("files", [])],
            architectures=(
                [MobileArchInfo.from_dict(a) for a in architectures]
                if architectures is not None else None
            ),
        )


# ============================================================================
# LIFECYCLE STATUS: Active
# DEPENDENCIES: None (core data structures)
# TESTS: tests/unit/test_models.py
# ============================================================================
