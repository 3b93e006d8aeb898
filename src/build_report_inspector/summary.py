# ============================================================================
# SOURCEFILE: summary.py
# RELPATH: build_report_inspector/src/build_report_inspector/summary.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Build output statistics per type and per source asset
# ============================================================================

"""
Build Output Statistics.

All sizes are uncompressed; compression of files inside Unity archives is
not accounted for.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from build_report_inspector.models import AssetAggregate, PackedFile, TypeAggregate


@dataclass
class BuildOutputStatistics:
    """
    Summary of the size of the build output.

    Attributes:
        serialized_file_count: Number of serialized files
        resource_file_count: Number of .resS/.resource files
        object_count: Objects inside serialized files
        internal_object_count: Objects that map back to no project asset
        total_serialized_file_size: Serialized files, headers included
        total_header_size: Just the serialized file headers
        total_resource_size: Resource file content
        type_stats: Type name -> TypeAggregate
        asset_stats: Asset key (GUID, or path when the GUID is empty) -> AssetAggregate
    """
    serialized_file_count: int = 0
    resource_file_count: int = 0
    object_count: int = 0
    internal_object_count: int = 0
    total_serialized_file_size: int = 0
    total_header_size: int = 0
    total_resource_size: int = 0
    type_stats: Dict[str, TypeAggregate] = field(default_factory=dict)
    asset_stats: Dict[str, AssetAggregate] = field(default_factory=dict)

    @property
    def generated_file_count(self) -> int:
        return self.serialized_file_count + self.resource_file_count

    @property
    def total_generated_file_size(self) -> int:
        return self.total_serialized_file_size + self.total_resource_size

    def sorted_types(self) -> List[TypeAggregate]:
        return sorted(self.type_stats.values(), key=lambda s: s.size, reverse=True)

    def sorted_assets(self) -> List[AssetAggregate]:
        return sorted(self.asset_stats.values(), key=lambda s: s.size, reverse=True)


def summarize(packed_files: Sequence[PackedFile]) -> BuildOutputStatistics:
    """
    Compute BuildOutputStatistics in a single pass over the packed files.

    Resource file contents count as resources; everything else counts as
    objects of a serialized file.
    """
    stats = BuildOutputStatistics()

    for packed_file in packed_files:
        is_resource_file = packed_file.is_resource_file

        if is_resource_file:
            stats.resource_file_count += 1
            stats.total_resource_size += packed_file.overhead
        else:
            stats.serialized_file_count += 1
            stats.total_serialized_file_size += packed_file.overhead
            stats.total_header_size += packed_file.overhead

        for record in packed_file.contents:
            if is_resource_file:
                stats.total_resource_size += record.packed_size
            else:
                stats.total_serialized_file_size += record.packed_size
                stats.object_count += 1

            type_stats = stats.type_stats.get(record.type)
            if type_stats is None:
                type_stats = TypeAggregate(type=record.type)
                stats.type_stats[record.type] = type_stats
            type_stats.add(record.packed_size, is_resource_file)

            if not record.source_asset_path:
                stats.internal_object_count += 1
                continue

            key = record.source_asset_id or record.source_asset_path
            asset_stats = stats.asset_stats.get(key)
            if asset_stats is None:
                asset_stats = AssetAggregate(
                    source_asset_id=record.source_asset_id,
                    source_asset_path=record.source_asset_path,
                )
                stats.asset_stats[key] = asset_stats
            asset_stats.add(record.packed_size, is_resource_file)

    return stats
