# ============================================================================
# SOURCEFILE: duplicates.py
# RELPATH: build_report_inspector/src/build_report_inspector/duplicates.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Detection of source assets duplicated across AssetBundles
# ============================================================================

"""
Duplicate Asset Detection.

Only relevant for AssetBundle builds: unless the assignment of assets to
bundles has been tuned, an asset referenced from several bundles is copied
into each of them. Player builds always deduplicate referenced content.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

from build_report_inspector.archive_mapper import ArchiveMapping
from build_report_inspector.logging import StructuredLogger
from build_report_inspector.models import AssetInBundleStats, PackedFile

log = logging.getLogger(__name__)

SCRIPT_EXTENSION = ".cs"
ASSET_BUNDLE_OBJECT_PATH = "AssetBundle Object"
BUILTIN_EXTRA_RESOURCES_PATH = "Resources/unity_builtin_extra"


@dataclass
class DuplicateReport:
    """
    Result of duplicate detection.

    Attributes:
        asset_stats: Source path -> AssetInBundleStats, only assets in more
            than one bundle, largest first
        total_size: Size of all packed content in the report
        duplicate_size: Estimated size of the extra copies; a 1MB asset in
            4 bundles adds 3MB
    """
    asset_stats: Dict[str, AssetInBundleStats] = field(default_factory=dict)
    total_size: int = 0
    duplicate_size: int = 0

    def get_duplicate_count(self) -> int:
        return len(self.asset_stats)


class DuplicateDetector:
    """Finds source assets packed into more than one archive."""

    def __init__(self, skip_scripts: bool = True, logger: Optional[StructuredLogger] = None):
        """
        Args:
            skip_scripts: Ignore MonoScript objects (source path ending in .cs).
                They are small and numerous; the content summary still counts them.
            logger: Optional structured logger
        """
        self.skip_scripts = skip_scripts
        self.logger = logger

    def analyze(self, packed_files: Sequence[PackedFile],
                archive_mapping: ArchiveMapping) -> DuplicateReport:
        """
        Detect duplicated assets.

        Args:
            packed_files: Packed objects grouped by containing file
            archive_mapping: Internal-name -> archive-name mapping

        Returns:
            DuplicateReport
        """
        report = DuplicateReport()
        asset_stats: Dict[str, AssetInBundleStats] = {}

        for packed_file in packed_files:
            archive_name = archive_mapping.get_archive_name(packed_file.short_path)

            for record in packed_file.contents:
                report.total_size += record.packed_size

                if not archive_name:
                    continue

                source_path = record.source_asset_path
                if self.should_skip_asset(source_path):
                    continue

                stats = asset_stats.get(source_path)
                if stats is None:
                    stats = AssetInBundleStats()
                    asset_stats[source_path] = stats
                stats.add(archive_name, record.packed_size)

        shared = [(path, stats) for path, stats in asset_stats.items() if stats.archive_count > 1]
        shared.sort(key=lambda item: item[1].total_size, reverse=True)
        report.asset_stats = dict(shared)
        report.duplicate_size = self.calculate_duplicate_size(report.asset_stats)

        if self.logger is not None and report.asset_stats:
            self.logger.log_warning(
                "Assets duplicated across AssetBundles",
                context={
                    "assets": len(report.asset_stats),
                    "duplicateSize": report.duplicate_size,
                },
            )
        return report

    def should_skip_asset(self, source_path: str) -> bool:
        """Return True for objects excluded from duplicate analysis."""
        if not source_path:
            # Generated or internal object
            return True

        if self.skip_scripts and source_path.endswith(SCRIPT_EXTENSION):
            return True

        if source_path == ASSET_BUNDLE_OBJECT_PATH:
            # Generated per bundle, so never the same content
            return True

        if source_path == BUILTIN_EXTRA_RESOURCES_PATH:
            # Only the referenced built-in shaders are copied into each bundle;
            # duplication cannot be estimated without looking at individual objects
            return True

        return False

    @staticmethod
    def calculate_duplicate_size(asset_stats: Dict[str, AssetInBundleStats]) -> int:
        """
        Estimate bytes saved by moving each duplicated asset into one shared bundle.

        Copies are normally the same size, but assets with sub-assets (e.g. FBX)
        can differ per bundle, so the per-copy size is averaged.
        """
        duplicate_size = 0
        for source_path, stats in asset_stats.items():
            count = stats.archive_count
            if count < 2:
                continue
            total = sum(stats.archive_sizes.values())
            duplicate_size += ((count - 1) * total) // count

            sizes = list(stats.archive_sizes.values())
            if len(set(sizes)) > 1:
                log.debug("Found different size in different bundles %s : %s",
                          source_path, ",".join(str(s) for s in sizes))
        return duplicate_size
