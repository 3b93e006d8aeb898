# ============================================================================
# SOURCEFILE: content.py
# RELPATH: build_report_inspector/src/build_report_inspector/content.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Per-file content aggregation and CSV export of the results
# ============================================================================

"""
Content Aggregation Module.

Collapses the packed object stream of a build report into ContentEntry rows,
one per (type, source asset) pair inside each output file, and totals the
sizes per output file and per type.

Objects of the same type from the same source asset are combined; there is
no use reporting 1,000 individual GameObjects of the same prefab. Very large
builds can still produce many rows, so the number of rows can be capped.
"""

import csv
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from build_report_inspector.archive_mapper import ArchiveMapping
from build_report_inspector.exceptions import CsvExportError
from build_report_inspector.logging import StructuredLogger
from build_report_inspector.models import ContentEntry, PackedFile, group_records

GENERATED_ASSET_PATH = "Generated"
IMPORTER_SUFFIX = "Importer"

CSV_HEADER = [
    "SourceAssetPath",
    "OutputFile",
    "Type",
    "Size",
    "ObjectCount",
    "Extension",
    "ArchivePath",
]


def strip_importer_suffix(type_name: str) -> str:
    """'TextureImporter' -> 'Texture'."""
    if type_name.endswith(IMPORTER_SUFFIX):
        return type_name[: -len(IMPORTER_SUFFIX)]
    return type_name


def _sorted_by_size(totals: Dict[str, int]) -> Dict[str, int]:
    return dict(sorted(totals.items(), key=lambda item: item[1], reverse=True))


@dataclass
class ContentAnalysis:
    """
    Result of a content aggregation pass.

    Attributes:
        entries: ContentEntry rows, largest first
        output_files: Output file -> size (overhead plus entry sizes), largest first
        types: Type -> size, largest first
        truncated: True if the entry cap was reached
        max_entries: Cap that was applied (0 for unlimited)
    """
    entries: List[ContentEntry] = field(default_factory=list)
    output_files: Dict[str, int] = field(default_factory=dict)
    types: Dict[str, int] = field(default_factory=dict)
    truncated: bool = False
    max_entries: int = 0

    def get_total_size(self) -> int:
        return sum(entry.size for entry in self.entries)

    def filter_entries(self, output_file: Optional[str] = None,
                       type_name: Optional[str] = None) -> List[ContentEntry]:
        """Return entries matching an output file and/or type."""
        return [
            entry for entry in self.entries
            if (output_file is None or entry.output_file == output_file)
            and (type_name is None or entry.type == type_name)
        ]

    def save_csv(self, file_path: Union[str, Path]) -> Path:
        return write_content_csv(self.entries, file_path)


class ContentAggregator:
    """Builds ContentAnalysis results from packed files."""

    def __init__(self, logger: Optional[StructuredLogger] = None):
        self.logger = logger

    def analyze(self,
                packed_files: Sequence[PackedFile],
                archive_mapping: Optional[ArchiveMapping] = None,
                max_entries: int = 0) -> ContentAnalysis:
        """
        Aggregate packed files into ContentEntry rows.

        Args:
            packed_files: Packed objects grouped by containing file, in report order
            archive_mapping: Internal-name -> archive-name mapping (empty for Player builds)
            max_entries: Stop once this many entries exist; 0 or less means no cap

        Returns:
            ContentAnalysis with entries and both totals sorted by descending size
        """
        mapping = archive_mapping if archive_mapping is not None else ArchiveMapping()
        cap = max_entries if max_entries and max_entries > 0 else 0

        entries: List[ContentEntry] = []
        output_files: Dict[str, int] = {}
        types: Dict[str, int] = {}

        for packed_file in packed_files:
            archive_name = mapping.get_archive_name(packed_file.short_path)
            if archive_name:
                output_file = archive_name
                internal_archive_path = packed_file.short_path
            else:
                output_file = packed_file.short_path
                internal_archive_path = ""

            output_files[output_file] = output_files.get(output_file, 0) + packed_file.overhead

            for entry in self._coalesce(packed_file, output_file, internal_archive_path):
                entries.append(entry)
                output_files[output_file] += entry.size
                types[entry.type] = types.get(entry.type, 0) + entry.size
                if cap and len(entries) == cap:
                    break

            if cap and len(entries) == cap:
                break

        analysis = ContentAnalysis(
            entries=sorted(entries, key=lambda e: e.size, reverse=True),
            output_files=_sorted_by_size(output_files),
            types=_sorted_by_size(types),
            truncated=bool(cap) and len(entries) == cap,
            max_entries=cap,
        )

        if self.logger is not None and analysis.truncated:
            self.logger.log_warning(
                "Content analysis stopped at the entry limit",
                context={"maxEntries": cap},
            )
        return analysis

    def analyze_records(self, records: Iterable, archive_mapping: Optional[ArchiveMapping] = None,
                        max_entries: int = 0) -> ContentAnalysis:
        """Same as ``analyze`` for a flat PackedObjectRecord stream."""
        return self.analyze(group_records(records), archive_mapping, max_entries)

    @staticmethod
    def _coalesce(packed_file: PackedFile, output_file: str,
                  internal_archive_path: str) -> List[ContentEntry]:
        """Combine objects sharing (type, source asset) within one file."""
        by_key: Dict[Tuple[str, str], ContentEntry] = {}
        for record in packed_file.contents:
            type_name = strip_importer_suffix(record.type)
            key = (type_name, record.source_asset_id)

            existing = by_key.get(key)
            if existing is not None:
                existing.size += record.packed_size
                existing.object_count += 1
                continue

            path = record.source_asset_path or GENERATED_ASSET_PATH
            by_key[key] = ContentEntry(
                path=path,
                size=record.packed_size,
                output_file=output_file,
                internal_archive_path=internal_archive_path,
                type=type_name,
                object_count=1,
                extension=posixpath.splitext(path)[1],
                source_asset_id=record.source_asset_id,
            )
        return list(by_key.values())


# ============================================================================
# CSV export
# ============================================================================

def write_content_csv(entries: Iterable[ContentEntry], file_path: Union[str, Path]) -> Path:
    """
    Write content entries to a CSV file for spreadsheet or database analysis.

    Fields containing a comma, quote or newline are quoted with inner quotes
    doubled; sizes are plain decimal integers.

    Args:
        entries: ContentEntry rows
        file_path: Destination path

    Returns:
        Path of the written file

    Raises:
        CsvExportError: If the file cannot be written
    """
    path = Path(file_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
            writer.writerow(CSV_HEADER)
            for entry in entries:
                writer.writerow([
                    entry.path,
                    entry.output_file,
                    entry.type,
                    str(entry.size),
                    str(entry.object_count),
                    entry.extension,
                    entry.internal_archive_path,
                ])
    except OSError as e:
        raise CsvExportError(str(path), str(e))
    return path


def read_content_csv(file_path: Union[str, Path]) -> List[ContentEntry]:
    """
    Read rows written by ``write_content_csv`` back into ContentEntry objects.

    Raises:
        CsvExportError: If the file is unreadable or its header is unexpected
    """
    path = Path(file_path)
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            rows = list(csv.reader(f))
    except OSError as e:
        raise CsvExportError(str(path), str(e))

    if not rows or rows[0] != CSV_HEADER:
        raise CsvExportError(str(path), "missing or unexpected header row")

    entries = []
    for line_number, row in enumerate(rows[1:], start=2):
        if len(row) != len(CSV_HEADER):
            raise CsvExportError(str(path), f"line {line_number} has {len(row)} fields")
        source_path, output_file, type_name, size, object_count, extension, archive_path = row
        try:
            entries.append(ContentEntry(
                path=source_path,
                size=int(size),
                output_file=output_file,
                internal_archive_path=archive_path,
                type=type_name,
                object_count=int(object_count),
                extension=extension,
            ))
        except ValueError as e:
            raise CsvExportError(str(path), f"line {line_number}: {e}")
    return entries
