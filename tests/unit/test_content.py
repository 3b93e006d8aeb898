# ============================================================================
# FILE: test_content.py
# RELPATH: build_report_inspector/tests/unit/test_content.py
# ============================================================================

"""Unit tests for content aggregation and CSV export."""

import pytest

from build_report_inspector.archive_mapper import ArchiveMapping, build_mapping_for_report
from build_report_inspector.content import (
    CSV_HEADER,
    ContentAggregator,
    read_content_csv,
    strip_importer_suffix,
    write_content_csv,
)
from build_report_inspector.exceptions import CsvExportError
from build_report_inspector.models import ContentEntry, PackedFile

from conftest import make_record


def all_records(report):
    return list(report.iter_records())


class TestCoalescing:
    """Tests for combining objects of one source asset."""

    def test_same_asset_and_type_combined(self):
        """Test three texture records in one bundle become one entry."""
        records = [
            make_record("CAB-xxx.resource", "GUID-A", "Assets/Music.ogg", "Texture2D", size)
            for size in (100, 200, 50)
        ]
        mapping = ArchiveMapping({"CAB-xxx.resource": "audio.bundle"})

        analysis = ContentAggregator().analyze_records(records, mapping)

        assert len(analysis.entries) == 1
        entry = analysis.entries[0]
        assert entry.size == 350
        assert entry.object_count == 3
        assert entry.output_file == "audio.bundle"
        assert entry.internal_archive_path == "CAB-xxx.resource"
        assert entry.extension == ".ogg"

    def test_no_duplicate_keys_per_output_file(self, sample_report):
        """Test each (type, asset) pair appears once per output file."""
        mapping = build_mapping_for_report(sample_report)
        analysis = ContentAggregator().analyze(sample_report.packed_files, mapping)

        keys = [(e.output_file, e.internal_archive_path, e.type, e.source_asset_id)
                for e in analysis.entries]
        assert len(keys) == len(set(keys))

    def test_importer_suffix_stripped_before_grouping(self):
        """Test 'TextureImporter' and 'Texture' group together."""
        records = [
            make_record("level0", "GUID-T", "Assets/Logo.png", "TextureImporter", 10),
            make_record("level0", "GUID-T", "Assets/Logo.png", "Texture", 5),
        ]

        analysis = ContentAggregator().analyze_records(records)

        assert [(e.type, e.size) for e in analysis.entries] == [("Texture", 15)]

    def test_generated_content(self):
        """Test objects without a source path are reported as Generated."""
        records = [make_record("CAB-1", "", "", "PreloadData", 12)]

        entry = ContentAggregator().analyze_records(records).entries[0]

        assert entry.path == "Generated"
        assert entry.extension == ""

    def test_strip_importer_suffix(self):
        """Test only a trailing 'Importer' is removed."""
        assert strip_importer_suffix("AudioImporter") == "Audio"
        assert strip_importer_suffix("Importer") == ""
        assert strip_importer_suffix("ImporterSettings") == "ImporterSettings"


class TestTotals:
    """Tests for conservation and sorting."""

    def test_sizes_conserved_without_cap(self, sample_report):
        """Test entry sizes add up to the packed sizes of every record."""
        records = all_records(sample_report)
        analysis = ContentAggregator().analyze(
            sample_report.packed_files, build_mapping_for_report(sample_report),
            max_entries=len(records) + 100,
        )

        assert analysis.get_total_size() == sum(r.packed_size for r in records)
        assert sum(analysis.types.values()) == sum(r.packed_size for r in records)
        assert not analysis.truncated

    def test_output_file_totals_include_overhead(self, sample_report):
        """Test per-file totals add header overhead to entry sizes."""
        analysis = ContentAggregator().analyze(
            sample_report.packed_files, build_mapping_for_report(sample_report)
        )

        # scene1: 64 overhead + 270 objects + 180 resource data
        assert analysis.output_files["scene1.bundle"] == 64 + 270 + 180
        assert analysis.output_files["scene2.bundle"] == 64 + 160 + 180

    def test_results_sorted_descending(self, sample_report):
        """Test entries, files and types are largest first."""
        analysis = ContentAggregator().analyze(
            sample_report.packed_files, build_mapping_for_report(sample_report)
        )

        sizes = [e.size for e in analysis.entries]
        assert sizes == sorted(sizes, reverse=True)
        assert list(analysis.types.values()) == sorted(analysis.types.values(), reverse=True)
        assert list(analysis.types)[0] == "Texture2D"

    def test_player_build_uses_file_names(self, player_report):
        """Test files are reported under their own name without an archive."""
        analysis = ContentAggregator().analyze(player_report.packed_files, ArchiveMapping())

        assert set(analysis.output_files) == {"level0", "sharedassets0.assets"}
        assert all(e.internal_archive_path == "" for e in analysis.entries)

    def test_filter_entries(self, sample_report):
        """Test filtering by output file and type."""
        analysis = ContentAggregator().analyze(
            sample_report.packed_files, build_mapping_for_report(sample_report)
        )

        textures = analysis.filter_entries(output_file="scene2.bundle", type_name="Texture2D")
        assert sum(e.size for e in textures) == 300


class TestEntryCap:
    """Tests for max_entries."""

    def test_stops_at_cap(self):
        """Test twenty distinct assets over two files stop at five entries."""
        packed_files = [
            PackedFile(name, 0, [
                make_record(name, f"GUID-{name}-{i}", f"Assets/{name}/{i}.asset", "Mesh", 10 + i)
                for i in range(10)
            ])
            for name in ("CAB-a", "CAB-b")
        ]

        analysis = ContentAggregator().analyze(packed_files, max_entries=5)

        assert len(analysis.entries) == 5
        assert analysis.truncated
        assert analysis.max_entries == 5

    def test_zero_means_unlimited(self, sample_report):
        """Test a cap of 0 keeps every entry."""
        analysis = ContentAggregator().analyze(sample_report.packed_files, max_entries=0)

        assert not analysis.truncated
        assert analysis.max_entries == 0

    def test_truncation_logged(self, sample_report, logger):
        """Test reaching the cap writes a warning."""
        ContentAggregator(logger=logger).analyze(sample_report.packed_files, max_entries=1)

        events = [entry["event"] for entry in logger.get_session_logs()]
        assert "warning" in events


class TestCsv:
    """Tests for CSV export."""

    def test_header_and_line_endings(self, temp_dir, sample_report):
        """Test the header row and CRLF terminators."""
        analysis = ContentAggregator().analyze(
            sample_report.packed_files, build_mapping_for_report(sample_report)
        )
        path = analysis.save_csv(temp_dir / "content.csv")

        raw = path.read_bytes().decode("utf-8")
        assert raw.startswith(",".join(CSV_HEADER) + "\r\n")
        assert raw.count("\r\n") == len(analysis.entries) + 1

    def test_comma_in_path_round_trips(self, temp_dir):
        """Test a path containing a comma is quoted and read back unchanged."""
        entry = ContentEntry(
            path="Assets/My, Asset.png", size=2048, output_file="ui.bundle",
            internal_archive_path="CAB-ui", type="Texture2D", object_count=2, extension=".png",
        )
        path = write_content_csv([entry], temp_dir / "quoted.csv")

        assert '"Assets/My, Asset.png"' in path.read_text(encoding="utf-8")
        (loaded,) = read_content_csv(path)
        assert loaded.path == "Assets/My, Asset.png"
        assert loaded.size == 2048
        assert loaded.internal_archive_path == "CAB-ui"

    def test_quotes_doubled(self, temp_dir):
        """Test embedded quotes are escaped by doubling."""
        entry = ContentEntry('Assets/"Hero".fbx', 1, "a", "", "Mesh", 1, ".fbx")
        path = write_content_csv([entry], temp_dir / "q.csv")

        assert '"Assets/""Hero"".fbx"' in path.read_text(encoding="utf-8")

    def test_missing_parent_directory_created(self, temp_dir):
        """Test the destination directory is created when absent."""
        path = write_content_csv([], temp_dir / "out" / "nested" / "content.csv")

        assert path.exists()
        assert read_content_csv(path) == []

    def test_unwritable_destination(self, temp_dir):
        """Test write failures raise CsvExportError."""
        blocker = temp_dir / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")

        with pytest.raises(CsvExportError):
            write_content_csv([], blocker / "out.csv")

    def test_read_rejects_foreign_header(self, temp_dir):
        """Test files with another header are refused."""
        path = temp_dir / "other.csv"
        path.write_text("a,b,c\r\n1,2,3\r\n", encoding="utf-8")

        with pytest.raises(CsvExportError, match="header"):
            read_content_csv(path)
