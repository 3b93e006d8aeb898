# ============================================================================
# FILE: test_summary.py
# RELPATH: build_report_inspector/tests/unit/test_summary.py
# ============================================================================

"""Unit tests for build output statistics."""

from build_report_inspector.models import PackedFile
from build_report_inspector.summary import summarize

from conftest import make_record


class TestSummarize:
    """Tests for summarize()."""

    def test_file_counts(self, sample_report):
        """Test serialized and resource files are counted separately."""
        stats = summarize(sample_report.packed_files)

        assert stats.serialized_file_count == 2
        assert stats.resource_file_count == 2
        assert stats.generated_file_count == 4

    def test_sizes(self, sample_report):
        """Test serialized, header and resource sizes."""
        stats = summarize(sample_report.packed_files)

        assert stats.total_header_size == 128
        assert stats.total_serialized_file_size == 128 + 270 + 160
        assert stats.total_resource_size == 360
        assert stats.total_generated_file_size == 128 + 270 + 160 + 360

    def test_object_counts(self, sample_report):
        """Test objects in serialized files and internal objects."""
        stats = summarize(sample_report.packed_files)

        assert stats.object_count == 8
        assert stats.internal_object_count == 1

    def test_type_stats_split_objects_and_resources(self, sample_report):
        """Test texture data in .resS files counts as resources."""
        texture = summarize(sample_report.packed_files).type_stats["Texture2D"]

        assert texture.size == 600
        assert texture.object_count == 2
        assert texture.resource_count == 2

    def test_assets_keyed_by_guid(self, sample_report):
        """Test one asset aggregate per GUID across files."""
        stats = summarize(sample_report.packed_files)

        shared = stats.asset_stats["GUID-A"]
        assert shared.source_asset_path == "Assets/Textures/Shared.png"
        assert shared.size == 600

    def test_assets_without_guid_keyed_by_path(self):
        """Test built-in resources without a GUID are grouped by path."""
        packed = [PackedFile("level0", 0, [
            make_record("level0", "", "Resources/unity_builtin_extra", "Shader", 70),
            make_record("level0", "", "Resources/unity_builtin_extra", "Shader", 30),
        ])]

        stats = summarize(packed)
        assert stats.asset_stats["Resources/unity_builtin_extra"].size == 100
        assert stats.internal_object_count == 0

    def test_sorted_views(self, sample_report):
        """Test sorted types and assets are largest first."""
        stats = summarize(sample_report.packed_files)

        assert stats.sorted_types()[0].type == "Texture2D"
        sizes = [a.size for a in stats.sorted_assets()]
        assert sizes == sorted(sizes, reverse=True)

    def test_empty_report(self):
        """Test an empty report summarizes to zeros."""
        stats = summarize([])

        assert stats.generated_file_count == 0
        assert stats.total_generated_file_size == 0
        assert stats.sorted_types() == []
