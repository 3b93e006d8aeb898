# ============================================================================
# FILE: test_models.py
# RELPATH: build_report_inspector/tests/unit/test_models.py
# ============================================================================

"""Unit tests for core data models."""

import pytest

from build_report_inspector.models import (
    BuildStep,
    ExecutableSegments,
    MobileAppendix,
    MobileArchInfo,
    MobileFile,
    OutputFileRecord,
    PackedFile,
    PackedObjectRecord,
    ZipEntry,
    group_records,
)
from conftest import make_record


class TestPackedObjectRecord:
    """Tests for PackedObjectRecord."""

    def test_negative_size_rejected(self):
        """Test packed sizes cannot be negative."""
        with pytest.raises(ValueError, match="packed_size"):
            make_record("CAB-1", "GUID", "Assets/a.png", "Texture2D", -1)

    def test_none_fields_normalized(self):
        """Test None identifiers become empty strings."""
        record = PackedObjectRecord("CAB-1", None, None, "Shader", 5)

        assert record.source_asset_id == ""
        assert record.is_internal

    def test_is_internal(self):
        """Test records with a GUID or a path are traceable."""
        assert not make_record("CAB-1", "GUID", "", "Mesh", 1).is_internal
        assert not make_record("CAB-1", "", "AssetBundle Object", "AssetBundle", 1).is_internal


class TestPackedFile:
    """Tests for PackedFile."""

    @pytest.mark.parametrize("short_path, expected", [
        ("CAB-1.resS", True),
        ("sharedassets0.resource", True),
        ("CAB-1", False),
        ("level0", False),
    ])
    def test_is_resource_file(self, short_path, expected):
        """Test resource file detection by suffix."""
        assert PackedFile(short_path).is_resource_file is expected

    def test_total_size_includes_overhead(self):
        """Test the total adds the header size."""
        packed = PackedFile("CAB-1", overhead=64, contents=[
            make_record("CAB-1", "A", "a", "Mesh", 10),
            make_record("CAB-1", "B", "b", "Mesh", 20),
        ])

        assert packed.get_total_size() == 94


class TestOutputFileRecord:
    """Tests for OutputFileRecord."""

    def test_path_normalized(self):
        """Test backslashes are converted."""
        record = OutputFileRecord("C:\\Build\\scene.bundle", "AssetBundle", 10)

        assert record.path == "C:/Build/scene.bundle"
        assert record.file_name == "scene.bundle"
        assert record.directory == "C:/Build"
        assert record.is_archive

    def test_empty_path_rejected(self):
        """Test an empty path raises ValueError."""
        with pytest.raises(ValueError):
            OutputFileRecord("", "AssetBundle")


class TestBuildStep:
    """Tests for BuildStep."""

    def test_defaults(self):
        """Test a bare step is a top-level step with no messages."""
        step = BuildStep("Build player")

        assert step.depth == 0
        assert step.duration == 0.0
        assert step.messages == []

    @pytest.mark.parametrize("kwargs", [{"depth": -1}, {"duration": -0.5}])
    def test_negative_values_rejected(self, kwargs):
        """Test negative depth or duration raises ValueError."""
        with pytest.raises(ValueError):
            BuildStep("step", **kwargs)


class TestGroupRecords:
    """Tests for group_records."""

    def test_first_seen_order(self):
        """Test groups follow the order files first appear."""
        records = [
            make_record("B", "1", "x", "Mesh", 1),
            make_record("A", "2", "y", "Mesh", 2),
            make_record("B", "3", "z", "Mesh", 3),
        ]

        groups = group_records(records)

        assert [g.short_path for g in groups] == ["B", "A"]
        assert [r.packed_size for r in groups[0].contents] == [1, 3]
        assert groups[0].overhead == 0


class TestMobileModels:
    """Tests for mobile appendix models."""

    def test_zip_entry_name(self):
        """Test the directory part is stripped."""
        assert ZipEntry("lib/arm64-v8a/libunity.so", 10, 20).name == "libunity.so"

    def test_appendix_dict_round_trip(self):
        """Test an Apple appendix survives to_dict/from_dict."""
        appendix = MobileAppendix(
            build_size=5000,
            files=[MobileFile("Payload/Game.app/Game", 100, 300)],
            architectures=[MobileArchInfo("arm64", 4200, ExecutableSegments(1000, 500, 0, 200))],
        )

        restored = MobileAppendix.from_dict(appendix.to_dict())

        assert restored == appendix
        assert restored.get_total_compressed_size() == 100
        assert restored.get_total_uncompressed_size() == 300

    def test_failed_architectures_preserved(self):
        """Test None architectures stay None rather than becoming empty."""
        data = MobileAppendix(build_size=1).to_dict()

        assert data["architectures"] is None
        assert MobileAppendix.from_dict(data).architectures is None

    def test_segments_omitted_when_absent(self):
        """Test Android architectures serialize without segments."""
        assert MobileArchInfo("armeabi-v7a", 10).to_dict() == {
            "name": "armeabi-v7a",
            "downloadSize": 10,
        }
