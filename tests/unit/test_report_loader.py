# ============================================================================
# FILE: test_report_loader.py
# RELPATH: build_report_inspector/tests/unit/test_report_loader.py
# ============================================================================

"""Unit tests for reading build report exports."""

import json

import pytest

from build_report_inspector.exceptions import ReportLoadError
from build_report_inspector.report_loader import load_report, parse_report


class TestLoadReport:
    """Tests for load_report."""

    def test_summary_fields(self, report_file):
        """Test the summary section is read."""
        report = load_report(report_file)

        assert report.guid == "0123456789abcdef0123456789abcdef"
        assert report.build_type == "AssetBundle"
        assert report.platform == "Android"
        assert report.total_size == 4096

    def test_files_and_packed_assets(self, report_file):
        """Test output files and packed objects keep report order."""
        report = load_report(report_file)

        assert len(report.files) == 7
        assert report.files[2].is_archive
        assert [p.short_path for p in report.packed_files] == [
            "CAB-scene1", "CAB-scene1.resS", "CAB-scene2", "CAB-scene2.resS"
        ]
        assert report.get_record_count() == 10
        first = report.packed_files[0].contents[0]
        assert first.containing_file == "CAB-scene1"
        assert first.source_asset_id == "GUID-A"
        assert first.packed_size == 120

    def test_optional_fields_default(self):
        """Test missing optional fields become empty or zero."""
        report = parse_report({
            "files": [{"path": "Build/level0"}],
            "packedAssets": [{"shortPath": "level0", "contents": [{"type": "Mesh"}]}],
        })

        assert report.guid == ""
        assert report.build_type == "AssetBundle"
        assert report.files[0].size == 0
        record = report.packed_files[0].contents[0]
        assert record.source_asset_path == ""
        assert record.packed_size == 0

    def test_null_strings_become_empty(self):
        """Test JSON nulls for text fields are treated as empty."""
        report = parse_report({"packedAssets": [{
            "shortPath": "CAB-1",
            "contents": [{"sourceAssetGUID": None, "sourceAssetPath": None,
                          "type": "Shader", "packedSize": 4}],
        }]})

        assert report.packed_files[0].contents[0].is_internal

    def test_missing_file(self, temp_dir):
        """Test missing exports raise ReportLoadError."""
        with pytest.raises(ReportLoadError, match="not found"):
            load_report(temp_dir / "missing.json")

    def test_invalid_json(self, temp_dir):
        """Test malformed JSON raises ReportLoadError."""
        path = temp_dir / "bad.json"
        path.write_text("{", encoding="utf-8")

        with pytest.raises(ReportLoadError, match="invalid JSON"):
            load_report(path)

    def test_file_without_path(self):
        """Test output files require a path."""
        with pytest.raises(ReportLoadError, match="path"):
            parse_report({"files": [{"role": "AssetBundle"}]})

    def test_negative_size_rejected(self):
        """Test negative packed sizes are refused."""
        with pytest.raises(ReportLoadError):
            parse_report({"packedAssets": [{"shortPath": "a", "contents": [{"packedSize": -1}]}]})

    def test_top_level_must_be_object(self, temp_dir):
        """Test a JSON array is rejected."""
        path = temp_dir / "list.json"
        path.write_text(json.dumps([1, 2]), encoding="utf-8")

        with pytest.raises(ReportLoadError):
            load_report(path)


class TestStepsAndScenes:
    """Tests for the build step and scene usage sections."""

    def test_steps_read_in_order(self, report_file):
        """Test steps keep depth, duration and messages."""
        report = load_report(report_file)

        assert [s.name for s in report.steps] == [
            "Build AssetBundles", "Compile scripts", "Write AssetBundles", "Compress scene2.bundle"
        ]
        assert report.steps[3].depth == 3
        assert report.steps[1].duration == 1.25
        assert report.steps[1].messages[0].type == "Warning"
        assert report.steps[1].messages[0].content == "Obsolete API used"
        assert report.steps[0].messages == []

    def test_message_type_defaults_to_log(self):
        """Test a message without a type is a plain log message."""
        report = parse_report({"steps": [{"name": "a", "messages": [{"content": "hello"}]}]})

        assert report.steps[0].messages[0].type == "Log"

    def test_negative_depth_rejected(self):
        """Test a negative step depth is refused."""
        with pytest.raises(ReportLoadError, match="depth"):
            parse_report({"steps": [{"name": "a", "depth": -1}]})

    def test_scenes_using_assets(self, report_file):
        """Test scene usage entries are read."""
        report = load_report(report_file)

        assert report.scenes_using_assets[0].asset_path == "Assets/Textures/Shared.png"
        assert report.scenes_using_assets[0].scene_paths == [
            "Assets/Scenes/Scene1.unity", "Assets/Scenes/Scene2.unity"
        ]

    @pytest.mark.parametrize("data", [{}, {"scenesUsingAssets": []}, {"scenesUsingAssets": None}])
    def test_scenes_absent(self, data):
        """Test reports without scene usage data leave it unset."""
        assert parse_report(data).scenes_using_assets is None

    def test_scene_entry_without_asset_path(self):
        """Test scene usage entries require an asset path."""
        with pytest.raises(ReportLoadError, match="assetPath"):
            parse_report({"scenesUsingAssets": [{"scenePaths": ["a.unity"]}]})
