# ============================================================================
# SOURCEFILE: report_loader.py
# RELPATH: build_report_inspector/src/build_report_inspector/report_loader.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Reads JSON exports of build reports into BuildReport objects
# ============================================================================

"""
Build Report Loader.

The build pipeline exports its report as JSON:

    {
      "summary": {"guid": ..., "buildType": "AssetBundle", "platform": ...,
                  "totalSize": ..., "outputPath": ...},
      "files": [{"path": ..., "role": ..., "size": ...}],
      "packedAssets": [
        {"shortPath": "CAB-...", "overhead": 0,
         "contents": [{"sourceAssetGUID": ..., "sourceAssetPath": ...,
                       "type": "Texture2D", "packedSize": 1024}]}
      ],
      "steps": [{"name": ..., "depth": 0, "duration": 1.25,
                 "messages": [{"type": "Warning", "content": ...}]}],
      "scenesUsingAssets": [{"assetPath": ..., "scenePaths": [...]}]
    }

Optional fields default to empty strings or zero.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from build_report_inspector.exceptions import ReportLoadError
from build_report_inspector.models import (
    BUILD_TYPE_ASSET_BUNDLE,
    BuildMessage,
    BuildReport,
    BuildStep,
    OutputFileRecord,
    PackedFile,
    PackedObjectRecord,
    ScenesUsingAsset,
)


def _parse_packed_file(data: Dict[str, Any]) -> PackedFile:
    short_path = data.get("shortPath", "") or ""
    contents = [
        PackedObjectRecord(
            containing_file=short_path,
            source_asset_id=item.get("sourceAssetGUID", "") or "",
            source_asset_path=item.get("sourceAssetPath", "") or "",
            type=item.get("type", "") or "",
            packed_size=int(item.get("packedSize", 0)),
        )
        for item in data.get("contents", [])
    ]
    return PackedFile(short_path=short_path, overhead=int(data.get("overhead", 0)), contents=contents)


def _parse_step(data: Dict[str, Any]) -> BuildStep:
    messages = [
        BuildMessage(type=item.get("type", "Log") or "Log", content=item.get("content", "") or "")
        for item in data.get("messages", []) or []
    ]
    return BuildStep(
        name=data.get("name", "") or "",
        depth=int(data.get("depth", 0)),
        duration=float(data.get("duration", 0)),
        messages=messages,
    )


def _parse_scenes_using_assets(items: Optional[List[Dict[str, Any]]]) -> Optional[List[ScenesUsingAsset]]:
    # Absent or empty means the build did not collect the data
    if not items:
        return None
    return [
        ScenesUsingAsset(
            asset_path=item["assetPath"],
            scene_paths=list(item.get("scenePaths", []) or []),
        )
        for item in items
    ]


def parse_report(data: Dict[str, Any], source: str = "<memory>") -> BuildReport:
    """
    Build a BuildReport from an already decoded JSON document.

    Raises:
        ReportLoadError: If the document does not have the expected shape
    """
    if not isinstance(data, dict):
        raise ReportLoadError(source, "top-level JSON value must be an object")

    try:
        summary = data.get("summary", {}) or {}
        files = [
            OutputFileRecord(
                path=item["path"],
                role=item.get("role", "") or "",
                size=int(item.get("size", 0)),
            )
            for item in data.get("files", [])
        ]
        packed_files = [_parse_packed_file(item) for item in data.get("packedAssets", [])]

        return BuildReport(
            guid=summary.get("guid", "") or "",
            build_type=summary.get("buildType", BUILD_TYPE_ASSET_BUNDLE) or BUILD_TYPE_ASSET_BUNDLE,
            files=files,
            packed_files=packed_files,
            platform=summary.get("platform", "") or "",
            total_size=int(summary.get("totalSize", 0)),
            output_path=summary.get("outputPath", "") or "",
            steps=[_parse_step(item) for item in data.get("steps", []) or []],
            scenes_using_assets=_parse_scenes_using_assets(data.get("scenesUsingAssets")),
        )
    except KeyError as e:
        raise ReportLoadError(source, f"missing required field {e}")
    except (AttributeError, TypeError, ValueError) as e:
        raise ReportLoadError(source, str(e))


def load_report(path: Union[str, Path]) -> BuildReport:
    """
    Load a build report export from disk.

    Raises:
        ReportLoadError: If the file is unreadable, not JSON, or malformed
    """
    source = str(path)
    try:
        with open(source, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ReportLoadError(source, "file not found")
    except OSError as e:
        raise ReportLoadError(source, str(e))
    except json.JSONDecodeError as e:
        raise ReportLoadError(source, f"invalid JSON: {e}")

    return parse_report(data, source)
