# ============================================================================
# FILE: conftest.py
# RELPATH: build_report_inspector/tests/conftest.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Pytest fixtures for the Build Report Inspector test suite
# ============================================================================

"""
Pytest configuration and shared fixtures.

Provides sample build reports, synthetic ZIP packages, temporary
directories and fake tool runners. External tools are never executed.
"""

import json
import shutil
import tempfile
import zipfile
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from build_report_inspector.logging import StructuredLogger
from build_report_inspector.models import (
    BuildReport,
    OutputFileRecord,
    PackedFile,
    PackedObjectRecord,
)
from build_report_inspector.report_loader import parse_report
from build_report_inspector.tools import ToolResult

BUILD_DIR = "C:/Src/TestProject/Build/AssetBundles"


# ============================================================================
# Filesystem Fixtures
# ============================================================================

@pytest.fixture
def temp_dir():
    """Create a temporary directory for test file operations."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def logger(temp_dir):
    """StructuredLogger writing into the temporary directory."""
    return StructuredLogger(log_dir=str(temp_dir / "logs"), session_id="test-session")


# ============================================================================
# Build Report Fixtures
# ============================================================================

def make_record(containing_file: str, guid: str, path: str, type_name: str,
                size: int) -> PackedObjectRecord:
    return PackedObjectRecord(
        containing_file=containing_file,
        source_asset_id=guid,
        source_asset_path=path,
        type=type_name,
        packed_size=size,
    )


@pytest.fixture
def sample_report_data() -> Dict:
    """
    AssetBundle build with two scene bundles sharing a texture.

    scene1.bundle/CAB-scene1        serialized objects
    scene1.bundle/CAB-scene1.resS   texture data
    scene2.bundle/CAB-scene2        serialized objects
    scene2.bundle/CAB-scene2.resS   texture data
    """
    return {
        "summary": {
            "guid": "0123456789abcdef0123456789abcdef",
            "buildType": "AssetBundle",
            "platform": "Android",
            "totalSize": 4096,
            "outputPath": BUILD_DIR,
        },
        "files": [
            {"path": f"{BUILD_DIR}/scene1.bundle/CAB-scene1", "role": "SharedAssets", "size": 800},
            {"path": f"{BUILD_DIR}/scene1.bundle/CAB-scene1.resS", "role": "StreamingResourceFile", "size": 1000},
            {"path": f"{BUILD_DIR}/scene1.bundle", "role": "AssetBundle", "size": 1500},
            {"path": f"{BUILD_DIR}/scene2.bundle/CAB-scene2", "role": "SharedAssets", "size": 700},
            {"path": f"{BUILD_DIR}/scene2.bundle/CAB-scene2.resS", "role": "StreamingResourceFile", "size": 1000},
            {"path": f"{BUILD_DIR}/scene2.bundle", "role": "AssetBundle", "size": 1400},
            {"path": f"{BUILD_DIR}/AssetBundles.manifest", "role": "ManifestAssetBundle", "size": 96},
        ],
        "packedAssets": [
            {
                "shortPath": "CAB-scene1",
                "overhead": 64,
                "contents": [
                    {"sourceAssetGUID": "GUID-A", "sourceAssetPath": "Assets/Textures/Shared.png",
                     "type": "Texture2D", "packedSize": 120},
                    {"sourceAssetGUID": "GUID-S1", "sourceAssetPath": "Assets/Scenes/Scene1.unity",
                     "type": "GameObject", "packedSize": 40},
                    {"sourceAssetGUID": "GUID-S1", "sourceAssetPath": "Assets/Scenes/Scene1.unity",
                     "type": "GameObject", "packedSize": 60},
                    {"sourceAssetGUID": "GUID-M", "sourceAssetPath": "Assets/Scripts/Mover.cs",
                     "type": "MonoScript", "packedSize": 30},
                    {"sourceAssetGUID": "", "sourceAssetPath": "AssetBundle Object",
                     "type": "AssetBundle", "packedSize": 20},
                ],
            },
            {
                "shortPath": "CAB-scene1.resS",
                "overhead": 0,
                "contents": [
                    {"sourceAssetGUID": "GUID-A", "sourceAssetPath": "Assets/Textures/Shared.png",
                     "type": "Texture2D", "packedSize": 180},
                ],
            },
            {
                "shortPath": "CAB-scene2",
                "overhead": 64,
                "contents": [
                    {"sourceAssetGUID": "GUID-A", "sourceAssetPath": "Assets/Textures/Shared.png",
                     "type": "Texture2D", "packedSize": 120},
                    {"sourceAssetGUID": "GUID-M", "sourceAssetPath": "Assets/Scripts/Mover.cs",
                     "type": "MonoScript", "packedSize": 30},
                    {"sourceAssetGUID": "", "sourceAssetPath": "",
                     "type": "PreloadData", "packedSize": 10},
                ],
            },
            {
                "shortPath": "CAB-scene2.resS",
                "overhead": 0,
                "contents": [
                    {"sourceAssetGUID": "GUID-A", "sourceAssetPath": "Assets/Textures/Shared.png",
                     "type": "Texture2D", "packedSize": 180},
                ],
            },
        ],
        "steps": [
            {"name": "Build AssetBundles", "depth": 0, "duration": 3.5},
            {"name": "Compile scripts", "depth": 1, "duration": 1.25,
             "messages": [{"type": "Warning", "content": "Obsolete API used"}]},
            {"name": "Write AssetBundles", "depth": 1, "duration": 2.0},
            {"name": "Compress scene2.bundle", "depth": 3, "duration": 0.5,
             "messages": [{"type": "Error", "content": "Disk full"}]},
        ],
        "scenesUsingAssets": [
            {"assetPath": "Assets/Textures/Shared.png",
             "scenePaths": ["Assets/Scenes/Scene1.unity", "Assets/Scenes/Scene2.unity"]},
            {"assetPath": "Assets/Scripts/Mover.cs",
             "scenePaths": ["Assets/Scenes/Scene1.unity"]},
        ],
    }


@pytest.fixture
def sample_report(sample_report_data) -> BuildReport:
    return parse_report(sample_report_data)


@pytest.fixture
def report_file(temp_dir, sample_report_data) -> Path:
    """Sample report written as a JSON export."""
    path = temp_dir / "report.json"
    path.write_text(json.dumps(sample_report_data), encoding="utf-8")
    return path


@pytest.fixture
def player_report() -> BuildReport:
    """Player build: no archives, content files reported by name."""
    return BuildReport(
        guid="feedfacefeedfacefeedfacefeedface",
        build_type="Player",
        files=[
            OutputFileRecord("C:/Build/Game_Data/level0", "Scene", 500),
            OutputFileRecord("C:/Build/Game_Data/sharedassets0.assets", "SharedAssets", 900),
        ],
        packed_files=[
            PackedFile("level0", 32, [
                make_record("level0", "GUID-L", "Assets/Scenes/Main.unity", "GameObject", 200),
            ]),
            PackedFile("sharedassets0.assets", 32, [
                make_record("sharedassets0.assets", "GUID-T", "Assets/Logo.png", "TextureImporter", 300),
            ]),
        ],
    )


# ============================================================================
# ZIP Package Fixtures
# ============================================================================

def write_zip(path: Path, members: Dict[str, bytes],
              compression: int = zipfile.ZIP_DEFLATED) -> Path:
    """Write a ZIP archive with the given member names and contents, in order."""
    with zipfile.ZipFile(path, "w", compression=compression) as archive:
        for name, data in members.items():
            archive.writestr(name, data)
    return path


@pytest.fixture
def zip_builder(temp_dir) -> Callable[..., Path]:
    """Factory writing synthetic packages into the temporary directory."""
    def build(name: str, members: Dict[str, bytes],
              compression: int = zipfile.ZIP_DEFLATED) -> Path:
        return write_zip(temp_dir / name, members, compression)
    return build


@pytest.fixture
def apk_package(zip_builder) -> Path:
    return zip_builder("game.apk", {
        "AndroidManifest.xml": b"<manifest/>" * 10,
        "classes.dex": b"\x00dex" * 100,
        "lib/arm64-v8a/libunity.so": b"\x7fELF" + b"\x01" * 500,
        "lib/armeabi-v7a/libunity.so": b"\x7fELF" + b"\x02" * 400,
        "lib/arm64-v8a/libmain.so": b"\x7fELF" + b"\x03" * 50,
        "assets/bin/Data/": b"",
    })


@pytest.fixture
def aab_package(zip_builder) -> Path:
    return zip_builder("game.aab", {
        "BundleConfig.pb": b"\x0a\x04",
        "base/manifest/AndroidManifest.xml": b"<manifest/>",
        "base/lib/arm64-v8a/libunity.so": b"\x7fELF" + b"\x01" * 300,
        "base/lib/x86_64/libunity.so": b"\x7fELF" + b"\x04" * 300,
    })


@pytest.fixture
def ipa_package(zip_builder) -> Path:
    return zip_builder("game.ipa", {
        "Payload/Game.app/Info.plist": b"<plist/>",
        "Payload/Game.app/UnityBuildGuid.txt": b"0123456789abcdef0123456789abcdef\n",
        "Payload/Game.app/Frameworks/UnityFramework.framework/UnityFramework": b"\xcf\xfa\xed\xfe" * 256,
        "Payload/Game.app/Data/data.unity3d": b"D" * 2048,
    })


# ============================================================================
# Tool Runner Fixtures
# ============================================================================

class FakeRunner:
    """
    Records tool invocations and answers them from a script.

    ``responses`` maps a substring of the joined command line to
    (output, exit_code); the first matching key wins.
    """

    def __init__(self, responses: Optional[Dict[str, Tuple[str, int]]] = None):
        self.responses = responses or {}
        self.calls: List[Tuple[str, List[str]]] = []

    def __call__(self, executable: str, arguments: List[str]) -> ToolResult:
        self.calls.append((executable, list(arguments)))
        command_line = " ".join([executable, *arguments])
        for key, (output, exit_code) in self.responses.items():
            if key in command_line:
                return ToolResult(executable, list(arguments), output, exit_code)
        return ToolResult(executable, list(arguments), "", 0)


@pytest.fixture
def fake_runner():
    """Factory for FakeRunner instances."""
    return FakeRunner


# ============================================================================
# LIFECYCLE STATUS: Active
# DEPENDENCIES: build_report_inspector
# USAGE: Import fixtures in test files, pytest auto-discovers them
# ============================================================================
