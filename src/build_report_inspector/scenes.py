# ============================================================================
# SOURCEFILE: scenes.py
# RELPATH: build_report_inspector/src/build_report_inspector/scenes.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Which scenes reference which assets, from detailed build reports
# ============================================================================

from typing import Dict, List, Optional

from build_report_inspector.models import BuildReport

NOT_DETAILED_MESSAGE = (
    "No info about which scenes are using assets in the build. "
    "Was the build made with a detailed build report?"
)


def scenes_by_asset(report: BuildReport) -> Optional[Dict[str, List[str]]]:
    """
    Map each asset path to the scenes that use it, in report order.

    Returns:
        Mapping of asset path to scene paths, or None when the report
        carries no scene usage data
    """
    if report.scenes_using_assets is None:
        return None

    result: Dict[str, List[str]] = {}
    for usage in report.scenes_using_assets:
        scenes = result.setdefault(usage.asset_path, [])
        for scene in usage.scene_paths:
            if scene not in scenes:
                scenes.append(scene)
    return result


def assets_by_scene(report: BuildReport) -> Optional[Dict[str, List[str]]]:
    """Inverse of scenes_by_asset(): scene path -> asset paths it uses."""
    usage = scenes_by_asset(report)
    if usage is None:
        return None

    result: Dict[str, List[str]] = {}
    for asset, scenes in usage.items():
        for scene in scenes:
            result.setdefault(scene, []).append(asset)
    return result


# ============================================================================
# LIFECYCLE STATUS: Active
# DEPENDENCIES: models.py
# TESTS: tests/unit/test_scenes.py
# ============================================================================
