# ============================================================================
# SOURCEFILE: cli.py
# RELPATH: build_report_inspector/src/build_report_inspector/cli.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Command-line interface over the analysis engine
# ============================================================================

"""Command-Line Interface for Build Report Inspector."""

import argparse
import os
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional

from build_report_inspector.archive_mapper import build_mapping_for_report
from build_report_inspector.config import ConfigManager, load_config
from build_report_inspector.content import ContentAggregator
from build_report_inspector.duplicates import DuplicateDetector
from build_report_inspector.exceptions import BuildReportInspectorError
from build_report_inspector.formatting import (
    common_root,
    format_download_size,
    format_size,
    trim_root,
)
from build_report_inspector.incremental import BuildSnapshot, collect_build_info, compare_builds
from build_report_inspector.logging import StructuredLogger, configure_utf8_logging, new_session
from build_report_inspector.mobile import (
    AppendixStore,
    generate_android_appendix,
    generate_apple_appendix,
)
from build_report_inspector.models import MobileAppendix, normalize_path
from build_report_inspector.platforms import AndroidToolPaths, PlatformRegistry
from build_report_inspector.platforms.base import PlatformUtilities
from build_report_inspector.report_loader import load_report
from build_report_inspector.scenes import NOT_DETAILED_MESSAGE, assets_by_scene, scenes_by_asset
from build_report_inspector.steps import (
    LOG_TYPE_LOG,
    build_step_tree,
    find_problem_steps,
    format_duration,
)
from build_report_inspector.summary import summarize
from build_report_inspector.validators import validate_package
from build_report_inspector.zip_reader import ZipDirectoryReader

DEFAULT_TOP = 10

PLATFORM_BY_SUFFIX = {
    ".apk": "android",
    ".aab": "android",
    ".ipa": "apple",
}


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", help="Path to a JSON configuration file")
    common.add_argument("--log-dir", help="Directory for session logs")

    parser = argparse.ArgumentParser(
        prog="build-report-inspector",
        description="Build Report Inspector - size breakdowns for build outputs"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # SUMMARY
    parser_summary = subparsers.add_parser("summary", parents=[common])
    parser_summary.add_argument("report", type=Path)
    parser_summary.add_argument("--top", type=int, default=DEFAULT_TOP)

    # CONTENT
    parser_content = subparsers.add_parser("content", parents=[common])
    parser_content.add_argument("report", type=Path)
    parser_content.add_argument("--max-entries", type=int)
    parser_content.add_argument("--csv", type=Path)
    parser_content.add_argument("--top", type=int, default=DEFAULT_TOP)

    # DUPLICATES
    parser_duplicates = subparsers.add_parser("duplicates", parents=[common])
    parser_duplicates.add_argument("report", type=Path)
    parser_duplicates.add_argument("--top", type=int, default=DEFAULT_TOP)

    # MOBILE
    parser_mobile = subparsers.add_parser("mobile", parents=[common])
    parser_mobile.add_argument("package", type=Path)
    parser_mobile.add_argument("--guid", required=True)
    parser_mobile.add_argument("--platform", choices=["android", "apple"])
    parser_mobile.add_argument("--appendix-dir", type=Path)

    # APPENDIX
    parser_appendix = subparsers.add_parser("appendix", parents=[common])
    parser_appendix.add_argument("guid")
    parser_appendix.add_argument("--appendix-dir", type=Path)

    # FILES
    parser_files = subparsers.add_parser("files", parents=[common])
    parser_files.add_argument("report", type=Path)
    parser_files.add_argument("--top", type=int)

    # STEPS
    parser_steps = subparsers.add_parser("steps", parents=[common])
    parser_steps.add_argument("report", type=Path)
    parser_steps.add_argument("--messages", action="store_true",
                              help="Print the messages logged by each step")

    # SCENES
    parser_scenes = subparsers.add_parser("scenes", parents=[common])
    parser_scenes.add_argument("report", type=Path)
    parser_scenes.add_argument("--by-scene", action="store_true",
                               help="Group assets under the scenes that use them")

    # BUNDLE SNAPSHOT
    parser_snapshot = subparsers.add_parser("bundle-snapshot", parents=[common])
    parser_snapshot.add_argument("build_dir", type=Path)
    parser_snapshot.add_argument("--output", type=Path, required=True)

    # BUNDLE COMPARE
    parser_compare = subparsers.add_parser("bundle-compare", parents=[common])
    parser_compare.add_argument("build_dir", type=Path)
    parser_compare.add_argument("--previous", type=Path, required=True)

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    configure_utf8_logging()

    try:
        parser = build_parser()
        args = parser.parse_args(argv)

        handlers = {
            "summary": handle_summary,
            "content": handle_content,
            "duplicates": handle_duplicates,
            "mobile": handle_mobile,
            "appendix": handle_appendix,
            "files": handle_files,
            "steps": handle_steps,
            "scenes": handle_scenes,
            "bundle-snapshot": handle_bundle_snapshot,
            "bundle-compare": handle_bundle_compare,
        }
        handler = handlers.get(args.command)
        if handler is None:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            sys.exit(1)

        handler(args)
        sys.exit(0)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        sys.exit(130)

    except BuildReportInspectorError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)


def _start_session(args):
    config = load_config(args.config)
    logger = new_session(args.log_dir or config.get("global_settings.log_dir", "logs"))
    return config, logger


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def handle_summary(args):
    """Handler for summary command."""
    config, logger = _start_session(args)
    source = str(args.report)
    started = time.monotonic()
    logger.log_analysis_start("summary", source)

    report = load_report(args.report)
    stats = summarize(report.packed_files)

    print(f"Build: {report.guid or '(no guid)'} [{report.build_type}] {report.platform}")
    print(f"Total Size: {format_size(report.total_size)}")
    print(f"\nOutput Files: {stats.generated_file_count}")
    print(f"  Serialized files: {stats.serialized_file_count} "
          f"({format_size(stats.total_serialized_file_size)}, "
          f"headers {format_size(stats.total_header_size)})")
    print(f"  Resource files: {stats.resource_file_count} "
          f"({format_size(stats.total_resource_size)})")
    print(f"  Objects: {stats.object_count} ({stats.internal_object_count} internal)")

    print("\nTop types:")
    for aggregate in stats.sorted_types()[:args.top]:
        print(f"  {format_size(aggregate.size):>12}  {aggregate.type} "
              f"({aggregate.object_count} objects, {aggregate.resource_count} resources)")

    print("\nTop assets:")
    for aggregate in stats.sorted_assets()[:args.top]:
        name = aggregate.source_asset_path or aggregate.source_asset_id or "(internal)"
        print(f"  {format_size(aggregate.size):>12}  {name}")

    logger.log_analysis_complete(
        "summary", source,
        {"types": len(stats.type_stats), "assets": len(stats.asset_stats)},
        _elapsed_ms(started),
    )


def handle_content(args):
    """Handler for content command."""
    config, logger = _start_session(args)
    source = str(args.report)
    started = time.monotonic()
    logger.log_analysis_start("content", source)

    max_entries = args.max_entries if args.max_entries is not None \
        else config.get("analysis.max_entries", 0)
    csv_path = args.csv or config.get("analysis.csv_output") or None

    report = load_report(args.report)
    mapping = build_mapping_for_report(report)
    analysis = ContentAggregator(logger=logger).analyze(
        report.packed_files, mapping, max_entries=max_entries
    )

    print(f"Entries: {len(analysis.entries)} ({format_size(analysis.get_total_size())})")
    if analysis.truncated:
        print(f"WARNING: stopped at the limit of {analysis.max_entries} entries")

    print("\nOutput files:")
    for name, size in list(analysis.output_files.items())[:args.top]:
        print(f"  {format_size(size):>12}  {name}")

    print("\nTypes:")
    for name, size in list(analysis.types.items())[:args.top]:
        print(f"  {format_size(size):>12}  {name}")

    print("\nLargest entries:")
    for entry in analysis.entries[:args.top]:
        location = entry.output_file
        if entry.internal_archive_path:
            location += f"/{entry.internal_archive_path}"
        print(f"  {format_size(entry.size):>12}  {entry.path} [{entry.type} x{entry.object_count}] "
              f"in {location}")

    if csv_path:
        written = analysis.save_csv(csv_path)
        print(f"\nCSV written: {written}")

    logger.log_analysis_complete(
        "content", source,
        {"entries": len(analysis.entries), "truncated": analysis.truncated},
        _elapsed_ms(started),
    )


def handle_duplicates(args):
    """Handler for duplicates command."""
    config, logger = _start_session(args)
    source = str(args.report)
    started = time.monotonic()
    logger.log_analysis_start("duplicates", source)

    report = load_report(args.report)
    mapping = build_mapping_for_report(report)
    detector = DuplicateDetector(
        skip_scripts=config.get("analysis.skip_scripts", True),
        logger=logger,
    )
    result = detector.analyze(report.packed_files, mapping)

    print(f"Total size: {format_size(result.total_size)}")
    print(f"Duplicated assets: {result.get_duplicate_count()}")
    print(f"Duplicate size: {format_size(result.duplicate_size)}")

    for path, stats in list(result.asset_stats.items())[:args.top]:
        print(f"\n  {format_size(stats.total_size):>12}  {path} ({stats.archive_count} bundles)")
        for archive, size in stats.archive_sizes.items():
            print(f"      {format_size(size):>12}  {archive}")

    logger.log_analysis_complete(
        "duplicates", source,
        {"duplicates": result.get_duplicate_count()},
        _elapsed_ms(started),
    )


def create_platform(name: str, config: ConfigManager,
                    logger: Optional[StructuredLogger] = None) -> PlatformUtilities:
    """Instantiate the platform strategy with its configured tool locations."""
    kwargs = {
        "timeout": config.get("tools.timeout_seconds"),
        "logger": logger,
    }
    if name == "android":
        kwargs["tool_paths"] = AndroidToolPaths.from_config(config)
    elif name == "apple":
        kwargs["size_tool"] = config.get("tools.size_tool")
        kwargs["file_tool"] = config.get("tools.file_tool")
    return PlatformRegistry().get(name, **kwargs)


def detect_platform(package: Path) -> str:
    """Pick the platform from the package suffix, falling back to its marker entries."""
    platform = PLATFORM_BY_SUFFIX.get(package.suffix.lower())
    if platform:
        return platform
    with ZipDirectoryReader(package) as reader:
        kind = validate_package(str(package), reader.entries)
    return "android" if kind.is_android else "apple"


def handle_mobile(args):
    """Handler for mobile command."""
    config, logger = _start_session(args)
    appendix_dir = args.appendix_dir or config.get("global_settings.appendix_dir")
    store = AppendixStore(appendix_dir, logger=logger)
    appendix_path = store.path_for(args.guid)

    platform_name = args.platform or detect_platform(args.package)
    platform = create_platform(platform_name, config, logger)

    print(f"Analyzing {platform_name} package: {args.package}")
    if platform_name == "apple":
        appendix = generate_apple_appendix(str(args.package), args.guid, store, platform, logger)
    else:
        appendix = generate_android_appendix(str(args.package), args.guid, store, platform, logger)

    if appendix is None:
        raise BuildReportInspectorError(
            f"No mobile appendix generated for '{args.package}'; see the session log "
            f"{logger.log_file}"
        )

    print(f"Appendix saved: {appendix_path}")
    print_appendix(appendix)


def handle_appendix(args):
    """Handler for appendix command."""
    config, logger = _start_session(args)
    appendix_dir = args.appendix_dir or config.get("global_settings.appendix_dir")
    store = AppendixStore(appendix_dir, logger=logger)

    appendix = store.load(args.guid)
    if appendix is None:
        raise BuildReportInspectorError(
            f"No mobile appendix stored for build {args.guid} in {appendix_dir}"
        )
    print_appendix(appendix)


def temp_root(config: ConfigManager) -> str:
    """Absolute, forward-slash path of the editor Temp folder with a trailing slash."""
    temp_dir = config.get("global_settings.temp_dir") or "Temp"
    return normalize_path(os.path.abspath(temp_dir)).rstrip("/") + "/"


def handle_files(args):
    """Handler for files command."""
    config, logger = _start_session(args)
    source = str(args.report)
    started = time.monotonic()
    logger.log_analysis_start("files", source)

    report = load_report(args.report)
    ignored = temp_root(config)
    paths = [(normalize_path(os.path.abspath(f.path)), f) for f in report.files]
    root = common_root((path for path, _ in paths), ignore_prefix=ignored)
    listed = [(path, f) for path, f in paths if not path.startswith(ignored)]

    print(f"Output Files: {len(listed)} ({format_size(sum(f.size for _, f in listed))})")
    if root:
        print(f"Root: {root}")
    for path, record in sorted(listed, key=lambda item: item[1].size, reverse=True)[:args.top]:
        print(f"  {format_size(record.size):>12}  {trim_root(path, root)} [{record.role}]")

    logger.log_analysis_complete(
        "files", source,
        {"files": len(listed), "skipped": len(paths) - len(listed)},
        _elapsed_ms(started),
    )


def handle_steps(args):
    """Handler for steps command."""
    config, logger = _start_session(args)
    source = str(args.report)
    started = time.monotonic()
    logger.log_analysis_start("steps", source)

    report = load_report(args.report)
    root = build_step_tree(report.steps)

    print(f"Build steps: {len(report.steps)} (worst: {root.worst_log_type})")
    for node in root.walk():
        name = node.name or "(unnamed)"
        marker = "" if node.worst_log_type == LOG_TYPE_LOG else f"  [{node.worst_log_type}]"
        print(f"  {format_duration(node.duration)}  {'  ' * node.depth}{name}{marker}")
        if args.messages:
            for message in node.messages:
                print(f"  {'':>12}  {'  ' * node.depth}  {message.type}: {message.content}")

    logger.log_analysis_complete(
        "steps", source,
        {"steps": len(report.steps), "problems": len(find_problem_steps(root))},
        _elapsed_ms(started),
    )


def handle_scenes(args):
    """Handler for scenes command."""
    config, logger = _start_session(args)
    source = str(args.report)
    started = time.monotonic()
    logger.log_analysis_start("scenes", source)

    report = load_report(args.report)
    usage = assets_by_scene(report) if args.by_scene else scenes_by_asset(report)
    if usage is None:
        print(NOT_DETAILED_MESSAGE)
        logger.log_warning(NOT_DETAILED_MESSAGE, {"report": source})
        return

    for key in sorted(usage):
        print(key)
        for value in usage[key]:
            print(f"  {value}")

    logger.log_analysis_complete("scenes", source, {"entries": len(usage)}, _elapsed_ms(started))


def handle_bundle_snapshot(args):
    """Handler for bundle-snapshot command."""
    config, logger = _start_session(args)
    source = str(args.build_dir)
    started = time.monotonic()
    logger.log_analysis_start("bundle-snapshot", source)

    snapshot = collect_build_info(args.build_dir, logger=logger)
    if not snapshot.manifest_found:
        print("No previous build found. All AssetBundles will be rebuilt.")
    for problem in snapshot.problems:
        print(f"WARNING: {problem}")

    written = snapshot.save(args.output)
    print(f"Bundles: {len(snapshot.bundles)}")
    print(f"Snapshot written: {written}")

    logger.log_analysis_complete(
        "bundle-snapshot", source,
        {"bundles": len(snapshot.bundles), "problems": len(snapshot.problems)},
        _elapsed_ms(started),
    )


def handle_bundle_compare(args):
    """Handler for bundle-compare command."""
    config, logger = _start_session(args)
    source = str(args.build_dir)
    started = time.monotonic()
    logger.log_analysis_start("bundle-compare", source)

    previous = BuildSnapshot.load(args.previous)
    current = collect_build_info(args.build_dir, logger=logger)
    if not current.manifest_found:
        raise BuildReportInspectorError(f"No AssetBundle build found in {args.build_dir}")
    for problem in current.problems:
        print(f"WARNING: {problem}")

    changes = compare_builds(previous, current)
    for change in changes:
        print(change.describe())

    counts: Dict[str, int] = {}
    for change in changes:
        counts[change.status.value] = counts.get(change.status.value, 0) + 1
    print("\nSummary:")
    for status, count in counts.items():
        print(f"  {count:>5}  {status}")

    logger.log_analysis_complete("bundle-compare", source, counts, _elapsed_ms(started))


def print_appendix(appendix: MobileAppendix) -> None:
    print(f"Build Size: {format_size(appendix.build_size)}")

    if appendix.architectures is None:
        print("Architectures: unavailable")
    else:
        print("Architectures:")
        for arch in appendix.architectures:
            print(f"  {arch.name:<16} download {format_download_size(arch.download_size)}")

    print(f"\nFiles: {len(appendix.files)} "
          f"(uncompressed {format_size(appendix.get_total_uncompressed_size())}, "
          f"compressed {format_size(appendix.get_total_compressed_size())})")
    root = common_root(f.path for f in appendix.files)
    for mobile_file in sorted(appendix.files, key=lambda f: f.compressed_size, reverse=True):
        print(f"  {format_size(mobile_file.uncompressed_size):>12}  "
              f"{format_size(mobile_file.compressed_size):>12}  "
              f"{trim_root(mobile_file.path, root)}")


if __name__ == "__main__":
    main()


# ============================================================================
# LIFECYCLE STATUS: Active
# DEPENDENCIES: all analysis modules
# TESTS: tests/integration/test_cli.py
# ============================================================================
