# ============================================================================
# SOURCEFILE: formatting.py
# RELPATH: build_report_inspector/src/build_report_inspector/formatting.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Human-readable sizes and path trimming for report output
# ============================================================================

"""Display helpers shared by the command line output."""

import os
from typing import Iterable, List, Optional

KB = 1024
MB = 1024 * 1024
GB = 1024 * 1024 * 1024


def format_size(size: int) -> str:
    """
    Format a byte count as B, KB, MB or GB with two decimals.

    >>> format_size(512)
    '512 B'
    >>> format_size(1536)
    '1.50 KB'
    """
    if size < KB:
        return f"{size} B"
    if size < MB:
        return f"{size / KB:.2f} KB"
    if size < GB:
        return f"{size / MB:.2f} MB"
    return f"{size / GB:.2f} GB"


def format_download_size(size: int) -> str:
    """Download sizes of 0 mean the estimate is unavailable."""
    return "N/A" if size == 0 else format_size(size)


def common_root(paths: Iterable[str], ignore_prefix: Optional[str] = None) -> str:
    """
    Longest common leading string of ``paths``.

    Paths starting with ``ignore_prefix`` (e.g. the editor's Temp folder)
    do not shorten the root.
    """
    considered: List[str] = [
        p for p in paths
        if not (ignore_prefix and p.startswith(ignore_prefix))
    ]
    if not considered:
        return ""
    return os.path.commonprefix(considered)


def trim_root(path: str, root: str) -> str:
    return path[len(root):] if root and path.startswith(root) else path
