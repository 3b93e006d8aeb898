# ============================================================================
# SOURCEFILE: archive_mapper.py
# RELPATH: build_report_inspector/src/build_report_inspector/archive_mapper.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Maps internal content file names back to their AssetBundle files
# ============================================================================

"""
Archive Mapper Module.

AssetBundle builds write content files with hash based internal names
(e.g. ``CAB-76a378bdc9304bd3c3a82de8dd97981a.resource``) inside each bundle.
The build report lists both the bundle and its internal files:

    - path: C:/Src/TestProject/Build/AssetBundles/audio.bundle/CAB-76a3...resource
      role: StreamingResourceFile
    - path: C:/Src/TestProject/Build/AssetBundles/audio.bundle
      role: AssetBundle

which yields the mapping ``CAB-76a3...resource -> audio.bundle``.

Player builds have no archive-role files, so their mapping is empty.
"""

from typing import Dict, Iterable, Iterator, Optional

from build_report_inspector.models import (
    BUILD_TYPE_PLAYER,
    BuildReport,
    OutputFileRecord,
)


class ArchiveMapping:
    """Immutable internal-name -> archive-name lookup."""

    def __init__(self, mapping: Optional[Dict[str, str]] = None):
        self._mapping: Dict[str, str] = dict(mapping or {})

    def get_archive_name(self, internal_name: str) -> Optional[str]:
        """
        Return the archive file containing ``internal_name``.

        Args:
            internal_name: Content file name, e.g. 'CAB-76a3...resource'

        Returns:
            Archive file name (e.g. 'audio.bundle'), or None if the file is
            not inside an archive
        """
        return self._mapping.get(internal_name)

    def __contains__(self, internal_name: str) -> bool:
        return internal_name in self._mapping

    def __len__(self) -> int:
        return len(self._mapping)

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __bool__(self) -> bool:
        return bool(self._mapping)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._mapping)


def build_mapping(output_files: Iterable[OutputFileRecord]) -> ArchiveMapping:
    """
    Build the internal-name -> archive-name mapping for a list of output files.

    Internal files are expected exactly one directory level below their
    archive. Deeper layouts do not match and are reported under their own name.

    Args:
        output_files: OutputFileRecord list from the build report

    Returns:
        ArchiveMapping (empty when no archive-role files exist)
    """
    files = list(output_files)

    archive_path_to_file_name: Dict[str, str] = {}
    for record in files:
        if record.is_archive:
            archive_path_to_file_name[record.path] = record.file_name

    if not archive_path_to_file_name:
        return ArchiveMapping()

    mapping: Dict[str, str] = {}
    for record in files:
        directory = record.directory
        if directory and directory in archive_path_to_file_name:
            mapping[record.file_name] = archive_path_to_file_name[directory]

    return ArchiveMapping(mapping)


def build_mapping_for_report(report: BuildReport) -> ArchiveMapping:
    """Build the mapping for a report; Player builds always map to nothing."""
    if report.build_type == BUILD_TYPE_PLAYER:
        return ArchiveMapping()
    return build_mapping(report.files)
