# ============================================================================
# FILE: base.py
# RELPATH: build_report_inspector/src/build_report_inspector/platforms/base.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Abstract base class for platform architecture strategies
# ============================================================================

"""
Platform Utilities Base.

A platform strategy knows how to find the CPU architectures inside a
finished mobile package and how to estimate each one's download size.
Strategies are handed to MobileArchiveAnalyzer at construction time.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from build_report_inspector.logging import StructuredLogger
from build_report_inspector.models import MobileArchInfo
from build_report_inspector.tools import DEFAULT_TIMEOUT_SECONDS, ToolRunner, make_runner


class PlatformUtilities(ABC):
    """
    Base class for platform strategies.

    Subclasses implement ``platform_name`` and ``get_architecture_info``.
    """

    def __init__(self,
                 runner: Optional[ToolRunner] = None,
                 timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
                 logger: Optional[StructuredLogger] = None):
        """
        Args:
            runner: Callable(executable, arguments) -> ToolResult; defaults to
                a subprocess runner with ``timeout``
            timeout: Seconds allowed per tool invocation
            logger: Optional structured logger
        """
        self.logger = logger
        self.runner: ToolRunner = runner or make_runner(timeout=timeout, logger=logger)

    @property
    @abstractmethod
    def platform_name(self) -> str:
        """Registry name of the platform (e.g. 'android')."""

    @abstractmethod
    def get_architecture_info(self, application_path: str) -> List[MobileArchInfo]:
        """
        Extract architectures and download sizes from a package.

        Args:
            application_path: Path to the APK/AAB/IPA

        Returns:
            One MobileArchInfo per architecture

        Raises:
            ArchitectureDetectionError, PlatformMarkerError, ToolExecutionError,
            ArchiveFormatError
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(platform_name={self.platform_name!r})"
