# ============================================================================
# SOURCEFILE: __init__.py
# RELPATH: build_report_inspector/src/build_report_inspector/platforms/__init__.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Platform strategy registry
# ============================================================================

"""
Platform strategies for mobile package analysis.

The registry maps a platform name ('android', 'apple') to its
PlatformUtilities subclass.
"""

from typing import Dict, List, Type

from build_report_inspector.exceptions import PlatformNotFoundError
from build_report_inspector.platforms.android import AndroidToolPaths, AndroidUtilities
from build_report_inspector.platforms.apple import AppleUtilities
from build_report_inspector.platforms.base import PlatformUtilities


class PlatformRegistry:
    """
    Registry for managing available platform strategies.

    Provides registration, lookup, and enumeration capabilities.
    """

    def __init__(self):
        """Initialize registry with built-in platforms."""
        self._platforms: Dict[str, Type[PlatformUtilities]] = {}
        self._register_builtin_platforms()

    def _register_builtin_platforms(self):
        self.register(AndroidUtilities)
        self.register(AppleUtilities)

    def register(self, platform_class: Type[PlatformUtilities]) -> None:
        """
        Register a platform class.

        Args:
            platform_class: PlatformUtilities subclass (not instance)

        Raises:
            TypeError: If platform_class is not a PlatformUtilities subclass
        """
        if not issubclass(platform_class, PlatformUtilities):
            raise TypeError(f"{platform_class.__name__} must be a PlatformUtilities subclass")

        # Instantiate to get platform name; re-registration replaces
        instance = platform_class(runner=_unused_runner)
        self._platforms[instance.platform_name] = platform_class

    def get(self, platform_name: str, **kwargs) -> PlatformUtilities:
        """
        Create a platform strategy by name.

        Args:
            platform_name: Registered name
            **kwargs: Passed to the platform constructor

        Raises:
            PlatformNotFoundError: If the name is not registered
        """
        if platform_name not in self._platforms:
            raise PlatformNotFoundError(platform_name, self.list_platforms())
        return self._platforms[platform_name](**kwargs)

    def list_platforms(self) -> List[str]:
        return list(self._platforms.keys())


def _unused_runner(executable, arguments):
    raise RuntimeError("instances created during registration never run tools")


__all__ = [
    "AndroidToolPaths",
    "AndroidUtilities",
    "AppleUtilities",
    "PlatformRegistry",
    "PlatformUtilities",
]
