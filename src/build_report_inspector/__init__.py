"""Build Report Inspector: size breakdowns, duplicate detection and mobile download-size estimates for build outputs."""

__version__ = "1.0.0"
