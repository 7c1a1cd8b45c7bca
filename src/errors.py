"""Exception hierarchy for packweight analyses."""

from __future__ import annotations


class AnalysisError(Exception):
    """Base class for failures that abort an analysis."""


class InvalidStatsError(AnalysisError):
    """Raised when the bundler stats object does not have the expected shape."""


class UnknownModuleShapeError(InvalidStatsError):
    """Raised when a stats module is neither a source, container nor synthetic."""


class ManifestError(AnalysisError):
    """Raised when a package.json exists but cannot be parsed."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"JSON parsing error for {path} - {message}")


class PackageIntegrityError(AnalysisError):
    """Raised when an installed package manifest lacks its name or version."""


class MissingInstallError(AnalysisError):
    """Raised when dependencies are declared but nothing is installed on disk."""


class InvalidPackageNameError(AnalysisError, ValueError):
    """Raised when a package name cannot be derived from a module base name."""


__all__ = [
    "AnalysisError",
    "InvalidPackageNameError",
    "InvalidStatsError",
    "ManifestError",
    "MissingInstallError",
    "PackageIntegrityError",
    "UnknownModuleShapeError",
]
