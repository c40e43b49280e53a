"""Custom exceptions for the Spring Boot integration-test backend.

This module defines specific exception types for the failure modes of the
archive packaging pipeline, allowing callers to tell configuration problems
apart from resolution problems and to recover from the optional ones.
"""

from __future__ import annotations


class SpringBootITestError(Exception):
    """Base exception for all Spring Boot integration-test backend errors."""


class ConfigurationError(SpringBootITestError):
    """Raised when the test configuration cannot drive a packaging run."""


class AnchorVersionError(ConfigurationError):
    """Raised when the version of the anchor dependency cannot be determined."""


class PropertyResolutionError(SpringBootITestError):
    """Raised when a `${...}` placeholder cannot be resolved upstream."""


class InvalidCoordinateError(SpringBootITestError):
    """Raised when a Maven coordinate or exclusion string is malformed."""


class DependencyResolutionError(SpringBootITestError):
    """Raised when Maven dependencies cannot be resolved."""


class NoDependenciesError(DependencyResolutionError):
    """Raised when a descriptor declares no dependencies for the requested scopes."""


class ResourceNotFoundError(SpringBootITestError):
    """Raised when a required resource or file cannot be found."""
