"""Spring Boot integration-test backend for Pants."""

from pants_backend_springboot_itest import dependency_resolution, springboot_packager
from pants_backend_springboot_itest.goals import package
from pants_backend_springboot_itest.subsystems import springboot_itest
from pants_backend_springboot_itest.target_types import (
    SpringBootITestArchiveTarget,
    rules as target_type_rules,
)


def target_types():
    """Register target types with Pants."""
    return [
        SpringBootITestArchiveTarget,
    ]


def rules():
    """Register rules with Pants."""
    return [
        *target_type_rules(),
        *springboot_itest.rules(),
        *dependency_resolution.rules(),
        *springboot_packager.rules(),
        *package.rules(),
    ]
