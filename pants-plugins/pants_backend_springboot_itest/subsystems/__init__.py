"""Subsystems for the Spring Boot integration-test backend."""

from pants_backend_springboot_itest.subsystems.springboot_itest import SpringBootITestSubsystem
