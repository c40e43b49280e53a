"""Configuration and constants for the Spring Boot integration-test backend.

This module provides centralized constant values used throughout the
archive packager: archive layout, resource names, descriptor names and the
logging artifacts that must never be embedded.
"""

from __future__ import annotations

# Archive layout
LIB_FOLDER = "BOOT-INF/lib"
CLASSES_FOLDER = "BOOT-INF/classes"
MANIFEST_PATH = "META-INF/MANIFEST.MF"

# Classpath resources consumed by the packager
MANIFEST_RESOURCE = "BOOT-MANIFEST.MF"
CUSTOM_LOG_RESOURCE = "spring-logback.xml"
APPLICATION_POM_TEMPLATE = "application-pom.xml"
RESOLVER_POM_TEMPLATE = "dependency-resolver-pom.xml"

# Rendered descriptors, written under <module base path>/target/
BUILD_OUTPUT_DIR = "target"
APPLICATION_POM_NAME = "itest-spring-boot-pom.xml"
RESOLVER_POM_NAME = "itest-spring-boot-dependency-resolver-pom.xml"
MODULE_POM_NAME = "pom.xml"
TEST_CLASSES_DIR = "target/test-classes"

# Template markers
DEPENDENCIES_MARKER = "<!-- DEPENDENCIES -->"
MODULE_MARKER = "#{module}"

# Namespace of the process-wide properties forwarded to the test process
CONFIG_PREFIX = "itest.springboot."

# Anchor dependency, whose version drives every other framework dependency
DEFAULT_ANCHOR_GROUP = "org.apache.camel"
DEFAULT_ANCHOR_ARTIFACT = "camel-core"

# The outer harness already embeds the boot loader
LOADER_FILE_PATTERN = r"^spring-boot-loader-[0-9].*"

# Exclusions applied to every resolved dependency
COMMON_EXCLUSIONS = (
    "org.slf4j:slf4j-log4j12",
    "log4j:log4j",
    "log4j:log4j-slf4j-impl",
    "org.apache.logging.log4j:log4j",
    "org.apache.logging.log4j:log4j-core",
    "org.apache.logging.log4j:log4j-slf4j-impl",
    "log4j:apache-log4j-extras",
    "org.slf4j:slf4j-simple",
    "org.slf4j:slf4j-jdk14",
    "ch.qos.logback:logback-classic",
    "ch.qos.logback:logback-core",
)

# Artifact ids discarded from the test and provided scopes
LOGGING_ARTIFACT_PATTERNS = (
    r"^log4j$",
    r"^log4j-slf4j-impl$",
    r"^log4j-core$",
    r"^slf4j-log4j12$",
    r"^slf4j-simple$",
    r"^slf4j-jdk14$",
    r"^logback-classic$",
    r"^logback-core$",
)

# System properties that overcome limitations of some JDKs
XML_PARSER_PROPERTIES = (
    ("javax.xml.accessExternalDTD", "all"),
    ("javax.xml.accessExternalSchema", "all"),
)

# Packages copied into the top-level classpath of the archive
DEFAULT_SUPPORT_PACKAGES = (
    "org.jboss.shrinkwrap",
    "org.apache.camel.itest.springboot",
    "org.apache.camel.converter.myconverter",
    "org.springframework.boot.loader",
)

# Packages also copied under the classes folder for the embedded classloader
DEFAULT_SHARED_PACKAGES = ("org.apache.camel.itest.springboot",)
