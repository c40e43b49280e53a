"""Integration-test configuration.

`ITestConfig` is the immutable snapshot a packaging run is driven by. It is
built once per test run, usually through `ITestConfigBuilder`, and is
read-only afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Mapping

from pants_backend_springboot_itest.config import (
    CONFIG_PREFIX,
    DEFAULT_ANCHOR_ARTIFACT,
    DEFAULT_ANCHOR_GROUP,
)
from pants_backend_springboot_itest.exceptions import ConfigurationError


@dataclass(frozen=True)
class ITestConfig:
    module_name: str
    module_base_path: str
    maven_group: str = DEFAULT_ANCHOR_GROUP
    maven_version: str | None = None
    use_custom_log: bool = True
    include_provided_dependencies: bool = False
    include_test_dependencies: bool = False
    unit_test_enabled: bool = False
    maven_offline_resolution: bool = False
    resources: Mapping[str, str] = field(default_factory=dict)
    additional_dependencies: tuple[str, ...] = ()
    maven_exclusions: frozenset[str] = frozenset()
    system_properties: Mapping[str, str] = field(default_factory=dict)


def anchor_property_key(
    group: str = DEFAULT_ANCHOR_GROUP, artifact: str = DEFAULT_ANCHOR_ARTIFACT
) -> str:
    """Name of the process-wide property carrying the anchor version."""
    return f"version_{group}:{artifact}"


def resolve_anchor_version(
    config: ITestConfig, properties: Mapping[str, str], anchor_key: str
) -> str | None:
    """Anchor version from the ambient properties, then from the config.

    Returns None when neither knows it; the caller then falls back to reading
    the module descriptor.
    """
    version = properties.get(anchor_key)
    if version:
        return version
    return config.maven_version or None


def _parse_bool(key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "yes", "1"):
        return True
    if lowered in ("false", "no", "0"):
        return False
    raise ConfigurationError(f"Property {key} must be a boolean, got {value!r}")


def _split_list(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


class ITestConfigBuilder:
    """Fluent builder for ITestConfig.

    Example:
        config = (
            ITestConfigBuilder("camel-ftp")
            .dependency("org.apache.ftpserver:ftpserver-core:1.1.1")
            .exclusion("commons-logging:commons-logging")
            .include_test_dependencies(True)
            .build()
        )
    """

    _BOOLEAN_PROPERTIES = {
        "useCustomLog": "use_custom_log",
        "includeProvidedDependencies": "include_provided_dependencies",
        "includeTestDependencies": "include_test_dependencies",
        "unitTestEnabled": "unit_test_enabled",
        "mavenOfflineResolution": "maven_offline_resolution",
    }

    def __init__(self, module_name: str) -> None:
        if not module_name:
            raise ConfigurationError("A module name is required")
        self._config = ITestConfig(
            module_name=module_name,
            module_base_path=f"../../components/{module_name}",
        )
        self._resources: dict[str, str] = {}
        self._dependencies: list[str] = []
        self._exclusions: set[str] = set()
        self._system_properties: dict[str, str] = {}

    def _set(self, **changes) -> ITestConfigBuilder:
        self._config = replace(self._config, **changes)
        return self

    def module_base_path(self, path: str) -> ITestConfigBuilder:
        return self._set(module_base_path=path)

    def maven_group(self, group: str) -> ITestConfigBuilder:
        return self._set(maven_group=group)

    def maven_version(self, version: str | None) -> ITestConfigBuilder:
        return self._set(maven_version=version)

    def use_custom_log(self, enabled: bool) -> ITestConfigBuilder:
        return self._set(use_custom_log=enabled)

    def include_provided_dependencies(self, enabled: bool) -> ITestConfigBuilder:
        return self._set(include_provided_dependencies=enabled)

    def include_test_dependencies(self, enabled: bool) -> ITestConfigBuilder:
        return self._set(include_test_dependencies=enabled)

    def unit_test_enabled(self, enabled: bool) -> ITestConfigBuilder:
        return self._set(unit_test_enabled=enabled)

    def maven_offline_resolution(self, enabled: bool) -> ITestConfigBuilder:
        return self._set(maven_offline_resolution=enabled)

    def resource(self, name: str, target_name: str | None = None) -> ITestConfigBuilder:
        self._resources[name] = target_name or name
        return self

    def dependency(self, canonical_form: str) -> ITestConfigBuilder:
        if canonical_form not in self._dependencies:
            self._dependencies.append(canonical_form)
        return self

    def exclusion(self, group_artifact: str) -> ITestConfigBuilder:
        self._exclusions.add(group_artifact)
        return self

    def system_property(self, key: str, value: str) -> ITestConfigBuilder:
        self._system_properties[key] = value
        return self

    def from_properties(self, properties: Mapping[str, str]) -> ITestConfigBuilder:
        """Apply `itest.springboot.*` overrides from process-wide properties."""
        for name, attr in self._BOOLEAN_PROPERTIES.items():
            key = CONFIG_PREFIX + name
            if key in properties:
                self._set(**{attr: _parse_bool(key, properties[key])})

        for name, attr in (
            ("mavenVersion", "maven_version"),
            ("mavenGroup", "maven_group"),
            ("moduleBasePath", "module_base_path"),
        ):
            value = properties.get(CONFIG_PREFIX + name)
            if value:
                self._set(**{attr: value})

        for dependency in _split_list(properties.get(CONFIG_PREFIX + "additionalDependencies", "")):
            self.dependency(dependency)
        for exclusion in _split_list(properties.get(CONFIG_PREFIX + "mavenExclusions", "")):
            self.exclusion(exclusion)
        return self

    def build(self) -> ITestConfig:
        return replace(
            self._config,
            resources=dict(self._resources),
            additional_dependencies=tuple(self._dependencies),
            maven_exclusions=frozenset(self._exclusions),
            system_properties=dict(self._system_properties),
        )
