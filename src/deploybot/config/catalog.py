"""Static lookup tables mapping command aliases to Cloud Build targets."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from ..errors import ConfigurationError


@dataclass(frozen=True)
class ServiceDescriptor:
    """A deployable service and the Cloud Build trigger that ships it."""

    alias: str
    trigger_id: str
    display_name: str
    branch: str | None = None


@dataclass(frozen=True)
class EnvironmentDescriptor:
    """A deploy target environment backed by one GCP project."""

    alias: str
    project_id: str
    display_name: str


@dataclass(frozen=True)
class Catalog:
    services: Mapping[str, ServiceDescriptor]
    environments: Mapping[str, EnvironmentDescriptor]

    def service(self, alias: str) -> ServiceDescriptor | None:
        return self.services.get(alias)

    def environment(self, alias: str) -> EnvironmentDescriptor | None:
        return self.environments.get(alias)

    @property
    def service_aliases(self) -> tuple[str, ...]:
        return tuple(self.services)

    @property
    def environment_aliases(self) -> tuple[str, ...]:
        return tuple(self.environments)

    def missing_project_ids(self) -> list[str]:
        """Return aliases of environments that have no project configured."""

        return [alias for alias, env in self.environments.items() if not env.project_id]


DEFAULT_SERVICES: Mapping[str, Mapping[str, str]] = {
    "backend-api": {"trigger_id": "deploy-backend-api", "display_name": "Backend API"},
    "frontend": {"trigger_id": "deploy-frontend-app", "display_name": "Frontend App"},
}

DEFAULT_ENVIRONMENTS: Mapping[str, Mapping[str, str]] = {
    "staging": {"project_id_env": "STAGING_PROJECT_ID", "display_name": "Staging"},
    "prod": {"project_id_env": "PROD_PROJECT_ID", "display_name": "Production"},
}


def _require_mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"'{where}' must be a mapping", context={"section": where})
    return value


def _build_services(raw: Mapping[str, Any]) -> dict[str, ServiceDescriptor]:
    services: dict[str, ServiceDescriptor] = {}
    for alias, entry in raw.items():
        entry = _require_mapping(entry, f"services.{alias}")
        trigger_id = str(entry.get("trigger_id") or "").strip()
        if not trigger_id:
            raise ConfigurationError(
                f"Service '{alias}' is missing trigger_id", context={"service": alias}
            )
        branch = entry.get("branch")
        services[str(alias)] = ServiceDescriptor(
            alias=str(alias),
            trigger_id=trigger_id,
            display_name=str(entry.get("display_name") or alias),
            branch=str(branch) if branch else None,
        )
    return services


def _build_environments(
    raw: Mapping[str, Any], env: Mapping[str, str]
) -> dict[str, EnvironmentDescriptor]:
    environments: dict[str, EnvironmentDescriptor] = {}
    for alias, entry in raw.items():
        entry = _require_mapping(entry, f"environments.{alias}")
        project_id = str(entry.get("project_id") or "").strip()
        env_var = entry.get("project_id_env")
        if not project_id and env_var:
            project_id = (env.get(str(env_var)) or "").strip()
        environments[str(alias)] = EnvironmentDescriptor(
            alias=str(alias),
            project_id=project_id,
            display_name=str(entry.get("display_name") or alias),
        )
    return environments


def build_catalog(payload: Mapping[str, Any], env: Mapping[str, str]) -> Catalog:
    services = _build_services(_require_mapping(payload.get("services") or {}, "services"))
    environments = _build_environments(
        _require_mapping(payload.get("environments") or {}, "environments"), env
    )
    if not services:
        raise ConfigurationError("Catalog defines no services")
    if not environments:
        raise ConfigurationError("Catalog defines no environments")
    return Catalog(
        services=MappingProxyType(services),
        environments=MappingProxyType(environments),
    )


def load_catalog(path: str | Path | None, env: Mapping[str, str]) -> Catalog:
    """Load the catalog from YAML at ``path`` or fall back to the built-in tables.

    Environment entries may name their project directly (``project_id``) or
    through an environment variable (``project_id_env``).
    """

    if not path:
        return build_catalog(
            {"services": DEFAULT_SERVICES, "environments": DEFAULT_ENVIRONMENTS}, env
        )

    catalog_path = Path(path)
    try:
        with catalog_path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle) or {}
    except FileNotFoundError as exc:
        raise ConfigurationError(
            f"Catalog file not found: {catalog_path}", context={"path": str(catalog_path)}
        ) from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            f"Catalog file is not valid YAML: {catalog_path}", context={"path": str(catalog_path)}
        ) from exc
    return build_catalog(_require_mapping(payload, "catalog"), env)


__all__ = [
    "Catalog",
    "DEFAULT_ENVIRONMENTS",
    "DEFAULT_SERVICES",
    "EnvironmentDescriptor",
    "ServiceDescriptor",
    "build_catalog",
    "load_catalog",
]
