"""
Centralized configuration for containersecurity.

Uses Pydantic BaseSettings for environment variable integration
and validation.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (CONTAINERSECURITY_*)
3. .env file
4. Default values

Build configuration (the fields a pipeline stage persists) is separate:
see ``load_build_config``.

Example:
    from containersecurity.config import get_config

    config = get_config()
    print(config.credentials_file)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal, Optional, Union

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ContainerSecurityConfig(BaseSettings):
    """
    Central configuration for containersecurity.

    All settings can be overridden via environment variables
    prefixed with CONTAINERSECURITY_.

    Example:
        export CONTAINERSECURITY_CREDENTIALS_FILE=/etc/ci/credentials.yaml
        export CONTAINERSECURITY_LOG_LEVEL=debug
    """

    model_config = SettingsConfigDict(
        env_prefix="CONTAINERSECURITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    application_name: str = Field(
        default="jenkins-google-container-security",
        description="Application name sent as the API user agent",
    )

    # Credential store
    credentials_file: str = Field(
        default="~/.containersecurity/credentials.yaml",
        description="YAML file mapping credential IDs to service account keys",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level for containersecurity",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log output format (json for log shippers, text for console)",
    )

    # Remote services
    http_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout applied by the HTTP transport to every API call",
    )
    resource_manager_endpoint: str = Field(
        default="https://cloudresourcemanager.googleapis.com/v1/",
    )
    binary_authorization_endpoint: str = Field(
        default="https://binaryauthorization.googleapis.com/v1beta1/",
    )
    cloud_kms_endpoint: str = Field(
        default="https://cloudkms.googleapis.com/v1/",
    )
    container_analysis_endpoint: str = Field(
        default="https://containeranalysis.googleapis.com/v1beta1/",
    )
    registry_scheme: Literal["https", "http"] = Field(
        default="https",
        description="Scheme used to reach the container registry v2 API",
    )

    @field_validator("credentials_file")
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand ~ and environment variables in paths."""
        return os.path.expanduser(os.path.expandvars(v))

    @field_validator(
        "resource_manager_endpoint",
        "binary_authorization_endpoint",
        "cloud_kms_endpoint",
        "container_analysis_endpoint",
    )
    @classmethod
    def ensure_trailing_slash(cls, v: str) -> str:
        """Endpoints are joined with relative paths."""
        return v if v.endswith("/") else v + "/"


# Global singleton
_config: Optional[ContainerSecurityConfig] = None


def get_config(**overrides) -> ContainerSecurityConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.
    """
    global _config

    if overrides or _config is None:
        _config = ContainerSecurityConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None


def load_build_config(source: Union[str, Path, dict[str, Any]]):
    """Load a ``ContainerSecurityBuild`` from a YAML file or a dict.

    Keys use the persisted camelCase names (``credentialsId``,
    ``containerQualifierType``, ``buildSteps`` ...).
    """
    from containersecurity.build import ContainerSecurityBuild

    if isinstance(source, dict):
        data = source
    else:
        with open(source) as f:
            data = yaml.safe_load(f) or {}
    return ContainerSecurityBuild.model_validate(data)
