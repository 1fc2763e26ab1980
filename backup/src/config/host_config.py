"""
Per-host backup configuration.

Loads and validates the YAML marker file found at the root of the backup
volume. The document maps hostnames to include/exclude globs:

    laptop:
      includes: ["notes.txt", "docs/**"]
      excludes: ["docs/private/**"]
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Union

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from backup.src.sync.models import PatternSet
from config.exceptions import ConfigError

logger = structlog.get_logger(__name__)


class HostConfig(BaseModel):
    """Include/exclude globs for one machine."""

    model_config = ConfigDict(extra="forbid")

    includes: List[str] = Field(default_factory=list, description="Globs to back up")
    excludes: List[str] = Field(default_factory=list, description="Globs to leave out")

    @field_validator("includes", "excludes", mode="before")
    @classmethod
    def validate_pattern_list(cls, v):
        """Accept null as empty; a bare string is a one-item list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("includes", "excludes")
    @classmethod
    def strip_blank_patterns(cls, v: List[str]) -> List[str]:
        """Drop empty patterns."""
        return [p.strip() for p in v if p.strip()]

    def to_pattern_set(self) -> PatternSet:
        return PatternSet(includes=self.includes, excludes=self.excludes)


class BackupConfiguration(BaseModel):
    """Whole marker file: hostname -> HostConfig."""

    hosts: Dict[str, HostConfig] = Field(default_factory=dict)

    @field_validator("hosts", mode="before")
    @classmethod
    def validate_hosts(cls, v):
        """Hostnames are strings; a host with no body backs up nothing."""
        if not isinstance(v, dict):
            raise ValueError("configuration must be a mapping of hostname to settings")
        return {str(host): (body if body is not None else {}) for host, body in v.items()}

    def for_host(self, hostname: str) -> PatternSet:
        """
        Return the patterns configured for `hostname`.

        Raises:
            ConfigError: Hostname absent from the configuration
        """
        host_config = self.hosts.get(hostname)
        if host_config is None:
            raise ConfigError(f"hostname '{hostname}' not found in configuration")
        return host_config.to_pattern_set()


def load_configuration(config_path: Union[str, Path]) -> BackupConfiguration:
    """
    Load the backup configuration from YAML.

    Args:
        config_path: Marker file path

    Returns:
        BackupConfiguration validated

    Raises:
        ConfigError: File unreadable, invalid YAML or invalid structure
    """
    config_path = Path(config_path)

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"reading configuration file '{config_path}': {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"parsing configuration file '{config_path}': {e}") from e

    if raw is None:
        raise ConfigError(f"parsing configuration file '{config_path}': file is empty")

    try:
        configuration = BackupConfiguration(hosts=raw)
    except ValidationError as e:
        raise ConfigError(f"parsing configuration file '{config_path}': {e}") from e

    logger.info(
        "backup_config_loaded",
        config_path=str(config_path),
        hosts=sorted(configuration.hosts),
    )
    return configuration
