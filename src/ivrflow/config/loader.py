"""Config loader for YAML flow definition files."""

from pathlib import Path
from typing import Any

import yaml

from ivrflow.config.models import FlowsConfig
from ivrflow.core.errors import ConfigError

MASTER_FILES = ("ivrflow.yaml", "flows.yaml")


class ConfigLoader:
    """Load FlowsConfig from YAML files."""

    @staticmethod
    def load(path: Path | str) -> FlowsConfig:
        """Load configuration from a YAML file or directory.

        A directory is read through its master file (``ivrflow.yaml`` or
        ``flows.yaml``) when present; otherwise every ``*.yaml`` file in it
        is merged in name order.

        Args:
            path: Path to a config directory or YAML file

        Returns:
            Parsed FlowsConfig instance

        Raises:
            FileNotFoundError: If the path or directory holds no config
            ConfigError: If two merged files define the same flow
        """
        config_path = Path(path)

        if not config_path.is_dir():
            if not config_path.exists():
                raise FileNotFoundError(f"Config file not found: {config_path}")
            return FlowsConfig.model_validate(_read_yaml(config_path))

        master = next(
            (config_path / name for name in MASTER_FILES if (config_path / name).exists()),
            None,
        )
        if master is not None:
            return FlowsConfig.model_validate(_read_yaml(master))

        files = sorted(config_path.glob("*.yaml"))
        if not files:
            raise FileNotFoundError(f"No config files found in {config_path}")
        return FlowsConfig.model_validate(_merge_files(files))

    @staticmethod
    def load_string(text: str) -> FlowsConfig:
        """Load configuration from YAML text."""
        return FlowsConfig.model_validate(yaml.safe_load(text) or {})


def _merge_files(files: list[Path]) -> dict[str, Any]:
    """Merge flow definition files; later files win for settings and scalars."""
    flows: dict[str, Any] = {}
    origins: dict[str, Path] = {}
    settings: dict[str, Any] = {}
    extra: dict[str, Any] = {}

    for fpath in files:
        chunk = _read_yaml(fpath)

        for name, flow in (chunk.get("flows") or {}).items():
            if name in origins:
                raise ConfigError(
                    f"Flow '{name}' is defined in both {origins[name].name} and {fpath.name}"
                )
            origins[name] = fpath
            flows[name] = flow

        settings.update(chunk.get("settings") or {})
        extra.update({k: v for k, v in chunk.items() if k not in ("flows", "settings")})

    return {**extra, "flows": flows, "settings": settings}


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Top level of {path} must be a mapping, got {type(data).__name__}")
    for key in ("flows", "settings"):
        if key in data and data[key] is not None and not isinstance(data[key], dict):
            raise ValueError(f"'{key}' in {path} must be a mapping")
    return data
