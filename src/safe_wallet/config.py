"""Configuration system for Safe Wallet.

Loads settings from `.safe-wallet/config.yaml`, supports environment
variable expansion, and resolves where the local ledger database lives.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from safe_wallet.errors import ConfigError


# ---------------------------------------------------------------------------
# Environment-variable expansion helper
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with their environment values.

    If the variable is not set the placeholder is left as-is so that
    validation can catch it later.
    """

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        return os.environ.get(var_name, match.group(0))

    return _ENV_VAR_RE.sub(_replace, value)


def _expand_env_recursive(obj: object) -> object:
    """Walk an arbitrary nested structure and expand env vars in strings."""
    if isinstance(obj, str):
        return _expand_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _expand_env_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# Pydantic v2 models
# ---------------------------------------------------------------------------


class WalletConfig(BaseModel):
    """Wallet command settings."""

    default_target: Optional[str] = None  # XOR name used when no target is given
    secret_key: Optional[str] = None      # ${SAFE_WALLET_SK}; prompted for when unset


class LedgerConfig(BaseModel):
    """Local ledger settings."""

    path: str = "ledger.db"  # relative paths are resolved against the config dir


class SafeConfig(BaseModel):
    """Root configuration object."""

    wallet: WalletConfig = Field(default_factory=WalletConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def get_root_dir(base: Path | None = None) -> Path:
    """Return the ``.safe-wallet/`` directory (no auto-create).

    Parameters
    ----------
    base:
        Parent directory that contains (or will contain) the root folder.
        Defaults to the current working directory.
    """
    if base is None:
        base = Path.cwd()
    return base / ".safe-wallet"


def default_config_path(base: Path | None = None) -> Path:
    return get_root_dir(base) / "config.yaml"


def ledger_path(config: SafeConfig, config_path: Path) -> Path:
    """Resolve the ledger database path relative to the config file."""
    path = Path(config.ledger.path).expanduser()
    if not path.is_absolute():
        path = config_path.parent / path
    return path


def _config_error(path: Path, exc: Exception) -> ConfigError:
    detail = " ".join(str(exc).split())
    return ConfigError(f"Invalid config file {path}: {detail}")


def load_config(path: Path) -> SafeConfig:
    """Load and validate a configuration from a YAML file.

    A missing file yields the defaults. Environment variable placeholders
    (``${VAR}``) are expanded before validation.

    Raises
    ------
    ConfigError
        If the file is not valid YAML or does not match the schema.
    """
    if not path.exists():
        return SafeConfig()
    try:
        raw_data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        expanded = _expand_env_recursive(raw_data)
        return SafeConfig.model_validate(expanded)
    except (yaml.YAMLError, ValidationError) as exc:
        raise _config_error(path, exc) from exc


def set_default_target(path: Path, location: str) -> None:
    """Persist *location* as ``wallet.default_target`` in the config file.

    Works on the raw YAML so ``${VAR}`` placeholders (and the secret key they
    may hold) are written back unexpanded.
    """
    raw_data: dict = {}
    if path.exists():
        try:
            raw_data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise _config_error(path, exc) from exc
    if not isinstance(raw_data, dict) or not isinstance(raw_data.get("wallet") or {}, dict):
        raise ConfigError(f"Invalid config file {path}: expected a 'wallet' mapping")
    wallet = raw_data.get("wallet") or {}
    wallet["default_target"] = location
    raw_data["wallet"] = wallet
    try:
        SafeConfig.model_validate(_expand_env_recursive(raw_data))
    except ValidationError as exc:
        raise _config_error(path, exc) from exc
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(raw_data, fh, default_flow_style=False, sort_keys=False)
