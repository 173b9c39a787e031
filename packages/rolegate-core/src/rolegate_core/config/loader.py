"""Locate and read ``rolegate.yaml``.

Resolution order is CLI path > project-local ``./rolegate.yaml`` >
user-global ``~/.rolegate/config.yaml`` > built-in defaults. ``${VAR}``
references are expanded from the environment before validation.
"""

import logging
import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import RolegateConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "rolegate.yaml"

_ENV_REF = re.compile(r"\$\{(\w+)\}")


def config_candidates(cli_path: str | None = None) -> list[Path]:
    """Files :func:`load_config` will try, highest precedence first.

    An explicit path replaces the search and must exist.
    """
    if cli_path:
        path = Path(cli_path).expanduser()
        if not path.is_file():
            raise ValueError(f"Config file not found: {path}")
        return [path]
    return [Path(CONFIG_FILENAME), Path.home() / ".rolegate" / "config.yaml"]


def load_config(cli_path: str | None = None) -> RolegateConfig:
    """Load the first non-empty config file, or defaults when there is none.

    Relative ``policy_files`` entries are taken relative to the directory of
    the config file that lists them, not the working directory.
    """
    for path in config_candidates(cli_path):
        if not path.is_file():
            continue
        raw = _read_yaml(path)
        if raw is None:
            continue
        try:
            config = RolegateConfig(**_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e

        logger.debug("Loaded config from %s", path)
        base = path.resolve().parent
        return config.model_copy(
            update={"policy_files": [_anchor(p, base) for p in config.policy_files]}
        )

    return RolegateConfig()


def _read_yaml(path: Path) -> dict | None:
    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if raw is not None and not isinstance(raw, dict):
        raise ValueError(f"Invalid config in {path}: top level must be a mapping")
    return raw


def _anchor(policy_file: str, base: Path) -> str:
    path = Path(policy_file).expanduser()
    if path.is_absolute():
        return str(path)
    return str(base / path)


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings; unset variables become ''."""
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), ""), obj)
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `rolegate config init`
DEFAULT_CONFIG_TEMPLATE = """\
# rolegate.yaml

# Evaluation engine
engine:
  seed_system_roles: true      # install built-in roles and permissions
  bulk_workers: 4
  bulk_parallel_threshold: 32  # batches this large go to a thread pool

# Registries
registry:
  reject_role_cycles: true     # refuse parent_roles updates that form a cycle
  write_timeout: 5.0           # seconds a writer waits for the registry lock

# Audit side channel
audit:
  mode: "denials"              # all | denials | off
  max_pending: 1000            # undelivered records held before new ones are dropped

# Policy documents loaded at startup, relative to this file
# policy_files:
#   - "policies/base.yaml"

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
