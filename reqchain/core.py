"""reqchain core - where client defaults come from.

A ``defaults`` section in YAML supplies base URL, prefix, headers and the
debug flag. String values may reference environment variables, which are
looked up in an optional .env file next to the config before os.environ.
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values

from reqchain.client import ClientConfig

GLOBAL_DIR = Path.home() / ".reqchain"
GLOBAL_CONFIG = GLOBAL_DIR / "config.yaml"

CWD_CONFIG_CANDIDATES = [
    ".reqchain.yaml",
    ".reqchain.yml",
    "reqchain.yaml",
    "reqchain.yml",
]

ENV_REF = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def _first_existing(paths: list[Path]) -> Path | None:
    return next((p.resolve() for p in paths if p.exists()), None)


def resolve_config_path(config_file: str | None) -> Path | None:
    """Pick the YAML file that feeds ClientConfig.

    A path given by the caller is used alone; if it is missing the result is
    None and the project and home locations are not consulted. Otherwise the
    first of the CWD candidates, then GLOBAL_CONFIG, wins.
    """
    if config_file:
        return _first_existing([Path(config_file)])
    search = [Path(name) for name in CWD_CONFIG_CANDIDATES]
    search.append(GLOBAL_CONFIG)
    return _first_existing(search)


def load_config(config_path: str | Path | None) -> dict:
    """Read the ``defaults`` section and remember the file's directory.

    ``_config_dir`` anchors a relative ``env_file``; it is None when there
    is no file to read, in which case ``defaults`` is empty.
    """
    path = Path(config_path) if config_path is not None else None
    if path is None or not path.exists():
        return {"defaults": {}, "_config_dir": None}
    data = yaml.safe_load(path.read_text()) or {}
    return {
        "defaults": data.get("defaults") or {},
        "_config_dir": path.resolve().parent,
    }


def load_env(env_file: str | None, base_dir: str | Path = ".") -> dict[str, str]:
    """os.environ overlaid with the variables set in ``env_file``."""
    env = dict(os.environ)
    dotenv_path = Path(base_dir) / env_file if env_file else None
    if dotenv_path is not None and dotenv_path.exists():
        for key, value in dotenv_values(dotenv_path).items():
            if value is not None:
                env[key] = value
    return env


def resolve_value(value: Any, env: dict[str, str]) -> Any:
    """Substitute ``$NAME`` / ``${NAME}`` references inside a string.

    A name missing from both ``env`` and os.environ keeps its literal
    reference; anything that is not a string is returned unchanged.
    """
    if not isinstance(value, str):
        return value

    def _lookup(match: re.Match) -> str:
        name = match.group(1) or match.group(2)
        if name in env:
            return env[name]
        return os.environ.get(name, match.group(0))

    return ENV_REF.sub(_lookup, value)


def resolve_in_obj(obj: Any, env: dict[str, str]) -> Any:
    if isinstance(obj, dict):
        return {key: resolve_in_obj(item, env) for key, item in obj.items()}
    if isinstance(obj, list):
        return [resolve_in_obj(item, env) for item in obj]
    return resolve_value(obj, env)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def client_config_from_defaults(defaults: dict, env: dict[str, str]) -> ClientConfig:
    """Build a ClientConfig from a config ``defaults`` section."""
    resolved = resolve_in_obj(defaults, env)
    headers = resolved.get("headers") or {}
    return ClientConfig(
        base_url=resolved.get("base_url") or "",
        prefix=resolved.get("prefix") or "",
        headers={str(k): str(v) for k, v in headers.items()},
        debug=_as_bool(resolved.get("debug", False)),
    )


def client_config_from_file(config_file: str | None = None) -> ClientConfig:
    """Resolve, load and interpret a config file in one step.

    Missing files give an empty ClientConfig (no base URL, no headers).
    """
    config = load_config(resolve_config_path(config_file))
    defaults = config.get("defaults", {})
    env = load_env(defaults.get("env_file"), config.get("_config_dir") or ".")
    return client_config_from_defaults(defaults, env)
