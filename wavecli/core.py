"""wavecli core - config loading, environment scope, variable resolution."""

import logging
import os
from pathlib import Path
from typing import Mapping

import yaml
from dotenv import dotenv_values

from wavecli.errors import ConfigError, MissingVariable, VariableKind

logger = logging.getLogger(__name__)

DEFAULT_DIR = Path(".wave")
DIR_ENV_VAR = "WAVE_DIR"
CONFIG_CANDIDATES = ["config.yaml", "config.yml"]

ENV_PREFIX = "env:"


def resolve_collections_dir(cli_dir: str | None = None) -> Path:
    """Find the collections directory to use.

    Resolution order:
      1. --dir CLI flag
      2. $WAVE_DIR
      3. ./.wave in CWD
    """
    if cli_dir:
        return Path(cli_dir)
    env_dir = os.environ.get(DIR_ENV_VAR)
    if env_dir:
        return Path(env_dir)
    return DEFAULT_DIR


def resolve_config_path(collections_dir: Path) -> Path | None:
    """Return the first existing config file inside the collections directory."""
    for name in CONFIG_CANDIDATES:
        p = collections_dir / name
        if p.is_file():
            return p
    return None


def load_config(config_path: str | Path | None) -> dict:
    """Load YAML config file. Returns empty defaults if not found.

    Stores '_config_dir' in the returned dict so env_file can be
    resolved relative to the config file.
    """
    if config_path is None:
        return {"defaults": {}, "_config_dir": None}
    path = Path(config_path)
    if not path.exists():
        return {"defaults": {}, "_config_dir": None}
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file '{path}': {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file '{path}' must be a mapping")
    defaults = data.get("defaults") or {}
    if not isinstance(defaults, dict):
        raise ConfigError(f"'defaults' in '{path}' must be a mapping")
    logger.debug("loaded config from %s", path)
    return {
        "defaults": defaults,
        "_config_dir": path.resolve().parent,
    }


def load_env(env_file: str | None, base_dir: str | Path | None = None) -> dict[str, str]:
    """Build the ${env:...} scope.

    Starts from os.environ; values from the .env file, when given and
    present, take precedence.
    """
    env = dict(os.environ)
    if env_file:
        dotenv_path = Path(base_dir or ".") / env_file
        if dotenv_path.exists():
            dotenv_vars = dotenv_values(str(dotenv_path))
            env.update({k: v for k, v in dotenv_vars.items() if v is not None})
            logger.debug("loaded %d variables from %s", len(dotenv_vars), dotenv_path)
        else:
            logger.warning("env_file %s does not exist", dotenv_path)
    return env


def resolve_vars(
    text: str,
    file_vars: Mapping[str, str],
    env: Mapping[str, str] | None = None,
) -> str:
    """Substitute ${name} and ${env:NAME} placeholders in text.

    ${name} is looked up in file_vars, ${env:NAME} in env (os.environ when
    env is None). Substituted values are not scanned again. An unterminated
    ${ takes the rest of the string as the variable name.

    Raises MissingVariable on the first unknown name; nothing is returned
    for a partially resolved string.
    """
    if env is None:
        env = os.environ

    out: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        if text.startswith("${", i):
            end = text.find("}", i + 2)
            if end == -1:
                name = text[i + 2 :]
                i = n
            else:
                name = text[i + 2 : end]
                i = end + 1
            out.append(_lookup(name, file_vars, env))
        else:
            out.append(text[i])
            i += 1
    return "".join(out)


def _lookup(name: str, file_vars: Mapping[str, str], env: Mapping[str, str]) -> str:
    if name.startswith(ENV_PREFIX):
        var = name[len(ENV_PREFIX) :]
        if var not in env:
            raise MissingVariable(var, VariableKind.ENVIRONMENT)
        return env[var]
    if name not in file_vars:
        raise MissingVariable(name, VariableKind.FILE)
    return file_vars[name]
