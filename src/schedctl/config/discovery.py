"""Profiles file discovery, include resolution, and loading.

Search order for the profiles file: ``--config`` flag, ``SCHEDCTL_CONFIG``
env var, then each directory of :func:`config_search_paths` with every
supported extension.
"""

from __future__ import annotations

import glob
import json
import os
import re
import shutil
import tomllib
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

CONFIG_BASENAME = "profiles"
CONFIG_ENV_VAR = "SCHEDCTL_CONFIG"
CONFIG_EXTENSIONS: tuple[str, ...] = (".toml", ".yaml", ".yml", ".json")
APP_DIRNAME = "schedctl"
INCLUDES_KEY = "includes"

_UNBALANCED_CLASS = re.compile(r"\[[^\]]*$")


class ConfigNotFoundError(FileNotFoundError):
    """No profiles file exists in any search path."""


class ConfigError(ValueError):
    """The profiles file (or one of its includes) cannot be parsed."""


class IncludeError(ValueError):
    """An include pattern is malformed."""


def config_search_paths() -> list[Path]:
    """Directories searched for the profiles file, most specific first."""
    home = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    config_dirs = os.environ.get("XDG_CONFIG_DIRS") or "/etc/xdg"

    paths = [Path(), home / APP_DIRNAME]
    paths.extend(Path(d) / APP_DIRNAME for d in config_dirs.split(os.pathsep) if d)
    paths.extend([Path("/usr/local/etc") / APP_DIRNAME, Path("/etc") / APP_DIRNAME])
    return paths


def find_configuration_file(name: str = CONFIG_BASENAME) -> Path:
    """Locate *name* in the search paths.

    A name with an extension is looked up as-is; a bare name is tried with
    each of :data:`CONFIG_EXTENSIONS`. Relative results stay relative to
    the working directory.

    Raises:
        ConfigNotFoundError: nothing matched in any search path.
    """
    expanded = Path(shell_expand(name))
    if expanded.suffix:
        candidates = [expanded]
    else:
        candidates = [expanded.with_name(expanded.name + ext) for ext in CONFIG_EXTENSIONS]

    if expanded.is_absolute():
        search_paths = [Path("/")]
    else:
        search_paths = config_search_paths()

    for directory in search_paths:
        for candidate in candidates:
            path = directory / candidate
            if path.is_file():
                return path

    searched = ", ".join(str(p) for p in search_paths)
    msg = f"could not locate {name!r} in any of the following paths: {searched}"
    raise ConfigNotFoundError(msg)


def find_config(explicit: str | Path | None = None) -> Path | None:
    """Resolve the profiles file to use, or None if there is none.

    Checks *explicit* first, then ``SCHEDCTL_CONFIG``, then the search paths.
    """
    if explicit:
        p = Path(shell_expand(str(explicit)))
        return p if p.is_file() else None

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(shell_expand(env_path))
        if p.is_file():
            return p
        return None

    try:
        return find_configuration_file()
    except ConfigNotFoundError:
        return None


def find_configuration_includes(config_file: Path, patterns: list[str]) -> list[Path]:
    """Resolve include glob *patterns* relative to *config_file*'s directory.

    Matches are sorted per pattern and patterns keep their order.
    Duplicates and *config_file* itself are dropped.

    Raises:
        IncludeError: a pattern is malformed.
    """
    base_dir = config_file.parent
    own = config_file.resolve()
    seen: set[Path] = set()
    results: list[Path] = []

    for pattern in patterns:
        if not pattern or _UNBALANCED_CLASS.search(pattern):
            msg = f"invalid include pattern {pattern!r}"
            raise IncludeError(msg)
        expanded = shell_expand(pattern)
        if not os.path.isabs(expanded):
            expanded = str(base_dir / expanded)
        for match in sorted(glob.glob(expanded)):
            path = Path(match)
            resolved = path.resolve()
            if resolved == own or resolved in seen or not path.is_file():
                continue
            seen.add(resolved)
            results.append(path)
    return results


def shell_expand(path: str) -> str:
    """Expand ``~``, ``~user`` and ``$VAR`` references in *path*."""
    return os.path.expandvars(os.path.expanduser(path))


def find_binary(name: str) -> Path:
    """Locate an executable: an existing (shell-expanded) path, else a PATH lookup.

    Raises:
        FileNotFoundError: *name* is neither a file nor on PATH.
    """
    expanded = Path(shell_expand(name))
    if expanded.is_file():
        return expanded.absolute()
    found = shutil.which(name)
    if found is None:
        msg = f"cannot find executable {name!r}"
        raise FileNotFoundError(msg)
    return Path(found)


def load_profiles_file(path: Path) -> dict[str, Any]:
    """Parse *path* by extension and merge its include files in order.

    Later files override earlier ones; nested tables are merged key by key.
    Includes of included files are not followed.
    """
    data = _read_file(path)
    patterns = data.pop(INCLUDES_KEY, [])
    if isinstance(patterns, str):
        patterns = [patterns]
    try:
        include_files = find_configuration_includes(path, list(patterns))
    except IncludeError as exc:
        msg = f"{path}: {exc}"
        raise ConfigError(msg) from exc

    for include in include_files:
        extra = _read_file(include)
        extra.pop(INCLUDES_KEY, None)
        data = _deep_merge(data, extra)
    return data


def _read_file(path: Path) -> dict[str, Any]:
    raw = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    try:
        if suffix in (".yaml", ".yml"):
            data = YAML(typ="safe").load(raw)
        elif suffix == ".json":
            data = json.loads(raw) if raw.strip() else {}
        else:
            data = tomllib.loads(raw)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError, YAMLError) as exc:
        msg = f"Invalid configuration in {path}: {exc}"
        raise ConfigError(msg) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Invalid configuration in {path}: top level must be a table"
        raise ConfigError(msg)
    return dict(data)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged
