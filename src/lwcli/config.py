"""Where lwcli keeps its state, and how a run decides which account to use.

On Linux and the BSDs the XDG base directories are honoured::

    $XDG_CONFIG_HOME/lwcli/config.json          global settings
    $XDG_CONFIG_HOME/lwcli/profiles/<name>.json one file per Lacework account
    $XDG_CACHE_HOME/lwcli/                      release-check cache
    $XDG_DATA_HOME/lwcli/                       crash logs

Everywhere else everything lives under ``~/.lwcli/`` (with ``cache/`` and
``logs/`` subdirectories). Generated Terraform goes to ``~/lacework`` unless
``--output-dir`` says otherwise.

:func:`resolve_config` layers CLI flags over ``LW_*`` environment variables
over the saved profile; :func:`resolve_credential` turns a stored secret
reference (``env:``, ``file:``, ``prompt``) into the secret itself.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Optional, TypeVar

from pydantic import BaseModel

from lwcli.exceptions import ConfigError
from lwcli.models import GlobalConfig, Profile

_APP_NAME = "lwcli"
_CONFIG_FILENAME = "config.json"
_GENERATE_DIRNAME = "lacework"

_TRUTHY = ("1", "true", "yes", "on")

# Profile fields that may be overridden per run, with their environment variable.
_PROFILE_ENV = {
    "account": "LW_ACCOUNT",
    "subaccount": "LW_SUBACCOUNT",
    "api_key": "LW_API_KEY",
    "api_secret": "LW_API_SECRET",
}

_M = TypeVar("_M", bound=BaseModel)


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(xdg_var: str, xdg_default: str, fallback: str = "") -> Path:
    """Resolve and create one of lwcli's base directories.

    *xdg_default* is relative to ``$HOME`` and used when *xdg_var* is unset;
    *fallback* is the subdirectory of ``~/.lwcli`` used off XDG platforms.
    """
    if _is_xdg_platform():
        base = os.environ.get(xdg_var) or str(Path.home() / xdg_default)
        path = Path(base) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
        if fallback:
            path = path / fallback
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    return _app_dir("XDG_CONFIG_HOME", ".config")


def get_cache_dir() -> Path:
    """Directory for the release-check cache. Deleting it is always safe."""
    return _app_dir("XDG_CACHE_HOME", ".cache", "cache")


def get_data_dir() -> Path:
    """Directory that receives ``crash.log`` when a command dies unexpectedly."""
    return _app_dir("XDG_DATA_HOME", os.path.join(".local", "share"), "logs")


def get_profiles_dir() -> Path:
    path = get_config_dir() / "profiles"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_generate_dir() -> Path:
    """Default home of generated Terraform. Created by the writer, not here."""
    return Path.home() / _GENERATE_DIRNAME


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* so readers see either the old or the new file.

    The data goes to a sibling temporary file which is then renamed over
    *path*; the temporary file is removed if anything fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_name: Optional[str] = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def _write_model(path: Path, model: BaseModel) -> None:
    _atomic_write(path, json.dumps(model.model_dump(mode="json"), indent=2) + "\n")


def _read_model(path: Path, model: type[_M], label: str) -> _M:
    try:
        return model.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except ValueError as exc:
        # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors.
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Read ``config.json``; a missing file means all defaults.

    Raises:
        ConfigError: If the file is not valid JSON or does not validate.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    return _read_model(path, GlobalConfig, "global config")


def save_global_config(config: GlobalConfig) -> None:
    _write_model(_global_config_path(), config)


def _profile_path(name: str) -> Path:
    return get_profiles_dir() / f"{name}.json"


def list_profiles() -> list[str]:
    return sorted(p.stem for p in get_profiles_dir().glob("*.json") if p.is_file())


def profile_exists(name: str) -> bool:
    return _profile_path(name).is_file()


def load_profile(name: str) -> Profile:
    """Read the saved profile *name*.

    Raises:
        ConfigError: If it has never been configured or its file is corrupt.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(
            f"Profile '{name}' not found at {path}. Run 'lwcli configure' to create it."
        )
    return _read_model(path, Profile, f"profile '{name}'")


def save_profile(profile: Profile) -> None:
    _write_model(_profile_path(profile.name), profile)


def delete_profile(name: str) -> None:
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    path.unlink()


def env_flag(name: str) -> bool:
    """True when the environment variable *name* is set to 1, true, yes or on."""
    return os.environ.get(name, "").strip().lower() in _TRUTHY


def resolve_config(
    cli_profile: Optional[str] = None,
    cli_account: Optional[str] = None,
    cli_subaccount: Optional[str] = None,
    cli_api_key: Optional[str] = None,
    cli_api_secret: Optional[str] = None,
) -> tuple[GlobalConfig, Profile]:
    """Work out the global settings and the Lacework profile for this run.

    Each profile field comes from the first of: its CLI flag, its ``LW_*``
    environment variable, the saved profile. The profile name itself comes
    from ``--profile``, then ``LW_PROFILE``, then the global default, and
    ``LW_NONINTERACTIVE`` switches prompting off regardless of the global
    config.

    A run can work without any saved profile as long as an account and an
    API key are supplied by flags or the environment.

    Raises:
        ConfigError: If there is no saved profile and no account or API key
            to build one from.
    """
    global_cfg = load_global_config()
    if env_flag("LW_NONINTERACTIVE"):
        global_cfg.noninteractive = True

    profile_name = cli_profile or os.environ.get("LW_PROFILE") or global_cfg.default_profile

    flags = {
        "account": cli_account,
        "subaccount": cli_subaccount,
        "api_key": cli_api_key,
        "api_secret": cli_api_secret,
    }
    overrides = {}
    for field, env_var in _PROFILE_ENV.items():
        value = flags[field] or os.environ.get(env_var)
        if value:
            overrides[field] = value

    if profile_exists(profile_name):
        return global_cfg, load_profile(profile_name).model_copy(update=overrides)

    if "account" not in overrides or "api_key" not in overrides:
        raise ConfigError(
            f"Profile '{profile_name}' not found and no account/api key supplied. "
            "Run 'lwcli configure' or set LW_ACCOUNT and LW_API_KEY."
        )
    return global_cfg, Profile(name=profile_name, **overrides)


def resolve_credential(source: str) -> str:
    """Return the API secret described by *source*.

    ``env:NAME`` reads an environment variable, ``file:PATH`` reads a file
    (surrounding whitespace stripped), ``prompt`` asks on the terminal, and
    any other value is the secret itself.

    Raises:
        ConfigError: If the variable is unset, the file is unreadable, or a
            prompt is needed without a terminal.
    """
    kind, _, ref = source.partition(":")

    if kind == "env" and ref:
        value = os.environ.get(ref)
        if value is None:
            raise ConfigError(f"Environment variable '{ref}' is not set (source: {source})")
        return value

    if kind == "file" and ref:
        path = Path(ref).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError("Cannot prompt for the API secret: stdin is not a TTY")
        return getpass.getpass("Secret key: ")

    return source
