"""Configuration management for tilerender.

This module handles loading and managing configuration settings using
Dynaconf. Settings are loaded from multiple locations in order of
increasing priority:

1. Global settings (/etc/tilerender/)
2. User settings (~/.config/tilerender/)
3. Current directory settings (./)
4. Environment variable specified file (TILERENDER_SETTINGS_FILE_FOR_DYNACONF)

Every key can also be overridden with a ``TILERENDER_`` environment
variable, e.g. ``TILERENDER_CACHE_ENABLED=true``.

Attributes
----------
USER_DIR : pathlib.Path
    Path to user configuration directory.
GLOB_DIR : pathlib.Path
    Path to global configuration directory.
CURR_DIR : pathlib.Path
    Path to current working directory.
DEFAULTS : dict
    Fallback values for every key the renderer reads.
settings : Dynaconf
    The Dynaconf settings object with loaded configuration.
"""
import os
import pathlib

from dynaconf import Dynaconf

USER_DIR = pathlib.Path("~/.config/tilerender").expanduser()
GLOB_DIR = pathlib.Path("/etc/tilerender/")
CURR_DIR = pathlib.Path("./").absolute()
settings_files = [
    GLOB_DIR / "settings.toml",
    GLOB_DIR / ".secrets.toml",
    USER_DIR / "settings.toml",
    USER_DIR / ".secrets.toml",
    CURR_DIR / "settings.toml",
    CURR_DIR / ".secrets.toml"
    ]
extra_file = os.getenv("TILERENDER_SETTINGS_FILE_FOR_DYNACONF")
if extra_file:
    settings_files.append(pathlib.Path(extra_file).absolute())

DEFAULTS = {
    "tile_size": 256,
    "cache_enabled": False,
    "crop_geometries": False,
    "padding_share": 0.0,
    "cache_max_entries": 4096,
    "cache_max_bytes": 256 * 1024 * 1024,
}

settings = Dynaconf(
    merge_enabled=True,
    envvar_prefix="TILERENDER",
    settings_files=settings_files,
    environments=True,
    load_dotenv=True,
)


def change_env(new_env):
    """Change the active Dynaconf environment.

    Parameters
    ----------
    new_env : str
        The environment name to switch to (e.g., 'development', 'production').
    """
    settings.setenv(new_env)
    settings.reload()


def renderer_options(source=None):
    """Collect the renderer options from the settings object.

    Parameters
    ----------
    source : Dynaconf or dict, optional
        Settings to read from. Defaults to the module level ``settings``.

    Returns
    -------
    dict
        One entry per key of ``DEFAULTS``.

    Raises
    ------
    ValueError
        If ``padding_share`` is outside ``[0, 1)`` or ``tile_size`` is not
        positive.
    """
    source = settings if source is None else source
    options = {key: source.get(key, default) for key, default in DEFAULTS.items()}
    options["tile_size"] = int(options["tile_size"])
    options["padding_share"] = float(options["padding_share"])
    options["cache_enabled"] = bool(options["cache_enabled"])
    options["crop_geometries"] = bool(options["crop_geometries"])
    if not 0.0 <= options["padding_share"] < 1.0:
        raise ValueError(
            f"padding_share must be in [0, 1), got {options['padding_share']}")
    if options["tile_size"] <= 0:
        raise ValueError(f"tile_size must be positive, got {options['tile_size']}")
    return options
