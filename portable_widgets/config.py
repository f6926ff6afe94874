# portable_widgets/config.py
from __future__ import annotations
import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional
import yaml


ENV_VAR = "PORTABLE_WIDGETS_CONFIG"
DEFAULT_CONFIG_FILE = "portable_widgets.yaml"

DEFAULTS: Dict[str, Any] = {
    "element_name": "portable-lumino-adapter",
    "style_id": "jupyter-portable-widgets-style",
    "icon_font_url": "https://cdn.jsdelivr.net/npm/font-awesome@4.7.0/css/font-awesome.min.css",
    # Path to a stylesheet replacing the bundled baseline CSS.
    "stylesheet": None,
    # Widget module name -> importable Python module path.
    "module_paths": {},
}


class Config:
    """
    Config loader that layers a YAML file over built-in defaults.

    Usage:
        cfg = Config()                       # env var, then ./portable_widgets.yaml
        cfg = Config("site.yaml")            # explicit file
        url = cfg.get("icon_font_url")
        path = cfg.get_nested("module_paths.@acme/charts")
        cfg.reload()

    Parameters:
      config_file: path to a YAML config. When omitted the PORTABLE_WIDGETS_CONFIG
        environment variable is consulted, then portable_widgets.yaml in the cwd.
      overrides: values applied on top of the file, mostly useful in tests.
    """

    def __init__(
        self,
        config_file: Optional[os.PathLike | str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ):
        self.config_file_arg = config_file
        self.overrides = dict(overrides or {})

        self._config: Dict[str, Any] = {}
        self._source: Optional[str] = None  # 'file' or None

        self._resolved_config_path: Optional[Path] = self._resolve_config_path(config_file)

        self.reload()

    # ----- public API -----
    def reload(self) -> None:
        """Re-read the YAML file (if any) and re-apply overrides."""
        config = copy.deepcopy(DEFAULTS)
        loaded = self._load_file()
        if loaded is not None:
            config.update(loaded)
            self._source = "file"
        else:
            self._source = None
        config.update(self.overrides)
        self._config = config

    def as_dict(self) -> Dict[str, Any]:
        """Return the effective configuration as a dict."""
        return dict(self._config)

    def get(self, key: str, default: Any = None) -> Any:
        """Shallow lookup in the top-level config dict."""
        return self._config.get(key, default)

    def get_nested(self, path: str, default: Any = None, sep: str = ".") -> Any:
        """
        Lookup nested keys using a dot path (e.g. "module_paths.mywidgets").
        Returns default if any step is missing.
        """
        cur = self._config
        if not path:
            return default
        for part in path.split(sep):
            if not isinstance(cur, dict):
                return default
            if part in cur:
                cur = cur[part]
            else:
                return default
        return cur

    @property
    def source(self) -> Optional[str]:
        """Return 'file' if a YAML file was loaded, otherwise None."""
        return self._source

    @property
    def resolved_config_path(self) -> Optional[Path]:
        return self._resolved_config_path

    # ----- internal helpers -----
    def _resolve_config_path(self, config_file) -> Optional[Path]:
        """
        Resolution order:
          1. explicit config_file (must exist, otherwise FileNotFoundError)
          2. $PORTABLE_WIDGETS_CONFIG
          3. ./portable_widgets.yaml
        """
        if config_file is not None:
            candidate = Path(config_file)
            if not candidate.exists():
                raise FileNotFoundError(f"Config file not found: {candidate}")
            return candidate.resolve()

        env_path = os.environ.get(ENV_VAR)
        if env_path and Path(env_path).exists():
            return Path(env_path).resolve()

        cwd_path = Path.cwd() / DEFAULT_CONFIG_FILE
        if cwd_path.exists():
            return cwd_path.resolve()

        return None

    def _load_file(self) -> Optional[Dict[str, Any]]:
        if not self._resolved_config_path:
            return None
        with self._resolved_config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(
                f"{self._resolved_config_path}: expected a mapping at the top level, "
                f"got {type(data).__name__}"
            )
        return data


_shared: Optional[Config] = None


def get_config() -> Config:
    """Return the process-wide Config, loading it on first use."""
    global _shared
    if _shared is None:
        _shared = Config()
    return _shared
