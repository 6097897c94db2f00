"""core.config
Configuration core: load/save helpers for config.ini.

This module provides a tiny ConfigManager used by the application to read
and persist simple key/value settings. It purposely keeps a small API:
ConfigManager.load(), get(key, fallback), typed getters, and save().
"""

import os
from configparser import ConfigParser
from pathlib import Path
from typing import Optional


class ConfigManager:
    """Simple configuration manager backed by an INI file.

    Behaviour:
    - Uses a single DEFAULT section for lookups.
    - Creates the file with sensible defaults if it does not exist.
    - Defaults to a per-user config path (%APPDATA% on Windows,
      XDG_CONFIG_HOME or ~/.config on other systems) unless an explicit
      path is provided.
    """

    def __init__(self, config_path: Optional[str] = None) -> None:
        if config_path:
            self.config_path = Path(config_path)
        else:
            if os.name == "nt":
                base = Path(os.getenv("APPDATA", Path.home() / "AppData" / "Roaming"))
            else:
                base = Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config"))
            self.config_path = base.joinpath("EdgePaste", "config.ini")

        self.config = ConfigParser()
        self.load()

    def load(self) -> None:
        """Load configuration from disk, creating defaults when needed."""
        if self.config_path.exists():
            self.config.read(self.config_path)

        if "DEFAULT" not in self.config:
            self.config["DEFAULT"] = {}

        defaults = {
            "log_level": "INFO",
            # Initial slider positions
            "scale_factor": "1.0",
            "blur_kernel_size": "7",
            "canny_threshold1": "50",
            "canny_threshold2": "100",
            "remember_parameters": "True",
            # Timing
            "engine_poll_interval_ms": "100",
            "status_clear_ms": "2000",
            "slow_run_threshold_ms": "250",
            "fetch_connect_timeout_s": "5",
            "fetch_read_timeout_s": "30",
            "last_directory": "",
        }

        missing = [key for key in defaults if key not in self.config["DEFAULT"]]
        for key in missing:
            self.config["DEFAULT"][key] = defaults[key]

        # Save if we added any defaults to an existing config
        if self.config_path.exists() and missing:
            self.save()

    def get(self, key: str, fallback=None):
        """Get a configuration value.

        Precedence is env > config.ini > fallback. Environment variables are
        looked up as EP_<KEY>, <KEY> and the raw key.
        """
        env_candidates = [f"EP_{str(key).upper()}", str(key).upper(), str(key)]
        for ek in env_candidates:
            val = os.environ.get(ek)
            if val is not None and str(val) != "":
                return val
        return self.config["DEFAULT"].get(key, fallback)

    def get_int(self, key: str, fallback: int = 0) -> int:
        try:
            return int(float(str(self.get(key, fallback)).strip()))
        except (TypeError, ValueError):
            return fallback

    def get_float(self, key: str, fallback: float = 0.0) -> float:
        try:
            return float(str(self.get(key, fallback)).strip())
        except (TypeError, ValueError):
            return fallback

    def get_bool(self, key: str, fallback: bool = False) -> bool:
        val = self.get(key)
        if val is None:
            return fallback
        return str(val).strip().lower() in ("true", "1", "yes", "on")

    def set(self, key: str, value) -> None:
        self.config["DEFAULT"][key] = str(value)

    def save(self) -> None:
        """Persist current configuration to disk (creates parent directories)."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with self.config_path.open("w", encoding="utf-8") as fh:
            self.config.write(fh)
