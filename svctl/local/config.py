import logging
from pathlib import Path
from typing import Any, Dict, Optional

import svctl.settings as default_settings

log = logging.getLogger(__name__)

_DERIVED_PATHS = ("BASE_PATH", "LOG_PATH", "DATA_PATH", "ETC_PATH")


class CtlSettings:
    """
    Settings for one installed product, built once at startup and handed to
    every component that needs them.

    It follows a clear precedence:
    1. Base values from `settings.py` (which already include `.env` and
       environment overrides).
    2. Paths derived from the product name for any path left empty.
    3. Keyword overrides passed by the caller, restricted to the keys in
       `OVERRIDABLE_SETTINGS`.
    """

    def __init__(self, name: Optional[str] = None, **overrides: Any) -> None:
        """
        :param name: The product name (e.g. 'opscode'). Defaults to SVCTL_NAME.
        :param overrides: Uppercase setting names mapped to replacement values.
        """
        self._load_defaults()
        self.NAME: str = name or default_settings.NAME
        self._derive_paths(overrides)
        self._apply_overrides(overrides)

    def _load_defaults(self) -> None:
        """Loads all uppercase attributes from the settings.py module as defaults."""
        for key in dir(default_settings):
            if key.isupper():
                setattr(self, key, getattr(default_settings, key))

    def _derive_paths(self, overrides: Dict[str, Any]) -> None:
        """Computes the product directories, honouring explicit path overrides first."""
        fallbacks = {
            "BASE_PATH": f"/opt/{self.NAME}",
            "LOG_PATH": f"/var/log/{self.NAME}",
            "DATA_PATH": f"/var/opt/{self.NAME}",
            "ETC_PATH": f"/etc/{self.NAME}",
        }
        for key in _DERIVED_PATHS:
            value = overrides.pop(key, None) or getattr(self, key) or fallbacks[key]
            setattr(self, key, Path(value))

        self.DISPLAY_NAME = overrides.pop("DISPLAY_NAME", None) or self.DISPLAY_NAME or self.NAME
        self.SV_PATH = Path(overrides.pop("SV_PATH", None) or self.BASE_PATH / "sv")
        self.SERVICE_PATH = Path(overrides.pop("SERVICE_PATH", None) or self.BASE_PATH / "service")
        self.INIT_CONF_PATH = Path(
            overrides.pop("INIT_CONF_PATH", None) or self.INIT_CONF_TEMPLATE.format(name=self.NAME)
        )
        commands_path = overrides.pop("COMMANDS_PATH", None) or self.COMMANDS_PATH
        self.COMMANDS_PATH = Path(commands_path) if commands_path else None

    def _apply_overrides(self, overrides: Dict[str, Any]) -> None:
        """Applies the remaining keyword overrides, ignoring keys that may not be changed."""
        for key, value in overrides.items():
            if key not in self.OVERRIDABLE_SETTINGS:
                log.warning(f"Setting '{key}' cannot be overridden. Ignoring.")
                continue

            # Coerce path strings back to Path objects if necessary
            if isinstance(getattr(self, key, None), Path) and isinstance(value, str):
                value = Path(value)
            setattr(self, key, value)
            log.debug(f"Overridden setting: {key} = {value}")

    #* --- Derived values ---
    @property
    def package_name(self) -> str:
        """Translates the product name into the package name its running config uses."""
        return self.PACKAGE_NAME_ALIASES.get(self.NAME, self.NAME)

    @property
    def package_key(self) -> str:
        """The key of this product's section inside the running config document."""
        return self.package_name.replace("-", "_")

    @property
    def running_config_path(self) -> Path:
        return self.ETC_PATH / self.RUNNING_CONFIG_FILENAME

    @property
    def runsvdir_start_path(self) -> Path:
        return self.BASE_PATH / "embedded" / "bin" / "runsvdir-start"

    @property
    def bin_paths(self) -> list:
        """Directories prepended to PATH so the product's own binaries win."""
        return [self.BASE_PATH / "bin", self.BASE_PATH / "embedded" / "bin"]

    def init_script(self, service: str) -> Path:
        """The per-service supervisor entrypoint (`<base>/init/<service>`)."""
        return self.BASE_PATH / "init" / service

    def pid_file_path(self, service: str) -> Path:
        """The pid file runit's `supervise` keeps for a running service."""
        return self.SV_PATH / service / self.SUPERVISE_PID_FILE
