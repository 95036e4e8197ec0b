import re
import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, FrozenSet, Mapping, Optional
from svctl.local.errors import UnresolvedProcess

log = logging.getLogger(__name__)

_PID_PATTERN = re.compile(r"^\d+$")


def _freeze(value: Any) -> Any:
    """Recursively turns a parsed JSON value into read-only containers."""
    if isinstance(value, dict):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value


class RunningConfig:
    """
    The running configuration written by the last reconfigure, read once per
    process and treated as immutable afterwards.

    A missing document is a valid state (a fresh install) and every query
    against it returns an empty set.
    """

    def __init__(self, document: Optional[Mapping[str, Any]] = None, package_key: str = "",
                 source: Optional[Path] = None) -> None:
        self._document = _freeze(dict(document or {}))
        self.package_key = package_key
        self.source = source

    @classmethod
    def empty(cls, package_key: str = "") -> "RunningConfig":
        return cls(None, package_key)

    @classmethod
    def load(cls, path: Path, package_key: str) -> "RunningConfig":
        """
        Reads and parses the running config file.

        :param path: Location of the JSON document.
        :param package_key: The product's section key inside the document.
        :return: The loaded config, or an empty one if the file is absent or unreadable.
        """
        if not path.exists():
            log.debug(f"No running config at {path}; assuming a fresh install.")
            return cls.empty(package_key)

        try:
            with path.open("r", encoding="utf-8") as f:
                document = json.load(f)
        except (ValueError, OSError) as e:
            log.error(f"Failed to load or parse running config '{path}': {e}")
            return cls.empty(package_key)

        if not isinstance(document, dict):
            log.error(f"Running config '{path}' is not a JSON object. Ignoring it.")
            return cls.empty(package_key)

        log.debug(f"Loaded running config from {path}")
        return cls(document, package_key, source=path)

    @property
    def is_empty(self) -> bool:
        return not self._document

    @property
    def document(self) -> Mapping[str, Any]:
        return self._document

    def section(self) -> Mapping[str, Any]:
        """The product's own sub-document, or an empty mapping."""
        section = self._document.get(self.package_key)
        return section if isinstance(section, Mapping) else MappingProxyType({})

    def _service_set(self, key: str) -> FrozenSet[str]:
        services = self.section().get(key) or ()
        return frozenset(services)

    @property
    def removed_services(self) -> FrozenSet[str]:
        """Services removed by an upgrade; they only answer a broadcast 'stop'."""
        return self._service_set("removed_services")

    @property
    def hidden_services(self) -> FrozenSet[str]:
        """Services left out of a broadcast 'status'."""
        return self._service_set("hidden_services")


def read_pid_file(pid_path: Path) -> int:
    """
    Reads the pid runit recorded for a service.

    :param pid_path: The service's `supervise/pid` file.
    :return: The pid as a positive integer.
    :raises UnresolvedProcess: If the file is missing, unreadable or malformed.
    """
    try:
        content = pid_path.read_text().strip()
    except (FileNotFoundError, IsADirectoryError):
        raise UnresolvedProcess(f"pid file {pid_path} does not exist")
    except (IOError, OSError) as e:
        raise UnresolvedProcess(f"could not read pid file {pid_path}: {e}")

    if not _PID_PATTERN.match(content) or int(content) <= 0:
        raise UnresolvedProcess(f"pid file {pid_path} holds a malformed pid: {content!r}")
    return int(content)
