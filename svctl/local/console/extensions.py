"""
Loads extension command files.

Every `*.py` file in the commands directory is imported once at startup. A
file adds commands by defining a module-level `register(ctl)` function:

    def register(ctl):
        @ctl.add_command_under_category("backup", "data", "Back up the database.", 2)
        def backup(command, service=None):
            ...
            return 0
"""
import logging
import importlib.util
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .process import Ctl

log = logging.getLogger(__name__)

MODULE_PREFIX = "svctl_commands"


def load_file(ctl: "Ctl", path: Path) -> None:
    """
    Imports one extension file and lets it register its commands.

    :param ctl: The controller the commands are added to.
    :param path: The extension's `.py` file.
    :raises ImportError: If the file cannot be loaded.
    """
    module_name = f"{MODULE_PREFIX}.{path.stem.replace('-', '_')}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load extension commands from {path}")

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    register = getattr(module, "register", None)
    if not callable(register):
        log.warning(f"Extension file {path} has no register(ctl) function. Skipping.")
        return
    register(ctl)
    log.debug(f"Loaded extension commands from {path}")


def load_files(ctl: "Ctl", path: Optional[Path]) -> int:
    """
    Loads every extension file in a directory, in name order.

    :param ctl: The controller the commands are added to.
    :param path: The commands directory; nothing is loaded if it is None or missing.
    :return: The number of files loaded.
    """
    if path is None or not Path(path).is_dir():
        return 0

    loaded = 0
    for file in sorted(Path(path).glob("*.py")):
        load_file(ctl, file)
        loaded += 1
    return loaded
