import os
import sys
import logging
import setproctitle
from typing import List, Optional

from svctl.log.setup import setup_logging
from svctl.local.config import CtlSettings
from svctl.local.console import Ctl
from svctl.local.supervisor import RunningConfig, ServiceManager

log = logging.getLogger("svctl")


def build_ctl(name: Optional[str] = None, **overrides) -> Ctl:
    """
    Builds a controller for one product: settings, the running config (read
    once), the service manager, built-in commands and extension commands.

    :param name: The product name; defaults to SVCTL_NAME.
    :param overrides: Setting overrides passed to CtlSettings.
    :return: A controller ready to run one command line.
    """
    settings = CtlSettings(name, **overrides)
    running_config = RunningConfig.load(settings.running_config_path, settings.package_key)
    manager = ServiceManager(settings, running_config)
    ctl = Ctl(manager, program=os.path.basename(sys.argv[0]) or f"{settings.NAME}-ctl")
    ctl.load_files(settings.COMMANDS_PATH)
    return ctl


def main(argv: Optional[List[str]] = None, name: Optional[str] = None) -> int:
    """The main entry point: `svctl <command> [<service>] [options...]`."""
    args = sys.argv[1:] if argv is None else list(argv)
    setup_logging(logging.INFO)
    # inittab and config backups are written as 0644/0755.
    os.umask(0o022)

    try:
        ctl = build_ctl(name)
        setproctitle.setproctitle(f"{ctl.settings.NAME}-ctl - {args[0] if args else 'help'}")
        return ctl.run(args)
    except KeyboardInterrupt:
        log.warning("Interrupted.")
        return 130
    except Exception as e:
        log.error(f"An unexpected error occurred: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
