"""
This module contains the default configuration settings for svctl.
It defines the product identity, the supervision tree layout, teardown
behaviour and log tailing rules. Every value can be overridden through the
environment (or a `.env` file) and is consumed by `svctl.local.config`,
which derives the per-product paths from these defaults.
"""

import os
import pathlib
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=True)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('true', '1', 't', 'yes', 'y')


def _env_list(name: str) -> list:
    return [item.strip() for item in os.getenv(name, "").split(",") if item.strip()]


#* --- Product Identity ---
NAME = os.getenv("SVCTL_NAME", "svctl")
DISPLAY_NAME = os.getenv("SVCTL_DISPLAY_NAME", "")  # Empty means "same as NAME"

#* --- Core Paths ---
# Empty values are derived from NAME: /opt/<name>, /var/log/<name>, /var/opt/<name>, /etc/<name>
BASE_PATH = os.getenv("SVCTL_BASE_PATH", "")
LOG_PATH = os.getenv("SVCTL_LOG_PATH", "")
DATA_PATH = os.getenv("SVCTL_DATA_PATH", "")
ETC_PATH = os.getenv("SVCTL_ETC_PATH", "")
BACKUP_ROOT = pathlib.Path(os.getenv("SVCTL_BACKUP_ROOT", "/root"))
COMMANDS_PATH = os.getenv("SVCTL_COMMANDS_PATH", "")  # Directory of extension command files

#* --- Controller Settings ---
SERVICE_COMMANDS = _env_flag("SVCTL_SERVICE_COMMANDS", "True")
KILL_USERS = _env_list("SVCTL_KILL_USERS")
LOG_FILE = os.getenv("SVCTL_LOG_FILE", "")
VERBOSE = False

#* --- Supervisor (runit) Settings ---
SV_COMMAND_NAMES = (
    "status", "up", "down", "once", "pause", "cont", "hup", "alarm", "interrupt", "quit",
    "term", "kill", "start", "stop", "restart", "shutdown", "force-stop",
    "force-reload", "force-restart", "force-shutdown", "check",
)
# Services that only answer 'status' when a command is broadcast to every service.
SINGLETON_SERVICES = frozenset({"keepalived"})
# Products whose running config is keyed under a different package name.
PACKAGE_NAME_ALIASES = {"opscode": "private-chef"}
RUNNING_CONFIG_FILENAME = "chef-server-running.json"
SUPERVISE_PID_FILE = pathlib.Path("supervise") / "pid"
UNEXECUTABLE_COMMAND_STATUS = 127

#* --- Teardown Settings ---
INIT_CONF_TEMPLATE = "/etc/init/{name}-runsvdir.conf"
INITTAB_PATH = pathlib.Path("/etc/inittab")
TEARDOWN_TEMP_PATH = "/tmp/opt"
SIGNAL_ESCALATION = ("SIGHUP", "SIGTERM", "SIGKILL")
SIGNAL_ESCALATION_PAUSE = 3    # seconds between signal tiers
CLEANSE_COUNTDOWN = 60         # seconds to hit CTRL-C before a cleanse starts
BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M"

#* --- Log Tailing ---
LOG_EXCLUDE = r"(config|lock|@|gzip|tgz|gz)"
LOG_PATH_EXCLUDE = ("*/sasl/*",)
TAIL_POLL_INTERVAL = 1  # seconds

#* --- Settings that `CtlSettings` accepts as keyword overrides ---
OVERRIDABLE_SETTINGS = {
    "DISPLAY_NAME", "BASE_PATH", "SV_PATH", "SERVICE_PATH", "LOG_PATH", "DATA_PATH",
    "ETC_PATH", "BACKUP_ROOT", "COMMANDS_PATH", "SERVICE_COMMANDS", "KILL_USERS",
    "VERBOSE", "SINGLETON_SERVICES", "PACKAGE_NAME_ALIASES", "INIT_CONF_PATH",
    "INITTAB_PATH", "TEARDOWN_TEMP_PATH", "SIGNAL_ESCALATION_PAUSE", "CLEANSE_COUNTDOWN",
    "LOG_EXCLUDE", "LOG_PATH_EXCLUDE", "TAIL_POLL_INTERVAL",
}
