import json
import signal
from pathlib import Path

from svctl.local.supervisor import ServiceManager, process_utils


class FakeProcessTable:
    """Stands in for the OS process table: records every signal instead of sending it."""

    def __init__(self):
        self.pgrps = {}      # pid -> pgrp
        self.members = {}    # pgrp -> set of pids still alive after stop
        self.calls = []

    def process_group_of(self, pid):
        self.calls.append(("pgrp_of", pid))
        if pid not in self.pgrps:
            raise process_utils.UnresolvedProcess(f"no pgrp for {pid}")
        return self.pgrps[pid]

    def pids_in_group(self, pgrp):
        self.calls.append(("pids_in_group", pgrp))
        return set(self.members.get(pgrp, set()))

    def signal_group(self, pgrp, sig):
        self.calls.append(("signal_group", pgrp, process_utils.resolve_signal(sig)))
        return True

    def signal_users(self, users, sig):
        self.calls.append(("signal_users", tuple(users), process_utils.resolve_signal(sig)))
        return 0

    def signal_matching(self, pattern, sig):
        self.calls.append(("signal_matching", pattern, process_utils.resolve_signal(sig)))
        return 0

    def signal_init(self, sig=signal.SIGHUP):
        self.calls.append(("signal_init", process_utils.resolve_signal(sig)))

    def of_kind(self, kind):
        return [call for call in self.calls if call[0] == kind]


class RecordingManager(ServiceManager):
    """A ServiceManager whose supervisor entrypoint calls are recorded, not executed."""

    def __init__(self, settings, running_config=None, statuses=None):
        super().__init__(settings, running_config)
        self.statuses = statuses or {}
        self.sv_calls = []

    def run_service_command(self, service, sv_cmd):
        self.sv_calls.append((service, sv_cmd))
        return self.statuses.get((service, sv_cmd), self.statuses.get(service, 0))

    def run_command(self, args):
        self.sv_calls.append(tuple(str(a) for a in args))
        return self.statuses.get("command", 0)


def add_service(settings, name, enabled=True, pid=None):
    """Creates `<sv>/<name>` and, when enabled, its activation symlink under `<service>`."""
    sv_dir = Path(settings.SV_PATH) / name
    (sv_dir / "supervise").mkdir(parents=True, exist_ok=True)
    if pid is not None:
        (sv_dir / "supervise" / "pid").write_text(f"{pid}\n")
    if enabled:
        Path(settings.SERVICE_PATH).mkdir(parents=True, exist_ok=True)
        link = Path(settings.SERVICE_PATH) / name
        if not link.is_symlink():
            link.symlink_to(sv_dir)
    return sv_dir


def write_running_config(settings, section):
    """Writes a running config holding `section` under the product's package key."""
    Path(settings.ETC_PATH).mkdir(parents=True, exist_ok=True)
    settings.running_config_path.write_text(json.dumps({settings.package_key: section}))
