"""
Destructive lifecycle procedures: graceful-kill, and the cleanse/uninstall
teardown that stops everything and removes the product's state.

Each procedure keeps its own exit status contract. Graceful-kill reports the
first failed fallback stop (or 1 for a disabled service) and never reports
the process group kills. Teardown is a best-effort nuke: every step runs
even if an earlier one failed, and it always reports success.
"""
import re
import time
import glob
import shutil
import signal
import logging
from pathlib import Path
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional
from svctl.local.errors import UnresolvedProcess
from svctl.local.supervisor import persistence, process_utils

if TYPE_CHECKING:
    from .supervisor import ServiceManager

log = logging.getLogger(__name__)


#* --- Graceful Kill ---
def _fallback_stop(manager: "ServiceManager", service: str, exit_status: int) -> int:
    """Runs a plain stop; its failure becomes the aggregate only if nothing failed before."""
    status = manager.run_service_command(service, "stop")
    if exit_status == 0 and status != 0:
        return status
    return exit_status


def graceful_kill(manager: "ServiceManager", service: Optional[str] = None) -> int:
    """
    Stops services through the supervisor, then SIGKILLs whatever is left in
    each service's process group.

    :param manager: The ServiceManager instance.
    :param service: Only act on this service; all services when None.
    :return: 1 if a targeted service is disabled, else the first non-zero
        status of a fallback stop, else 0.
    """
    exit_status = 0
    for service_name in manager.get_all_services():
        if service is not None and service_name != service:
            continue

        if not manager.service_enabled(service_name):
            log.warning(f"{service_name} disabled, not stopping")
            exit_status = 1
            continue

        try:
            pid = persistence.read_pid_file(manager.pid_file_path(service_name))
        except UnresolvedProcess as e:
            log.warning(
                f"could not find {service_name} runit pidfile (service already stopped?), "
                f"cannot attempt SIGKILL... ({e})"
            )
            exit_status = _fallback_stop(manager, service_name, exit_status)
            continue

        try:
            pgrp = process_utils.process_group_of(pid)
        except UnresolvedProcess:
            log.warning(f"could not find pgrp of pid {pid} (not running?), cannot attempt SIGKILL...")
            exit_status = _fallback_stop(manager, service_name, exit_status)
            continue

        manager.run_service_command(service_name, "stop")
        stuck_pids = process_utils.pids_in_group(pgrp)
        if stuck_pids:
            log.warning(
                "found stuck pids still running in process group: "
                f"{' '.join(str(p) for p in sorted(stuck_pids))}, sending SIGKILL"
            )
            process_utils.signal_group(pgrp, signal.SIGKILL)

    return exit_status


#* --- Teardown Steps ---
def _best_effort(description: str, step: Callable[[], object]) -> None:
    """Runs one teardown step; a failure is logged and the teardown moves on."""
    try:
        step()
    except Exception as e:
        log.warning(f"Teardown step '{description}' failed: {e}")
        log.debug(f"Traceback for failed teardown step '{description}':", exc_info=True)


def remove_init_conf(manager: "ServiceManager") -> None:
    """Removes the boot-time upstart job for the supervision daemon."""
    manager.settings.INIT_CONF_PATH.unlink(missing_ok=True)


def strip_inittab(manager: "ServiceManager") -> None:
    """Drops the line starting this product's runsvdir from inittab, if inittab exists."""
    inittab = Path(manager.settings.INITTAB_PATH)
    if not inittab.exists():
        return

    entrypoint = str(manager.settings.runsvdir_start_path)
    lines = inittab.read_text().splitlines(keepends=True)
    kept = [line for line in lines if entrypoint not in line]
    if len(kept) == len(lines):
        return

    staged = inittab.with_name(inittab.name + ".new")
    staged.write_text("".join(kept))
    staged.replace(inittab)
    log.info(f"Removed {entrypoint} from {inittab}")


def reload_init() -> None:
    """Signals init to re-read its configuration."""
    process_utils.signal_init(signal.SIGHUP)


def backup_dir_path(manager: "ServiceManager", now: Optional[datetime] = None) -> Path:
    """`<backup root>/<name>-cleanse-<YYYY-MM-DDTHH:MM>` in local time."""
    stamp = (now or datetime.now()).strftime(manager.settings.BACKUP_TIMESTAMP_FORMAT)
    return Path(manager.settings.BACKUP_ROOT) / f"{manager.settings.NAME}-cleanse-{stamp}"


def backup_config(manager: "ServiceManager", backup_dir: Path) -> None:
    """Copies the product's config directory to `backup_dir`, replacing an older copy there."""
    backup_dir.parent.mkdir(parents=True, exist_ok=True)
    if backup_dir.exists() or backup_dir.is_symlink():
        remove_path(backup_dir)

    etc_path = Path(manager.settings.ETC_PATH)
    if etc_path.exists():
        shutil.copytree(etc_path, backup_dir, symlinks=True)
        log.info(f"Backed up {etc_path} to {backup_dir}")


def remove_path(path: Path) -> None:
    """Removes a file, symlink or directory tree; missing paths are ignored."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink(missing_ok=True)


def remove_paths(patterns: Iterable[str]) -> List[Path]:
    """
    Deletes every path matching the given glob patterns.

    :param patterns: Literal paths or glob patterns (e.g. '/opt/x/service/*').
    :return: The paths that were removed.
    """
    removed = []
    for pattern in patterns:
        for match in sorted(glob.glob(str(pattern))):
            path = Path(match)
            try:
                remove_path(path)
                removed.append(path)
            except OSError as e:
                log.warning(f"Could not remove {path}: {e}")
    log.debug(f"Removed {len(removed)} paths")
    return removed


def escalate_signals(manager: "ServiceManager") -> None:
    """
    Sends HUP, then TERM, then KILL to the kill users' processes and to the
    product's runsvdir, pausing between tiers. Every tier fires regardless of
    what the previous one achieved.
    """
    settings = manager.settings
    runsvdir_pattern = f"runsvdir -P {re.escape(str(settings.SERVICE_PATH))}"

    for tier, sig in enumerate(settings.SIGNAL_ESCALATION):
        if tier:
            time.sleep(settings.SIGNAL_ESCALATION_PAUSE)
        log.info(f"Sending {sig} to leftover processes")
        if settings.KILL_USERS:
            _best_effort(f"{sig} kill users", lambda: process_utils.signal_users(settings.KILL_USERS, sig))
        _best_effort(f"{sig} runsvdir", lambda: process_utils.signal_matching(runsvdir_pattern, sig))


def kill_runsv_processes(manager: "ServiceManager") -> None:
    """SIGKILLs each service's runsv, which may have escaped the process group kill."""
    for service_name in manager.get_all_services():
        _best_effort(
            f"SIGKILL runsv {service_name}",
            lambda: process_utils.signal_matching(f"runsv {re.escape(service_name)}", signal.SIGKILL),
        )


#* --- Teardown Procedures ---
def cleanup_procs_and_nuke(manager: "ServiceManager", paths: Iterable[str]) -> int:
    """
    Stops every service, unhooks the supervision tree from boot, backs up the
    config, deletes `paths` and kills whatever is left.

    :param manager: The ServiceManager instance.
    :param paths: Paths or glob patterns to delete.
    :return: Always 0.
    """
    settings = manager.settings
    backup_dir = backup_dir_path(manager)

    _best_effort("stop all services", lambda: manager.run_sv_command("stop"))
    _best_effort("remove init conf", lambda: remove_init_conf(manager))
    _best_effort("strip inittab", lambda: strip_inittab(manager))
    _best_effort("reload init", reload_init)
    _best_effort("back up config", lambda: backup_config(manager, backup_dir))
    _best_effort("remove paths", lambda: remove_paths(paths))
    _best_effort("graceful kill", lambda: manager.graceful_kill())
    escalate_signals(manager)
    kill_runsv_processes(manager)

    log.info(f"Your config files have been backed up to {backup_dir}.")
    log.debug(f"Teardown of {settings.NAME} completed.")
    return 0


def uninstall(manager: "ServiceManager") -> int:
    """Kills all processes and removes the supervisor's hooks; data is preserved."""
    return cleanup_procs_and_nuke(manager, [manager.settings.TEARDOWN_TEMP_PATH])


def cleanse(manager: "ServiceManager", confirmed: bool = False) -> int:
    """
    Deletes all of the product's configuration, log and variable data.

    :param manager: The ServiceManager instance.
    :param confirmed: Skip the countdown that gives the operator time to abort.
    :return: Always 0.
    """
    settings = manager.settings
    log.info(
        "This will delete *all* configuration, log, and variable data associated with this application.\n\n"
        f"*** You have {settings.CLEANSE_COUNTDOWN} seconds to hit CTRL-C ***\n"
    )
    if not confirmed:
        time.sleep(settings.CLEANSE_COUNTDOWN)

    return cleanup_procs_and_nuke(manager, [
        str(settings.SERVICE_PATH / "*"),
        settings.TEARDOWN_TEMP_PATH,
        str(settings.DATA_PATH),
        str(settings.ETC_PATH),
        str(settings.LOG_PATH),
    ])
