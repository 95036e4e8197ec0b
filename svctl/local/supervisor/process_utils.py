import os
import re
import psutil
import signal
import logging
from svctl.local.errors import UnresolvedProcess
from typing import Iterable, Pattern, Set, Union

log = logging.getLogger(__name__)


#* --- Process Status ---
def _is_self(pid: int) -> bool:
    """The controller never signals itself."""
    return pid == os.getpid()

def resolve_signal(sig: Union[int, str, signal.Signals]) -> signal.Signals:
    """Accepts 'SIGHUP', 'HUP', 1 or signal.SIGHUP and returns the enum member."""
    if isinstance(sig, str):
        name = sig.upper()
        return signal.Signals[name if name.startswith("SIG") else f"SIG{name}"]
    return signal.Signals(sig)

#* --- Process Groups ---
def process_group_of(pid: int) -> int:
    """
    Finds the process group a pid belongs to.

    :param pid: The process id.
    :return: The process group id.
    :raises UnresolvedProcess: If the process does not exist.
    """
    try:
        return os.getpgid(pid)
    except OSError as e:
        raise UnresolvedProcess(f"could not find pgrp of pid {pid}: {e}")

def pids_in_group(pgrp: int) -> Set[int]:
    """Returns every live pid whose process group is `pgrp`."""
    members: Set[int] = set()
    for pid in psutil.pids():
        try:
            if os.getpgid(pid) == pgrp:
                members.add(pid)
        except OSError:
            continue  # Exited between listing and lookup
    return members

def signal_group(pgrp: int, sig: Union[int, str, signal.Signals]) -> bool:
    """
    Sends a signal to a whole process group.

    :return: True if the signal was delivered, False if the group is gone.
    """
    sig = resolve_signal(sig)
    try:
        os.killpg(pgrp, sig)
        log.debug(f"Sent {sig.name} to process group {pgrp}")
        return True
    except ProcessLookupError:
        log.debug(f"Process group {pgrp} no longer exists, skipping {sig.name}.")
        return False
    except PermissionError as e:
        log.warning(f"Not permitted to send {sig.name} to process group {pgrp}: {e}")
        return False

#* --- Process Table Scans ---
def _send(proc: psutil.Process, sig: signal.Signals) -> bool:
    try:
        proc.send_signal(sig)
        log.debug(f"Sent {sig.name} to PID {proc.pid}")
        return True
    except psutil.NoSuchProcess:
        log.debug(f"Process {proc.pid} no longer exists, skipping {sig.name}.")
    except psutil.AccessDenied:
        log.warning(f"Access denied sending {sig.name} to PID {proc.pid}.")
    return False

def signal_users(users: Iterable[str], sig: Union[int, str, signal.Signals]) -> int:
    """
    Signals every process owned by one of the given OS users.

    :param users: Account names whose processes should receive the signal.
    :param sig: The signal to send.
    :return: The number of processes signalled.
    """
    sig = resolve_signal(sig)
    wanted = set(users)
    if not wanted:
        return 0

    count = 0
    for proc in psutil.process_iter(["pid", "username"]):
        if proc.info["username"] in wanted and not _is_self(proc.info["pid"]):
            count += _send(proc, sig)
    log.debug(f"{sig.name} sent to {count} processes owned by {', '.join(sorted(wanted))}")
    return count

def signal_matching(pattern: Union[str, Pattern], sig: Union[int, str, signal.Signals]) -> int:
    """
    Signals every process whose full command line matches a regular expression.

    :param pattern: Regex searched for in the space-joined command line.
    :param sig: The signal to send.
    :return: The number of processes signalled.
    """
    sig = resolve_signal(sig)
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern

    count = 0
    for proc in psutil.process_iter(["pid", "cmdline"]):
        cmdline = " ".join(proc.info["cmdline"] or [])
        if cmdline and regex.search(cmdline) and not _is_self(proc.info["pid"]):
            count += _send(proc, sig)
    log.debug(f"{sig.name} sent to {count} processes matching '{regex.pattern}'")
    return count

def signal_init(sig: Union[int, str, signal.Signals] = signal.SIGHUP) -> None:
    """Asks init (pid 1) to re-read its configuration."""
    os.kill(1, resolve_signal(sig))
