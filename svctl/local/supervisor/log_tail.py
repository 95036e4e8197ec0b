import os
import re
import fnmatch
import logging
import threading
from collections import deque
from pathlib import Path
from typing import IO, TYPE_CHECKING, Dict, Iterable, List, Optional, TextIO

if TYPE_CHECKING:
    from .supervisor import ServiceManager

log = logging.getLogger(__name__)

INITIAL_LINES = 10


def find_log_files(log_root: Path, log_exclude: str, path_excludes: Iterable[str]) -> List[Path]:
    """
    Lists the log files worth following under `log_root`.

    :param log_root: The product log directory, or one service's subdirectory.
    :param log_exclude: Regex for files to skip (config files, locks, rotated archives).
    :param path_excludes: Glob patterns for whole subtrees to skip.
    :return: Matching regular files, sorted.
    """
    if not log_root.exists():
        return []

    exclude = re.compile(log_exclude)
    path_excludes = list(path_excludes)
    candidates = sorted(log_root.rglob("*")) if log_root.is_dir() else [log_root]

    files = []
    for path in candidates:
        if not path.is_file():
            continue
        if any(fnmatch.fnmatch(str(path), pattern) for pattern in path_excludes):
            continue
        if exclude.search(str(path.relative_to(log_root)) if path != log_root else path.name):
            continue
        files.append(path)
    return files


def _open_log(path: Path, from_start: bool) -> Optional[IO]:
    try:
        f = path.open("r", encoding="utf-8", errors="replace")
    except OSError as e:
        log.debug(f"Cannot open {path} for tailing: {e}")
        return None
    if not from_start:
        f.seek(0, os.SEEK_END)
    return f


def _was_replaced(path: Path, f: IO) -> bool:
    """True if the file was rotated away or truncated since it was opened."""
    try:
        on_disk = path.stat()
    except FileNotFoundError:
        return True
    return on_disk.st_ino != os.fstat(f.fileno()).st_ino or on_disk.st_size < f.tell()


def follow_log_files(manager: "ServiceManager", service: Optional[str] = None,
                     stop_event: Optional[threading.Event] = None, out: Optional[TextIO] = None) -> int:
    """
    Follows the product's log files by name, like `tail --follow=name --retry`.

    Prints the last lines of every file found on the first scan, then new
    lines as they are written. Files created later are followed from their
    start; rotated or truncated files are reopened.

    :param manager: The ServiceManager instance.
    :param service: Only follow this service's log directory.
    :param stop_event: Stops following once set (checked after every poll).
    :param out: Stream to write to; stdout when None.
    :return: 0 once stopped or interrupted.
    """
    settings = manager.settings
    log_root = Path(settings.LOG_PATH) / service if service else Path(settings.LOG_PATH)
    stop_event = stop_event or threading.Event()
    handles: Dict[Path, IO] = {}
    last_printed: Optional[Path] = None
    first_scan = True

    def emit(path: Path, lines: Iterable[str]) -> None:
        nonlocal last_printed
        if path != last_printed:
            print(f"\n==> {path} <==", file=out)
            last_printed = path
        for line in lines:
            print(line.rstrip("\n"), file=out)

    log.debug(f"Tailing logs under {log_root}")
    try:
        while True:
            for path in find_log_files(log_root, settings.LOG_EXCLUDE, settings.LOG_PATH_EXCLUDE):
                if path in handles:
                    continue
                f = _open_log(path, from_start=True)
                if f is None:
                    continue
                handles[path] = f
                if first_scan:
                    backlog = deque(f, maxlen=INITIAL_LINES)
                    if backlog:
                        emit(path, backlog)
            first_scan = False

            for path, f in list(handles.items()):
                if _was_replaced(path, f):
                    f.close()
                    del handles[path]
                    reopened = _open_log(path, from_start=True) if path.exists() else None
                    if reopened is None:
                        continue
                    handles[path] = f = reopened
                lines = f.readlines()
                if lines:
                    emit(path, lines)

            if stop_event.wait(settings.TAIL_POLL_INTERVAL):
                break
    except KeyboardInterrupt:
        log.debug("Log tailing interrupted.")
    finally:
        for f in handles.values():
            f.close()
    return 0
