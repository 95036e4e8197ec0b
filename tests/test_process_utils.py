import os
import re
import signal
import subprocess
import sys
import uuid

import psutil
import pytest

from svctl.local.errors import UnresolvedProcess
from svctl.local.supervisor import process_utils

SLEEPER = "import time; time.sleep(30)"


@pytest.fixture
def process_table():
    """These tests talk to the real process table."""
    return None


@pytest.fixture
def sleeper():
    """A child in its own session, tagged with a unique argv marker."""
    marker = f"svctl-test-{uuid.uuid4().hex}"
    child = subprocess.Popen([sys.executable, "-c", SLEEPER, marker], start_new_session=True)
    child.marker = marker
    yield child
    if child.poll() is None:
        child.kill()
        child.wait(timeout=10)


@pytest.fixture
def recorded_sends(monkeypatch):
    """Records which pids would be signalled instead of signalling them."""
    sent = []

    def send(proc, sig):
        sent.append(proc.pid)
        return True

    monkeypatch.setattr(process_utils, "_send", send)
    return sent


@pytest.mark.parametrize("value", ["SIGTERM", "TERM", "term", 15, signal.SIGTERM])
def test_resolve_signal_accepts_names_and_numbers(value):
    assert process_utils.resolve_signal(value) is signal.SIGTERM


def test_session_leader_is_its_own_process_group(sleeper):
    pgrp = process_utils.process_group_of(sleeper.pid)

    assert pgrp == sleeper.pid
    assert sleeper.pid in process_utils.pids_in_group(pgrp)
    assert os.getpid() not in process_utils.pids_in_group(pgrp)


def test_signal_group_kills_the_group(sleeper):
    pgrp = process_utils.process_group_of(sleeper.pid)

    assert process_utils.signal_group(pgrp, "KILL") is True
    assert sleeper.wait(timeout=10) == -signal.SIGKILL
    assert process_utils.signal_group(pgrp, "KILL") is False


def test_dead_pid_has_no_process_group(sleeper):
    sleeper.kill()
    sleeper.wait(timeout=10)

    with pytest.raises(UnresolvedProcess):
        process_utils.process_group_of(sleeper.pid)


def test_signal_matching_hits_only_the_tagged_process(sleeper):
    assert process_utils.signal_matching(sleeper.marker, signal.SIGKILL) == 1
    assert sleeper.wait(timeout=10) == -signal.SIGKILL


def test_signal_matching_never_signals_the_controller(sleeper, recorded_sends):
    own_cmdline = " ".join(psutil.Process().cmdline())

    process_utils.signal_matching(f"{re.escape(own_cmdline)}|{sleeper.marker}", signal.SIGTERM)

    assert sleeper.pid in recorded_sends
    assert os.getpid() not in recorded_sends


def test_signal_users_skips_the_controller(sleeper, recorded_sends):
    user = psutil.Process().username()

    process_utils.signal_users([user], signal.SIGTERM)

    assert sleeper.pid in recorded_sends
    assert os.getpid() not in recorded_sends


def test_signal_users_without_users_does_nothing(recorded_sends):
    assert process_utils.signal_users([], signal.SIGTERM) == 0
    assert recorded_sends == []
