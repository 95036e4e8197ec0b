import pytest

from svctl.local.config import CtlSettings
from svctl.local.console import Ctl
from svctl.local.supervisor import RunningConfig, process_utils
from tests.helpers import FakeProcessTable, RecordingManager


@pytest.fixture(autouse=True)
def process_table(monkeypatch):
    """No test may signal real processes; every process-table primitive is faked."""
    table = FakeProcessTable()
    for name in ("process_group_of", "pids_in_group", "signal_group",
                 "signal_users", "signal_matching", "signal_init"):
        monkeypatch.setattr(process_utils, name, getattr(table, name))
    return table


@pytest.fixture(autouse=True)
def restore_path(monkeypatch):
    """Dispatch prepends the product's bin dirs to PATH; put it back afterwards."""
    monkeypatch.setenv("PATH", "/usr/bin:/bin")


@pytest.fixture
def sleeps(monkeypatch):
    """Records sleeps in the teardown procedures instead of waiting."""
    from svctl.local.supervisor import shutdown

    recorded = []
    monkeypatch.setattr(shutdown.time, "sleep", recorded.append)
    return recorded


@pytest.fixture
def settings(tmp_path):
    root = tmp_path / "root"
    return CtlSettings(
        "opscode",
        BASE_PATH=root / "opt" / "opscode",
        LOG_PATH=root / "var" / "log" / "opscode",
        DATA_PATH=root / "var" / "opt" / "opscode",
        ETC_PATH=root / "etc" / "opscode",
        BACKUP_ROOT=root / "backups",
        INIT_CONF_PATH=root / "etc" / "init" / "opscode-runsvdir.conf",
        INITTAB_PATH=root / "etc" / "inittab",
        TEARDOWN_TEMP_PATH=str(root / "tmp" / "opt"),
        COMMANDS_PATH=root / "commands",
    )


@pytest.fixture
def manager(settings):
    return RecordingManager(settings, RunningConfig.empty(settings.package_key))


@pytest.fixture
def ctl(manager):
    return Ctl(manager, program="opscode-ctl")
