import logging
import textwrap

from svctl import main as svctl_main
from svctl.local.console import extensions


def _write_extension(settings, filename, source):
    settings.COMMANDS_PATH.mkdir(parents=True, exist_ok=True)
    path = settings.COMMANDS_PATH / filename
    path.write_text(textwrap.dedent(source))
    return path


def test_extension_command_is_dispatchable(ctl, settings, capsys):
    _write_extension(settings, "backup.py", """
        def register(ctl):
            @ctl.add_command_under_category("backup", "data", "Back up the database.", 2)
            def backup(command, service=None):
                print(f"backing up {service}")
                return 3
    """)

    assert ctl.load_files(settings.COMMANDS_PATH) == 1
    assert ctl.run(["backup", "postgresql"]) == 3
    assert "backing up postgresql" in capsys.readouterr().out

    ctl.run(["help"])
    assert "Data Commands:\n\n  backup\n    Back up the database." in capsys.readouterr().out


def test_extension_can_override_a_builtin(ctl, settings):
    _write_extension(settings, "reconfigure.py", """
        def register(ctl):
            ctl.add_command("reconfigure", "Reconfigure differently.", 1, lambda *args: 42)
    """)

    ctl.load_files(settings.COMMANDS_PATH)
    assert ctl.run(["reconfigure"]) == 42


def test_files_load_in_name_order(ctl, settings):
    _write_extension(settings, "b_second.py", """
        def register(ctl):
            ctl.add_command("which", "Which file won.", 1, lambda *args: 2)
    """)
    _write_extension(settings, "a_first.py", """
        def register(ctl):
            ctl.add_command("which", "Which file won.", 1, lambda *args: 1)
    """)

    ctl.load_files(settings.COMMANDS_PATH)
    assert ctl.run(["which"]) == 2


def test_file_without_register_is_skipped(ctl, settings, caplog):
    _write_extension(settings, "helpers.py", "VALUE = 1\n")

    assert ctl.load_files(settings.COMMANDS_PATH) == 1
    assert any(record.levelno == logging.WARNING for record in caplog.records)
    assert ctl.retrieve_command("helpers") is None


def test_missing_commands_directory_loads_nothing(ctl, tmp_path):
    assert extensions.load_files(ctl, tmp_path / "nope") == 0
    assert extensions.load_files(ctl, None) == 0


def test_build_ctl_loads_extensions(settings, monkeypatch):
    _write_extension(settings, "hello.py", """
        def register(ctl):
            ctl.add_command("hello", "Say hello.", 1, lambda *args: 0)
    """)

    ctl = svctl_main.build_ctl(
        "opscode",
        BASE_PATH=settings.BASE_PATH,
        ETC_PATH=settings.ETC_PATH,
        COMMANDS_PATH=settings.COMMANDS_PATH,
    )
    assert ctl.retrieve_command("hello") is not None
    assert ctl.settings.package_key == "private_chef"


def test_main_runs_a_command(settings, monkeypatch, capsys):
    umasks = []
    monkeypatch.setattr(svctl_main.os, "umask", umasks.append)
    monkeypatch.setattr(svctl_main.setproctitle, "setproctitle", lambda title: None)
    monkeypatch.setattr(svctl_main, "setup_logging", lambda level: None)
    monkeypatch.setattr(svctl_main, "build_ctl", lambda name=None: _ctl_for(settings))

    assert svctl_main.main(["help"], name="opscode") == 1
    assert "Service Management Commands:" in capsys.readouterr().out
    assert umasks == [0o022]


def test_main_reports_unexpected_errors(monkeypatch):
    def broken(name=None):
        raise RuntimeError("boom")

    monkeypatch.setattr(svctl_main, "setup_logging", lambda level: None)
    monkeypatch.setattr(svctl_main.os, "umask", lambda mask: 0)
    monkeypatch.setattr(svctl_main, "build_ctl", broken)
    assert svctl_main.main(["status"]) == 1


def _ctl_for(settings):
    from svctl.local.console import Ctl
    from svctl.local.supervisor import RunningConfig, ServiceManager

    return Ctl(ServiceManager(settings, RunningConfig.empty()), program="opscode-ctl")
