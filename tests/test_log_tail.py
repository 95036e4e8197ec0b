import io
import threading

from svctl.local.supervisor import log_tail

LOG_EXCLUDE = r"(config|lock|@|gzip|tgz|gz)"


def _write(path, lines):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"{line}\n" for line in lines))
    return path


def test_find_log_files_skips_excluded_files(tmp_path):
    current = _write(tmp_path / "nginx" / "current", ["started"])
    access = _write(tmp_path / "nginx" / "access.log", ["GET /"])
    _write(tmp_path / "nginx" / "config", ["s/^/nginx /"])
    _write(tmp_path / "nginx" / "lock", [])
    _write(tmp_path / "nginx" / "@400000005f1a2b3c.s", ["rotated"])
    _write(tmp_path / "nginx" / "access.log.1.gz", ["archived"])
    _write(tmp_path / "opscode-solr4" / "sasl" / "current", ["sasl"])

    found = log_tail.find_log_files(tmp_path, LOG_EXCLUDE, ["*/sasl/*"])

    assert found == [access, current]


def test_find_log_files_under_missing_directory(tmp_path):
    assert log_tail.find_log_files(tmp_path / "nope", LOG_EXCLUDE, []) == []


def _stopped():
    event = threading.Event()
    event.set()
    return event


def test_follow_prints_the_tail_of_each_file(manager, settings):
    current = _write(settings.LOG_PATH / "erchef" / "current", [f"line {n}" for n in range(15)])
    out = io.StringIO()

    assert log_tail.follow_log_files(manager, stop_event=_stopped(), out=out) == 0

    printed = out.getvalue().splitlines()
    assert f"==> {current} <==" in printed
    assert printed[-10:] == [f"line {n}" for n in range(5, 15)]


def test_follow_a_single_service(manager, settings):
    _write(settings.LOG_PATH / "erchef" / "current", ["erchef up"])
    nginx = _write(settings.LOG_PATH / "nginx" / "current", ["nginx up"])
    out = io.StringIO()

    log_tail.follow_log_files(manager, "nginx", stop_event=_stopped(), out=out)

    assert out.getvalue().split() == ["==>", str(nginx), "<==", "nginx", "up"]


def test_follow_picks_up_new_lines(manager, settings):
    current = _write(settings.LOG_PATH / "erchef" / "current", ["first"])
    settings.TAIL_POLL_INTERVAL = 0
    out = io.StringIO()
    polls = []

    class StopAfterSecondPoll:
        def wait(self, timeout):
            polls.append(timeout)
            if len(polls) == 1:
                with current.open("a") as f:
                    f.write("second\n")
                return False
            return True

    log_tail.follow_log_files(manager, stop_event=StopAfterSecondPoll(), out=out)

    assert out.getvalue().splitlines()[-2:] == ["first", "second"]


def test_tail_command_without_logs_exits_0(ctl, settings, monkeypatch):
    ctl.out = io.StringIO()
    follow = log_tail.follow_log_files
    monkeypatch.setattr(log_tail, "follow_log_files",
                        lambda manager, service=None, out=None: follow(manager, service, _stopped(), out))

    assert ctl.run(["tail", "erchef"]) == 0
    assert ctl.out.getvalue() == ""
