import pytest

from devstack_helpers.lib import screen


@pytest.fixture
def fake(runner, monkeypatch):
    monkeypatch.setattr(screen, "run_cmd", runner)
    monkeypatch.setattr(screen, "WINDOW_SETTLE_S", 0)
    return runner


def test_screen_rc_written_once_per_service(make_ctx):
    ctx = make_ctx()
    screen.screen_rc(ctx, "key", "keystone-all")
    screen.screen_rc(ctx, "key", "keystone-all")
    # The stuffed command ends in a literal CR; text mode would turn it into "\n".
    text = screen.screenrc_path(ctx).read_bytes().decode("utf-8")
    lines = text.rstrip("\n").split("\n")
    assert lines[0] == "sessionname stack"
    assert lines[2] == "screen -t shell bash"
    assert lines.count("screen -t key bash") == 1
    assert lines[-1] == 'stuff "keystone-all\r"'
    assert text.endswith('stuff "keystone-all\r"\n')


def test_screen_it_skips_disabled_services(fake, make_ctx):
    ctx = make_ctx(services="key")
    screen.screen_it(ctx, "n-api", "nova-api")
    assert fake.calls == []


def test_screen_it_opens_window_and_stuffs_command(fake, make_ctx):
    ctx = make_ctx(services="key")
    screen.screen_it(ctx, "key", "keystone-all")
    marker = screen.status_dir(ctx) / "key.failure"
    assert fake.calls[0] == ["screen", "-S", "stack", "-X", "screen", "-t", "key"]
    assert fake.calls[-1] == [
        "screen",
        "-S",
        "stack",
        "-p",
        "key",
        "-X",
        "stuff",
        f'keystone-all || touch "{marker}"\r',
    ]


def test_screen_it_with_logdir(fake, make_ctx, tmp_path):
    logdir = tmp_path / "logs"
    ctx = make_ctx(services="key", screen_logdir=str(logdir))
    screen.screen_it(ctx, "key", "keystone-all")
    link = logdir / "screen-key.log"
    assert link.is_symlink()
    assert any(c[-3:-1] == ["-X", "logfile"] for c in fake.calls)
    assert ["screen", "-S", "stack", "-p", "key", "-X", "log", "on"] in fake.calls


def test_screen_it_without_screen_spawns(make_ctx, monkeypatch):
    spawned = []
    monkeypatch.setattr(screen, "spawn_cmd", lambda argv, **kw: spawned.append(argv) or 4242)
    ctx = make_ctx(services="key", use_screen="False")
    screen.screen_it(ctx, "key", "keystone-all")
    assert spawned[0][:2] == ["bash", "-c"]
    assert (screen.status_dir(ctx) / "key.pid").read_text() == "4242\n"


def test_service_check(make_ctx):
    ctx = make_ctx()
    assert screen.service_check(ctx) == []
    status = screen.status_dir(ctx)
    status.mkdir(parents=True)
    (status / "n-api.failure").touch()
    (status / "key.pid").touch()
    assert screen.service_check(ctx) == ["n-api"]
