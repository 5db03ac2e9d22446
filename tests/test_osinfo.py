import pytest

from devstack_helpers.osinfo import OSDescriptor, detect_os, get_pip_command, get_rootwrap_location

from .conftest import FEDORA, SLES, UBUNTU


def _which(*present):
    return lambda name: f"/usr/bin/{name}" if name in present else None


def test_lsb_release_ubuntu(runner, tmp_path):
    runner.answer(["lsb_release", "-i"], "Ubuntu\n")
    runner.answer(["lsb_release", "-r"], "12.04\n")
    runner.answer(["lsb_release", "-c"], "precise\n")
    os_info = detect_os(which=_which("lsb_release"), run=runner, etc_dir=str(tmp_path))
    assert os_info == OSDescriptor(vendor="Ubuntu", release="12.04", package="deb", codename="precise")
    assert os_info.is_ubuntu
    assert os_info.distro == "precise"


def test_lsb_release_opensuse_override(runner, tmp_path):
    runner.answer(["lsb_release", "-i"], "SUSE LINUX\n")
    runner.answer(["lsb_release", "-r"], "12.2\n")
    runner.answer(["lsb_release", "-d"], "openSUSE 12.2 (x86_64)\n")
    runner.answer(["lsb_release", "-c"], "Mantis\n")
    os_info = detect_os(which=_which("lsb_release"), run=runner, etc_dir=str(tmp_path))
    assert os_info.vendor == "openSUSE"
    assert os_info.package == "rpm"
    assert os_info.is_suse
    assert os_info.distro == "opensuse-12.2"


def test_mac_sw_vers(runner, tmp_path):
    runner.answer(["sw_vers", "-productName"], "Mac OS X\n")
    runner.answer(["sw_vers", "-productVersion"], "10.7.5\n")
    os_info = detect_os(which=_which("sw_vers", "lsb_release"), run=runner, etc_dir=str(tmp_path))
    assert (os_info.release, os_info.update, os_info.codename) == ("10.7", "5", "lion")
    assert os_info.package == ""


def test_mac_unknown_release_has_no_codename(runner, tmp_path):
    runner.answer(["sw_vers", "-productName"], "Mac OS X\n")
    runner.answer(["sw_vers", "-productVersion"], "10.8.2\n")
    os_info = detect_os(which=_which("sw_vers"), run=runner, etc_dir=str(tmp_path))
    assert os_info.codename == ""


def test_redhat_release_file(runner, tmp_path):
    (tmp_path / "redhat-release").write_text("CentOS release 6.3 (Final)\n")
    os_info = detect_os(which=_which(), run=runner, etc_dir=str(tmp_path))
    assert os_info == OSDescriptor(vendor="CentOS", release="6", update="3", package="rpm", codename="Final")
    assert os_info.is_fedora
    assert runner.calls == []


def test_fedora_release_file(runner, tmp_path):
    (tmp_path / "redhat-release").write_text("Fedora release 16 (Verne)\n")
    os_info = detect_os(which=_which(), run=runner, etc_dir=str(tmp_path))
    assert os_info.vendor == "Fedora"
    assert os_info.distro == "f16"


def test_suse_release_file(runner, tmp_path):
    (tmp_path / "SuSE-release").write_text(
        "SUSE Linux Enterprise Server 11 (x86_64)\nVERSION = 11\nPATCHLEVEL = 2\n"
    )
    os_info = detect_os(which=_which(), run=runner, etc_dir=str(tmp_path))
    assert os_info.vendor == "SUSE LINUX"
    assert os_info.distro == "sle11sp2"


def test_unknown_host_defaults_to_empty(runner, tmp_path):
    os_info = detect_os(which=_which(), run=runner, etc_dir=str(tmp_path))
    assert os_info == OSDescriptor()
    assert not (os_info.is_ubuntu or os_info.is_fedora or os_info.is_suse)


@pytest.mark.parametrize(
    "os_info, distro",
    [
        (UBUNTU, "precise"),
        (FEDORA, "f17"),
        (SLES, "sle11sp2"),
        (OSDescriptor(vendor="SUSE LINUX", release="11"), "sle11"),
        (OSDescriptor(vendor="Debian", release="7", update="0"), "Debian-7.0"),
    ],
)
def test_distro_tag(os_info, distro):
    assert os_info.distro == distro


def test_rootwrap_location():
    assert get_rootwrap_location(FEDORA, "nova") == "/usr/bin/nova-rootwrap"
    assert get_rootwrap_location(SLES, "cinder") == "/usr/bin/cinder-rootwrap"
    assert get_rootwrap_location(UBUNTU, "nova") == "/usr/local/bin/nova-rootwrap"


def test_pip_command():
    assert get_pip_command(FEDORA, which=_which("pip-python")) == "/usr/bin/pip-python"
    assert get_pip_command(UBUNTU, which=_which("pip")) == "/usr/bin/pip"
    with pytest.raises(RuntimeError):
        get_pip_command(UBUNTU, which=_which())


def test_context_detects_once(make_ctx):
    calls = []

    def detector():
        calls.append(1)
        return UBUNTU

    ctx = make_ctx()
    ctx.detector = detector
    assert ctx.os.distro == "precise"
    assert ctx.os.is_ubuntu
    assert len(calls) == 1
