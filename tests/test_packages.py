import pytest

from devstack_helpers.packages import InvalidInputError, get_packages, manifest_names, parse_manifest_line
from devstack_helpers.services import ServiceSet


@pytest.fixture
def apts(tmp_path):
    d = tmp_path / "apts"
    d.mkdir()
    (d / "general").write_text("curl\n")
    (d / "nova").write_text("git#comment\nonlyfedora#dist:f16,f17\ndeferred # NOPRIME\n")
    (d / "glance").write_text("python-xattr\n")
    return d


def test_example_resolution(apts):
    services = ServiceSet.from_string("n-cpu")
    assert list(get_packages(services, str(apts), "precise")) == ["curl", "git"]


def test_dist_filter_matches_case_insensitively(apts):
    services = ServiceSet.from_string("n-cpu")
    assert list(get_packages(services, str(apts), "F17")) == ["curl", "git", "onlyfedora"]


def test_n_api_pulls_in_nova_and_glance(apts):
    services = ServiceSet.from_string("n-api")
    assert manifest_names(services) == ["general", "nova", "glance"]
    assert list(get_packages(services, str(apts), "precise")) == ["curl", "git", "python-xattr"]


def test_each_group_manifest_read_once(apts):
    services = ServiceSet.from_string("n-cpu,n-net,n-sch")
    assert list(get_packages(services, str(apts), "precise")) == ["curl", "git"]


def test_group_mapping():
    services = ServiceSet.from_string("c-api,ceilometer-api,g-reg,key,q-svc,s-proxy,horizon")
    assert manifest_names(services) == [
        "general",
        "cinder",
        "ceilometer",
        "glance",
        "keystone",
        "quantum",
        "swift",
    ]


def test_manifest_named_after_service(apts):
    (apts / "mysql").write_text("mysql-server\n")
    services = ServiceSet.from_string("mysql,rabbit")
    assert list(get_packages(services, str(apts), "precise")) == ["curl", "mysql-server"]


def test_missing_manifests_are_skipped(tmp_path):
    services = ServiceSet.from_string("key")
    assert list(get_packages(services, str(tmp_path), "precise")) == []


def test_duplicates_across_manifests_are_kept(apts):
    (apts / "glance").write_text("curl\n")
    services = ServiceSet.from_string("g-api")
    assert list(get_packages(services, str(apts), "precise")) == ["curl", "curl"]


def test_missing_directory_argument_fails_eagerly():
    with pytest.raises(InvalidInputError):
        get_packages(ServiceSet.from_string("key"), "", "precise")
    with pytest.raises(ValueError):
        get_packages(ServiceSet.from_string("key"), None, "precise")


@pytest.mark.parametrize(
    "line, expected",
    [
        ("qemu-kvm", "qemu-kvm"),
        ("  python-mox  \n", "python-mox"),
        ("dnsmasq-utils # for dhcp_release", "dnsmasq-utils"),
        ("tgt # NOPRIME", None),
        ("# just a comment", None),
        ("", None),
        ("python-libguestfs #dist:precise,quantal", "python-libguestfs"),
        ("euca2ools #dist:f16", None),
        ("open-iscsi # initiator # for c-vol", "open-iscsi"),
        ("tgt # see #123 dist:precise", "tgt"),
    ],
)
def test_parse_manifest_line(line, expected):
    assert parse_manifest_line(line, "precise") == expected
