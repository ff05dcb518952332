import pytest

from usercopy.errors import CopyError
from usercopy.models import CommandResult
from usercopy.services.inspector import (
    AccountInspector,
    parse_groups_output,
    parse_passwd_entry,
    parse_shadow_entry,
)


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None


class FakeExecutor:
    def __init__(self, outputs):
        self.outputs = outputs
        self.calls = []

    def execute(self, host, command, **_kwargs):
        self.calls.append((host, command))
        for needle, result in self.outputs.items():
            if command.startswith(needle):
                return result
        return CommandResult(output="", status=2)


def test_parse_passwd_entry_maps_named_fields():
    record = parse_passwd_entry("alice:x:2001:2001:Alice Liddell,,,:/home/alice:/bin/bash\n")

    assert record.name == "alice"
    assert record.uid == 2001
    assert record.gid == 2001
    assert record.gecos == "Alice Liddell,,,"
    assert record.home == "/home/alice"
    assert record.shell == "/bin/bash"
    assert record.ssh_dir == "/home/alice/.ssh"


def test_parse_passwd_entry_returns_none_for_empty_output():
    assert parse_passwd_entry("\n") is None


def test_parse_passwd_entry_rejects_short_or_non_numeric_lines():
    with pytest.raises(CopyError, match="Malformed passwd entry"):
        parse_passwd_entry("alice:x:2001")

    with pytest.raises(CopyError, match="Malformed passwd entry"):
        parse_passwd_entry("alice:x:abc:2001::/home/alice:/bin/bash")


def test_parse_shadow_entry_keeps_hash_only():
    record = parse_shadow_entry("alice:$6$salt$hash:19000:0:99999:7:::")

    assert record.name == "alice"
    assert record.password_hash == "$6$salt$hash"
    assert record.is_usable


@pytest.mark.parametrize("marker", ["!", "*", "!!", ""])
def test_shadow_lock_markers_are_not_usable(marker):
    assert not parse_shadow_entry(f"alice:{marker}:19000::::::").is_usable


def test_parse_groups_output_handles_linux_prefix_and_bare_lists():
    assert parse_groups_output("alice : alice wheel developers\n").groups == (
        "alice",
        "wheel",
        "developers",
    )
    assert parse_groups_output("staff wheel").groups == ("staff", "wheel")
    assert parse_groups_output("").groups == ()


def test_secondary_groups_exclude_primary_placeholder():
    groups = parse_groups_output("alice : alice wheel")

    assert groups.secondary_for("alice") == ("wheel",)
    assert groups.first == "alice"


def test_snapshot_fetches_all_records_from_source_host():
    executor = FakeExecutor(
        {
            "getent passwd": CommandResult("alice:x:2001:2001::/home/alice:/bin/bash\n", 0),
            "getent shadow": CommandResult("alice:$6$abc:19000::::::\n", 0),
            "groups": CommandResult("alice : alice wheel\n", 0),
        }
    )
    inspector = AccountInspector(executor=executor, logger=DummyLogger())

    snapshot = inspector.snapshot("source1", "alice")

    assert snapshot.account.uid == 2001
    assert snapshot.shadow.password_hash == "$6$abc"
    assert snapshot.groups.groups == ("alice", "wheel")
    assert {host for host, _ in executor.calls} == {"source1"}


def test_snapshot_tolerates_missing_shadow_and_groups():
    executor = FakeExecutor(
        {"getent passwd": CommandResult("alice:x:2001:2001::/home/alice:/bin/bash\n", 0)}
    )
    inspector = AccountInspector(executor=executor, logger=DummyLogger())

    snapshot = inspector.snapshot("source1", "alice")

    assert snapshot.shadow is None
    assert snapshot.groups.groups == ()


def test_snapshot_raises_when_source_account_is_missing():
    inspector = AccountInspector(executor=FakeExecutor({}), logger=DummyLogger())

    with pytest.raises(CopyError, match="User 'ghost' not found on source server source1"):
        inspector.snapshot("source1", "ghost")


def test_account_exists_uses_id_lookup():
    executor = FakeExecutor({"id alice": CommandResult("uid=2001(alice)", 0)})
    inspector = AccountInspector(executor=executor, logger=DummyLogger())

    assert inspector.account_exists("host2", "alice") is True
    assert inspector.account_exists("host2", "bob") is False
