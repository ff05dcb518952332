from usercopy.models import AccountRecord, CommandResult, PipelineResult, RunConfiguration, StepResult
from usercopy.services.tree import TreeReplicator


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None

    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None

    def error(self, *_args, **_kwargs):
        return None


class FakeExecutor:
    def __init__(self, failing=()):
        self.calls = []
        self.failing = failing

    def execute(self, host, command, **_kwargs):
        self.calls.append((host, command))
        if any(needle in command for needle in self.failing):
            return CommandResult(output="", status=1, error="denied")
        return CommandResult(output="", status=0)

    def build_command(self, host, command):
        return [host, command]


class FakePipeline:
    def __init__(self, result=None):
        self.calls = []
        self.result = result or PipelineResult(0, 0)

    def run(self, producer, consumer):
        self.calls.append((producer, consumer))
        return self.result


class RecordingAcl:
    def __init__(self):
        self.calls = []

    def copy(self, source, target, path, config):
        self.calls.append((source, target, path))
        return StepResult(ok=True)


ACCOUNT = AccountRecord("alice", "x", 2001, 2001, "", "/home/alice", "/bin/bash")


def _config(**kwargs):
    return RunConfiguration(username="alice", source_host="src", target_hosts=("host2",), **kwargs)


def test_replicate_streams_tree_then_fixes_ownership_and_acls():
    executor = FakeExecutor()
    pipeline = FakePipeline()
    acl = RecordingAcl()
    replicator = TreeReplicator(executor, pipeline, DummyLogger(), acl_replicator=acl)

    result = replicator.replicate("src", "host2", "/home/alice", ACCOUNT, _config())

    assert result.ok
    assert executor.calls[0] == ("host2", "mkdir -p /home/alice")
    assert pipeline.calls == [
        (
            ["src", "cd /home/alice && tar czf - ."],
            ["host2", "mkdir -p /home/alice && cd /home/alice && tar xzpf -"],
        )
    ]
    assert executor.calls[-1] == ("host2", "chown -R 2001:2001 /home/alice")
    assert acl.calls == [("src", "host2", "/home/alice")]


def test_replicate_skips_acls_when_disabled():
    acl = RecordingAcl()
    replicator = TreeReplicator(FakeExecutor(), FakePipeline(), DummyLogger(), acl_replicator=acl)

    replicator.replicate("src", "host2", "/home/alice", ACCOUNT, _config(copy_acls=False))

    assert acl.calls == []


def test_replicate_fails_without_chown_when_stream_fails():
    executor = FakeExecutor()
    pipeline = FakePipeline(PipelineResult(0, 2, error="tar: Cannot open"))
    replicator = TreeReplicator(executor, pipeline, DummyLogger(), acl_replicator=RecordingAcl())

    result = replicator.replicate("src", "host2", "/home/alice", ACCOUNT, _config())

    assert result.ok is False
    assert "Cannot open" in result.message
    assert not any("chown" in command for _, command in executor.calls)


def test_replicate_fails_when_destination_cannot_be_created():
    pipeline = FakePipeline()
    replicator = TreeReplicator(FakeExecutor(failing=("mkdir",)), pipeline, DummyLogger())

    result = replicator.replicate("src", "host2", "/home/alice", ACCOUNT, _config())

    assert result.ok is False
    assert pipeline.calls == []


def test_replicate_dry_run_issues_no_commands():
    executor = FakeExecutor()
    pipeline = FakePipeline()
    replicator = TreeReplicator(executor, pipeline, DummyLogger(), acl_replicator=RecordingAcl())

    result = replicator.replicate("src", "host2", "/home/alice", ACCOUNT, _config(dry_run=True))

    assert result.ok and result.skipped
    assert executor.calls == []
    assert pipeline.calls == []


def test_paths_with_spaces_are_quoted():
    assert TreeReplicator.pack_command("/home/a b") == "cd '/home/a b' && tar czf - ."
