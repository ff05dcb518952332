import pytest
from click.testing import CliRunner

import usercopy.cli as cli_module
from usercopy.models import ConflictDecision


def _fake_copier(captured, exit_code=0):
    class FakeCopier:
        def __init__(self, **kwargs):
            captured.update(kwargs)

        def run(self):
            return exit_code

    return FakeCopier


def test_cli_builds_run_configuration_from_flags(tmp_path, monkeypatch):
    captured = {}
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli_module, "UserCopier", _fake_copier(captured))

    runner = CliRunner()
    result = runner.invoke(
        cli_module.main,
        ["-u", "alice", "-s", "localhost", "-t", "prod1, prod2", "-p", "2222", "-d", "--no-acl"],
    )

    assert result.exit_code == 0
    config = captured["config"]
    assert config.username == "alice"
    assert config.source_host == "localhost"
    assert config.target_hosts == ("prod1", "prod2")
    assert config.port == 2222
    assert config.dry_run is True
    assert config.copy_acls is False
    assert config.on_conflict == "prompt"


def test_cli_uses_config_and_allows_cli_override(tmp_path, monkeypatch):
    config_file = tmp_path / "copy.yml"
    config_file.write_text(
        "username: alice\n"
        "source: src.local\n"
        "targets: [h1, h2]\n"
        "port: 2200\n"
        "on_conflict: skip\n"
        "conflict_decisions:\n"
        "  h2: overwrite\n",
        encoding="utf-8",
    )
    captured = {}
    monkeypatch.setattr(cli_module, "UserCopier", _fake_copier(captured))

    runner = CliRunner()
    result = runner.invoke(cli_module.main, ["--config", str(config_file), "-p", "2222"])

    assert result.exit_code == 0
    config = captured["config"]
    assert config.source_host == "src.local"
    assert config.target_hosts == ("h1", "h2")
    assert config.port == 2222
    assert config.on_conflict == "skip"
    assert config.conflict_decisions == {"h2": ConflictDecision.OVERWRITE}


def test_cli_uses_default_config_file_when_present(tmp_path, monkeypatch):
    (tmp_path / ".usercopy.yml").write_text(
        "username: bob\nsource: localhost\ntargets: prod1\ncopy_acls: false\n",
        encoding="utf-8",
    )
    captured = {}
    monkeypatch.setattr(cli_module, "UserCopier", _fake_copier(captured))
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, [])

    assert result.exit_code == 0
    assert captured["config"].username == "bob"
    assert captured["config"].copy_acls is False


def test_cli_requires_username_source_and_target(tmp_path, monkeypatch):
    monkeypatch.setattr(cli_module, "UserCopier", _fake_copier({}))
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, ["-u", "alice", "-s", "localhost"])

    assert result.exit_code != 0
    assert "Missing required option '-t'" in result.output


def test_cli_short_help_flag():
    result = CliRunner().invoke(cli_module.main, ["-h"])

    assert result.exit_code == 0
    assert "--no-acl" in result.output


def test_cli_propagates_run_exit_code(tmp_path, monkeypatch):
    monkeypatch.setattr(cli_module, "UserCopier", _fake_copier({}, exit_code=2))
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, ["-u", "alice", "-s", "localhost", "-t", "h1"])

    assert result.exit_code == 2


def test_cli_rejects_unknown_config_keys(tmp_path):
    config_file = tmp_path / "copy.yml"
    config_file.write_text("colour: blue\n", encoding="utf-8")

    result = CliRunner().invoke(cli_module.main, ["--config", str(config_file)])

    assert result.exit_code == 1
    assert "Unknown configuration keys" in result.output


@pytest.mark.parametrize(
    "line, key",
    [("port: abc\n", "port"), ("connect_timeout: x\n", "connect_timeout")],
)
def test_cli_rejects_non_numeric_config_values(tmp_path, monkeypatch, line, key):
    monkeypatch.setattr(cli_module, "UserCopier", _fake_copier({}))
    config_file = tmp_path / "copy.yml"
    config_file.write_text("username: alice\nsource: localhost\ntargets: h1\n" + line, encoding="utf-8")

    result = CliRunner().invoke(cli_module.main, ["--config", str(config_file)])

    assert result.exit_code == 1
    assert f"Invalid {key} value" in result.output
    assert not isinstance(result.exception, ValueError)
