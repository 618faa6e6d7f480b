"""Tests for the CLI commands."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from sopsfilter.cli import app

runner = CliRunner()

PATH = "config.enc.yaml"


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "sopsfilter" in result.output


class TestClean:
    def test_reuses_staged_ciphertext(self, tmp_git_repo: Path, monkeypatch, fake_sops, stage_bytes):
        monkeypatch.chdir(tmp_git_repo)
        (tmp_git_repo / PATH).write_bytes(b"foo: bar\n")
        staged = fake_sops.encrypt(b"foo: bar\n", PATH, None)
        stage_bytes(tmp_git_repo, PATH, staged)

        result = runner.invoke(app, ["clean", PATH], input=b"foo: bar\n")

        assert result.exit_code == 0
        assert result.stdout_bytes == staged

    def test_changed_content_is_freshly_encrypted(self, tmp_git_repo: Path, monkeypatch, fake_sops, stage_bytes):
        monkeypatch.chdir(tmp_git_repo)
        (tmp_git_repo / PATH).write_bytes(b"foo: baz\n")
        staged = fake_sops.encrypt(b"foo: bar\n", PATH, None)
        stage_bytes(tmp_git_repo, PATH, staged)

        result = runner.invoke(app, ["clean", PATH], input=b"foo: baz\n")

        assert result.exit_code == 0
        assert result.stdout_bytes != staged
        assert fake_sops.decrypt(result.stdout_bytes, None) == b"foo: baz\n"

    def test_new_file(self, tmp_git_repo: Path, monkeypatch, fake_sops):
        monkeypatch.chdir(tmp_git_repo)
        (tmp_git_repo / PATH).write_bytes(b"foo: bar\n")

        result = runner.invoke(app, ["clean", "--input-type", "yaml", PATH], input=b"foo: bar\n")

        assert result.exit_code == 0
        assert fake_sops.decrypt(result.stdout_bytes, None) == b"foo: bar\n"
        assert fake_sops.encrypt_calls == 1

    def test_deleted_status_fails_without_output(self, tmp_git_repo: Path, monkeypatch, fake_sops, stage_bytes):
        monkeypatch.chdir(tmp_git_repo)
        stage_bytes(tmp_git_repo, PATH, fake_sops.encrypt(b"foo: bar\n", PATH, None))

        result = runner.invoke(app, ["clean", PATH], input=b"foo: bar\n")

        assert result.exit_code == 1
        assert b"ENC:" not in result.stdout_bytes

    def test_outside_repository(self, tmp_path: Path, monkeypatch, fake_sops):
        plain = tmp_path / "plain"
        plain.mkdir()
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
        monkeypatch.chdir(plain)
        result = runner.invoke(app, ["clean", PATH], input=b"x")
        assert result.exit_code == 2

    def test_encryption_failure(self, tmp_git_repo: Path, monkeypatch):
        from sopsfilter import sops

        def _refuse(*args, **kwargs):
            raise sops.SopsError("no matching creation rules found")

        monkeypatch.setattr(sops, "encrypt", _refuse)
        monkeypatch.chdir(tmp_git_repo)
        result = runner.invoke(app, ["clean", PATH], input=b"x")
        assert result.exit_code == 1

    def test_bad_config_exits_2(self, tmp_git_repo: Path, monkeypatch, fake_sops):
        monkeypatch.chdir(tmp_git_repo)
        (tmp_git_repo / ".sopsfilter.toml").write_text("not [valid")
        result = runner.invoke(app, ["clean", PATH], input=b"x")
        assert result.exit_code == 2


class TestSmudge:
    def test_decrypts(self, tmp_git_repo: Path, monkeypatch, fake_sops):
        monkeypatch.chdir(tmp_git_repo)
        ciphertext = fake_sops.encrypt(b"foo=bar\n", "app.env", None)
        result = runner.invoke(app, ["smudge", "app.env"], input=ciphertext)
        assert result.exit_code == 0
        assert result.stdout_bytes == b"foo=bar\n"

    def test_plain_content_passes_through(self, tmp_git_repo: Path, monkeypatch, fake_sops):
        monkeypatch.chdir(tmp_git_repo)
        result = runner.invoke(app, ["smudge", "app.env"], input=b"foo=bar\n")
        assert result.exit_code == 0
        assert result.stdout_bytes.endswith(b"foo=bar\n")


class TestDiff:
    def test_textconv_decrypts(self, tmp_git_repo: Path, monkeypatch, fake_sops):
        monkeypatch.chdir(tmp_git_repo)
        blob = tmp_git_repo / "XXXX_config.enc.yaml"
        blob.write_bytes(fake_sops.encrypt(b"foo: bar\n", PATH, None))
        result = runner.invoke(app, ["diff", str(blob)])
        assert result.exit_code == 0
        assert result.stdout_bytes == b"foo: bar\n"

    def test_textconv_plaintext(self, tmp_git_repo: Path, monkeypatch, fake_sops):
        monkeypatch.chdir(tmp_git_repo)
        (tmp_git_repo / PATH).write_bytes(b"foo: bar\n")
        result = runner.invoke(app, ["diff", PATH])
        assert result.exit_code == 0
        assert result.stdout_bytes == b"foo: bar\n"


class TestInstallUninstall:
    def test_install_writes_config_and_attributes(self, tmp_git_repo: Path, monkeypatch, git):
        monkeypatch.chdir(tmp_git_repo)
        result = runner.invoke(app, ["install", "-p", "*.enc.yaml", "-p", "secrets/*.json"])
        assert result.exit_code == 0
        clean_cmd = git(tmp_git_repo, "config", "filter.sops.clean").decode().strip()
        assert clean_cmd == "sopsfilter clean %f"
        attributes = (tmp_git_repo / ".gitattributes").read_text()
        assert "*.enc.yaml filter=sops diff=sops" in attributes
        assert "secrets/*.json filter=sops diff=sops" in attributes

    def test_install_pinned_format(self, tmp_git_repo: Path, monkeypatch, git):
        monkeypatch.chdir(tmp_git_repo)
        result = runner.invoke(app, ["install", "-p", "*.yaml.enc", "--format", "yaml"])
        assert result.exit_code == 0
        clean_cmd = git(tmp_git_repo, "config", "filter.sops-yaml.clean").decode().strip()
        assert clean_cmd == "sopsfilter clean --input-type yaml --output-type yaml %f"

    def test_install_requires_patterns(self, tmp_git_repo: Path, monkeypatch):
        monkeypatch.chdir(tmp_git_repo)
        result = runner.invoke(app, ["install"])
        assert result.exit_code == 2

    def test_install_refuses_foreign_driver(self, tmp_git_repo: Path, monkeypatch, git):
        monkeypatch.chdir(tmp_git_repo)
        git(tmp_git_repo, "config", "filter.sops.clean", "something-else %f")
        result = runner.invoke(app, ["install", "-p", "*.enc.yaml"])
        assert result.exit_code == 1
        forced = runner.invoke(app, ["install", "-p", "*.enc.yaml", "--force"])
        assert forced.exit_code == 0

    def test_uninstall_removes_everything(self, tmp_git_repo: Path, monkeypatch, git):
        monkeypatch.chdir(tmp_git_repo)
        (tmp_git_repo / ".gitattributes").write_text("*.png binary\n")
        runner.invoke(app, ["install", "-p", "*.enc.yaml"])
        result = runner.invoke(app, ["uninstall"])
        assert result.exit_code == 0
        assert (tmp_git_repo / ".gitattributes").read_text() == "*.png binary\n"
        config = git(tmp_git_repo, "config", "--list", "--local").decode()
        assert "filter.sops" not in config

    def test_uninstall_keeps_edited_attribute_line(self, tmp_git_repo: Path, monkeypatch):
        monkeypatch.chdir(tmp_git_repo)
        (tmp_git_repo / ".gitattributes").write_text(
            "# sopsfilter-driver: sops\n*.enc.yaml filter=sops diff=sops\n"
            "# sopsfilter-driver: sops\n*.png binary\n"
        )
        result = runner.invoke(app, ["uninstall"])
        assert result.exit_code == 0
        assert (tmp_git_repo / ".gitattributes").read_text() == "# sopsfilter-driver: sops\n*.png binary\n"

    def test_config_flag_reaches_install(self, tmp_git_repo: Path, monkeypatch, git):
        monkeypatch.chdir(tmp_git_repo)
        (tmp_git_repo / "custom.toml").write_text('[filter]\nname = "vault"\npatterns = ["*.enc.json"]\n')
        result = runner.invoke(app, ["-c", "custom.toml", "install"])
        assert result.exit_code == 0
        assert git(tmp_git_repo, "config", "filter.vault.clean").decode().strip() == "sopsfilter clean %f"
        assert "*.enc.json filter=vault diff=vault" in (tmp_git_repo / ".gitattributes").read_text()


class TestCheck:
    def test_reports_rule_and_status(self, tmp_git_repo: Path, monkeypatch):
        monkeypatch.chdir(tmp_git_repo)
        (tmp_git_repo / ".sops.yaml").write_text("creation_rules:\n  - path_regex: \\.enc\\.yaml$\n    age: x\n")
        (tmp_git_repo / PATH).write_text("foo: bar\n")
        result = runner.invoke(app, ["check", PATH])
        assert result.exit_code == 0
        assert "yaml" in result.output
        assert "untracked" in result.output

    def test_invalid_path_regex_exits_2(self, tmp_git_repo: Path, monkeypatch):
        monkeypatch.chdir(tmp_git_repo)
        (tmp_git_repo / ".sops.yaml").write_text("creation_rules:\n  - path_regex: '(['\n    age: x\n")
        result = runner.invoke(app, ["check", "a.yaml"])
        assert result.exit_code == 2
        assert "sops config error" in result.output

    def test_reports_missing_sops_binary(self, tmp_git_repo: Path, monkeypatch):
        from sopsfilter import sops

        monkeypatch.chdir(tmp_git_repo)
        monkeypatch.setattr(sops, "is_sops_available", lambda binary="sops": False)
        result = runner.invoke(app, ["check", "a.yaml"])
        assert result.exit_code == 0
        assert "not found" in result.output

    def test_reports_configured_sops_binary(self, tmp_git_repo: Path, monkeypatch):
        from sopsfilter import sops

        seen = []
        monkeypatch.chdir(tmp_git_repo)
        monkeypatch.setenv("SOPSFILTER_SOPS_BINARY", "my-sops")
        monkeypatch.setattr(sops, "is_sops_available", lambda binary="sops": seen.append(binary) or True)
        result = runner.invoke(app, ["check", "a.yaml"])
        assert result.exit_code == 0
        assert seen == ["my-sops"]
        assert "my-sops" in result.output


class TestInit:
    def test_creates_config(self, tmp_git_repo: Path, monkeypatch):
        monkeypatch.chdir(tmp_git_repo)
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        assert (tmp_git_repo / ".sopsfilter.toml").exists()

    def test_refuses_overwrite(self, tmp_git_repo: Path, monkeypatch):
        monkeypatch.chdir(tmp_git_repo)
        (tmp_git_repo / ".sopsfilter.toml").write_text("existing")
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 1
