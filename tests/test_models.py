"""
Tests for domain models — invocation, command results, settings.
"""

import pytest
from pydantic import ValidationError

from outfit.core.models import (
    DEFAULT_RECIPE,
    CommandResult,
    EngineRelease,
    InvocationConfig,
    Settings,
    split_env,
)

# ── InvocationConfig ─────────────────────────────────────────────────


class TestInvocationConfig:
    def test_defaults_to_main_recipe(self):
        config = InvocationConfig(destination="web1")
        assert config.recipes == (DEFAULT_RECIPE,)
        assert DEFAULT_RECIPE == "main.rb"

    def test_empty_recipe_list_falls_back(self):
        config = InvocationConfig(destination="web1", recipes=())
        assert config.recipes == ("main.rb",)

    def test_destination_required_unless_local(self):
        with pytest.raises(ValidationError):
            InvocationConfig(destination="")
        assert InvocationConfig(local=True).destination == ""

    def test_frozen(self):
        config = InvocationConfig(destination="web1")
        with pytest.raises(ValidationError):
            config.dry_run = True

    def test_env_pairs_keep_order(self):
        config = InvocationConfig(local=True, env=("FOO=bar", "BAZ=qux"))
        assert config.env_pairs == [("FOO", "bar"), ("BAZ", "qux")]

    def test_env_value_may_contain_equals(self):
        config = InvocationConfig(local=True, env=("OPTS=a=b",))
        assert config.env_pairs == [("OPTS", "a=b")]

    def test_env_without_equals_rejected(self):
        with pytest.raises(ValidationError):
            InvocationConfig(local=True, env=("FOO",))

    def test_lists_become_tuples(self):
        config = InvocationConfig(destination="h", recipes=["a.rb", "b.rb"])
        assert config.recipes == ("a.rb", "b.rb")

    def test_target_label(self):
        assert InvocationConfig(destination="deploy@db1").target_label == "deploy@db1"
        assert "local" in InvocationConfig(local=True).target_label


class TestSplitEnv:
    def test_basic(self):
        assert split_env("FOO=bar") == ("FOO", "bar")

    def test_empty_value(self):
        assert split_env("FOO=") == ("FOO", "")

    @pytest.mark.parametrize("entry", ["noequals", "=value", "1BAD=x", "BAD-NAME=x"])
    def test_invalid(self, entry):
        with pytest.raises(ValueError):
            split_env(entry)


# ── CommandResult ────────────────────────────────────────────────────


class TestCommandResult:
    def test_success(self):
        r = CommandResult.success(["uname", "-m"], stdout="x86_64\n")
        assert r.ok
        assert not r.failed
        assert r.error == ""

    def test_failure_uses_stderr(self):
        r = CommandResult.failure(["ssh", "h"], stderr="Connection refused\n", returncode=255)
        assert r.failed
        assert r.error == "Connection refused"

    def test_failure_without_stderr(self):
        r = CommandResult(argv=["false"], returncode=3)
        assert r.error == "exited with status 3"


# ── Settings ─────────────────────────────────────────────────────────


class TestSettings:
    def test_defaults(self):
        s = Settings()
        assert s.default_recipe == "main.rb"
        assert s.engine.name == "mitamae"
        assert s.engine.url_for("x86_64").endswith("mitamae-x86_64-linux.tar.gz")
        assert s.engine.version in s.engine.url_for("aarch64")

    def test_unknown_arch(self):
        assert EngineRelease().url_for("sparc64") is None

    def test_checksum_lookup(self):
        release = EngineRelease(sha256={"x86_64": "abc"})
        assert release.checksum_for("x86_64") == "abc"
        assert release.checksum_for("aarch64") is None
