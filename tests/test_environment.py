"""Unit tests for procspawn.spawn.environment."""

import os
from unittest.mock import patch

import pytest

from procspawn.errors import SpawnError
from procspawn.models import SpawnConfig, SpawnRequest
from procspawn.spawn.environment import build_argv, build_environment, resolve_executable


class TestBuildArgv:
    def test_explicit_program(self):
        request = SpawnRequest(program="ls", arguments=("-l", "/tmp"))
        assert build_argv(request, SpawnConfig()) == ("ls", ["ls", "-l", "/tmp"])

    def test_shell_command(self):
        request = SpawnRequest(program=None, arguments=("echo hi",))
        assert build_argv(request, SpawnConfig(shell="/bin/bash")) == (
            "/bin/bash",
            ["/bin/bash", "-c", "echo hi"],
        )

    def test_shell_extra_arguments_become_positional(self):
        request = SpawnRequest(program=None, arguments=('echo "$1"', "sh", "one"))
        _, argv = build_argv(request, SpawnConfig())
        assert argv == ["/bin/sh", "-c", 'echo "$1"', "sh", "one"]

    def test_shell_without_command_raises(self):
        with pytest.raises(SpawnError):
            build_argv(SpawnRequest(program=None), SpawnConfig())

    def test_empty_program_raises(self):
        with pytest.raises(SpawnError):
            build_argv(SpawnRequest(program=""), SpawnConfig())


class TestBuildEnvironment:
    @patch.dict("os.environ", {"PROCSPAWN_MARKER": "1"}, clear=False)
    def test_true_copies_current_environment(self):
        env = build_environment(True)
        assert env["PROCSPAWN_MARKER"] == "1"
        assert env == dict(os.environ)
        assert env is not os.environ

    def test_false_and_none_are_empty(self):
        assert build_environment(False) == {}
        assert build_environment(None) == {}

    def test_mapping_passes_through(self):
        assert build_environment({"A": "1", "B": ""}) == {"A": "1", "B": ""}

    def test_empty_mapping_is_empty(self):
        assert build_environment({}) == {}

    @pytest.mark.parametrize("key", ["", "A=B", "A\0"])
    def test_illegal_names_raise(self, key):
        with pytest.raises(SpawnError):
            build_environment({key: "x"})


class TestResolveExecutable:
    def test_path_with_separator_must_be_executable(self, tmp_path):
        script = tmp_path / "tool"
        script.write_text("#!/bin/sh\n", encoding="utf-8")
        assert resolve_executable(str(script), {}) is None
        script.chmod(0o755)
        assert resolve_executable(str(script), {}) == str(script)

    def test_bare_name_uses_given_path(self, tmp_path):
        script = tmp_path / "tool"
        script.write_text("#!/bin/sh\n", encoding="utf-8")
        script.chmod(0o755)
        assert resolve_executable("tool", {"PATH": str(tmp_path)}) == str(script)
        assert resolve_executable("tool", {"PATH": "/nonexistent"}) is None
