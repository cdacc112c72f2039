"""Unit tests for procspawn.models."""

import io
import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from procspawn.errors import RedirectionError
from procspawn.models import (
    RUNNING,
    CloseOnExec,
    Exited,
    Inherit,
    Pipe,
    Pty,
    RedirectToDescriptor,
    RedirectToNull,
    RedirectToPath,
    Running,
    Signaled,
    SpawnRequest,
    coerce_redirection,
)


class TestCoerceRedirection:
    def test_models_pass_through(self):
        pipe = Pipe()
        assert coerce_redirection(pipe) is pipe

    def test_booleans_and_none(self):
        assert coerce_redirection(True) == Inherit()
        assert coerce_redirection(False) == CloseOnExec()
        assert coerce_redirection(None) == CloseOnExec()

    def test_keywords(self):
        assert coerce_redirection("inherit") == Inherit()
        assert coerce_redirection("close") == CloseOnExec()
        assert coerce_redirection("null") == RedirectToNull()
        assert coerce_redirection("pipe") == Pipe()
        assert coerce_redirection("pty") == Pty()

    def test_int_is_descriptor(self):
        assert coerce_redirection(5) == RedirectToDescriptor(fd=5)

    def test_paths(self, tmp_path):
        assert coerce_redirection(tmp_path / "out.log") == RedirectToPath(
            path=str(tmp_path / "out.log")
        )
        assert coerce_redirection("out.log") == RedirectToPath(path="out.log")

    def test_stream_object_is_owned_descriptor(self):
        read_fd, write_fd = os.pipe()
        os.close(read_fd)
        with open(write_fd, "wb") as writer:
            assert coerce_redirection(writer) == RedirectToDescriptor(
                fd=write_fd, close_source=True
            )

    def test_unsupported_value_raises(self):
        with pytest.raises(RedirectionError):
            coerce_redirection(3.5)

    def test_stream_without_descriptor_propagates(self):
        with pytest.raises(io.UnsupportedOperation):
            coerce_redirection(io.BytesIO())


class TestSpawnRequest:
    def test_defaults(self):
        request = SpawnRequest(program="true")
        assert request.streams == (Inherit(), Inherit(), Inherit())
        assert request.environment is True
        assert request.new_session is False
        assert request.reset_signal_mask is True
        assert request.search is True

    def test_stream_shorthands_are_coerced(self):
        request = SpawnRequest(program="cat", stdin="pipe", stdout=None, stderr="null")
        assert request.streams == (Pipe(), CloseOnExec(), RedirectToNull())

    def test_pty_forces_new_session(self):
        request = SpawnRequest(program="sh", stdout=Pty(), new_session=False)
        assert request.new_session is True
        assert request.uses_pty is True

    def test_no_pty_keeps_session_flag(self):
        assert SpawnRequest(program="sh", stdout=Pipe()).new_session is False
        assert SpawnRequest(program="sh", new_session=True).new_session is True

    def test_is_immutable(self):
        request = SpawnRequest(program="true")
        with pytest.raises(ValidationError):
            request.program = "false"

    def test_cwd_accepts_path(self, tmp_path: Path):
        assert SpawnRequest(program="true", cwd=tmp_path).cwd == str(tmp_path)

    def test_needs_fork_only_for_cwd_or_identity(self):
        assert SpawnRequest(program="true").needs_fork is False
        assert SpawnRequest(program="true", reset_ids=True).needs_fork is False
        assert SpawnRequest(program="true", cwd="/").needs_fork is True
        assert SpawnRequest(program="true", uid=0).needs_fork is True
        assert SpawnRequest(program="true", gid=0).needs_fork is True

    def test_negative_uid_rejected(self):
        with pytest.raises(ValidationError):
            SpawnRequest(program="true", uid=-1)

    def test_explicit_environment_mapping(self):
        request = SpawnRequest(program="env", environment={"A": "1"})
        assert request.environment == {"A": "1"}


class TestStatus:
    def test_running_is_not_terminal(self):
        assert RUNNING == Running()
        assert RUNNING.terminal is False
        assert RUNNING.returncode is None

    def test_exited(self):
        status = Exited(7)
        assert status.terminal is True
        assert status.returncode == 7
        assert status == Exited(7)
        assert status != Exited(8)

    def test_signaled(self):
        status = Signaled(9)
        assert status.terminal is True
        assert status.core_dumped is False
        assert status.returncode == -9
        assert status == Signaled(9, False)
        assert status != Signaled(9, True)

    def test_kinds_never_compare_equal(self):
        assert Exited(9) != Signaled(9)
