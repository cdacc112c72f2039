"""Unit tests for procspawn.spawn.handle."""

import os
import signal
from unittest.mock import patch

import pytest

from procspawn.errors import WaitError
from procspawn.models import RUNNING, Exited, Signaled
from procspawn.spawn.handle import ProcessHandle

QUERY = "procspawn.spawn.handle.query_status"


def _pipe_handle(slot: int) -> tuple[ProcessHandle, int]:
    """Return a handle owning one side of a pipe on ``slot`` plus the other end."""
    read_fd, write_fd = os.pipe()
    parent_fd, other_fd = (write_fd, read_fd) if slot == 0 else (read_fd, write_fd)
    return ProcessHandle(4242, {slot: parent_fd}), other_fd


class TestStatusStateMachine:
    @patch(QUERY, return_value=RUNNING)
    def test_poll_running_is_not_cached(self, mock_query):
        handle = ProcessHandle(4242)
        assert handle.poll_status() is RUNNING
        assert handle.poll_status() is RUNNING
        assert mock_query.call_count == 2
        mock_query.assert_called_with(4242, block=False)
        assert handle.is_running() is True

    @patch(QUERY, return_value=Exited(7))
    def test_poll_terminal_is_cached(self, mock_query):
        handle = ProcessHandle(4242)
        assert handle.poll_status() == Exited(7)
        assert handle.poll_status() == Exited(7)
        assert handle.status == Exited(7)
        assert handle.returncode == 7
        mock_query.assert_called_once()
        assert handle.is_running() is False

    @patch(QUERY, return_value=Signaled(9))
    def test_wait_after_resolution_does_not_wait_again(self, mock_query):
        handle = ProcessHandle(4242)
        assert handle.wait_status() == Signaled(9)
        assert handle.wait_status() == Signaled(9)
        mock_query.assert_called_once_with(4242, block=True)

    @patch(QUERY, side_effect=WaitError("waitpid failed"))
    def test_wait_errors_propagate(self, _query):
        handle = ProcessHandle(4242)
        with pytest.raises(WaitError):
            handle.wait_status()
        assert handle.status is RUNNING

    def test_status_property_never_waits(self):
        with patch(QUERY) as mock_query:
            assert ProcessHandle(4242).status is RUNNING
        mock_query.assert_not_called()


class TestSendSignal:
    @patch("procspawn.spawn.handle.os.kill")
    def test_delivers_signal_while_running(self, mock_kill):
        handle = ProcessHandle(4242)
        handle.send_signal(signal.SIGUSR1)
        handle.terminate()
        handle.kill()
        assert [c.args for c in mock_kill.call_args_list] == [
            (4242, signal.SIGUSR1),
            (4242, signal.SIGTERM),
            (4242, signal.SIGKILL),
        ]
        assert handle.status is RUNNING

    @patch("procspawn.spawn.handle.os.kill")
    @patch(QUERY, return_value=Exited(0))
    def test_no_delivery_after_reaping(self, _query, mock_kill):
        handle = ProcessHandle(4242)
        handle.wait_status()
        handle.send_signal(signal.SIGTERM)
        mock_kill.assert_not_called()
        assert handle.status == Exited(0)

    @patch("procspawn.spawn.handle.os.kill", side_effect=ProcessLookupError)
    def test_vanished_process_is_ignored(self, _kill):
        ProcessHandle(4242).send_signal(signal.SIGTERM)


class TestClose:
    @patch(QUERY, return_value=Exited(0))
    def test_close_is_idempotent(self, mock_query):
        handle, other_fd = _pipe_handle(1)
        try:
            assert handle.close() == Exited(0)
            assert handle.closed is True
            assert handle.stdout.closed
            assert handle.close() == Exited(0)
            mock_query.assert_called_once_with(4242, block=True)
        finally:
            os.close(other_fd)

    @patch(QUERY, return_value=RUNNING)
    def test_force_only_polls(self, mock_query):
        handle = ProcessHandle(4242)
        assert handle.close(force=True) is RUNNING
        mock_query.assert_called_once_with(4242, block=False)
        assert handle.closed is True
        assert handle.close() is RUNNING
        mock_query.assert_called_once()

    @patch(QUERY, return_value=Exited(0))
    def test_streams_closed_before_wait(self, mock_query):
        handle, other_fd = _pipe_handle(0)
        try:
            stdin = handle.stdin

            def check_closed(pid, block):
                assert stdin.closed
                return Exited(0)

            mock_query.side_effect = check_closed
            handle.close()
        finally:
            os.close(other_fd)

    @patch(QUERY, return_value=Exited(0))
    def test_broken_pipe_on_flush_still_closes(self, _query):
        handle, other_fd = _pipe_handle(0)
        os.close(other_fd)
        handle.stdin.write(b"data nobody reads")
        assert handle.close() == Exited(0)
        assert handle.stdin.closed

    @patch(QUERY, return_value=Exited(3))
    def test_context_manager_closes(self, _query):
        with ProcessHandle(4242) as handle:
            pass
        assert handle.closed
        assert handle.status == Exited(3)


class TestStreams:
    def test_orientation(self):
        handle, other_fd = _pipe_handle(0)
        try:
            assert handle.stdin.writable()
            assert handle.stdout is None
            assert handle.stderr is None
        finally:
            os.close(other_fd)
            handle.stdin.close()

    def test_repr_mentions_pid(self):
        assert "pid=4242" in repr(ProcessHandle(4242))

    @patch(QUERY, return_value=Exited(0))
    def test_terminal_stream_reads_to_eof_after_hangup(self, _query):
        master_fd, slave_fd = os.openpty()
        handle = ProcessHandle(4242, {1: master_fd})
        os.write(slave_fd, b"buffered")
        os.close(slave_fd)
        assert handle.stdout.isatty()
        assert handle.stdout.read() == b"buffered"
        assert handle.stdout.read() == b""
        handle.close()
        assert handle.stdout.closed

    @patch(QUERY, return_value=Exited(0))
    def test_shared_terminal_is_read_once(self, _query):
        master_fd, slave_fd = os.openpty()
        handle = ProcessHandle(4242, {1: master_fd, 2: os.dup(master_fd)})
        os.write(slave_fd, b"one stream")
        os.close(slave_fd)
        status, out, err = handle.communicate()
        assert (status, out, err) == (Exited(0), b"one stream", b"")
        assert handle.terminal_size is not None
        handle.close()
        assert handle.terminal_size is None
