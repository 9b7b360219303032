"""Tests for ledsrv.fifo — named pipe wrapper."""

import os
import stat
import threading

import pytest

from ledsrv.errors import FifoIOError
from ledsrv.fifo import FIFO_MODE, Direction, Fifo, make_fifo


class TestMakeFifo:
    def test_creates_pipe_with_mode(self, tmp_path):
        path = make_fifo(tmp_path / "p")
        st = path.lstat()
        assert stat.S_ISFIFO(st.st_mode)
        assert stat.S_IMODE(st.st_mode) == FIFO_MODE

    def test_replaces_stale_pipe(self, tmp_path):
        path = tmp_path / "p"
        os.mkfifo(path, 0o600)
        make_fifo(path)
        assert stat.S_IMODE(path.lstat().st_mode) == FIFO_MODE

    def test_refuses_regular_file(self, tmp_path):
        """A non-pipe at the path is an error and is left alone."""
        path = tmp_path / "p"
        path.write_text("keep me")
        with pytest.raises(FifoIOError):
            make_fifo(path)
        assert path.read_text() == "keep me"


class TestFifo:
    def test_create_readwrite_roundtrip(self, tmp_path):
        """READWRITE opens without a peer and can talk to itself."""
        with Fifo.create(tmp_path / "ctl", Direction.READWRITE) as fifo:
            assert fifo.write(b"123\n") == 4
            assert fifo.read() == b"123\n"

    def test_delete_on_close(self, tmp_path):
        path = tmp_path / "ctl"
        fifo = Fifo.create(path, Direction.READWRITE)
        assert path.exists()
        fifo.close()
        assert not path.exists()
        assert fifo.closed

    def test_close_idempotent(self, tmp_path):
        fifo = Fifo.create(tmp_path / "ctl", Direction.READWRITE)
        fifo.close()
        fifo.close()

    def test_open_keeps_pipe(self, tmp_path):
        """Pipes we only open are not removed on close."""
        path = make_fifo(tmp_path / "p")
        Fifo.open(path, Direction.READWRITE).close()
        assert path.exists()

    def test_open_missing(self, tmp_path):
        with pytest.raises(FifoIOError):
            Fifo.open(tmp_path / "nope", Direction.READ)

    def test_open_not_a_pipe(self, tmp_path):
        path = tmp_path / "plain"
        path.write_text("x")
        with pytest.raises(FifoIOError):
            Fifo.open(path, Direction.READ)

    def test_nonblocking_write_without_reader(self, tmp_path):
        """Opening the write end with no reader fails instead of blocking."""
        path = make_fifo(tmp_path / "p")
        with pytest.raises(FifoIOError):
            Fifo.open(path, Direction.WRITE, nonblocking=True)

    def test_wrong_direction(self, tmp_path):
        path = make_fifo(tmp_path / "p")
        with Fifo.open(path, Direction.READWRITE) as rw:
            with Fifo.open(path, Direction.READ) as reader:
                with pytest.raises(FifoIOError):
                    reader.write(b"x")
            with Fifo.open(path, Direction.WRITE) as writer:
                with pytest.raises(FifoIOError):
                    writer.read()

    def test_read_after_close(self, tmp_path):
        fifo = Fifo.create(tmp_path / "ctl", Direction.READWRITE)
        fifo.close()
        with pytest.raises(FifoIOError):
            fifo.read()

    def test_blocking_open_pairs_with_peer(self, tmp_path):
        """A reader blocks in open until a writer shows up; EOF after it closes."""
        path = make_fifo(tmp_path / "p")
        received = []

        def _reader():
            with Fifo.open(path, Direction.READ) as f:
                while True:
                    chunk = f.read()
                    if not chunk:
                        break
                    received.append(chunk)

        t = threading.Thread(target=_reader, daemon=True)
        t.start()
        with Fifo.open(path, Direction.WRITE) as w:
            w.write(b"hello\n")
        t.join(timeout=5)
        assert not t.is_alive()
        assert b"".join(received) == b"hello\n"
