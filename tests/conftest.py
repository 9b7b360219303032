"""Shared fixtures for ledsrv test suite."""

import threading

import pytest


class RecordingView:
    """LedView that remembers every update."""

    def __init__(self):
        self.updates = []

    def update(self, state):
        self.updates.append(state)


@pytest.fixture
def view():
    return RecordingView()


@pytest.fixture
def dispatcher(view):
    """Dispatcher on the default LED state with a recording view."""
    from ledsrv.server.commands import Dispatcher
    return Dispatcher(view)


@pytest.fixture
def config(tmp_path):
    """ServerConfig with every runtime path under tmp_path."""
    from ledsrv.server.daemon import ServerConfig
    return ServerConfig.in_dir(tmp_path, view="stdout")


@pytest.fixture
def server(config, view):
    """A started LedServer; stopped again after the test."""
    from ledsrv.server.daemon import LedServer
    srv = LedServer(config, view=view)
    srv.start()
    yield srv
    srv.stop()


@pytest.fixture
def serve_in_background(server):
    """Run server.serve(max_sessions=n) in a thread; returns the thread."""
    threads = []

    def _run(max_sessions):
        t = threading.Thread(target=server.serve, kwargs={"max_sessions": max_sessions}, daemon=True)
        t.start()
        threads.append(t)
        return t

    yield _run
    for t in threads:
        t.join(timeout=5)


@pytest.fixture
def client(config):
    from ledsrv.client import LedClient
    return LedClient.for_config(config, client_id=4242)
