"""Tests for the connectivity monitor."""

import threading

import pytest

from conftest import FlagProbe
from quizsync.connectivity import ConnectivityMonitor, SocketProbe


@pytest.fixture
def transitions():
    return []


@pytest.fixture
def monitor(transitions):
    mon = ConnectivityMonitor(probe=FlagProbe(False), interval=3600)
    mon.add_listener(lambda connected, previous: transitions.append((previous, connected)))
    return mon


class TestTransitions:
    def test_initially_unknown(self, monitor):
        assert monitor.is_reachable is None

    def test_first_observation_is_a_transition(self, monitor, transitions):
        monitor.record(False)
        assert monitor.is_reachable is False
        assert transitions == [(None, False)]

    def test_repeated_readings_do_not_notify(self, monitor, transitions):
        monitor.record(True)
        monitor.record(True)
        monitor.record(False)
        monitor.record(False)
        monitor.record(True)
        assert transitions == [(None, True), (True, False), (False, True)]

    def test_probe_exception_counts_as_unreachable(self, transitions):
        def broken():
            raise RuntimeError("boom")

        mon = ConnectivityMonitor(probe=broken, interval=3600)
        mon.add_listener(lambda c, p: transitions.append((p, c)))
        assert mon.observe() is False
        assert transitions == [(None, False)]

    def test_failing_listener_does_not_block_others(self, monitor, transitions):
        def bad(connected, previous):
            raise ValueError("listener bug")

        monitor.add_listener(bad)
        monitor.add_listener(lambda c, p: transitions.append(("second", c)))
        monitor.record(True)
        assert transitions == [(None, True), ("second", True)]

    def test_removed_listener_not_called(self, transitions):
        mon = ConnectivityMonitor(probe=FlagProbe(True), interval=3600)
        cb = lambda c, p: transitions.append(c)  # noqa: E731
        mon.add_listener(cb)
        mon.remove_listener(cb)
        mon.record(True)
        assert transitions == []


class TestLifecycle:
    def test_thread_observes_probe(self, transitions):
        seen = threading.Event()
        mon = ConnectivityMonitor(probe=FlagProbe(True), interval=3600)
        mon.add_listener(lambda c, p: seen.set())
        with mon:
            assert seen.wait(5)
            assert mon.running
        assert not mon.running
        assert mon.is_reachable is True

    def test_no_callbacks_after_stop(self, monitor, transitions):
        monitor.start()
        monitor.stop(timeout=5)
        count = len(transitions)
        monitor.record(True)
        monitor.record(False)
        assert len(transitions) == count

    def test_cannot_restart(self, monitor):
        monitor.start()
        monitor.stop(timeout=5)
        with pytest.raises(RuntimeError):
            monitor.start()

    def test_stop_before_start(self, monitor):
        monitor.stop()
        assert not monitor.running


class TestSocketProbe:
    @pytest.mark.parametrize("url,host,port", [
        ("http://quiz.example.com/q.json", "quiz.example.com", 80),
        ("https://quiz.example.com/q.json", "quiz.example.com", 443),
        ("http://localhost:8080/q.json", "localhost", 8080),
    ])
    def test_for_url(self, url, host, port):
        probe = SocketProbe.for_url(url)
        assert (probe.host, probe.port) == (host, port)

    def test_reachable_local_listener(self):
        import socket

        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        server.bind(("127.0.0.1", 0))
        server.listen(1)
        try:
            port = server.getsockname()[1]
            assert SocketProbe("127.0.0.1", port, timeout=2)() is True
        finally:
            server.close()

    def test_refused_is_unreachable(self):
        import socket

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
        sock.close()
        assert SocketProbe("127.0.0.1", port, timeout=2)() is False

    def test_empty_host(self):
        assert SocketProbe("")() is False
