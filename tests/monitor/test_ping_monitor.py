"""Tests for PingMonitor.

The datagram socket is replaced by a fake so no traffic leaves the test,
and the timings are shrunk to a few milliseconds.
"""

import threading
import time

import pytest

from rtk.core.errors import InvalidConfigError, ModuleUnreachableError, NetworkFailureError
from rtk.monitor import HEARTBEAT_SIZE, PingMonitor


class FakeSocket:
    """Datagram socket double; replies only when told to."""

    def __init__(self, reply=False, send_error=None):
        self.reply = reply
        self.send_error = send_error
        self.sent = []
        self.timeouts = []
        self.closed = False
        self.listening = threading.Event()

    def sendto(self, payload, address):
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((payload, address))

    def settimeout(self, value):
        self.timeouts.append(value)

    def recvfrom(self, size):
        self.listening.set()
        if self.reply:
            return bytes(size), ("127.0.0.1", 2014)
        time.sleep(self.timeouts[-1])
        raise TimeoutError("timed out")

    def close(self):
        self.closed = True


def make_monitor(sock, **kwargs):
    options = {
        "request_threshold": 0.05,
        "sleep_time": 0.01,
        "poll_interval": 0.01,
        "socket_factory": lambda: sock,
    }
    options.update(kwargs)
    return PingMonitor("127.0.0.1", 2014, **options)


class TestConfiguration:
    @pytest.mark.parametrize("sleep_time, threshold", [(60.0, 60.0), (90.0, 60.0), (0.0, 60.0), (-1.0, 60.0)])
    def test_rejects_bad_timings(self, sleep_time, threshold):
        with pytest.raises(InvalidConfigError):
            PingMonitor("127.0.0.1", request_threshold=threshold, sleep_time=sleep_time)

    def test_rejects_bad_poll_interval(self):
        with pytest.raises(InvalidConfigError):
            PingMonitor("127.0.0.1", poll_interval=0)

    def test_defaults(self):
        monitor = PingMonitor()
        assert monitor.port == 2014
        assert monitor.request_threshold == 60.0
        assert monitor.sleep_time == 30.0
        assert monitor.host is None


class TestModuleLost:
    """A missed reply is reported exactly once and stops the loop."""

    def test_reports_once_and_stops(self):
        sock = FakeSocket()
        lost = []
        monitor = make_monitor(sock, on_module_lost=lost.append)

        assert monitor.startup().is_ok()
        assert monitor.join(2.0)

        assert monitor.lost_module is True
        assert not monitor.is_running
        assert len(lost) == 1
        assert isinstance(lost[0], ModuleUnreachableError)
        assert lost[0].port == 2014
        assert sock.sent == [(bytes(HEARTBEAT_SIZE), ("127.0.0.1", 2014))]
        assert sock.closed

    def test_latch_holds_on_repeated_calls(self):
        sock = FakeSocket()
        lost = []
        monitor = make_monitor(sock, on_module_lost=lost.append)
        monitor.startup()
        monitor.join(2.0)

        monitor._on_module_not_found()
        monitor._on_module_not_found()

        assert len(lost) == 1

    def test_restart_after_loss_is_refused(self):
        sockets = []
        lost = []

        def factory():
            sock = FakeSocket()
            sockets.append(sock)
            return sock

        monitor = make_monitor(None, socket_factory=factory, on_module_lost=lost.append)
        monitor.startup()
        assert monitor.join(2.0)

        result = monitor.startup()

        assert isinstance(result.error, ModuleUnreachableError)
        assert not monitor.is_running
        assert len(sockets) == 1
        assert monitor.heartbeats_sent == 1
        assert len(lost) == 1

    def test_timeout_after_loss_still_stops_the_loop(self):
        """A late timeout shuts the loop down even though nothing is reported."""
        monitor = make_monitor(FakeSocket())
        monitor.startup()
        monitor.join(2.0)
        monitor._running.set()

        monitor._on_module_not_found()

        assert not monitor.is_running

    def test_failing_callback_still_latches(self):
        def callback(error):
            raise RuntimeError("listener broke")

        monitor = make_monitor(FakeSocket(), on_module_lost=callback)
        monitor.startup()

        assert monitor.join(2.0)
        assert monitor.lost_module is True

    def test_health_after_loss(self):
        monitor = make_monitor(FakeSocket())
        monitor.startup()
        monitor.join(2.0)

        health = monitor.health()
        assert health["healthy"] is False
        assert health["lost_module"] is True
        assert health["heartbeats_sent"] == 1
        assert health["last_error"]["error_type"] == "ModuleUnreachableError"


class TestReplies:
    def test_replies_keep_the_loop_going(self):
        sock = FakeSocket(reply=True)
        monitor = make_monitor(sock)
        monitor.startup()

        deadline = time.monotonic() + 2.0
        while monitor.replies_received < 3 and time.monotonic() < deadline:
            time.sleep(0.01)
        monitor.shutdown()

        assert monitor.join(2.0)
        assert monitor.replies_received >= 3
        assert monitor.last_reply_at is not None
        assert monitor.lost_module is False
        assert len(sock.sent) >= 3

    def test_shutdown_while_listening(self):
        """Shutdown is observed within one poll, not after the full threshold."""
        sock = FakeSocket()
        lost = []
        monitor = make_monitor(sock, request_threshold=30.0, on_module_lost=lost.append)
        monitor.startup()
        assert sock.listening.wait(2.0)

        monitor.shutdown()

        assert monitor.join(2.0)
        assert lost == []
        assert monitor.lost_module is False
        assert sock.closed

    def test_receive_timeout_is_bounded_by_poll_interval(self):
        sock = FakeSocket()
        monitor = make_monitor(sock, request_threshold=0.2, poll_interval=0.05)
        monitor.startup()
        monitor.join(2.0)

        assert sock.timeouts
        assert max(sock.timeouts) <= 0.05


class TestNetworkFailure:
    def test_socket_creation_failure(self):
        def factory():
            raise OSError("no sockets left")

        monitor = PingMonitor("127.0.0.1", socket_factory=factory)
        result = monitor.startup()

        assert isinstance(result.error, NetworkFailureError)
        assert isinstance(result.error.cause, OSError)
        assert not monitor.is_running
        assert monitor.last_error is result.error

    def test_send_failure_reports_and_stops(self):
        sock = FakeSocket(send_error=OSError("network unreachable"))
        lost = []
        monitor = make_monitor(sock, on_module_lost=lost.append)

        assert monitor.startup().is_ok()
        assert monitor.join(2.0)

        assert not monitor.is_running
        assert type(monitor.last_error) is NetworkFailureError
        assert monitor.lost_module is False
        assert lost == []
        assert sock.closed


class TestLifecycle:
    def test_startup_is_idempotent(self):
        sock = FakeSocket()
        monitor = make_monitor(sock, request_threshold=30.0)
        monitor.startup()
        first = monitor._thread

        assert monitor.startup().is_ok()
        assert monitor._thread is first

        monitor.shutdown()
        monitor.join(2.0)

    def test_resolves_local_host(self, monkeypatch):
        monkeypatch.setattr("rtk.monitor.ping.socket.gethostname", lambda: "toolkit-host")
        monkeypatch.setattr("rtk.monitor.ping.socket.gethostbyname", lambda name: "10.0.0.5")
        sock = FakeSocket()
        monitor = PingMonitor(socket_factory=lambda: sock, request_threshold=30.0, sleep_time=0.01, poll_interval=0.01)

        monitor.startup()
        assert sock.listening.wait(2.0)
        monitor.shutdown()
        monitor.join(2.0)

        assert monitor.host == "10.0.0.5"
        assert sock.sent[0][1] == ("10.0.0.5", 2014)

    def test_shutdown_when_stopped_is_noop(self):
        monitor = make_monitor(FakeSocket())
        monitor.shutdown()
        assert monitor.join(0.1)
