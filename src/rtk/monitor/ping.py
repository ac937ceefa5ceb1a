"""UDP heartbeat monitor for the remote Module.

Manifesto:
    The toolkit is only useful while its counterpart process answers. A
    daemon thread sends a fixed-size datagram, waits out the cadence, and
    expects the echo within the receive timeout. The first missed reply
    is reported once, loudly; the monitor then stops probing rather than
    repeating the same diagnostic every cycle.

::

    startup() ──► [send 512 zero bytes] ──► wait sleep_time (cancellable)
                        ▲                          │
                        │                          ▼
                        └──── reply ◄──── poll recv until request_threshold
                                                   │ timeout
                                                   ▼
                                       _on_module_not_found() (latched)

Tags:
    rtk-core, monitor, heartbeat, liveness, udp

Doc-Types:
    api-reference
"""

from __future__ import annotations

import socket
import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from rtk.core.errors import InvalidConfigError, ModuleUnreachableError, NetworkFailureError, RtkError
from rtk.core.logging import get_logger
from rtk.core.result import Err, Ok, Result

logger = get_logger(__name__)

HEARTBEAT_SIZE = 512
REQUEST_THRESHOLD = 60.0
SLEEP_TIME = 30.0


def udp_socket() -> socket.socket:
    return socket.socket(socket.AF_INET, socket.SOCK_DGRAM)


class PingMonitor:
    """Heartbeat loop with a one-shot loss report.

    Example:
        >>> monitor = PingMonitor("127.0.0.1", 2014, on_module_lost=print)
        >>> monitor.startup()
        Ok(None)
        >>> monitor.shutdown()
    """

    def __init__(
        self,
        host: str | None = None,
        port: int = 2014,
        request_threshold: float = REQUEST_THRESHOLD,
        sleep_time: float = SLEEP_TIME,
        *,
        socket_factory: Callable[[], socket.socket] = udp_socket,
        on_module_lost: Callable[[ModuleUnreachableError], Any] | None = None,
        poll_interval: float = 0.5,
    ) -> None:
        """Initialize the monitor.

        Args:
            host: Heartbeat target; None resolves the local host name at startup
            port: Heartbeat port of the Module
            request_threshold: Seconds to wait for a reply
            sleep_time: Seconds between sending and listening; must be
                shorter than ``request_threshold``
            socket_factory: Creates the datagram socket
            on_module_lost: Called once, with the error, when the Module is lost
            poll_interval: Longest single blocking receive, so shutdown is
                observed promptly

        Raises:
            InvalidConfigError: if the timings are not ``0 < sleep_time < request_threshold``
        """
        if not 0 < sleep_time < request_threshold:
            raise InvalidConfigError(
                "sleep_time_seconds",
                f"must be greater than 0 and shorter than request_threshold "
                f"({sleep_time:g}s vs {request_threshold:g}s)",
            )
        if poll_interval <= 0:
            raise InvalidConfigError("poll_interval", "must be greater than 0")

        self.host = host
        self.port = port
        self.request_threshold = request_threshold
        self.sleep_time = sleep_time
        self.poll_interval = poll_interval
        self._socket_factory = socket_factory
        self._on_module_lost = on_module_lost

        self._running = threading.Event()
        self._stop_event = threading.Event()
        self._latch_lock = threading.Lock()
        self._lost_module = False
        self._socket: socket.socket | None = None
        self._thread: threading.Thread | None = None

        self.last_error: RtkError | None = None
        self.heartbeats_sent = 0
        self.replies_received = 0
        self.last_reply_at: datetime | None = None

    # === Lifecycle ===

    def startup(self) -> Result[None]:
        """Open the socket and start the heartbeat thread.

        Returns:
            Ok(None), or Err(NetworkFailureError) if the socket or host could
            not be set up; the monitor then stays stopped. Once the Module
            has been declared lost the monitor cannot be restarted and
            startup returns Err(ModuleUnreachableError).
        """
        if self.is_running:
            return Ok(None)

        if self._lost_module:
            logger.warning("monitor.start_refused", host=self.host, port=self.port, reason="module unreachable")
            return Err(ModuleUnreachableError(self.host or "", self.port, self.request_threshold))

        try:
            sock = self._socket_factory()
        except OSError as e:
            return Err(self._report_failure("Unable to start the ping monitor", e))

        if self.host is None:
            try:
                self.host = socket.gethostbyname(socket.gethostname())
            except OSError as e:
                sock.close()
                return Err(self._report_failure("Unable to resolve the local host", e))

        self._socket = sock
        self._stop_event.clear()
        self._running.set()
        self._thread = threading.Thread(target=self._run, daemon=True, name="rtk-ping-monitor")
        self._thread.start()
        logger.info(
            "monitor.started",
            host=self.host,
            port=self.port,
            request_threshold_seconds=self.request_threshold,
            sleep_time_seconds=self.sleep_time,
        )
        return Ok(None)

    def shutdown(self) -> None:
        """Stop the loop; the socket is closed once the loop has exited."""
        if not self._running.is_set():
            return
        self._running.clear()
        self._stop_event.set()
        logger.info("monitor.stopped", host=self.host, port=self.port)

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the heartbeat thread; True if it has exited."""
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(timeout)
        return not thread.is_alive()

    @property
    def is_running(self) -> bool:
        return self._running.is_set()

    @property
    def lost_module(self) -> bool:
        return self._lost_module

    # === Heartbeat loop ===

    def _run(self) -> None:
        sock = self._socket
        assert sock is not None
        payload = bytes(HEARTBEAT_SIZE)
        try:
            while self._running.is_set():
                try:
                    sock.sendto(payload, (self.host, self.port))
                    self.heartbeats_sent += 1
                    if self._stop_event.wait(self.sleep_time):
                        break
                    replied = self._await_reply(sock)
                except OSError as e:
                    if self._running.is_set():
                        self._report_failure("Error sending and receiving the heartbeat", e)
                    break

                if replied:
                    self.replies_received += 1
                    self.last_reply_at = datetime.now(UTC)
                elif self._running.is_set():
                    self._on_module_not_found()
        finally:
            sock.close()
            self._socket = None

    def _await_reply(self, sock: socket.socket) -> bool:
        """Poll for the echo until ``request_threshold`` elapses or shutdown."""
        deadline = time.monotonic() + self.request_threshold
        while self._running.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            sock.settimeout(min(self.poll_interval, remaining))
            try:
                sock.recvfrom(HEARTBEAT_SIZE)
                return True
            except TimeoutError:
                continue
        return False

    def _on_module_not_found(self) -> None:
        self.shutdown()
        with self._latch_lock:
            if self._lost_module:
                return
            self._lost_module = True

        error = ModuleUnreachableError(self.host or "", self.port, self.request_threshold)
        self.last_error = error
        logger.error(
            "module.unreachable",
            host=self.host,
            port=self.port,
            timeout_seconds=self.request_threshold,
            hint=f"ensure UDP port {self.port} is open between the toolkit and the Module",
        )
        if self._on_module_lost is not None:
            try:
                self._on_module_lost(error)
            except Exception as e:
                logger.exception("monitor.callback_failed", error_message=str(e))

    def _report_failure(self, reason: str, cause: OSError) -> NetworkFailureError:
        self.shutdown()
        error = NetworkFailureError(reason, cause=cause).with_context(host=self.host, port=self.port)
        self.last_error = error
        logger.error(
            "monitor.network_failure",
            reason=reason,
            host=self.host,
            port=self.port,
            error_type=type(cause).__name__,
            error_message=str(cause),
        )
        return error

    # === Health ===

    def health(self) -> dict[str, Any]:
        return {
            "healthy": self.is_running and not self._lost_module,
            "running": self.is_running,
            "lost_module": self._lost_module,
            "host": self.host,
            "port": self.port,
            "heartbeats_sent": self.heartbeats_sent,
            "replies_received": self.replies_received,
            "last_reply_at": self.last_reply_at.isoformat() if self.last_reply_at else None,
            "last_error": self.last_error.to_dict() if self.last_error else None,
        }
