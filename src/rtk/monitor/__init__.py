"""Liveness monitoring of the remote Module."""

from rtk.monitor.ping import HEARTBEAT_SIZE, REQUEST_THRESHOLD, SLEEP_TIME, PingMonitor

__all__ = ["PingMonitor", "HEARTBEAT_SIZE", "REQUEST_THRESHOLD", "SLEEP_TIME"]
