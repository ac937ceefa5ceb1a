"""
RTK - Remote toolkit for driving a live game server.

Packages:
- rtk.core: Errors, Result envelope, logging, settings, shared state
- rtk.framework: Action registry and dispatcher
- rtk.scheduling: Named, time-triggered jobs
- rtk.monitor: Heartbeat liveness monitor for the remote Module
- rtk.actions: Built-in handler groups (files, plugins, scheduler)
"""

__version__ = "0.3.0"
