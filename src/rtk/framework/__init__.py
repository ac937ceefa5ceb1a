"""
RTK Framework - Action registration and dispatch.

This module provides:
- ActionDescriptor and ActionRegistry (names and aliases to handlers)
- Parameter shapes and argument coercion
- ActionDispatcher (resolve, coerce, invoke; Result in every case)
"""

from rtk.framework.dispatcher import ActionDispatcher, DispatchStats, TriggerSource
from rtk.framework.params import ParamType
from rtk.framework.registry import ActionDescriptor, ActionRegistry, action

__all__ = [
    # Registry
    "ActionDescriptor",
    "ActionRegistry",
    "action",
    "ParamType",
    # Dispatch
    "ActionDispatcher",
    "DispatchStats",
    "TriggerSource",
]
