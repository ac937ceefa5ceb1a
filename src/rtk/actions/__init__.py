"""Handler groups.

Each group exposes ``descriptors()``, an explicit table of actions it
contributes to the registry::

    files.py       FileActions       copyFile, listFiles, sendFile, ...
    plugins.py     PluginActions     refreshPlugins, getPlugins
    scheduler.py   SchedulerActions  addJob, getJobs, removeJob, runJob
"""

from rtk.actions.files import FileActions
from rtk.actions.plugins import PluginActions, PluginCatalog
from rtk.actions.scheduler import SchedulerActions

__all__ = ["FileActions", "PluginActions", "PluginCatalog", "SchedulerActions"]
