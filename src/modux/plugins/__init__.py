"""Optional store plugins."""

from modux.plugins.devtools import DevtoolHook, EventHook, devtool_plugin
from modux.plugins.logger import logger_plugin

__all__ = ["DevtoolHook", "EventHook", "devtool_plugin", "logger_plugin"]
