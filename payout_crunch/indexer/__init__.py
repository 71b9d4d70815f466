"""
Chain event watching.
"""

from .era_watcher import EraEventWatcher, WatcherState

__all__ = ["EraEventWatcher", "WatcherState"]
