"""Built-in triggers."""

from watchkit.triggers.schedule import ScheduleTrigger, ScheduleTriggerParser

__all__ = ["ScheduleTrigger", "ScheduleTriggerParser"]
