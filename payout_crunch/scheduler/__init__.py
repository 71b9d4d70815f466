"""
Scheduling and retry supervision.
"""

from .supervisor import RetrySupervisor, SupervisorState

__all__ = ["RetrySupervisor", "SupervisorState"]
