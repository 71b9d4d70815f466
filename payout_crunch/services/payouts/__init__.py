"""
Payout batch orchestration engine.
"""

from .builder import BatchBuilder
from .executor import BatchExecutor
from .orchestrator import PayoutOrchestrator
from .tracker import EraPayoutTracker
from .validator import BatchValidator

__all__ = [
    "BatchBuilder",
    "BatchExecutor",
    "BatchValidator",
    "EraPayoutTracker",
    "PayoutOrchestrator",
]
