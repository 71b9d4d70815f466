"""
Payout Crunch

An async service that claims accrued staking rewards for a set of
validator stashes:
- Era/page claim tracking straight from chain state
- Weight and fee constrained batch construction
- Finality-watched batch execution with per-call attribution
- Scheduled or era-driven runs with graduated backoff
"""

__version__ = "0.1.0"
__author__ = "Payout Crunch Team"
