"""
Payout services.
"""
