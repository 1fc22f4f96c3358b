"""
CardCycle - Credit Card Billing Cycle Service

A FastAPI-based service that derives statement periods for credit card
accounts from provider balance snapshots and transaction history.
"""

__version__ = "0.1.0"
