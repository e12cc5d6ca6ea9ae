"""
ToyBank Loan Adjustment Demo

Connects to a relational store, lists loans with their owners and adjusts
loan balances inside a single serializable transaction. All monetary values
are handled as Decimal.
"""

__version__ = "1.0.0"
