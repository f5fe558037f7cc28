"""Vans app package.

The rentable fleet and each van's committed date ranges (its ledger).
Ledger rows are written only by the booking command handlers.
"""
