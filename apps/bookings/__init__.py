"""Bookings app package.

This app holds the reservation engine: the booking record, the per-van
availability ledger, pricing, and the command handlers that keep a
booking and its ledger entry in step. Overlaps are prevented by checking
and committing under a per-van lock inside one database transaction.
"""
