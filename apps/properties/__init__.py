"""Properties app package.

This app encapsulates nightly-rate lodging: the property model, its
availability window and pricing, and the blocked-range ledger that records
host blocks and the ranges derived from live reservations.
"""
