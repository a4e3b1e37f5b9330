"""
interactlog core — the ledger, its store and its notification stream.
"""
