"""State/store layer.

This package owns the per-owner collections and the channel bus that
announces every change to them. Views subscribe to owner channels
instead of polling the store.
"""
