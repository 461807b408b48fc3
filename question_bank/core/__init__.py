"""
Catalog core: identifier normalization, text parsing, reconciliation and the record store.
"""
