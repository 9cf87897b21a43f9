"""
Storage layer for depreciation records.

SQLite-backed insert, query and bulk delete.
"""
