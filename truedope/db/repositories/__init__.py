"""
Per-domain repository modules for database access.

`truedope.db.crud` is a thin facade over these modules.
"""
