"""
Core modules for the depreciation scheduler.

This package contains the schedule generator and the request handlers
that persist its output.
"""
