"""
Asset Depreciation Scheduler.

Generates and stores monthly depreciation schedules for fixed assets.
"""

__version__ = "0.1.0"
