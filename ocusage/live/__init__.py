"""
Live monitoring for ocusage.
"""

from .monitor import LiveMonitor

__all__ = ["LiveMonitor"]
