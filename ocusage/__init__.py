"""
ocusage - usage and cost reports for the opencode coding assistant.
"""

__version__ = "0.1.0"
