"""
Core modules for ocusage.

This package contains time filtering, usage aggregation, period
bucketing and report assembly.
"""
