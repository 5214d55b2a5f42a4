"""
Demo data for trying ocusage without an opencode install.
"""
