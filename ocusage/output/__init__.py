"""
Output formats for ocusage reports: rich tables, JSON and XML.
"""
