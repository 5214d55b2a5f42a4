"""
Storage layer for ocusage.

Read-only access to the session and message files opencode writes.
"""
