"""Example scripts for Feeding Sync.

Available examples:

offline_first.py
    Log and delete feedings offline, reconnect, watch the queue drain.
    Start here to understand the core workflow.

Run any example:
    python examples/offline_first.py
"""
