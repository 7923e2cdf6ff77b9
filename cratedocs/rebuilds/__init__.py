"""Rebuild trigger module.

Authorizes, deduplicates and queues externally requested rebuilds.
"""
