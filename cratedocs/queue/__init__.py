"""Build queue module.

This module handles:
- Queue ORM records
- The BuildQueue collaborator (add, check, count, list, remove)
- The worker pool that runs blocking queue calls
"""

from cratedocs.queue.models import QueueEntry
from cratedocs.queue.pool import BlockingPool
from cratedocs.queue.service import BuildQueue

__all__ = ["BlockingPool", "BuildQueue", "QueueEntry"]
