"""cratedocs - build history and rebuild triggers for crate documentation.

This package resolves crate/version requests to canonical documentation
targets, exposes their build history, and accepts authenticated rebuild
requests into the shared build queue.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
