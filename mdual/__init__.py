"""Multi-query distance-based outlier detection over sliding windows.

Includes CSV loaders for datasets and query sets, a random query-set
generator, and a simulator that reports timing and memory.
"""

__version__ = "0.1.0"