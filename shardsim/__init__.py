"""Supervisor-side toolkit for a sharded blockchain emulator: messages, CLPA partitioning, rate limiting and metrics."""

__version__ = "0.1.0"