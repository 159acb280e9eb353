# src/conduit/testing/__init__.py
"""Test infrastructure for conduit pipelines.

In-memory queue clients that satisfy the queue client protocols without a
broker. Real deployments inject their own client.

Usage:
    from conduit.testing import MemoryBroker, MemoryConsumer, MemoryProducer
"""

from conduit.testing.memory_queue import MemoryBroker, MemoryConsumer, MemoryProducer

__all__ = ["MemoryBroker", "MemoryConsumer", "MemoryProducer"]
