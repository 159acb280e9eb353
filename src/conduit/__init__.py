"""
Conduit: source/sink connector pipelines between a message queue and an
external data store.

A source pipeline polls an external system and publishes records to a
queue topic; a sink pipeline consumes a topic and writes records out.
"""

__version__ = "0.1.0"
