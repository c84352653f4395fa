"""VortexQ — minimal topic-based message relay.

Producers publish messages tagged with a topic, consumers register a
callback endpoint for a topic, and once per tick every buffered message
is pushed to every registered endpoint over HTTP.
"""

__version__ = "0.1.0"
