"""
fleetreach: target resolution and availability for remote orchestration.

Expands inventory group trees through PuppetDB queries and waits for sets of
targets to accept connections.
"""

__version__ = "0.1.0"
