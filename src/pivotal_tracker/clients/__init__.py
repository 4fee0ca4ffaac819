"""
Pivotal Tracker clients for external API access.

This module provides client classes for interacting with the Tracker REST API.
"""

from pivotal_tracker.clients.tracker_client import PivotalClient

__all__ = ["PivotalClient"]
