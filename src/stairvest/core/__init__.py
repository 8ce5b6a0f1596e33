"""
StairVest Core Module

Vesting engine, asset contracts, identity checks, configuration and
logging. See ``stairvest.core.vesting`` for the public wallet API.
"""

__all__ = []
