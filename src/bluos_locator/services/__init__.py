"""
Service orchestration for the locator
"""

from .player_locator import PlayerLocator

__all__ = ['PlayerLocator']
