"""
BluOS player locator: mDNS discovery, reachability checks and address resolution
"""

__version__ = "0.1.0"
