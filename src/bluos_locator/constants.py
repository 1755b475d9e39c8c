"""
BluOS network constants
"""

# BluOS players advertise these DNS-SD service types, queried in this order
BLUOS_SERVICE_TYPES = ("_musc._tcp", "_musp._tcp", "_mush._tcp")
DEFAULT_DOMAIN = "local"
