"""Content-addressable disk cache with per-entry time-to-live."""

__version__ = "0.2.2"
__all__ = ["errors", "store", "ttl"]