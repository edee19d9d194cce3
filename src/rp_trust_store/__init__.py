"""
rp_trust_store — relying-party certificate trust store updater.

Downloads a PEM bundle of relying-party certificates, keeps the last fetched
copy in a local cache slot, and returns the certificates deduplicated by
SHA-256 fingerprint. A failed download or parse falls back to the cache;
when that fails too the result is an empty list, never an exception.
"""

__version__ = "0.1.0"
