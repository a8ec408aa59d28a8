"""
Notify Gateway - multi-tenant notification gateway.

Sends email and SMS from stored templates through pluggable transports,
or forwards requests to an external GC Notify API in passthrough mode.
"""

__version__ = "1.0.0"
