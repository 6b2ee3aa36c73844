"""
NETS QR transaction service.

Places NETS QR orders, reconciles them through the NETS callback and streams
the resulting status to clients.
"""
__version__ = "0.1.0"
