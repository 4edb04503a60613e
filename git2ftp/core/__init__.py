"""Core functionality (transports)"""
from .transport import RemoteTransport, FTPTransport, SFTPTransport, NullTransport, open_transport

__all__ = ["RemoteTransport", "FTPTransport", "SFTPTransport", "NullTransport", "open_transport"]
