"""git2ftp — replay git commits onto an FTP server"""

__version__ = "1.0.0"
