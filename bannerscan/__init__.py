"""
BannerScan - concurrent TCP port scanner with banner grabbing
"""

__version__ = "1.0.0"
