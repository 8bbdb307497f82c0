"""
torrent_relay

Accepts uploaded torrent descriptors over HTTP, hands them to an external
download agent and reclaims the downloaded output after a retention window.
"""

__version__ = "1.0.0"
