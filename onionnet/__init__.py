# onionnet/__init__.py
"""
A simplified onion-routing overlay: a registry of relays, senders that wrap
messages in one RSA-OAEP + AES-GCM layer per hop, and relays that peel
exactly one layer before forwarding or delivering.
"""

__version__ = "0.1.0"
