"""
Little-endian field decoding and ISO 9660 image reading.
"""

__version__ = "0.1.0"
