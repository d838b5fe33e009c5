"""Runtime helpers for the CKB Python SDK"""

from .errors import CkbError, MalformedEncodingError
from .codec import bytes_from, hex_from, num_from, num_to_hex

__all__ = [
    "CkbError",
    "MalformedEncodingError",
    "bytes_from",
    "hex_from",
    "num_from",
    "num_to_hex",
]
