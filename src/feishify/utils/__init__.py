from .chunk import chunk_children
from .ids import IdGenerator
from .urls import safe_decode_url, safe_encode_url

__all__ = [
    "IdGenerator",
    "chunk_children",
    "safe_decode_url",
    "safe_encode_url",
]
