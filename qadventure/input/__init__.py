"""
Input Module - Pointer and keyboard translation.
"""

from .adapter import InputAdapter, Camera, Key, ordered_pair

__all__ = [
    "InputAdapter",
    "Camera",
    "Key",
    "ordered_pair",
]
