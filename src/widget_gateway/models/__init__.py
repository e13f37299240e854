"""
Widget gateway data models.
"""

from .request import ChatRequest, Provider, RawRequest
from .response import Reply

__all__ = [
    "ChatRequest",
    "Provider",
    "RawRequest",
    "Reply",
]
