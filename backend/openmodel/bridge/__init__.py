"""
Bridge Module - presentation of model data.
"""

from .base import BridgeAbstract
from .display import DisplayBridge
from .late import LateBridgeFormat, RowCursor

__all__ = [
    "BridgeAbstract",
    "DisplayBridge",
    "LateBridgeFormat",
    "RowCursor",
]
