"""
OpenModel - metadata driven data access.

A MetaModel describes the fields of an entity. Data models combine a meta
model with storage, dependencies change field settings based on row
values, transformers reshape rows on load and save, and bridges format
the values for output.
"""

from openmodel.model import MetaModel, ModelLoader
from openmodel.storage import CsvModel, MemoryModel, SessionModel, SqlRunner, SqlTableModel, TabbedTextModel
from openmodel.bridge import DisplayBridge

__version__ = "1.0.0"

__all__ = [
    "CsvModel",
    "DisplayBridge",
    "MemoryModel",
    "MetaModel",
    "ModelLoader",
    "SessionModel",
    "SqlRunner",
    "SqlTableModel",
    "TabbedTextModel",
]
