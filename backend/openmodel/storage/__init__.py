"""
Storage Module - data models combining a meta model with storage.
"""

from .array_model import ArrayModelAbstract, MemoryModel, SessionModel, sort_rows
from .base import DataReader, DataWriter
from .csv_model import CsvModel, TabbedTextModel
from .sql_model import SqlTableModel
from .sql_runner import SqlRunner

__all__ = [
    "ArrayModelAbstract",
    "CsvModel",
    "DataReader",
    "DataWriter",
    "MemoryModel",
    "SessionModel",
    "SqlRunner",
    "SqlTableModel",
    "TabbedTextModel",
    "sort_rows",
]
