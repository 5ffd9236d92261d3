"""
Model Module - meta models and the loader creating them.
"""

from .definitions import DependencyDefinition, FieldDefinition, ModelDefinition
from .loader import ModelLoader
from .meta_model import LateValue, MetaModel
from .registry import ClassRegistry, import_class

__all__ = [
    "ClassRegistry",
    "DependencyDefinition",
    "FieldDefinition",
    "LateValue",
    "MetaModel",
    "ModelDefinition",
    "ModelLoader",
    "import_class",
]
