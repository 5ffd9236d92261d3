"""
Transformer pipeline.

Transformers reshape loaded and saved rows, usually to embed or join the
rows of other models.
"""

from .base import ModelTransformerAbstract, ModelTransformerInterface
from .crosstab import CrossTabTransformer
from .join import JoinTransformer
from .nested import NestedTransformer, OneToManyTransformer
from .required_rows import RequiredRowsTransformer, SubmodelRequiredRowsTransformer
from .submodel import SubmodelTransformerAbstract
from .to_many import ToColumnChildTransformer, ToManyTransformer

__all__ = [
    "ModelTransformerInterface",
    "ModelTransformerAbstract",
    "SubmodelTransformerAbstract",
    "NestedTransformer",
    "OneToManyTransformer",
    "JoinTransformer",
    "ToManyTransformer",
    "ToColumnChildTransformer",
    "CrossTabTransformer",
    "RequiredRowsTransformer",
    "SubmodelRequiredRowsTransformer",
]
