"""
Base transformer module.

Transformers form an ordered pipeline on a meta model. They can add field
definitions, rewrite filters and sorts before a load and reshape the rows
after a load and around a save.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from openmodel.core.converters import flatten, pairs

if TYPE_CHECKING:
    from openmodel.model.meta_model import MetaModel


class ModelTransformerInterface(ABC):
    """Hooks called by the meta model."""

    @abstractmethod
    def get_field_info(self, model: MetaModel) -> dict[str, dict[str, Any]]:
        """Field settings the transformer adds to the model."""

    @abstractmethod
    def transform_filter(self, model: MetaModel, filter: dict[Any, Any]) -> dict[Any, Any]:
        pass

    @abstractmethod
    def transform_sort(self, model: MetaModel, sort: dict[str, Any]) -> dict[str, Any]:
        pass

    @abstractmethod
    def transform_load(
        self,
        model: MetaModel,
        data: list[dict[str, Any]],
        new: bool = False,
        is_post: bool = False,
    ) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    def transform_row_before_save(self, model: MetaModel, row: dict[str, Any]) -> dict[str, Any]:
        pass

    @abstractmethod
    def transform_row_after_save(self, model: MetaModel, row: dict[str, Any]) -> dict[str, Any]:
        pass

    @abstractmethod
    def trigger_on_saves(self) -> bool:
        """When true the saved row is passed through the on-save conversions first."""

    @abstractmethod
    def get_changed(self) -> int:
        pass


class ModelTransformerAbstract(ModelTransformerInterface):
    """Transformer with its own field settings and pass-through hooks."""

    def __init__(self) -> None:
        self._fields: dict[str, dict[str, Any]] = {}

    def get(self, name: str, *keys: Any) -> Any:
        keys = tuple(flatten(keys))
        item = self._fields.get(name, {})
        if not keys:
            return dict(item)
        if len(keys) == 1:
            return item.get(keys[0])
        return {key: item[key] for key in keys if item.get(key) is not None}

    def set(self, name: str, *args: Any, **kwargs: Any) -> ModelTransformerAbstract:
        settings = pairs(args)
        settings.update(kwargs)

        item = self._fields.setdefault(name, {})
        for key, value in settings.items():
            if isinstance(key, str) and key.endswith("[]"):
                item.setdefault(key[:-2], []).append(value)
            elif isinstance(key, str) and key.endswith("]") and "[" in key:
                pos = key.index("[")
                item.setdefault(key[:pos], {})[key[pos + 1:-1]] = value
            else:
                item[key] = value
        return self

    def get_changed(self) -> int:
        return 0

    def get_field_info(self, model: MetaModel) -> dict[str, dict[str, Any]]:
        return self._fields

    def transform_filter(self, model: MetaModel, filter: dict[Any, Any]) -> dict[Any, Any]:
        return filter

    def transform_sort(self, model: MetaModel, sort: dict[str, Any]) -> dict[str, Any]:
        return sort

    def transform_load(
        self,
        model: MetaModel,
        data: list[dict[str, Any]],
        new: bool = False,
        is_post: bool = False,
    ) -> list[dict[str, Any]]:
        return data

    def transform_row_before_save(self, model: MetaModel, row: dict[str, Any]) -> dict[str, Any]:
        return row

    def transform_row_after_save(self, model: MetaModel, row: dict[str, Any]) -> dict[str, Any]:
        return row

    def trigger_on_saves(self) -> bool:
        return False
