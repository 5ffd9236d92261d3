"""Base class for transformers embedding or joining the rows of other models."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any

from .base import ModelTransformerInterface

if TYPE_CHECKING:
    from openmodel.model.meta_model import MetaModel
    from openmodel.storage.base import DataReader


class SubmodelTransformerAbstract(ModelTransformerInterface):
    """
    Transformer holding one or more sub models, each with a join.

    A join maps parent field names to child field names:
    {"order_id": "line_order_id"}.
    """

    def __init__(self) -> None:
        self._changed = 0
        self._joins: dict[str, dict[Any, str]] = {}
        self._sub_models: dict[str, DataReader] = {}

    def add_model(
        self,
        sub_model: DataReader,
        join_fields: dict[Any, str],
        name: str | None = None,
    ) -> SubmodelTransformerAbstract:
        if name is None:
            name = sub_model.get_meta_model().get_name()

        self._sub_models[name] = sub_model
        self._joins[name] = dict(join_fields)
        return self

    def get_changed(self) -> int:
        return self._changed

    def get_field_info(self, model: MetaModel) -> dict[str, dict[str, Any]]:
        data: dict[str, dict[str, Any]] = {}
        for sub in self._sub_models.values():
            sub_meta = sub.get_meta_model()
            for name in sub_meta.get_item_names():
                if not model.has(name):
                    info = sub_meta.get(name)
                    info["no_text_search"] = True
                    info.pop("table", None)
                    info.pop("column_expression", None)
                    data[name] = info
        return data

    def transform_filter(self, model: MetaModel, filter: dict[Any, Any]) -> dict[Any, Any]:
        # Reading the join sources marks them used, so they end up in the result set
        for joins in self._joins.values():
            for source in joins:
                if not isinstance(source, int):
                    model.get(source)

        for name, sub in self._sub_models.items():
            filter = self.transform_filter_sub_model(model, sub, filter, self._joins[name])
        return filter

    def transform_filter_sub_model(
        self,
        model: MetaModel,
        sub: DataReader,
        filter: dict[Any, Any],
        join: dict[Any, str],
    ) -> dict[Any, Any]:
        return filter

    def transform_sort(self, model: MetaModel, sort: dict[str, Any]) -> dict[str, Any]:
        for sub in self._sub_models.values():
            sub_meta = sub.get_meta_model()
            sort = {key: value for key, value in sort.items() if not sub_meta.has(key)}
        return sort

    def transform_load(
        self,
        model: MetaModel,
        data: list[dict[str, Any]],
        new: bool = False,
        is_post: bool = False,
    ) -> list[dict[str, Any]]:
        if not data:
            return data

        data = [dict(row) for row in data]
        for name, sub in self._sub_models.items():
            data = self.transform_load_sub_model(model, sub, data, self._joins[name], name, new, is_post)
        return data

    @abstractmethod
    def transform_load_sub_model(
        self,
        model: MetaModel,
        sub: DataReader,
        data: list[dict[str, Any]],
        join: dict[Any, str],
        name: str,
        new: bool,
        is_post: bool,
    ) -> list[dict[str, Any]]:
        """Add the sub model data to the loaded rows."""

    def transform_row_before_save(self, model: MetaModel, row: dict[str, Any]) -> dict[str, Any]:
        return row

    def transform_row_after_save(self, model: MetaModel, row: dict[str, Any]) -> dict[str, Any]:
        if not row:
            return row

        row = dict(row)
        for name, sub in self._sub_models.items():
            row = self.transform_save_sub_model(model, sub, row, self._joins[name], name)
            if hasattr(sub, "get_changed"):
                self._changed += sub.get_changed()
        return row

    @abstractmethod
    def transform_save_sub_model(
        self,
        model: MetaModel,
        sub: DataReader,
        row: dict[str, Any],
        join: dict[Any, str],
        name: str,
    ) -> dict[str, Any]:
        """Save the sub model data of a saved row."""

    def trigger_on_saves(self) -> bool:
        return False
