"""Transformers nesting the child rows of a sub model under a parent row field."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from openmodel.core.constants import LOAD_TRANSFORMER, NO_SQL, SAVE_TRANSFORMER, TYPE_CHILD_MODEL

from .submodel import SubmodelTransformerAbstract

if TYPE_CHECKING:
    from openmodel.model.meta_model import MetaModel
    from openmodel.storage.base import DataReader


def _parent_keys(row: dict[str, Any], join: dict[Any, str]) -> dict[str, Any] | None:
    """The child key values for a parent row, None when a parent value is missing."""
    keys = {}
    for parent, child in join.items():
        if row.get(parent) is None:
            return None
        keys[child] = row[parent]
    return keys


class NestedTransformer(SubmodelTransformerAbstract):
    """
    Nests all matching sub model rows in a list under the sub model name.

    Attributes:
        skip_save: Do not save the nested rows when the parent is saved
    """

    def __init__(self, skip_save: bool = False) -> None:
        super().__init__()
        self.skip_save = skip_save

    def get_field_info(self, model: MetaModel) -> dict[str, dict[str, Any]]:
        data = super().get_field_info(model)
        for info in data.values():
            info.pop("label", None)
            info["elementClass"] = "None"
            # The sub model conversions apply inside the nested rows only
            info.pop(LOAD_TRANSFORMER, None)
            info.pop(SAVE_TRANSFORMER, None)
        data.update(self._nested_field_info(model))
        return data

    def _nested_field_info(self, model: MetaModel) -> dict[str, dict[str, Any]]:
        """The fields holding the nested rows, stored by the transformer instead of the model."""
        return {
            name: {"elementClass": "None", "type": TYPE_CHILD_MODEL, NO_SQL: True}
            for name in self._sub_models
            if not model.has(name)
        }

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
        for row in data:
            if row.get(name) is not None:
                rows = sub.get_meta_model().process_after_load(row[name], new, is_post)
            elif new:
                rows = [sub.load_new()]
            else:
                filter = sub.get_filter()
                for parent, child in join.items():
                    if row.get(parent) is not None:
                        filter[child] = row[parent]

                if filter:
                    rows = sub.load(filter)
                else:
                    rows = [sub.load_new()]
            row[name] = rows
        return data

    def transform_save_sub_model(
        self,
        model: MetaModel,
        sub: DataReader,
        row: dict[str, Any],
        join: dict[Any, str],
        name: str,
    ) -> dict[str, Any]:
        if self.skip_save or row.get(name) is None:
            return row

        keys = _parent_keys(row, join)
        if keys is None:
            return row

        row[name] = [sub.save({**sub_row, **keys}) for sub_row in row[name]]
        return row

    def transform_sort(self, model: MetaModel, sort: dict[str, Any]) -> dict[str, Any]:
        for sub in self._sub_models.values():
            sub_meta = sub.get_meta_model()
            sub_sorts = {key: value for key, value in sort.items() if sub_meta.has(key)}
            if sub_sorts:
                current = sub.get_sort()
                sub.set_sort({**sub_sorts, **{k: v for k, v in current.items() if k not in sub_sorts}})
        return sort


class OneToManyTransformer(NestedTransformer):
    """
    Nested child rows loaded with a single query for all parent rows.

    Saving reconciles the children: the posted rows are saved and stored
    child rows missing from the post are deleted.
    """

    def __init__(self, sub_model: DataReader, join_fields: dict[Any, str], name: str | None = None) -> None:
        super().__init__()
        self.add_model(sub_model, join_fields, name)

    def get_field_info(self, model: MetaModel) -> dict[str, dict[str, Any]]:
        return self._nested_field_info(model)

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
        new_rows = [sub.load_new()] if new else []

        join_filter: dict[str, list[Any]] = {}
        join_index: dict[str, list[int]] = {}
        for idx, row in enumerate(data):
            if row.get(name) is not None:
                row[name] = sub.get_meta_model().process_after_load(row[name], new, is_post)
                continue
            if new:
                row[name] = list(new_rows)
                continue

            parts = []
            for parent, child in join.items():
                if row.get(parent) is not None:
                    join_filter.setdefault(child, []).append(row[parent])
                    parts.append(str(row[parent]))

            if parts:
                join_index.setdefault("::".join(parts), []).append(idx)
                row[name] = []
            else:
                row[name] = list(new_rows)

        if join_filter:
            for sub_row in sub.load(join_filter):
                join_key = "::".join(str(sub_row.get(child)) for child in join.values())
                for idx in join_index.get(join_key, []):
                    data[idx][name].append(sub_row)
        return data

    def transform_save_sub_model(
        self,
        model: MetaModel,
        sub: DataReader,
        row: dict[str, Any],
        join: dict[Any, str],
        name: str,
    ) -> dict[str, Any]:
        if self.skip_save or row.get(name) is None:
            return row

        keys = _parent_keys(row, join)
        if keys is None:
            return row

        sub_items = [{**sub_row, **keys} for sub_row in row[name]]
        saved = [sub.save(sub_row) for sub_row in sub_items]

        old_rows = sub.load(keys)
        sub_keys = list(sub.get_meta_model().get_keys().values())
        for deleted in self.find_deleted_items(old_rows, saved, sub_keys):
            sub.delete(deleted)

        row[name] = saved
        return row

    @staticmethod
    def _key_projection(rows: list[dict[str, Any]], keys: list[str]) -> list[dict[str, Any]]:
        return [{key: row[key] for key in sorted(keys) if key in row} for row in rows]

    @classmethod
    def find_deleted_items(
        cls,
        old_rows: list[dict[str, Any]],
        new_rows: list[dict[str, Any]],
        keys: list[str],
    ) -> list[dict[str, Any]]:
        """The key values of the old rows that are not in the new rows."""
        new_serialized = {
            json.dumps(item, sort_keys=True, default=str)
            for item in cls._key_projection(new_rows, keys)
        }
        return [
            item
            for item in cls._key_projection(old_rows, keys)
            if item and json.dumps(item, sort_keys=True, default=str) not in new_serialized
        ]
