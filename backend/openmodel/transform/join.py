"""Transformer adding the fields of a single matching sub model row to each row."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .submodel import SubmodelTransformerAbstract

if TYPE_CHECKING:
    from openmodel.model.meta_model import MetaModel
    from openmodel.storage.base import DataReader


class JoinTransformer(SubmodelTransformerAbstract):
    """
    Joins one sub model row into each parent row.

    Parent values win over sub model values with the same name. Parent rows
    without a match get the sub model fields as None, so all rows have the
    same shape.
    """

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
        empty = dict.fromkeys(sub.get_meta_model().get_item_names())

        if len(join) == 1:
            parent_key, child_key = next(iter(join.items()))
            if new:
                sub_data = [sub.load_new()]
            else:
                sub_data = sub.load({child_key: [row.get(parent_key) for row in data]})

            if sub_data:
                found = {}
                for sub_row in sub_data:
                    found.setdefault(sub_row.get(child_key), sub_row)
                empty = dict.fromkeys(sub_data[0])

                for row in data:
                    sub_row = found.get(row.get(parent_key), empty)
                    for key, value in sub_row.items():
                        row.setdefault(key, value)
            else:
                for row in data:
                    for key in empty:
                        row.setdefault(key, None)
            return data

        for row in data:
            filter = sub.get_filter()
            for parent, child in join.items():
                if row.get(parent) is not None:
                    filter[child] = row[parent]

            sub_row = sub.load_new() if new else sub.load_first(filter)
            for key, value in (sub_row or empty).items():
                row.setdefault(key, value)
        return data

    def transform_save_sub_model(
        self,
        model: MetaModel,
        sub: DataReader,
        row: dict[str, Any],
        join: dict[Any, str],
        name: str,
    ) -> dict[str, Any]:
        keys = {child: row[parent] for parent, child in join.items() if row.get(parent) is not None}
        row = {**row, **keys}
        saved = sub.save(row)
        return {**row, **saved}
