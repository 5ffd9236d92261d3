"""Crosstab transformer: pivots (id, value) rows into one wide row per model key."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .base import ModelTransformerAbstract

if TYPE_CHECKING:
    from openmodel.model.meta_model import MetaModel


class CrossTabTransformer(ModelTransformerAbstract):
    """
    Turns rows like

        {"person": 1, "measure": "weight", "result": 80}
        {"person": 1, "measure": "length", "result": 185}

    into {"person": 1, "result_weight": 80, "result_length": 185}, with
    add_crosstab_field("measure", "result"). Declare the pivot fields with
    set() to get them as None in rows that lack them.
    """

    def __init__(self) -> None:
        super().__init__()
        self._cross_tabs: list[dict[str, str]] = []
        self._excludes: dict[str, str] = {}

    def add_crosstab_field(self, id_field: str, value_field: str, prefix: str | None = None) -> CrossTabTransformer:
        if prefix is None:
            prefix = f"{value_field}_"

        self._cross_tabs.append({"id": id_field, "val": value_field, "pre": prefix})
        self._excludes[id_field] = id_field
        self._excludes[value_field] = value_field
        return self

    def transform_load(
        self,
        model: MetaModel,
        data: list[dict[str, Any]],
        new: bool = False,
        is_post: bool = False,
    ) -> list[dict[str, Any]]:
        if not data or not self._cross_tabs:
            return data

        keys = list(model.get_keys().values())
        default = {name: None for name in self._fields if name not in self._excludes}

        results: dict[str, dict[str, Any]] = {}
        for row in data:
            key = "\t".join(str(row[name]) for name in keys if name in row)
            if key not in results:
                result = {name: value for name, value in row.items() if name not in self._excludes}
                for name, value in default.items():
                    result.setdefault(name, value)
                results[key] = result

            for cross_tab in self._cross_tabs:
                results[key][f"{cross_tab['pre']}{row[cross_tab['id']]}"] = row[cross_tab["val"]]
        return list(results.values())
