"""Transformers guaranteeing a fixed set of rows in the load output."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Mapping

from openmodel.core.converters import loose_equals
from openmodel.core.exceptions import ModelError

from .base import ModelTransformerAbstract

if TYPE_CHECKING:
    from openmodel.model.meta_model import MetaModel


def _to_rows(rows: Any, function: str) -> list[dict[str, Any]]:
    if isinstance(rows, Mapping):
        rows = rows.values()
    if not isinstance(rows, Iterable) or isinstance(rows, (str, bytes)):
        raise ModelError(
            f"Invalid parameter type for {function}: rows cannot be converted to a list.",
            operation=function,
        )
    return [dict(row) for row in rows]


def _merge(row: dict[str, Any], extra: dict[str, Any]) -> dict[str, Any]:
    result = dict(row)
    for name, value in extra.items():
        result.setdefault(name, value)
    return result


class RequiredRowsTransformer(ModelTransformerAbstract):
    """
    Makes sure the output contains every required row.

    Loaded rows are matched to a required row on the first key item count
    fields of the required row. Matches are returned with the required
    values added, required rows without a match are filled with the
    default row.

    Usage:
        transformer = RequiredRowsTransformer()
        transformer.set_required_rows([{"category": c} for c in categories])
        meta_model.add_transformer(transformer)
    """

    def __init__(self) -> None:
        super().__init__()
        self._default_row: dict[str, Any] | None = None
        self._key_item_count: int | None = None
        self._required_rows: list[dict[str, Any]] = []

    def _compare_rows(self, required: dict[str, Any], row: dict[str, Any], count: int) -> bool:
        if not row:
            return False
        for name in list(required)[:count]:
            if not loose_equals(required[name], row.get(name)):
                return False
        return True

    def get_default_row(self, model: MetaModel | None = None) -> dict[str, Any]:
        if self._default_row is None:
            required = self._required_rows[0] if self._required_rows else {}
            if not self._key_item_count:
                self.set_key_item_count(len(required))

            if not required or model is None:
                raise ModelError("Cannot create default row without model and required rows.")

            self._default_row = {
                name: None for name in model.get_item_names() if name not in required
            }
        return dict(self._default_row)

    def set_default_row(self, default_row: Mapping[str, Any]) -> RequiredRowsTransformer:
        if not isinstance(default_row, Mapping):
            raise ModelError(
                "Invalid parameter type for set_default_row: row cannot be converted to a dict.",
                operation="set_default_row",
            )
        self._default_row = dict(default_row)
        return self

    def get_key_item_count(self) -> int:
        if not self._key_item_count:
            required = self._required_rows[0] if self._required_rows else {}
            self.set_key_item_count(len(required))
        return self._key_item_count or 0

    def set_key_item_count(self, count: int) -> RequiredRowsTransformer:
        self._key_item_count = count
        return self

    def get_required_rows(self) -> list[dict[str, Any]]:
        return self._required_rows

    def set_required_rows(self, rows: Any) -> RequiredRowsTransformer:
        """Set the required rows, a list of rows or a dict of rows."""
        self._required_rows = _to_rows(rows, "set_required_rows")
        return self

    def transform_load(
        self,
        model: MetaModel,
        data: list[dict[str, Any]],
        new: bool = False,
        is_post: bool = False,
    ) -> list[dict[str, Any]]:
        defaults = self.get_default_row(model)
        key_count = self.get_key_item_count()
        data = list(data or [])

        results = []
        for required in self._required_rows:
            for row in data:
                if self._compare_rows(required, row, key_count):
                    results.append(_merge(row, required))
                    break
            else:
                results.append(_merge(required, defaults))
        return results


class SubmodelRequiredRowsTransformer(RequiredRowsTransformer):
    """Applies the required rows to the nested rows of a sub model field."""

    def __init__(self, sub_model_name: str) -> None:
        super().__init__()
        self.sub_model_name = sub_model_name

    def transform_load(
        self,
        model: MetaModel,
        data: list[dict[str, Any]],
        new: bool = False,
        is_post: bool = False,
    ) -> list[dict[str, Any]]:
        if not model.has(self.sub_model_name, "model"):
            return data

        sub_meta = model.get(self.sub_model_name, "model").get_meta_model()
        results = []
        for row in data:
            row = dict(row)
            row[self.sub_model_name] = super().transform_load(
                sub_meta, row.get(self.sub_model_name) or [], new, is_post
            )
            results.append(row)
        return results
