"""Transformers nesting child rows, or a single child column, keyed by a parent id."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .nested import NestedTransformer

if TYPE_CHECKING:
    from openmodel.model.meta_model import MetaModel
    from openmodel.storage.base import DataReader


class ToManyTransformer(NestedTransformer):
    """
    Nests the child rows of each parent using one batch load.

    Only the first join field pair is used. Filters on sub model fields
    are translated to a filter on the parent ids of the matching children.

    Args:
        savable: Save the nested rows with the parent
    """

    def __init__(self, savable: bool = False) -> None:
        super().__init__()
        self.savable = savable

    @staticmethod
    def _first_join(join: dict[Any, str]) -> tuple[Any, str]:
        return next(iter(join.items()))

    def transform_filter_sub_model(
        self,
        model: MetaModel,
        sub: DataReader,
        filter: dict[Any, Any],
        join: dict[Any, str],
    ) -> dict[Any, Any]:
        item_names = sub.get_meta_model().get_item_names()
        sub_filter = {
            key: value
            for key, value in filter.items()
            if key in item_names and key not in join
        }
        if not sub_filter:
            return filter

        parent, child = self._first_join(join)
        filter = {key: value for key, value in filter.items() if key not in sub_filter}

        ids = []
        for row in sub.load(sub_filter):
            if row.get(child) is not None and row[child] not in ids:
                ids.append(row[child])
        filter[parent] = ids
        return filter

    def _load_children(
        self,
        sub: DataReader,
        data: list[dict[str, Any]],
        join: dict[Any, str],
        name: str,
        new: bool,
        is_post: bool,
    ) -> tuple[dict[Any, list[int]], list[dict[str, Any]]]:
        """Fill the post and new rows and batch load the children of the others."""
        parent, child = self._first_join(join)

        parent_indexes: dict[Any, list[int]] = {}
        for idx, row in enumerate(data):
            if row.get(name) is not None:
                row[name] = self._process_posted(sub, row[name], new, is_post)
            elif new:
                row[name] = []
            else:
                row[name] = []
                if row.get(parent) is not None:
                    parent_indexes.setdefault(row[parent], []).append(idx)

        if not parent_indexes:
            return parent_indexes, []
        return parent_indexes, sub.load({child: list(parent_indexes)})

    def _process_posted(self, sub: DataReader, rows: Any, new: bool, is_post: bool) -> Any:
        return sub.get_meta_model().process_after_load(rows, new, is_post)

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
        parent_indexes, children = self._load_children(sub, data, join, name, new, is_post)
        child = self._first_join(join)[1]

        for result in children:
            for idx in parent_indexes.get(result.get(child), []):
                data[idx][name].append(result)
        return data

    def transform_save_sub_model(
        self,
        model: MetaModel,
        sub: DataReader,
        row: dict[str, Any],
        join: dict[Any, str],
        name: str,
    ) -> dict[str, Any]:
        if not self.savable or row.get(name) is None:
            return row

        parent, child = self._first_join(join)
        parent_id = row[parent]
        key = next(iter(sub.get_meta_model().get_keys().values()))

        new_rows = {sub_row.get(key): sub_row for sub_row in row[name] if sub_row.get(key) is not None}
        save_rows = []
        deleted = []
        for old in sub.load({child: parent_id}):
            if old.get(key) in new_rows:
                save_rows.append({**old, **new_rows.pop(old[key])})
            else:
                deleted.append(old[key])

        for sub_row in row[name]:
            if sub_row.get(key) is None or sub_row.get(key) in new_rows:
                save_rows.append({**sub_row, child: parent_id})

        results = [sub.save(save_row) for save_row in save_rows]
        if deleted:
            sub.delete({key: deleted})

        row[name] = results
        return row


class ToColumnChildTransformer(ToManyTransformer):
    """
    Nests a list with a single column of the child rows.

    Args:
        single_column: The child column put in the list
        savable: Save the list with the parent, inserting new values and
            deleting the rows of values that were removed
    """

    def __init__(self, single_column: str, savable: bool = False) -> None:
        super().__init__(savable)
        self.single_column = single_column

    def _process_posted(self, sub: DataReader, rows: Any, new: bool, is_post: bool) -> Any:
        return list(rows)

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
        parent_indexes, children = self._load_children(sub, data, join, name, new, is_post)
        child = self._first_join(join)[1]

        for result in children:
            for idx in parent_indexes.get(result.get(child), []):
                data[idx][name].append(result.get(self.single_column))
        return data

    def transform_save_sub_model(
        self,
        model: MetaModel,
        sub: DataReader,
        row: dict[str, Any],
        join: dict[Any, str],
        name: str,
    ) -> dict[str, Any]:
        if not self.savable or row.get(name) is None:
            return row

        parent, child = self._first_join(join)
        parent_id = row[parent]
        values = list(row[name])

        results = []
        deleted = []
        for old in sub.load({child: parent_id}):
            if old.get(self.single_column) in values:
                results.append(old)
                values.remove(old[self.single_column])
            else:
                deleted.append(old)

        for value in values:
            results.append(sub.save({child: parent_id, self.single_column: value}))

        key = next(iter(sub.get_meta_model().get_keys().values()))
        for old in deleted:
            sub.delete({key: old[key]})

        row[name] = [result.get(self.single_column) for result in results]
        return row
