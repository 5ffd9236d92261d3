"""
Tests for the transformer pipeline.

Nested, one to many, join, to many, crosstab and required rows
transformers, run over in memory models.
"""

import pytest

from openmodel.core.constants import SortOrder, TYPE_CHILD_MODEL
from openmodel.core.exceptions import ModelError
from openmodel.model.meta_model import MetaModel
from openmodel.storage import MemoryModel
from openmodel.transform import (
    CrossTabTransformer,
    JoinTransformer,
    NestedTransformer,
    OneToManyTransformer,
    RequiredRowsTransformer,
    SubmodelRequiredRowsTransformer,
    ToColumnChildTransformer,
    ToManyTransformer,
)


class RecordingModel(MemoryModel):
    """MemoryModel remembering the filters passed to delete()."""

    def __init__(self, meta_model, rows=None):
        super().__init__(meta_model, rows)
        self.deleted = []

    def delete(self, filter=None):
        self.deleted.append(filter)
        return super().delete(filter)


@pytest.fixture
def children():
    meta = MetaModel("children")
    meta.set_keys(["cid"])
    return RecordingModel(meta, [
        {"cid": 10, "parent_id": 1, "item": "a"},
        {"cid": 11, "parent_id": 1, "item": "b"},
        {"cid": 12, "parent_id": 2, "item": "c"},
    ])


@pytest.fixture
def parents():
    meta = MetaModel("parents")
    meta.set_keys(["id"])
    return MemoryModel(meta, [
        {"id": 1, "name": "One"},
        {"id": 2, "name": "Two"},
        {"id": 3, "name": "Three"},
    ])


class TestOneToManyTransformer:
    """Tests for OneToManyTransformer."""

    @pytest.fixture
    def model(self, parents, children):
        parents.meta_model.add_transformer(OneToManyTransformer(children, {"id": "parent_id"}, "children"))
        return parents

    def test_field_declared(self, model):
        assert model.meta_model.get("children", "type") == TYPE_CHILD_MODEL

    def test_load_nests_children(self, model):
        rows = model.load()

        assert [len(row["children"]) for row in rows] == [2, 1, 0]
        assert [child["item"] for child in rows[0]["children"]] == ["a", "b"]

    def test_parents_sharing_join_value(self):
        members = MemoryModel(MetaModel("members"), [
            {"mid": 1, "group": "g1"},
            {"mid": 2, "group": "g1"},
            {"mid": 3, "group": "g2"},
        ])
        teams = MemoryModel(MetaModel("teams"), [
            {"tid": 1, "group": "g1"},
            {"tid": 2, "group": "g1"},
            {"tid": 3, "group": "g2"},
        ])
        teams.meta_model.add_transformer(OneToManyTransformer(members, {"group": "group"}, "members"))

        rows = teams.load()

        assert [len(row["members"]) for row in rows] == [2, 2, 1]
        assert [member["mid"] for member in rows[0]["members"]] == [1, 2]

    def test_unchanged_save(self, model, children):
        row = model.load_first({"id": 1})

        model.save(row)

        assert children.get_changed() == 0
        assert children.deleted == []
        assert children.load_count() == 3

    def test_removed_child_deleted(self, model, children):
        row = model.load_first({"id": 1})
        row["children"] = row["children"][:1]

        saved = model.save(row)

        assert children.deleted == [{"cid": 11}]
        assert children.get_changed() == 0
        assert [child["cid"] for child in saved["children"]] == [10]
        assert [child["cid"] for child in model.load_first({"id": 1})["children"]] == [10]

    def test_added_child_inserted(self, model, children):
        row = model.load_first({"id": 3})
        row["children"].append({"cid": 13, "item": "d"})

        model.save(row)

        assert children.get_changed() == 1
        assert children.load_first({"cid": 13})["parent_id"] == 3
        assert children.deleted == []

    def test_parent_row_not_stored_with_children(self, model):
        row = model.load_first({"id": 2})

        model.save(row)

        assert model.get_changed() == 0
        assert model.load_first({"id": 2})["children"][0]["item"] == "c"

    def test_new_row_gets_new_child(self, model):
        row = model.load_new()

        assert row["children"] == [{"cid": None, "parent_id": None, "item": None}]

    def test_find_deleted_items(self):
        old = [{"cid": 1, "x": 1}, {"cid": 2, "x": 2}]
        new = [{"x": 5, "cid": 1}]

        assert OneToManyTransformer.find_deleted_items(old, new, ["cid"]) == [{"cid": 2}]


class TestNestedTransformer:
    """Tests for NestedTransformer."""

    @pytest.fixture
    def model(self, parents, children):
        parents.meta_model.add_model(children, {"id": "parent_id"})
        return parents

    def test_sub_fields_added_without_label(self, parents, children):
        children.meta_model.set("item", label="Item")
        parents.meta_model.add_model(children, {"id": "parent_id"})

        assert parents.meta_model.get("item", "elementClass") == "None"
        assert not parents.meta_model.has("item", "label")
        assert parents.meta_model.get("item", "no_text_search") is True

    def test_load(self, model):
        rows = model.load({"id": [1, 3]})

        assert [child["cid"] for child in rows[0]["children"]] == [10, 11]
        assert rows[1]["children"] == []

    def test_posted_rows_are_processed(self, model, children):
        children.meta_model.set_on_load("item", lambda value, new, name, context, is_post: value.upper())

        rows = model.meta_model.process_after_load([{"id": 1, "children": [{"item": "x"}]}], False, True)

        assert rows[0]["children"] == [{"item": "X"}]

    def test_sort_on_sub_field_moves_to_sub_model(self, model, children):
        rows = model.load({"id": 1}, {"item": SortOrder.DESC})

        assert children.get_sort() == {"item": SortOrder.DESC}
        assert [child["item"] for child in rows[0]["children"]] == ["b", "a"]

    def test_save_adds_join_values(self, model, children):
        row = model.load_first({"id": 2})
        row["children"].append({"cid": 14, "item": "e"})

        model.save(row)

        assert children.load_first({"cid": 14})["parent_id"] == 2

    def test_skip_save(self, parents, children):
        transformer = NestedTransformer(skip_save=True)
        transformer.add_model(children, {"id": "parent_id"}, "children")
        parents.meta_model.add_transformer(transformer)
        row = parents.load_first({"id": 2})
        row["children"][0]["item"] = "changed"

        parents.save(row)

        assert children.load_first({"cid": 12})["item"] == "c"


class TestJoinTransformer:
    """Tests for JoinTransformer."""

    @pytest.fixture
    def cities(self):
        return MemoryModel(MetaModel("cities"), [
            {"city_id": 1, "city": "Utrecht"},
            {"city_id": 2, "city": "Boston"},
        ])

    @pytest.fixture
    def people(self):
        return MemoryModel(MetaModel("people"), [
            {"pid": 1, "city_id": 1},
            {"pid": 2, "city_id": 3},
            {"pid": 3, "city_id": 2},
        ])

    def test_single_join_field(self, people, cities):
        people.meta_model.add_transformer(JoinTransformer().add_model(cities, {"city_id": "city_id"}))

        rows = people.load()

        assert rows == [
            {"pid": 1, "city_id": 1, "city": "Utrecht"},
            {"pid": 2, "city_id": 3, "city": None},
            {"pid": 3, "city_id": 2, "city": "Boston"},
        ]
        assert people.meta_model.get("city", "no_text_search") is True

    def test_no_matches_pads_rows(self, people, cities):
        people.meta_model.add_transformer(JoinTransformer().add_model(cities, {"city_id": "city_id"}))

        rows = people.load({"pid": 2})

        assert rows == [{"pid": 2, "city_id": 3, "city": None}]

    def test_multiple_join_fields(self):
        rates = MemoryModel(MetaModel("rates"), [
            {"country": "NL", "year": 2024, "rate": 21},
            {"country": "NL", "year": 2023, "rate": 19},
        ])
        orders = MemoryModel(MetaModel("orders"), [
            {"order": 1, "land": "NL", "year": 2023},
            {"order": 2, "land": "US", "year": 2023},
        ])
        orders.meta_model.add_transformer(
            JoinTransformer().add_model(rates, {"land": "country", "year": "year"})
        )

        rows = orders.load()

        assert rows[0]["rate"] == 19
        assert rows[1]["rate"] is None
        assert rows[1]["country"] is None


class TestToManyTransformer:
    """Tests for ToManyTransformer and ToColumnChildTransformer."""

    @pytest.fixture
    def tags(self):
        meta = MetaModel("tags")
        meta.set_keys(["tag_id"])
        return MemoryModel(meta, [
            {"tag_id": 1, "person_id": 1, "tag": "x"},
            {"tag_id": 2, "person_id": 1, "tag": "y"},
            {"tag_id": 3, "person_id": 2, "tag": "x"},
        ])

    @pytest.fixture
    def people(self):
        meta = MetaModel("people")
        meta.set_keys(["id"])
        return MemoryModel(meta, [{"id": 1, "name": "Ann"}, {"id": 2, "name": "Bob"}, {"id": 3, "name": "Cy"}])

    def test_load(self, people, tags):
        transformer = ToManyTransformer()
        transformer.add_model(tags, {"id": "person_id"}, "tags")
        people.meta_model.add_transformer(transformer)

        rows = people.load()

        assert [[tag["tag"] for tag in row["tags"]] for row in rows] == [["x", "y"], ["x"], []]

    def test_filter_on_sub_field(self, people, tags):
        transformer = ToManyTransformer()
        transformer.add_model(tags, {"id": "person_id"}, "tags")
        people.meta_model.add_transformer(transformer)

        assert [row["name"] for row in people.load({"tag": "y"})] == ["Ann"]
        assert [row["name"] for row in people.load({"tag": "x"})] == ["Ann", "Bob"]
        assert people.load({"tag": "none"}) == []

    def test_save(self, people, tags):
        transformer = ToManyTransformer(savable=True)
        transformer.add_model(tags, {"id": "person_id"}, "tags")
        people.meta_model.add_transformer(transformer)
        row = people.load_first({"id": 1})
        row["tags"] = [row["tags"][0], {"tag": "z"}]

        people.save(row)

        assert sorted(tag["tag"] for tag in tags.load({"person_id": 1})) == ["x", "z"]
        assert tags.load_first({"tag_id": 2}) == {}

    def test_not_savable(self, people, tags):
        transformer = ToManyTransformer()
        transformer.add_model(tags, {"id": "person_id"}, "tags")
        people.meta_model.add_transformer(transformer)
        row = people.load_first({"id": 1})
        row["tags"] = []

        people.save(row)

        assert tags.load_count({"person_id": 1}) == 2

    def test_column_child_load(self, people, tags):
        transformer = ToColumnChildTransformer("tag")
        transformer.add_model(tags, {"id": "person_id"}, "tags")
        people.meta_model.add_transformer(transformer)

        assert [row["tags"] for row in people.load()] == [["x", "y"], ["x"], []]

    def test_column_child_save(self, people, tags):
        transformer = ToColumnChildTransformer("tag", savable=True)
        transformer.add_model(tags, {"id": "person_id"}, "tags")
        people.meta_model.add_transformer(transformer)
        row = people.load_first({"id": 1})
        row["tags"] = ["x", "w"]

        saved = people.save(row)

        assert saved["tags"] == ["x", "w"]
        assert sorted(tag["tag"] for tag in tags.load({"person_id": 1})) == ["w", "x"]


class TestCrossTabTransformer:
    """Tests for CrossTabTransformer."""

    ROWS = [
        {"person": 1, "measure": "weight", "result": 80},
        {"person": 1, "measure": "length", "result": 185},
        {"person": 2, "measure": "weight", "result": 70},
    ]

    @pytest.fixture
    def meta(self):
        meta = MetaModel("measurements")
        meta.set_keys(["person"])
        return meta

    def test_pivot(self, meta):
        transformer = CrossTabTransformer().add_crosstab_field("measure", "result")
        transformer.set("result_weight")
        transformer.set("result_length")
        meta.add_transformer(transformer)

        assert meta.process_after_load(self.ROWS) == [
            {"person": 1, "result_weight": 80, "result_length": 185},
            {"person": 2, "result_weight": 70, "result_length": None},
        ]

    def test_undeclared_pivot_fields_absent(self, meta):
        meta.add_transformer(CrossTabTransformer().add_crosstab_field("measure", "result"))

        rows = meta.process_after_load(self.ROWS)

        assert rows[1] == {"person": 2, "result_weight": 70}

    def test_prefix(self, meta):
        meta.add_transformer(CrossTabTransformer().add_crosstab_field("measure", "result", "m_"))

        assert meta.process_after_load(self.ROWS)[0] == {"person": 1, "m_weight": 80, "m_length": 185}

    def test_empty_data(self, meta):
        meta.add_transformer(CrossTabTransformer().add_crosstab_field("measure", "result"))

        assert meta.process_after_load([]) == []


class TestRequiredRowsTransformer:
    """Tests for RequiredRowsTransformer."""

    @pytest.fixture
    def meta(self):
        meta = MetaModel("counts")
        meta.set("category")
        meta.set("count")
        return meta

    def test_missing_rows_added(self, meta):
        transformer = RequiredRowsTransformer()
        transformer.set_required_rows([{"category": "A"}, {"category": "B"}, {"category": "C"}])
        meta.add_transformer(transformer)

        assert meta.process_after_load([{"category": "B", "count": 5}]) == [
            {"category": "A", "count": None},
            {"category": "B", "count": 5},
            {"category": "C", "count": None},
        ]

    def test_key_item_count(self, meta):
        meta.set("year")
        transformer = RequiredRowsTransformer()
        transformer.set_required_rows({
            "a": {"category": "A", "year": 2024},
            "b": {"category": "B", "year": 2024},
        })
        transformer.set_key_item_count(1)
        meta.add_transformer(transformer)

        rows = meta.process_after_load([{"category": "A", "count": 1, "year": 2023}])

        assert rows == [
            {"category": "A", "count": 1, "year": 2023},
            {"category": "B", "year": 2024, "count": None},
        ]

    def test_custom_default_row(self, meta):
        transformer = RequiredRowsTransformer()
        transformer.set_required_rows([{"category": "A"}])
        transformer.set_default_row({"count": 0})
        meta.add_transformer(transformer)

        assert meta.process_after_load([]) == [{"category": "A", "count": 0}]

    def test_default_row_needs_required_rows(self, meta):
        with pytest.raises(ModelError, match="Cannot create default row"):
            RequiredRowsTransformer().get_default_row(meta)

    def test_invalid_required_rows(self):
        with pytest.raises(ModelError):
            RequiredRowsTransformer().set_required_rows("A, B")

    def test_invalid_default_row(self):
        with pytest.raises(ModelError):
            RequiredRowsTransformer().set_default_row(["count"])

    def test_sub_model_rows(self):
        lines = MemoryModel(MetaModel("lines"), [{"category": "A", "count": 1}])
        meta = MetaModel("orders")
        meta.set("lines", model=lines)
        transformer = SubmodelRequiredRowsTransformer("lines")
        transformer.set_required_rows([{"category": "A"}, {"category": "B"}])
        meta.add_transformer(transformer)

        rows = meta.process_after_load([{"id": 1, "lines": [{"category": "A", "count": 1}]}])

        assert rows[0]["lines"] == [
            {"category": "A", "count": 1},
            {"category": "B", "count": None},
        ]
