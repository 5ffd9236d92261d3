"""
Tests for the dependency engine.

Tests for readonly / can edit toggling, value switches, SQL options and
the way the meta model applies dependency changes to loaded rows.
"""

import pytest
from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine

from openmodel.core.exceptions import ConfigurationError, DependencyError
from openmodel.dependency import (
    CanEditDependency,
    DependencyAbstract,
    ReadonlyDependency,
    SqlOptionsDependency,
    ValueSwitchDependency,
)
from openmodel.model.loader import ModelLoader
from openmodel.model.meta_model import MetaModel
from openmodel.storage import MemoryModel, SqlRunner

ROWS = [
    {"a": "A1", "b": "B1", "c": 20},
    {"a": "A2", "b": "B2", "c": 40},
    {"a": "A3", "b": "C3", "c": 10},
    {"a": "A4", "b": "D4", "c": 30},
]

OPTIONS = {"B1": "B1", "B2": "B2", "C3": "C3", "D4": "D4"}


@pytest.fixture
def meta():
    model = MetaModel("abc")
    model.set("a", label="A")
    model.set("b", label="B", multiOptions=dict(OPTIONS))
    model.set("c", label="C")
    return model


@pytest.fixture
def runner(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'options.db'}")
    metadata = MetaData()
    cities = Table(
        "cities",
        metadata,
        Column("city_id", Integer, primary_key=True),
        Column("city_name", String(50)),
        Column("country", String(2)),
    )
    metadata.create_all(engine)
    with engine.begin() as conn:
        conn.execute(cities.insert(), [
            {"city_id": 1, "city_name": "Utrecht", "country": "NL"},
            {"city_id": 2, "city_name": "Amsterdam", "country": "NL"},
            {"city_id": 3, "city_name": "Boston", "country": "US"},
        ])
    return SqlRunner(engine)


class TestDependencyAbstract:
    """Tests for the shared depends-on and effected bookkeeping."""

    def test_depends_on_deduplicated(self):
        dependency = ReadonlyDependency()
        dependency.add_depends_on("x", ["y", "x"])

        assert dependency.get_depends_on() == {"x": "x", "y": "y"}
        assert dependency.depends_on("y")

    def test_effecteds_with_default_effects(self):
        dependency = ReadonlyDependency()
        dependency.add_effecteds(["name", "email"])

        assert dependency.get_effected("name") == {"readonly": "readonly", "disabled": "disabled"}
        assert dependency.is_effected("email")

    def test_effecteds_with_settings(self):
        dependency = ReadonlyDependency()
        dependency.add_effecteds({"name": "readonly", "email": ["disabled"]})

        assert dependency.get_effecteds() == {
            "name": {"readonly": "readonly"},
            "email": {"disabled": "disabled"},
        }

    def test_class_level_declaration(self):
        class VatDependency(DependencyAbstract):
            depends_on_fields = ["country"]
            effected_fields = {"vat": ["label"]}

            def get_changes(self, context, new):
                return {"vat": {"label": f"VAT {context['country']}"}}

        dependency = VatDependency()

        assert dependency.get_depends_on() == {"country": "country"}
        assert dependency.get_effected("vat") == {"label": "label"}

    def test_apply_to_model_sets_on_change(self, meta):
        meta.set("a", elementClass="Checkbox")
        dependency = ReadonlyDependency().add_depends_on("a", "c")

        dependency.apply_to_model(meta)

        assert meta.get("a", "onclick") == "this.form.submit();"
        assert meta.get("c", "onchange") == "this.form.submit();"

    def test_apply_to_model_keeps_existing_on_change(self, meta):
        meta.set("c", onchange="check();")

        ReadonlyDependency().add_depends_on("c").apply_to_model(meta)

        assert meta.get("c", "onchange") == "check();"


class TestReadonlyDependency:
    """Tests for ReadonlyDependency and CanEditDependency."""

    @pytest.fixture
    def dependency(self):
        dependency = ReadonlyDependency()
        dependency.add_depends_on("flag")
        dependency.add_effected("x", ["readonly", "disabled"])
        return dependency

    def test_true_flag_sets_readonly(self, dependency):
        assert dependency.get_changes({"flag": True}, False) == {
            "x": {"readonly": "readonly", "disabled": "disabled"},
        }

    def test_false_flag_removes_readonly(self, dependency):
        assert dependency.get_changes({"flag": False}, False) == {
            "x": {"readonly": None, "disabled": None},
        }

    @pytest.mark.parametrize("value", [None, "", "0", 0, False])
    def test_loose_false_values(self, dependency, value):
        assert dependency.get_changes({"flag": value}, False) == {
            "x": {"readonly": None, "disabled": None},
        }

    def test_any_depends_on_true(self, dependency):
        dependency.add_depends_on("other")

        assert dependency.get_changes({"flag": 0, "other": "yes"}, False)["x"]["readonly"] == "readonly"

    def test_can_edit_is_inverse(self):
        dependency = CanEditDependency()
        dependency.add_depends_on("flag")
        dependency.add_effected("x", ["readonly", "disabled"])

        assert dependency.get_changes({"flag": True}, False) == {"x": {"readonly": None, "disabled": None}}
        assert dependency.get_changes({"flag": 0}, False) == {
            "x": {"readonly": "readonly", "disabled": "disabled"},
        }

    def test_applied_to_meta_model(self, meta):
        dependency = ReadonlyDependency()
        meta.add_dependency(dependency, "c", {"b": ["readonly"]})

        meta.process_after_load([{"a": "A1", "b": "B1", "c": 20}])
        assert meta.get("b", "readonly") == "readonly"

        meta.process_after_load([{"a": "A1", "b": "B1", "c": 0}])
        assert not meta.has("b", "readonly")


class TestValueSwitchDependency:
    """Tests for ValueSwitchDependency."""

    def test_switch_hit(self):
        dependency = ValueSwitchDependency({20: {"b": {"multiOptions": {"X": "X"}}}})
        dependency.add_depends_on("c")

        assert dependency.get_changes({"c": 20}, False) == {"b": {"multiOptions": {"X": "X"}}}

    def test_switch_miss(self):
        dependency = ValueSwitchDependency({20: {"b": {"multiOptions": {"X": "X"}}}})
        dependency.add_depends_on("c")

        assert dependency.get_changes({"c": 999}, False) == {}

    def test_missing_context_value(self):
        dependency = ValueSwitchDependency({20: {"b": {"label": "X"}}})
        dependency.add_depends_on("c")

        assert dependency.get_changes({}, False) == {}

    def test_loose_match_of_numeric_strings(self):
        dependency = ValueSwitchDependency({20: {"b": {"label": "X"}}})
        dependency.add_depends_on("c")

        assert dependency.get_changes({"c": "20"}, False) == {"b": {"label": "X"}}

    def test_falsy_values_match_only_their_own_branch(self):
        dependency = ValueSwitchDependency({
            None: {"b": {"label": "null"}},
            0: {"b": {"label": "zero"}},
            "": {"b": {"label": "empty"}},
        })
        dependency.add_depends_on("c")

        assert dependency.get_changes({"c": None}, False) == {"b": {"label": "null"}}
        assert dependency.get_changes({"c": 0}, False) == {"b": {"label": "zero"}}
        assert dependency.get_changes({"c": "0"}, False) == {"b": {"label": "zero"}}
        assert dependency.get_changes({"c": ""}, False) == {"b": {"label": "empty"}}

    def test_falsy_value_without_branch(self):
        dependency = ValueSwitchDependency({"": {"b": {"label": "empty"}}})
        dependency.add_depends_on("c")

        assert dependency.get_changes({"c": None}, False) == {}
        assert dependency.get_changes({"c": 0}, False) == {}

    def test_nested_switches(self):
        dependency = ValueSwitchDependency({
            "NL": {"A": {"zip": {"label": "Postcode A"}}, "B": {"zip": {"label": "Postcode B"}}},
            "US": {"A": {"zip": {"label": "ZIP"}}},
        })
        dependency.add_depends_on("country", "kind")

        assert dependency.get_changes({"country": "NL", "kind": "B"}, False) == {"zip": {"label": "Postcode B"}}
        assert dependency.get_changes({"country": "US", "kind": "B"}, False) == {}

    def test_effecteds_derived_from_leaves(self):
        dependency = ValueSwitchDependency({
            "NL": {"zip": {"label": "Postcode", "size": 7}},
            "US": {"zip": {"label": "ZIP"}, "state": {"elementClass": "Select"}},
        })
        dependency.add_depends_on("country")

        assert dependency.get_effecteds() == {
            "zip": {"label": "label", "size": "size"},
            "state": {"elementClass": "elementClass"},
        }

    def test_effecteds_refreshed_after_change(self):
        dependency = ValueSwitchDependency({"NL": {"zip": {"label": "Postcode"}}})
        dependency.add_depends_on("country")
        assert list(dependency.get_effecteds()) == ["zip"]

        dependency.add_switches({"US": {"state": {"label": "State"}}})

        assert list(dependency.get_effecteds()) == ["zip", "state"]

    def test_incorrect_nesting(self):
        dependency = ValueSwitchDependency({"NL": "not a switch"})
        dependency.add_depends_on("country")

        with pytest.raises(DependencyError, match="Incorrect nesting of switches."):
            dependency.get_changes({"country": "NL"}, False)

    def test_incorrect_leaf(self):
        dependency = ValueSwitchDependency({"NL": {"zip": "Postcode"}})
        dependency.add_depends_on("country")

        with pytest.raises(DependencyError):
            dependency.get_effecteds()

    def test_load_changes_options(self, meta):
        dependency = ValueSwitchDependency({20: {"b": {"multiOptions": {**OPTIONS, "A1": "A1"}}}})
        meta.add_dependency(dependency, "c")
        model = MemoryModel(meta, ROWS)

        model.load_first({"c": 20, "a": "A1"})

        assert "A1" in meta.get("b", "multiOptions")
        assert list(meta.get("b", "multiOptions")) == ["B1", "B2", "C3", "D4", "A1"]

    def test_value_setting_changes_row(self, meta):
        meta.add_dependency(ValueSwitchDependency({10: {"a": {"value": "low"}}}), "c")
        model = MemoryModel(meta, ROWS)

        rows = model.load(sort="c")

        assert rows[0]["a"] == "low"
        assert rows[1]["a"] == "A1"


class TestMetaModelDependencies:
    """Tests for the meta model side of dependencies."""

    def test_keys_increment_by_ten(self, meta):
        first = meta.add_dependency(ReadonlyDependency(), "c", {"a": "readonly"})
        second = meta.add_dependency(ReadonlyDependency(), "c", {"b": "readonly"})

        assert (first, second) == (10, 20)

    def test_dependency_by_name(self, meta):
        key = meta.add_dependency(["value_switch", {1: {"a": {"label": "One"}}}], "c")

        assert isinstance(meta.get_dependencies("a")[key], ValueSwitchDependency)

    def test_unknown_dependency_name(self, meta):
        with pytest.raises(DependencyError):
            meta.add_dependency("no_such_dependency")

    def test_later_dependency_wins(self, meta):
        meta.add_dependency(ValueSwitchDependency({20: {"a": {"label": "first"}}}), "c")
        meta.add_dependency(ValueSwitchDependency({20: {"a": {"label": "second"}}}), "c")

        meta.process_after_load([{"c": 20}])

        assert meta.get("a", "label") == "second"

    def test_not_run_when_depends_on_missing(self, meta):
        meta.add_dependency(ValueSwitchDependency({20: {"a": {"label": "switched"}}}), "c")

        meta.process_after_load([{"a": "A1"}])

        assert meta.get("a", "label") == "A"

    def test_get_dependent_on(self, meta):
        meta.add_dependency(ReadonlyDependency(), "c", {"a": ["readonly"]})

        assert meta.has_dependency("a")
        assert meta.has_dependency("a", "readonly")
        assert not meta.has_dependency("a", "label")
        assert meta.get_dependent_on(["a"]) == {"c": "c"}

    def test_items_used_include_depends_on(self, meta):
        meta.add_dependency(ReadonlyDependency(), "c", {"a": ["readonly"]})
        meta.track_usage()
        meta.get("a")

        assert meta.get_items_used() == ["a", "c"]


class TestSqlOptionsDependency:
    """Tests for SqlOptionsDependency with an SQLite lookup table."""

    def test_options_loaded_on_apply(self, meta, runner):
        dependency = SqlOptionsDependency("city", "cities", "city_id", "city_name", sql_runner=runner)

        meta.add_dependency(dependency)

        assert meta.get("city", "multiOptions") == {2: "Amsterdam", 3: "Boston", 1: "Utrecht"}

    def test_options_filtered_by_row(self, meta, runner):
        dependency = SqlOptionsDependency(
            "city", "cities", "city_id", "city_name",
            links={"country": "country"}, empty_option="-", sql_runner=runner,
        )
        meta.add_dependency(dependency)

        assert dependency.get_depends_on() == {"country": "country"}
        assert dependency.get_changes({"country": "NL"}, False) == {
            "city": {"multiOptions": {"": "-", 2: "Amsterdam", 1: "Utrecht"}},
        }

    def test_fixed_link_parts(self, runner):
        dependency = SqlOptionsDependency(
            "city", "cities", "city_id", "city_name",
            links={0: "city_id > 1"}, sql_runner=runner,
        )

        assert dependency.get_changes({}, False) == {"city": {"multiOptions": {2: "Amsterdam", 3: "Boston"}}}

    def test_runner_from_loader(self, runner):
        meta = MetaModel("addresses", loader=ModelLoader(sql_runner=runner))

        meta.add_dependency(["sql_options", "city", "cities", "city_id", "city_name"])

        assert meta.get("city", "multiOptions") == {2: "Amsterdam", 3: "Boston", 1: "Utrecht"}

    def test_no_runner(self, meta):
        dependency = SqlOptionsDependency("city", "cities", "city_id", "city_name")

        with pytest.raises(ConfigurationError):
            meta.add_dependency(dependency)
