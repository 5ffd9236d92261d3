"""
Tests for SqlRunner and SqlTableModel on a SQLite database file.
"""

import pytest
from sqlalchemy import text

from openmodel.core.constants import TYPE_NUMERIC, TYPE_STRING, SortOrder
from openmodel.core.exceptions import ModelError, StorageError
from openmodel.model.meta_model import MetaModel
from openmodel.storage import SqlRunner, SqlTableModel


@pytest.fixture
def runner(tmp_path):
    sql_runner = SqlRunner(f"sqlite:///{tmp_path / 'shop.db'}")
    with sql_runner.engine.begin() as conn:
        conn.execute(text(
            "CREATE TABLE products ("
            "id INTEGER PRIMARY KEY, "
            "name VARCHAR(40) NOT NULL, "
            "category VARCHAR(10) DEFAULT 'misc', "
            "stock INTEGER)"
        ))
        conn.execute(text(
            "INSERT INTO products (id, name, category, stock) VALUES "
            "(1, 'Apple', 'fruit', 10), (2, 'Pear', 'fruit', 0), (3, 'Hammer', 'tools', 5)"
        ))
    return sql_runner


@pytest.fixture
def model(runner):
    return SqlTableModel(MetaModel("products"), "products", runner)


def names(rows):
    return [row["name"] for row in rows]


class TestSqlRunner:
    """Tests for SqlRunner."""

    def test_fetch_rows(self, runner):
        rows = runner.fetch_rows("products")

        assert rows[0] == {"id": 1, "name": "Apple", "category": "fruit", "stock": 10}
        assert len(rows) == 3

    def test_fetch_columns_where_and_sort(self, runner):
        rows = runner.fetch_rows("products", ["name"], {"category": "fruit"}, {"name": SortOrder.DESC})

        assert rows == [{"name": "Pear"}, {"name": "Apple"}]

    def test_fetch_aliased_columns(self, runner):
        row = runner.fetch_row("products", {"label": "name", "double": "stock * 2"}, {"id": 1})

        assert row == {"label": "Apple", "double": 20}

    def test_offset_and_limit(self, runner):
        rows = runner.fetch_rows("products", ["id"], sort={"id": SortOrder.ASC}, offset=1, limit=1)

        assert rows == [{"id": 2}]

    def test_fetch_row(self, runner):
        assert runner.fetch_row("products", None, {"id": 3})["name"] == "Hammer"
        assert runner.fetch_row("products", None, {"id": 9}) == {}

    def test_fetch_count(self, runner):
        assert runner.fetch_count("products") == 3
        assert runner.fetch_count("products", {"stock": {"min": 1, "max": 10}}) == 2

    @pytest.mark.parametrize(
        ("filter", "expected"),
        [
            ({"name": {"like": "amm"}}, ["Hammer"]),
            ({"name": {"notlike": "p"}}, ["Hammer"]),
            ({"not": {"category": "fruit"}}, ["Hammer"]),
            ({0: {"name": "Apple", "stock": 5}}, ["Apple", "Hammer"]),
            ({"id": [2, 3]}, ["Pear", "Hammer"]),
            ({"id": []}, []),
            ({"stock": None}, []),
            ({0: "stock > 4"}, ["Apple", "Hammer"]),
        ],
    )
    def test_filters(self, runner, filter, expected):
        rows = runner.fetch_rows("products", ["name"], filter, {"id": SortOrder.ASC})

        assert names(rows) == expected

    def test_create_where(self, runner):
        assert runner.create_where(None, {}) is None
        with pytest.raises(ModelError):
            runner.create_where(None, {"name": lambda value: True})

    def test_insert_returns_key(self, runner):
        key = runner.insert("products", {"name": "Saw", "stock": 1, "unknown": "ignored"})

        assert key == 4
        assert runner.fetch_row("products", None, {"id": 4})["category"] == "misc"

    def test_update_and_delete_counts(self, runner):
        assert runner.update("products", {"stock": 1}, {"category": "fruit"}) == 2
        assert runner.update("products", {"unknown": 1}, {"id": 1}) == 0
        assert runner.delete("products", {"id": 3}) == 1
        assert runner.fetch_count("products") == 2

    def test_insert_error(self, runner):
        with pytest.raises(StorageError):
            runner.insert("products", {"stock": 1})

    def test_unknown_table(self, runner):
        with pytest.raises(StorageError, match="Unknown table"):
            runner.get_table("missing")

    def test_table_meta_data(self, runner):
        meta_data = runner.get_table_meta_data("products")

        assert meta_data["id"] == {"table": "products", "type": TYPE_NUMERIC, "key": True}
        assert meta_data["name"] == {"table": "products", "type": TYPE_STRING, "required": True, "maxlength": 40}
        assert meta_data["category"]["default"] == "misc"
        assert "required" not in meta_data["category"]


class TestSqlTableModel:
    """Tests for SqlTableModel."""

    def test_reflected_settings(self, model):
        meta = model.get_meta_model()

        assert list(meta.get_keys().values()) == ["id"]
        assert meta.get("name", "required") is True
        assert meta.get("name", "maxlength") == 40

    def test_existing_settings_win(self, runner):
        meta = MetaModel("products")
        meta.set("name", maxlength=20, label="Name")

        SqlTableModel(meta, "products", runner)

        assert meta.get("name", "maxlength") == 20
        assert meta.get("name", "required") is True

    def test_load(self, model):
        assert names(model.load({"category": "fruit"}, "name DESC")) == ["Pear", "Apple"]
        assert model.load_count({"category": "fruit"}) == 2

    def test_load_page_with_count(self, model):
        rows, total = model.load_page_with_count(2, 2, sort="id")

        assert names(rows) == ["Hammer"]
        assert total == 3

    def test_no_sql_fields_skipped(self, model):
        model.meta_model.set("note", noSql=True)

        row = model.load_first({"id": 1, "note": "anything"})

        assert row["name"] == "Apple"
        assert "note" not in row

    def test_column_expression(self, model):
        model.meta_model.set("double_stock", column_expression="stock * 2")

        assert model.load_first({"id": 1})["double_stock"] == 20
        assert names(model.load({"double_stock": {"min": 10, "max": 30}})) == ["Apple", "Hammer"]

    def test_on_load(self, model):
        model.meta_model.set_on_load("name", lambda value, *args: value.upper())

        assert model.load_first({"id": 2})["name"] == "PEAR"

    def test_insert(self, model):
        saved = model.save({"name": "Saw", "category": "tools", "stock": 2})

        assert saved["id"] == 4
        assert model.get_changed() == 1
        assert model.load_count() == 4

    def test_update_writes_changes(self, model, monkeypatch):
        updates = []
        update = model.sql_runner.update

        def recording_update(table_name, values, where=None):
            updates.append(values)
            return update(table_name, values, where)

        monkeypatch.setattr(model.sql_runner, "update", recording_update)

        saved = model.save({"id": 1, "stock": 11})

        assert updates == [{"stock": 11}]
        assert saved == {"id": 1, "name": "Apple", "category": "fruit", "stock": 11}
        assert model.get_changed() == 1

    def test_unchanged_save(self, model):
        model.save({"id": 1, "name": "Apple", "stock": 10})

        assert model.get_changed() == 0

    def test_auto_save_fields_join_changes(self, model, monkeypatch):
        updates = []
        update = model.sql_runner.update

        def recording_update(table_name, values, where=None):
            updates.append(values)
            return update(table_name, values, where)

        monkeypatch.setattr(model.sql_runner, "update", recording_update)
        model.meta_model.set_auto_save("category")

        model.save({"id": 1, "category": "fruit"})
        model.save({"id": 1, "category": "fruit", "stock": 3})

        assert updates == [{"stock": 3, "category": "fruit"}]

    def test_key_change_with_filter(self, model):
        model.save({"id": 10, "name": "Apple"}, {"id": 1})

        assert model.load_first({"id": 10})["name"] == "Apple"
        assert model.load_first({"id": 1}) == {}

    def test_save_on_save_conversion(self, model):
        model.meta_model.set_on_save("name", lambda value, *args: value.strip())

        model.save({"id": 2, "name": "  Pear tree "})

        assert model.load_first({"id": 2})["name"] == "Pear tree"

    def test_delete(self, model):
        assert model.delete({"category": "fruit"}) == 2
        assert names(model.load()) == ["Hammer"]
