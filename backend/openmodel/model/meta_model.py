"""
MetaModel: the per-entity metadata store.

A meta model is a named, ordered collection of items (fields). Every item
is a bag of settings (label, type, multiOptions, elementClass, ...) and the
meta model owns the item order, aliases, usage tracking, the dependencies
that change settings based on row content and the transformers that
reshape loaded and saved rows.

Usage:
    meta = MetaModel("orders")
    meta.set("status", label="Status", multiOptions={"N": "New", "D": "Done"})
    meta.set("tags", "multiOptions[x]", "Extra")   # sets one sub key
    meta.set("notes", "classes[]", "wide")         # appends to a list

    meta.get("status", "label")                    # 'Status'
    meta.get_items_ordered()                       # ['status', 'tags', 'notes']
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable

from openmodel.core.constants import (
    ALIAS_OF,
    AUTO_SAVE,
    LOAD_TRANSFORMER,
    REQUEST_ID,
    SAVE_TRANSFORMER,
    SAVE_WHEN_TEST,
    TYPE_CHILD_MODEL,
    TYPE_STRING,
)
from openmodel.core.converters import flatten, loose_equals, pairs
from openmodel.core.exceptions import MetaModelError
from openmodel.dependency.base import DependencyInterface
from openmodel.transform.base import ModelTransformerInterface
from openmodel.transform.nested import NestedTransformer
from openmodel.types.base import ModelTypeInterface

if TYPE_CHECKING:
    from openmodel.model.loader import ModelLoader

logger = logging.getLogger(__name__)


class LateValue:
    """A setting value that is only computed when it is read."""

    def __init__(self, func: Callable[..., Any], *args: Any, **kwargs: Any):
        self.func = func
        self.args = args
        self.kwargs = kwargs

    def resolve(self) -> Any:
        return self.func(*self.args, **self.kwargs)

    def __repr__(self) -> str:
        return f"LateValue({getattr(self.func, '__name__', self.func)!r})"


def _rise(value: Any) -> Any:
    if isinstance(value, LateValue):
        return value.resolve()
    return value


class MetaModel:
    """
    Attribute-bag store for field metadata.

    Reads never raise: unknown items and settings return None or an empty
    dict so bulk rendering code can stay simple. Setting a value to None
    removes the setting, so has() stays consistent with get().
    """

    def __init__(
        self,
        name: str,
        linked_defaults: dict[str, dict[Any, dict[str, Any]]] | None = None,
        loader: ModelLoader | None = None,
        order_increment: int = 10,
    ):
        self._name = name
        self._linked_defaults = linked_defaults or {}
        self._loader = loader
        self.order_increment = order_increment

        self._model: dict[str, dict[str, Any]] = {}
        self._order: dict[str, Any] | None = None
        self._used: dict[str, str] | None = None
        self._meta: dict[str, Any] = {}
        self._dependencies: dict[Any, DependencyInterface] = {}
        self._enable_dependencies = True
        self._transformers: list[ModelTransformerInterface] = []
        self._keys: dict[str, str] | None = None
        self._maps: dict[str, str] = {}

    def __repr__(self) -> str:
        return f"MetaModel({self._name!r}, items={len(self._model)})"

    # ------------------------------------------------------------------
    # Reading settings
    # ------------------------------------------------------------------

    def _get_key_value(self, name: str, key: Any, _seen: set[str] | None = None) -> Any:
        item = self._model.get(name)
        if item is not None and item.get(key) is not None:
            return _rise(item[key])

        alias = self.get_alias(name)
        if alias:
            seen = _seen or set()
            if alias in seen:
                return None
            seen.add(name)
            return self._get_key_value(alias, key, seen)

        return None

    def _get_settings(self, name: str, seen: set[str]) -> dict[str, Any]:
        item = self._model.get(name)
        if item is None:
            return {}

        seen.add(name)
        result = {key: _rise(value) for key, value in item.items()}
        alias = self.get_alias(name)
        if alias and alias not in seen:
            for key, value in self._get_settings(alias, seen).items():
                result.setdefault(key, value)
        return result

    def get(self, name: str, *keys: Any) -> Any:
        """
        Get the settings of an item.

        Args:
            name: Item name
            keys: Zero keys returns all settings (merged with those of an
                alias target), one key returns that setting or None and
                several keys return a dict without the None values.

        Returns:
            The settings dict, the single value or the filtered dict
        """
        keys = tuple(flatten(keys))

        if self._used is not None and name not in self._used:
            self._used[name] = name

        if not keys:
            return self._get_settings(name, set())

        if len(keys) == 1:
            return self._get_key_value(name, keys[0])

        results = {}
        for key in keys:
            value = self._get_key_value(name, key)
            if value is not None:
                results[key] = value
        return results

    def get_alias(self, name: str) -> str | None:
        item = self._model.get(name)
        if item is None:
            return None
        return item.get(ALIAS_OF)

    def get_with_default(self, name: str, key: str, default: Any) -> Any:
        if self.has(name, key):
            return self.get(name, key)
        return default

    def has(self, name: str, key: str | None = None) -> bool:
        if key is None:
            return name in self._model
        item = self._model.get(name)
        return item is not None and item.get(key) is not None

    def has_any_of(self, names: Iterable[str]) -> bool:
        return any(name in self._model for name in names)

    def is_(self, name: str, key: str, value: Any) -> bool:
        """True when the setting loosely equals value."""
        return loose_equals(value, self._get_key_value(name, key))

    def is_string(self, name: str) -> bool:
        field_type = self.get(name, "type")
        if field_type:
            return field_type == TYPE_STRING
        return True

    def get_col(self, key: str) -> dict[str, Any]:
        """All items having the setting, as {name: value}."""
        return {
            name: self._get_key_value(name, key)
            for name in self._model
            if self.has(name, key)
        }

    def get_col_names(self, key: str) -> list[str]:
        return [name for name in self._model if self.has(name, key)]

    def get_item_names(self) -> list[str]:
        return list(self._model)

    def get_items_for(self, *args: Any, **kwargs: Any) -> list[str]:
        """Names of the items whose settings match all the passed pairs."""
        criteria = pairs(args)
        criteria.update(kwargs)

        return [
            name
            for name in self._model
            if all(self.is_(name, key, value) for key, value in criteria.items())
        ]

    def get_items_ordered(self) -> list[str]:
        order = self._order or {}
        result = [name for name, _ in sorted(order.items(), key=lambda item: item[1])]
        result.extend(name for name in self._model if name not in order)
        return result

    def get_order(self, name: str) -> Any:
        if self._order:
            return self._order.get(name)
        return None

    # ------------------------------------------------------------------
    # Writing settings
    # ------------------------------------------------------------------

    def set(self, name: str, *args: Any, **kwargs: Any) -> MetaModel:
        """
        Merge settings into an item, creating the item when needed.

        Settings can be passed as a dict, as alternating key, value
        arguments or as keyword arguments. A key ending in '[]' appends to
        a list setting, a key like 'options[sub]' sets one entry of a dict
        setting. A type handler passed as 'type' is applied first and its
        base type is stored.
        """
        settings = pairs(args)
        settings.update(kwargs)

        item = self._model.setdefault(name, {})

        for key, value in settings.items():
            if isinstance(key, str) and key.endswith("]") and "[" in key:
                if key.endswith("[]"):
                    self.append(name, key[:-2], value)
                else:
                    pos = key.index("[")
                    self.set_subkey(name, key[:pos], key[pos + 1:-1], value)
                continue

            if key == "type" and isinstance(value, ModelTypeInterface):
                value.apply(self, name)
                value = value.get_base_type()

            if value is None:
                item.pop(key, None)
                continue

            item[key] = value
            self._apply_linked_defaults(item, key, value)

        self._update_order(name)
        return self

    def _apply_linked_defaults(self, item: dict[str, Any], key: str, value: Any) -> None:
        defaults = self._linked_defaults.get(key)
        if not defaults:
            return
        try:
            linked = defaults.get(value)
        except TypeError:
            return
        if isinstance(linked, dict):
            for default_key, default_value in linked.items():
                if default_key not in item:
                    item[default_key] = default_value

    def _update_order(self, name: str) -> None:
        item = self._model[name]
        if self._order is None:
            self._order = {}

        if item.get("order") is not None:
            order = item["order"]
        elif isinstance(self._order.get(name), int):
            order = self._order[name]
        else:
            order = max(self._order.values(), default=0) + self.order_increment

        self._order[name] = order

    def append(self, name: str, key: str, value: Any) -> MetaModel:
        """Append a value to a list setting."""
        item = self._model.setdefault(name, {})
        current = item.get(key)
        if current is None:
            item[key] = [value]
        elif isinstance(current, list):
            current.append(value)
        elif isinstance(current, dict):
            next_key = max((k for k in current if isinstance(k, int)), default=-1) + 1
            current[next_key] = value
        else:
            item[key] = [current, value]
        self._update_order(name)
        return self

    def set_subkey(self, name: str, key: str, subkey: Any, value: Any) -> MetaModel:
        """Set one entry of a dict setting."""
        if isinstance(subkey, str) and subkey.isdigit():
            subkey = int(subkey)

        item = self._model.setdefault(name, {})
        current = item.get(key)
        if isinstance(current, list):
            current = dict(enumerate(current))
        elif not isinstance(current, dict):
            current = {}
        current[subkey] = value
        item[key] = current
        self._update_order(name)
        return self

    def _names_and_settings(
        self, args: tuple[Any, ...], kwargs: dict[str, Any]
    ) -> tuple[list[str], dict[str, Any]]:
        if args and isinstance(args[0], (list, tuple)) and (len(args) > 1 or kwargs):
            names = list(args[0])
            settings = pairs(args[1:])
        else:
            names = list(self._model)
            settings = pairs(args)
        settings.update(kwargs)
        return names, settings

    def set_col(self, *args: Any, **kwargs: Any) -> MetaModel:
        """
        Set settings on several items.

        The first argument is either a list of item names followed by the
        settings, or the settings themselves to set them on all items.
        """
        names, settings = self._names_and_settings(args, kwargs)
        for name in names:
            self.set(name, settings)
        return self

    def set_default(self, *args: Any, **kwargs: Any) -> MetaModel:
        """Like set_col, but only for settings the items do not have yet."""
        names, settings = self._names_and_settings(args, kwargs)
        for name in names:
            for key, value in settings.items():
                if not self.has(name, key):
                    self.set(name, key, value)
        return self

    def set_multi(self, names: Iterable[str], *args: Any, **kwargs: Any) -> MetaModel:
        settings = pairs(args)
        settings.update(kwargs)
        for name in names:
            self.set(name, settings)
        return self

    def set_if_exists(self, name: str, *args: Any, **kwargs: Any) -> bool:
        if self.has(name):
            self.set(name, *args, **kwargs)
            return True
        return False

    def set_alias(self, name: str, alias_of: str) -> MetaModel:
        if self.has(alias_of):
            return self.set(name, ALIAS_OF, alias_of)
        raise MetaModelError(
            f"Alias for '{name}' set to non existing field '{alias_of}'",
            field=alias_of,
            model=self._name,
        )

    def del_(self, name: str, *keys: Any) -> None:
        """Delete an item, or only the passed settings of that item."""
        if not keys:
            self._model.pop(name, None)
            if self._order:
                self._order.pop(name, None)
            if self._used:
                self._used.pop(name, None)
            return

        item = self._model.get(name)
        if item is not None:
            for key in flatten(keys):
                item.pop(key, None)

    def remove(self, name: str, key: str | None = None) -> MetaModel:
        if key is None:
            if name in self._model:
                del self._model[name]
                if self._order:
                    self._order.pop(name, None)
        elif name in self._model:
            self._model[name].pop(key, None)
        return self

    def reset_order(self) -> MetaModel:
        self._order = None
        return self

    # ------------------------------------------------------------------
    # Usage tracking
    # ------------------------------------------------------------------

    def track_usage(self, value: bool = True) -> None:
        """Start (restart) or stop recording the items read with get()."""
        if value:
            self._used = {name: name for name in self.get_keys().values()}
        else:
            self._used = None

    def has_items_used(self) -> bool:
        return bool(self._used)

    def get_items_used(self) -> list[str]:
        """
        The names of the items read since tracking started.

        Without tracking (or without any use yet) all names are returned.
        The items the used items depend on are always included.
        """
        if not self._used:
            return list(self._model)

        used = list(self._used)
        if self._dependencies:
            for name in self.get_dependent_on(used):
                if name not in self._used:
                    used.append(name)
        return used

    # ------------------------------------------------------------------
    # Keys, maps and meta settings
    # ------------------------------------------------------------------

    def get_keys(self, reset: bool = False) -> dict[str, str]:
        if not self._keys or reset:
            self.set_keys(self.get_items_for(key=True))
        return dict(self._keys or {})

    def set_keys(self, keys: list[str] | dict[Any, str]) -> MetaModel:
        """
        Set the key fields.

        A single unnamed key is stored under REQUEST_ID, several unnamed
        keys under REQUEST_ID1, REQUEST_ID2, ... Named keys keep their name.
        """
        items = list(keys.items()) if isinstance(keys, dict) else list(enumerate(keys))

        self._keys = {}
        if len(items) == 1:
            idx, name = items[0]
            self._keys[REQUEST_ID if isinstance(idx, int) else idx] = name
        else:
            i = 1
            for idx, name in items:
                if isinstance(idx, int):
                    self._keys[f"{REQUEST_ID}{i}"] = name
                    i += 1
                else:
                    self._keys[idx] = name

        for alias, field_name in self._keys.items():
            self._maps[alias] = field_name
        return self

    def get_key_ref(self, row: dict[str, Any], href: dict[str, Any] | None = None) -> dict[str, Any]:
        """Request parameters identifying the row."""
        href = dict(href or {})
        for alias, name in self.get_keys().items():
            value = row.get(name)
            if value:
                href[alias] = value
        return href

    def add_map(self, alias: str, field_name: str) -> MetaModel:
        self._maps[alias] = field_name
        return self

    def get_maps(self) -> dict[str, str]:
        return dict(self._maps)

    def set_maps(self, maps: dict[str, str]) -> MetaModel:
        self._maps = dict(maps)
        return self

    def get_meta(self, key: str, default: Any = None) -> Any:
        value = self._meta.get(key)
        return default if value is None else value

    def set_meta(self, key: str, value: Any) -> MetaModel:
        self._meta[key] = value
        return self

    def has_meta(self, key: str) -> bool:
        return self._meta.get(key) is not None

    def is_meta(self, key: str, value: Any) -> bool:
        return loose_equals(self.get_meta(key), value)

    def get_name(self) -> str:
        return self._name

    def get_loader(self) -> ModelLoader:
        if self._loader is None:
            from openmodel.model.loader import ModelLoader

            self._loader = ModelLoader()
        return self._loader

    # ------------------------------------------------------------------
    # Load and save hooks
    # ------------------------------------------------------------------

    def set_on_load(self, name: str, callable_or_constant: Any) -> MetaModel:
        """
        Set the value conversion applied after loading.

        A callable is called as func(value, is_new, name, context, is_post),
        anything else replaces the value.
        """
        self.set_meta(LOAD_TRANSFORMER, True)
        return self.set(name, LOAD_TRANSFORMER, callable_or_constant)

    def set_on_save(self, name: str, callable_or_constant: Any) -> MetaModel:
        """
        Set the value conversion applied before saving.

        A callable is called as func(value, is_new, name, context).
        """
        return self.set(name, SAVE_TRANSFORMER, callable_or_constant)

    def disable_on_load(self) -> MetaModel:
        return self.set_meta(LOAD_TRANSFORMER, False)

    def get_on_load(
        self,
        value: Any,
        new: bool,
        name: str,
        context: dict[str, Any] | None = None,
        is_post: bool = False,
    ) -> Any:
        call = self.get(name, LOAD_TRANSFORMER)
        if call is not None:
            if callable(call):
                return call(value, new, name, context or {}, is_post)
            return call
        return value

    def get_on_save(
        self,
        value: Any,
        new: bool,
        name: str,
        context: dict[str, Any] | None = None,
    ) -> Any:
        call = self.get(name, SAVE_TRANSFORMER)
        if call is not None:
            if callable(call):
                return call(value, new, name, context or {})
            return call
        return value

    def has_on_save(self, name: str) -> bool:
        return self.has(name, SAVE_TRANSFORMER)

    def set_auto_save(self, name: str, value: bool = True) -> MetaModel:
        return self.set(name, AUTO_SAVE, value)

    def is_auto_save(self, name: str) -> bool:
        return bool(self._get_key_value(name, AUTO_SAVE))

    def set_save_when(self, name: str, callable_or_constant: Any) -> MetaModel:
        """Save the field only when the constant is true or the callable returns true."""
        return self.set(name, SAVE_WHEN_TEST, callable_or_constant)

    def set_save_on_change(self, name: str) -> MetaModel:
        self.set_auto_save(name)
        return self.set_save_when(name, True)

    def set_save_when_new(self, name: str) -> MetaModel:
        self.set_auto_save(name)
        return self.set_save_when(name, MetaModel.when_new)

    def set_save_when_not_null(self, name: str) -> MetaModel:
        return self.set_save_when(name, MetaModel.when_not_null)

    def has_save_when(self, name: str) -> bool:
        return self.has(name, SAVE_WHEN_TEST)

    def is_saveable(
        self,
        value: Any,
        new: bool,
        name: str,
        context: dict[str, Any] | None = None,
    ) -> bool:
        test = self.get(name, SAVE_WHEN_TEST)
        if test is not None:
            if callable(test):
                return bool(test(value, new, name, context or {}))
            return bool(test)
        return True

    @staticmethod
    def when_new(value: Any, is_new: bool = False, name: str | None = None, context: dict | None = None) -> bool:
        return is_new

    @staticmethod
    def when_not_null(value: Any, is_new: bool = False, name: str | None = None, context: dict | None = None) -> bool:
        return value is not None

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------

    def add_dependency(
        self,
        dependency: Any,
        depends_on: Any = None,
        effects: dict[Any, Any] | None = None,
        key: Any = None,
    ) -> Any:
        """
        Attach a dependency.

        Args:
            dependency: A dependency instance, or a spec resolved through the
                loader: a class, a registered name or [class_or_name, *args]
            depends_on: Extra field name(s) the dependency depends on
            effects: Extra {field: settings} the dependency changes
            key: Key to store the dependency under, default the highest
                integer key plus 10

        Returns:
            The key of the dependency
        """
        if not isinstance(dependency, DependencyInterface):
            if isinstance(dependency, (list, tuple)):
                spec, *params = dependency
            else:
                spec, params = dependency, []
            dependency = self.get_loader().create_dependency(spec, *params)

        if depends_on is not None:
            dependency.add_depends_on(depends_on)
        if isinstance(effects, dict):
            dependency.add_effecteds(effects)

        if key is None:
            int_keys = [k for k in self._dependencies if isinstance(k, int)]
            key = max(int_keys, default=0) + 10

        dependency.apply_to_model(self)
        self._dependencies[key] = dependency

        logger.debug(
            f"Added {dependency.__class__.__name__} to {self._name} under key {key}, "
            f"depends on {list(dependency.get_depends_on())}"
        )
        return key

    def has_dependencies(self) -> bool:
        return bool(self._dependencies)

    def _dependencies_for(self, names: Any, setting: str | None) -> dict[Any, DependencyInterface]:
        names = [names] if isinstance(names, str) else list(names)
        results = {}
        for key, dependency in self._dependencies.items():
            for name in names:
                settings = dependency.get_effected(name)
                if settings and (setting is None or setting in settings):
                    results[key] = dependency
                    break
        return results

    def has_dependency(self, names: Any, setting: str | None = None) -> bool:
        return bool(self._dependencies_for(names, setting))

    def get_dependencies(self, names: Any, setting: str | None = None) -> dict[Any, DependencyInterface]:
        """The dependencies changing (the setting of) any of the items."""
        return self._dependencies_for(names, setting)

    def get_dependent_on(self, names: Any, setting: str | None = None) -> dict[str, str]:
        """The fields the dependencies changing any of the items depend on."""
        results: dict[str, str] = {}
        for dependency in self.get_dependencies(names, setting).values():
            for key, value in dependency.get_depends_on().items():
                results.setdefault(key, value)
        return results

    def apply_dependency_changes(
        self,
        model: MetaModel,
        changes: dict[str, dict[str, Any]],
        data: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Apply dependency output to the model settings and the row.

        A 'model' entry holds changes for the rows of a sub model, a
        'value' entry also changes the value in the row.
        """
        for name, settings in changes.items():
            settings = dict(settings)
            sub_changes = settings.pop("model", None)
            if sub_changes is not None:
                sub_model = model.get(name, "model")
                if hasattr(sub_model, "get_meta_model"):
                    sub_meta = sub_model.get_meta_model()
                    data[name] = [
                        sub_meta.apply_dependency_changes(sub_meta, sub_changes, dict(row))
                        for row in data.get(name) or []
                    ]

            model.set(name, settings)

            if settings.get("value") is not None:
                data[name] = settings["value"]
        return data

    def process_dependencies(self, data: dict[str, Any], new: bool) -> dict[str, Any]:
        """Run every dependency whose depends-on fields are all in the row."""
        for dependency in self._dependencies.values():
            depends_on = dependency.get_depends_on()
            context = {name: data[name] for name in depends_on if name in data}
            if depends_on and len(context) == len(depends_on):
                changes = dependency.get_changes(context, new)
                if changes:
                    data = self.apply_dependency_changes(self, changes, data)
        return data

    # ------------------------------------------------------------------
    # Transformers
    # ------------------------------------------------------------------

    def add_transformer(self, transformer: ModelTransformerInterface) -> MetaModel:
        for name, info in transformer.get_field_info(self).items():
            self.set(name, info)
        self._transformers.append(transformer)
        logger.debug(f"Added {transformer.__class__.__name__} to {self._name}")
        return self

    def get_transformers(self) -> list[ModelTransformerInterface]:
        return list(self._transformers)

    def set_transformers(self, transformers: Iterable[ModelTransformerInterface]) -> MetaModel:
        self._transformers = []
        for transformer in transformers:
            self.add_transformer(transformer)
        return self

    def add_model(self, data_model: Any, joins: dict[str, str], name: str | None = None) -> NestedTransformer:
        """Nest the rows of another model under the item name."""
        if name is None:
            name = data_model.get_name()

        transformer = NestedTransformer()
        transformer.add_model(data_model, joins, name)
        self.add_transformer(transformer)

        self.set(
            name,
            model=data_model,
            elementClass="FormTable",
            type=TYPE_CHILD_MODEL,
        )
        return transformer

    def clear_element_classes(self) -> MetaModel:
        labels = self.get_col_names("label")
        options = [name for name in self.get_col_names("multiOptions") if name in labels]

        self.set_default(options, "elementClass", "Select")
        self.set_default(labels, "elementClass", "Text")

        elements = self.get_col_names("elementClass")
        hidden = list(self.get_dependent_on(elements).values())
        hidden.extend(name for name in self.get_keys().values() if name not in hidden)
        if hidden:
            self.set_default(hidden, "elementClass", "Hidden")

        self.set_default("elementClass", "None")

        for sub_model in self.get_col("model").values():
            if hasattr(sub_model, "get_meta_model"):
                sub_model.get_meta_model().clear_element_classes()
        return self

    def process_filter(self, filter: dict[Any, Any]) -> dict[Any, Any]:
        for transformer in self._transformers:
            filter = transformer.transform_filter(self, filter)
        return filter

    def process_sort(self, sort: dict[str, Any]) -> dict[str, Any]:
        for transformer in self._transformers:
            sort = transformer.transform_sort(self, sort)
        return sort

    # ------------------------------------------------------------------
    # Row processing
    # ------------------------------------------------------------------

    def process_after_load(
        self,
        data: Iterable[dict[str, Any]],
        new: bool = False,
        is_post: bool = False,
    ) -> list[dict[str, Any]]:
        """
        Process loaded rows: transformers first, then per row the on-load
        conversions, the dependencies and the fixed values.
        """
        rows = list(data)

        for transformer in self._transformers:
            rows = transformer.transform_load(self, rows, new, is_post)

        if self.get_meta(LOAD_TRANSFORMER) or self.has_dependencies():
            transform_columns = self._load_transform_columns()
            rows = [
                self.process_row_after_load(row, new, is_post, transform_columns)
                for row in rows
            ]
        return rows

    def process_one_row_after_load(
        self,
        row: dict[str, Any],
        new: bool = False,
        is_post: bool = False,
    ) -> dict[str, Any]:
        output = self.process_after_load([row], new, is_post)
        return output[0] if output else {}

    def _load_transform_columns(self) -> dict[str, Any]:
        if self.get_meta(LOAD_TRANSFORMER):
            return self.get_col(LOAD_TRANSFORMER)
        return {}

    def process_row_after_load(
        self,
        row: dict[str, Any],
        new: bool = False,
        is_post: bool = False,
        transform_columns: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if transform_columns is None:
            transform_columns = self._load_transform_columns()

        new_row = dict(row)
        for name, call in transform_columns.items():
            value = new_row.get(name)
            if callable(call):
                new_row[name] = call(value, new, name, row, is_post)
            else:
                new_row[name] = call

        if self._dependencies and self._enable_dependencies:
            new_row = self.process_dependencies(new_row, new)

        for name, value in self.get_col("value").items():
            new_row.setdefault(name, value)
        return new_row

    def process_before_save(self, row: dict[str, Any]) -> dict[str, Any]:
        for transformer in self._transformers:
            row = transformer.transform_row_before_save(self, row)
        return row

    def process_row_before_save(self, row: dict[str, Any], new: bool = False) -> dict[str, Any]:
        """Convert a row to its storage form, leaving out the fields that should not be saved."""
        output = {}
        for name, value in row.items():
            if value == "":
                value = None
            if self.is_saveable(value, new, name, row):
                output[name] = self.get_on_save(value, new, name, row)
        return output

    def process_after_save(self, row: dict[str, Any]) -> dict[str, Any]:
        for transformer in self._transformers:
            if transformer.trigger_on_saves():
                row = transformer.transform_row_after_save(self, self.process_row_before_save(row))
            else:
                row = transformer.transform_row_after_save(self, row)
        return row

    def get_bridge_for_model(self, data_model: Any, identifier: Any, *params: Any) -> Any:
        return self.get_loader().create_bridge(identifier, data_model, *params)
