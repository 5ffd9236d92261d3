"""Yes / no and activating type handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from openmodel.core.constants import TYPE_NUMERIC

from .base import AbstractModelType, AbstractUntypedType

if TYPE_CHECKING:
    from openmodel.model.meta_model import MetaModel

ACTIVATING_VALUE = "activatingValue"
DEACTIVATING_VALUE = "deactivatingValue"


class YesNoType(AbstractModelType):
    """
    Checkbox field with labelled 1 / 0 values.

    When class_name is given that field gets a column expression returning
    class_yes or class_no, for marking rows in a table.
    """

    def __init__(
        self,
        labels: dict[Any, str],
        class_name: str = "",
        class_no: str = "deleted",
        class_yes: str = "",
    ) -> None:
        self.labels = dict(labels)
        self.class_name = class_name
        self.class_no = class_no
        self.class_yes = class_yes

    def apply(self, meta_model: MetaModel, name: str) -> None:
        self.set_settings(meta_model, name, self.get_settings())
        if self.class_name:
            column = f"CASE WHEN {name} = 1 THEN '{self.class_yes}' ELSE '{self.class_no}' END"
            meta_model.set(self.class_name, column_expression=column)

    def get_base_type(self) -> int:
        return TYPE_NUMERIC

    def get_settings(self) -> dict[str, Any]:
        return {
            "elementClass": "CheckBox",
            "multiOptions": self.labels,
        }


class ActivatingYesNoType(YesNoType):
    """Yes / no field whose first label activates and last label deactivates."""

    def get_settings(self) -> dict[str, Any]:
        settings = super().get_settings()
        keys = list(self.labels)
        settings[ACTIVATING_VALUE] = keys[0] if keys else None
        settings[DEACTIVATING_VALUE] = keys[-1] if keys else None
        return settings


class ActivatingMultiType(AbstractUntypedType):
    """Select field with several active and several inactive values."""

    def __init__(
        self,
        active_labels: dict[Any, str],
        inactive_labels: dict[Any, str],
        class_name: str = "",
        class_no: str = "deleted",
        class_yes: str = "",
    ) -> None:
        super().__init__()
        self.active_labels = dict(active_labels)
        self.inactive_labels = dict(inactive_labels)
        self.class_name = class_name
        self.class_no = class_no
        self.class_yes = class_yes

    def apply(self, meta_model: MetaModel, name: str) -> None:
        super().apply(meta_model, name)
        if self.class_name:
            values = "', '".join(str(key) for key in self.active_labels)
            column = f"CASE WHEN {name} IN ('{values}') THEN '{self.class_yes}' ELSE '{self.class_no}' END"
            meta_model.set(self.class_name, column_expression=column)

    def get_settings(self) -> dict[str, Any]:
        options = dict(self.active_labels)
        for key, label in self.inactive_labels.items():
            options.setdefault(key, label)

        return {
            "elementClass": "Select",
            "multiOptions": options,
            ACTIVATING_VALUE: list(self.active_labels),
            DEACTIVATING_VALUE: list(self.inactive_labels),
        }
