"""
Meta model definitions read from YAML.

Example file:

    name: orders
    keys: [order_id]
    fields:
      - name: order_id
        elementClass: Hidden
      - name: status
        label: Status
        multiOptions: {N: New, D: Done}
      - name: created
        label: Created
        type: datetime
      - name: state
        alias_of: status
    dependencies:
      - type: readonly
        depends_on: [status]
        effects: {created: [readonly]}

Keys of a field other than name, type, type_args and alias_of are
collected as its settings.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

RESERVED_FIELD_KEYS = ("name", "type", "type_args", "alias_of", "settings")


class FieldDefinition(BaseModel):
    """One item of a meta model."""

    name: str = Field(..., description="Item name")
    type: str | int | None = Field(default=None, description="Type handler name or base type number")
    type_args: list[Any] = Field(default_factory=list, description="Type handler constructor arguments")
    alias_of: str | None = Field(default=None, description="Item this item is an alias of")
    settings: dict[str, Any] = Field(default_factory=dict, description="Item settings")

    @model_validator(mode="before")
    @classmethod
    def collect_settings(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        output = {key: value for key, value in data.items() if key in RESERVED_FIELD_KEYS}
        settings = dict(output.get("settings") or {})
        for key, value in data.items():
            if key not in RESERVED_FIELD_KEYS:
                settings[key] = value
        output["settings"] = settings
        return output


class DependencyDefinition(BaseModel):
    """A dependency attached to a meta model."""

    type: str = Field(..., description="Registered dependency name or dotted class path")
    args: list[Any] = Field(default_factory=list, description="Constructor arguments")
    kwargs: dict[str, Any] = Field(default_factory=dict, description="Constructor keyword arguments")
    depends_on: list[str] = Field(default_factory=list, description="Extra fields depended on")
    effects: dict[str, Any] = Field(default_factory=dict, description="Extra {field: settings} effected")

    @field_validator("depends_on", mode="before")
    @classmethod
    def to_list(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value or []


class ModelDefinition(BaseModel):
    """A complete meta model."""

    name: str = Field(..., description="Meta model name")
    keys: list[str] = Field(default_factory=list, description="Key item names")
    fields: list[FieldDefinition] = Field(default_factory=list, description="Items in order")
    dependencies: list[DependencyDefinition] = Field(default_factory=list, description="Dependencies")
    meta: dict[str, Any] = Field(default_factory=dict, description="Model level meta settings")

    def get_field(self, name: str) -> FieldDefinition | None:
        for field_definition in self.fields:
            if field_definition.name == name:
                return field_definition
        return None
