"""Pydantic v2 models for tool descriptors (JSON-schema-like parameter trees)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ParameterProperty(BaseModel):
    """One node of a parameter schema; arrays and objects nest further nodes."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: str
    description: str | None = None
    enum_values: list[str] | None = Field(default=None, alias="enum")
    format: str | None = None
    items: ParameterProperty | None = None
    properties: dict[str, ParameterProperty] | None = None
    required: list[str] | None = None

    def to_schema(self) -> dict[str, Any]:
        """Render as a plain JSON-schema dict, omitting unset keys."""
        schema: dict[str, Any] = {"type": self.type}
        if self.description is not None:
            schema["description"] = self.description
        if self.enum_values is not None:
            schema["enum"] = list(self.enum_values)
        if self.format is not None:
            schema["format"] = self.format
        if self.items is not None:
            schema["items"] = self.items.to_schema()
        if self.properties is not None:
            schema["properties"] = {k: v.to_schema() for k, v in self.properties.items()}
        if self.required is not None:
            schema["required"] = list(self.required)
        return schema


class ToolParameters(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str = "object"
    properties: dict[str, ParameterProperty] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)
    additional_properties: bool | None = Field(default=False, alias="additionalProperties")

    def to_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {
            "type": self.type,
            "properties": {k: v.to_schema() for k, v in self.properties.items()},
        }
        if self.required:
            schema["required"] = list(self.required)
        if self.additional_properties is not None:
            schema["additionalProperties"] = self.additional_properties
        return schema


class ToolDescriptor(BaseModel):
    """A tool the model may call, as advertised by a tool provider."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    description: str = ""
    parameters: ToolParameters = Field(default_factory=ToolParameters)
    metadata: dict[str, str] = Field(default_factory=dict)


ParameterProperty.model_rebuild()
