# magnet_schema/config/schema.py
"""
Pydantic configuration models for magnet-schema.

All models use extra="ignore" to allow unknown YAML keys without crashing.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class DeriveConfig(BaseModel):
    """Schema derivation defaults."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    strict_objects: bool = Field(
        default=True,
        description="Emit additionalProperties: false for structs that don't say otherwise",
    )
    cache_enabled: bool = Field(
        default=True, description="Memoize schemas of repeated nested types"
    )
    default_int_kind: Literal["i32", "i64"] = Field(
        default="i64",
        description="Primitive kind used for a plain Python int during introspection",
    )


class OutputConfig(BaseModel):
    """Output formatting for the command line."""

    model_config = ConfigDict(extra="ignore")

    indent: int = Field(default=2, ge=0, le=8, description="JSON indentation (0 = compact)")
    wrap_validator: bool = Field(
        default=False, description="Wrap derived schemas in {\"$jsonSchema\": ...}"
    )
    validation_level: Literal["off", "strict", "moderate"] = Field(
        default="strict", description="validationLevel for generated collection commands"
    )
    validation_action: Literal["error", "warn"] = Field(
        default="error", description="validationAction for generated collection commands"
    )


class MagnetConfig(BaseModel):
    """Root configuration for magnet-schema."""

    model_config = ConfigDict(extra="ignore")

    derive: DeriveConfig = Field(default_factory=DeriveConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING", description="Logging level for the command line"
    )
