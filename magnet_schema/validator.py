# magnet_schema/validator.py
"""
Wrapping derived schemas for use as collection validators.

Issuing the commands is the database client's job; these helpers only build
the command documents and their JSON text.
"""

import json
from typing import Any

SchemaDocument = dict[str, Any]

VALIDATION_LEVELS = ("off", "strict", "moderate")
VALIDATION_ACTIONS = ("error", "warn")


def to_validator(schema: SchemaDocument) -> SchemaDocument:
    """Wrap a schema in the ``$jsonSchema`` query operator."""
    return {"$jsonSchema": schema}


def create_collection_command(
    name: str,
    schema: SchemaDocument,
    validation_level: str = "strict",
    validation_action: str = "error",
) -> SchemaDocument:
    """Build a ``create`` command for a new collection validated by ``schema``."""
    return _command("create", name, schema, validation_level, validation_action)


def collmod_command(
    name: str,
    schema: SchemaDocument,
    validation_level: str = "strict",
    validation_action: str = "error",
) -> SchemaDocument:
    """Build a ``collMod`` command replacing an existing collection's validator."""
    return _command("collMod", name, schema, validation_level, validation_action)


def _command(verb, name, schema, validation_level, validation_action) -> SchemaDocument:
    if not name:
        raise ValueError("collection name must not be empty")
    if validation_level not in VALIDATION_LEVELS:
        raise ValueError(
            f"validation level must be one of {VALIDATION_LEVELS}, got '{validation_level}'"
        )
    if validation_action not in VALIDATION_ACTIONS:
        raise ValueError(
            f"validation action must be one of {VALIDATION_ACTIONS}, got '{validation_action}'"
        )
    return {
        verb: name,
        "validator": to_validator(schema),
        "validationLevel": validation_level,
        "validationAction": validation_action,
    }


def dumps(document: SchemaDocument, indent: int | None = 2) -> str:
    """Serialize a document to JSON text, keeping key order."""
    return json.dumps(document, indent=indent or None, ensure_ascii=False)
