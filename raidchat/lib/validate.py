"""
JSON Schema checks for raidchat.

Every config file that enters the process and every request body that
leaves it is checked against a schema from raidchat/schemas/. Schemas are
read once per process.
"""

import json
from functools import lru_cache
from pathlib import Path

import jsonschema
from jsonschema.exceptions import best_match

SCHEMAS_DIR = Path(__file__).parent.parent / "schemas"


class ValidationError(Exception):
    """Data did not match its schema (or the schema is missing)."""

    def __init__(self, schema_name: str, message: str, path: str | None = None):
        self.schema_name = schema_name
        self.path = path
        location = f" at {path}" if path else ""
        super().__init__(f"[{schema_name}] {message}{location}")


@lru_cache(maxsize=None)
def _validator(schema_name: str) -> jsonschema.Draft7Validator:
    schema_file = SCHEMAS_DIR / f"{schema_name}.schema.json"
    if not schema_file.is_file():
        raise ValidationError(schema_name, f"Schema file not found: {schema_file}")
    return jsonschema.Draft7Validator(json.loads(schema_file.read_text()))


def validate(data: dict, schema_name: str) -> None:
    """Check data against the named schema.

    Only the most relevant error is reported when several apply.

    Raises:
        ValidationError: naming the offending field, or "(root)"
    """
    error = best_match(_validator(schema_name).iter_errors(data))
    if error is None:
        return
    field_path = ".".join(str(part) for part in error.absolute_path) or "(root)"
    raise ValidationError(schema_name, error.message, field_path)


def validate_before_send(data: dict, schema_name: str, endpoint: str) -> None:
    """Check a request body before it goes to endpoint.

    Raises:
        ValidationError: so an invalid payload is never sent
    """
    try:
        validate(data, schema_name)
    except ValidationError as e:
        raise ValidationError(
            schema_name,
            f"Refusing to send invalid payload to {endpoint}: {e}",
        ) from None
