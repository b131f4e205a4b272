"""
JSON Schema checks for settings.

Every problem in the data is reported at once, sorted by key, so a
settings file can be fixed in one pass.
"""

import json
from functools import lru_cache
from pathlib import Path

import jsonschema

SCHEMAS_DIR = Path(__file__).parent / "schemas"


class ValidationError(Exception):
    """Data did not match its schema.

    Attributes:
        schema_name: Which schema was checked
        problems: (path, message) pairs, one per violation
    """

    def __init__(self, schema_name: str, problems: list[tuple[str, str]]):
        self.schema_name = schema_name
        self.problems = problems
        listing = "; ".join(f"{path}: {message}" for path, message in problems)
        super().__init__(f"[{schema_name}] {listing}")


@lru_cache(maxsize=None)
def load_validator(schema_name: str) -> jsonschema.Draft7Validator:
    schema_path = SCHEMAS_DIR / f"{schema_name}.schema.json"
    if not schema_path.exists():
        raise ValidationError(schema_name, [("(schema)", f"not found: {schema_path}")])
    schema = json.loads(schema_path.read_text())
    jsonschema.Draft7Validator.check_schema(schema)
    return jsonschema.Draft7Validator(schema)


def validate(data: dict, schema_name: str) -> None:
    """
    Check data against a named schema (schemas/<name>.schema.json).

    Raises:
        ValidationError: listing every violation
    """
    validator = load_validator(schema_name)
    problems = [
        (".".join(str(p) for p in error.absolute_path) or "(root)", error.message)
        for error in validator.iter_errors(data)
    ]
    if problems:
        raise ValidationError(schema_name, sorted(problems))
