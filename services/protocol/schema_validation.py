from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError
from referencing import Registry, Resource

SCHEMA_ROOT = Path(__file__).resolve().parent / "schemas"
VISUALIZATION_SPEC_SCHEMA = "visualization_spec.schema.json"
VISUALIZATION_ANSWER_SCHEMA = "visualization_answer.schema.json"


@dataclass
class ProtocolValidationError(Exception):
    schema_path: str
    issues: list[dict[str, str]]

    def __str__(self) -> str:
        return f"Schema validation failed for {self.schema_path}: {len(self.issues)} issue(s)"


class ProtocolValidator:
    """Validates outgoing payloads against the bundled JSON Schemas.

    Every ``*.schema.json`` under ``schema_root`` is registered under its file
    name, so schemas reference each other with ``{"$ref": "<file name>"}``.
    """

    def __init__(self, schema_root: Path | None = None) -> None:
        self.schema_root = schema_root or SCHEMA_ROOT

    @lru_cache(maxsize=1)
    def _registry(self) -> Registry:
        contents = {
            path.name: json.loads(path.read_text(encoding="utf-8"))
            for path in sorted(self.schema_root.glob("*.schema.json"))
        }
        return Registry().with_resources(
            (name, Resource.from_contents(schema)) for name, schema in contents.items()
        )

    @lru_cache(maxsize=16)
    def _validator(self, schema_path: str) -> Draft202012Validator:
        schema = self._registry().contents(schema_path)
        return Draft202012Validator(schema=schema, registry=self._registry())

    def issues(self, schema_path: str, payload: Any) -> list[dict[str, str]]:
        errors = self._validator(schema_path).iter_errors(payload)
        return [self._issue(err) for err in sorted(errors, key=lambda e: [str(part) for part in e.absolute_path])]

    def validate(self, schema_path: str, payload: Any) -> None:
        found = self.issues(schema_path, payload)
        if found:
            raise ProtocolValidationError(schema_path=schema_path, issues=found)

    @staticmethod
    def _issue(error: ValidationError) -> dict[str, str]:
        path = ".".join(str(part) for part in error.absolute_path) or "$"
        return {"path": path, "keyword": str(error.validator), "message": error.message}
