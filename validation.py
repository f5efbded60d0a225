"""Payload validation and referential-integrity checks.

Writes go through these steps in order: the payload shape is validated
against a pydantic schema, then foreign keys are checked against their
tables, and only then may the caller mutate anything. The existence checks
lock the referenced rows so the caller's insert or update lands in the same
transaction as the check.
"""
import logging
from typing import Any, Dict, List, Optional, Type
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session
from database import Base
from errors import ReferenceNotFound, ValidationFailed

logger = logging.getLogger(__name__)


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "path", "query")]
    return ".".join(parts) or "body"

def _describe(field: str, error: dict) -> str:
    if error["type"] == "missing" or (error["type"].endswith("_type") and error.get("input") is None):
        return f"The {field} field is required."
    if error["type"] == "string_too_short":
        return f"The {field} field is required."
    return f"The {field} field is invalid: {error['msg']}."

def format_errors(errors: List[dict]) -> Dict[str, List[str]]:
    """Group pydantic error dicts into {field: [messages]}."""
    grouped: Dict[str, List[str]] = {}
    for error in errors:
        # json_invalid locations end with a character offset, not a field
        field = "body" if error["type"] == "json_invalid" else _field_name(error["loc"])
        grouped.setdefault(field, []).append(_describe(field, error))
    return grouped

def validate_payload(schema: Type[BaseModel], payload: Any) -> BaseModel:
    if not isinstance(payload, dict):
        raise ValidationFailed({"body": ["The request body must be a JSON object."]})
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailed(format_errors(exc.errors()))

def check_references(db: Session, values: Dict[str, Any], references: Dict[str, Type[Base]]) -> None:
    """Fail with ReferenceNotFound for the first foreign key with no matching row."""
    for field, model in references.items():
        row = db.query(model).filter(model.id == values[field]).with_for_update().first()
        if row is None:
            logger.info("Rejected write: %s=%s does not exist", field, values[field])
            raise ReferenceNotFound(field)

def value_taken(db: Session, model: Type[Base], field: str, value: Any,
                exclude_id: Optional[int] = None) -> bool:
    query = db.query(model).filter(getattr(model, field) == value)
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    return db.query(query.exists()).scalar()
