"""Base model and shared field types for the invoicing data models.

Money values are ``Decimal`` internally and serialize to JSON numbers so API
clients receive plain numbers.
"""

import uuid
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, PlainSerializer, ValidationError
from typing_extensions import Annotated

from invoicing.errors import ValidationFailedError

TWO_PLACES = Decimal("0.01")


def round_money(value: Any) -> Decimal:
    """Round to cents, half up."""
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


Money = Annotated[
    Decimal, PlainSerializer(lambda v: float(v), return_type=float, when_used="json")
]


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def strip_or_none(value: Optional[str]) -> Optional[str]:
    """Trim a string; blank strings become None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def require_text(value: str, field_name: str) -> str:
    """Trim a string and reject blank values."""
    if not value or not value.strip():
        raise ValueError(f"{field_name} cannot be empty or whitespace")
    return value.strip()


class BaseDataModel(BaseModel):
    """Base class for all data models.

    Provides common configuration for:
    - Validation with type coercion from sheet cells and JSON
    - Validation on assignment so service-layer updates stay consistent
    - Rejection of unknown fields in request bodies

    Example:
        >>> class Tag(BaseDataModel):
        ...     name: str
        >>> Tag(name="urgent").model_dump()
        {'name': 'urgent'}
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
        strict=False,
        extra="forbid",
        # Sheet cells typed as numbers still load into text fields
        coerce_numbers_to_str=True,
        frozen=False,
    )


def merge_update(record: BaseDataModel, update: BaseDataModel, **overrides: Any):
    """
    Apply the fields explicitly set on ``update`` to ``record``.

    Returns a new, re-validated instance of the record's type so model
    validators (date ranges, derived fields) run on the merged result.

    Raises:
        ValidationFailedError: If the merged record is not valid
    """
    data = record.model_dump()
    data.update(update.model_dump(exclude_unset=True))
    data.update(overrides)
    try:
        return type(record).model_validate(data)
    except ValidationError as e:
        details = [
            {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
            for error in e.errors()
        ]
        summary = "; ".join(
            f"{d['field']}: {d['message']}" if d["field"] else d["message"] for d in details
        )
        raise ValidationFailedError(f"Invalid update: {summary}", details=details) from e
