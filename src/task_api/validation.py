"""
Request validation rules.

Each operation maps to a pydantic request model in ``schemas``. ``validate``
runs the model, converts every pydantic error into a human-readable message
keyed by field name, adds the store-backed uniqueness check for
registrations, and raises a single ``ValidationError`` holding all of them.
Nothing is applied when any field fails.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Type, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .errors import FieldErrors, ValidationError
from .schemas import LoginRequest, RegisterRequest, TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)

OPERATIONS: Dict[str, Type[BaseModel]] = {
    "register": RegisterRequest,
    "login": LoginRequest,
    "create-task": TaskCreate,
    "update-task": TaskUpdate,
}

MESSAGES: Dict[str, str] = {
    "missing": "The {attribute} field is required.",
    "string_type": "The {attribute} field must be a string.",
    "string_too_long": "The {attribute} field must not be greater than {max_length} characters.",
    "string_too_short": "The {attribute} field must be at least {min_length} characters.",
    "bytes_too_long": "The {attribute} field must not be greater than {max_bytes} bytes.",
    "email": "The {attribute} field must be a valid email address.",
    "date": "The {attribute} field must be a valid date.",
    "date_format": "The {attribute} field must match the format Y-m-d.",
    "enum": "The selected {attribute} is invalid.",
    "unique": "The {attribute} has already been taken.",
    "int_parsing": "The {attribute} field must be an integer.",
    "greater_than_equal": "The {attribute} field must be at least {ge}.",
    "less_than_equal": "The {attribute} field must not be greater than {le}.",
}

_FALLBACK = "The {attribute} field is invalid."

# An invalid date also fails the format rule.
_EXTRA_MESSAGES: Dict[str, List[str]] = {"date": ["date_format"]}


def attribute_name(field: str) -> str:
    return field.replace("_", " ")


def message_for(error_type: str, field: str, ctx: Optional[Mapping[str, Any]] = None) -> str:
    template = MESSAGES.get(error_type, _FALLBACK)
    try:
        return template.format(attribute=attribute_name(field), **dict(ctx or {}))
    except (KeyError, IndexError):
        return _FALLBACK.format(attribute=attribute_name(field))


def _is_required(model: Optional[Type[BaseModel]], field: str) -> bool:
    if model is None:
        return False
    info = model.model_fields.get(field)
    return bool(info is not None and info.is_required())


# PUBLIC_INTERFACE
def translate_errors(
    errors: Iterable[Mapping[str, Any]],
    model: Optional[Type[BaseModel]] = None,
) -> FieldErrors:
    """
    Convert pydantic/FastAPI error dicts into {field: [messages]}.

    The field is the last string element of the error location; errors
    about the payload as a whole (e.g. a JSON array instead of an object)
    are reported under 'body'. A null sent for a required field counts as
    missing.
    """
    result: FieldErrors = {}
    for err in errors:
        loc = [part for part in err.get("loc", ()) if isinstance(part, str) and part not in {"body", "query", "path"}]
        field = loc[-1] if loc else "body"
        error_type = str(err.get("type", ""))
        if error_type != "missing" and err.get("input") is None and _is_required(model, field):
            error_type = "missing"

        messages = result.setdefault(field, [])
        for kind in [error_type, *_EXTRA_MESSAGES.get(error_type, [])]:
            message = message_for(kind, field, err.get("ctx"))
            if message not in messages:
                messages.append(message)
    return result


# PUBLIC_INTERFACE
def validate(
    operation: str,
    payload: Union[Mapping[str, Any], BaseModel, None],
    *,
    email_taken: Optional[Callable[[str], bool]] = None,
) -> Any:
    """
    Validate a payload for one of: register, login, create-task, update-task.

    Args:
        operation: The operation name (key of OPERATIONS).
        payload: Submitted fields, or an already-built request model.
        email_taken: For 'register', a lookup returning True when the email
            already belongs to a user.

    Returns:
        The validated request model.

    Raises:
        ValidationError: carrying every violation found, keyed by field.
    """
    model = OPERATIONS[operation]
    errors: FieldErrors = {}
    validated: Optional[BaseModel] = None

    if isinstance(payload, model):
        validated = payload
    else:
        try:
            validated = model.model_validate(payload if payload is not None else {})
        except PydanticValidationError as exc:
            errors = translate_errors(exc.errors(), model)

    if operation == "register" and email_taken is not None and "email" not in errors:
        email = validated.email if validated is not None else _raw_field(payload, "email")
        if isinstance(email, str) and email and email_taken(email):
            errors.setdefault("email", []).append(message_for("unique", "email"))

    if errors:
        logger.debug("Validation failed for %s: %s", operation, sorted(errors))
        raise ValidationError(errors)
    return validated


def _raw_field(payload: Any, field: str) -> Any:
    if isinstance(payload, Mapping):
        value = payload.get(field)
        return value.strip() if isinstance(value, str) else value
    return None
