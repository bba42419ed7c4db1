from flask import current_app, request
from pydantic import ValidationError as PydanticValidationError

from errors import ValidationError


def get_storage():
    """The store picked by create_app (memory or database)."""
    return current_app.extensions['storage']


def _format_errors(exc):
    errors = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())) or "body"
        # pydantic prefixes model-level errors with "Value error, "
        message = err.get("msg", "").replace("Value error, ", "")
        errors.append({"field": field, "message": message})
    return errors


def field_errors(errors):
    """ValidationError carrying the field list, with the joined "field: message" text."""
    message = "Validation error: " + "; ".join(f"{e['field']}: {e['message']}" for e in errors)
    return ValidationError(message, errors)


def parse_body(schema):
    """
    Validates the JSON body against a pydantic schema.
    Raises ValidationError with one "field: message" part per problem.
    """
    payload = request.get_json(silent=True)
    if payload is None:
        raise ValidationError("Request body must be a JSON object")
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as exc:
        raise field_errors(_format_errors(exc)) from exc


def parse_partial(schema, nullable=('notes',)):
    """
    Like parse_body for update bodies: only the keys the client sent, and
    explicit nulls only for the columns that may hold them.
    """
    data = parse_body(schema).model_dump(exclude_unset=True)
    return {k: v for k, v in data.items() if v is not None or k in nullable}


def int_arg(name, default=None, minimum=0):
    raw = request.args.get(name)
    if raw in (None, ''):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"Query parameter '{name}' must be an integer")
    if value < minimum:
        raise ValidationError(f"Query parameter '{name}' must be >= {minimum}")
    return value


def dump_all(items):
    return [item.to_dict() for item in items]
