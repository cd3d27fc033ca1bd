"""
Parsing of request bodies sent either as JSON or as multipart forms.

Form fields use bracket keys for nested objects (``location[city]``,
``contact_info[email]``) and repeated or ``[]`` keys for lists
(``images_to_delete[]``). File parts named ``images`` are uploads; a text
part named ``images`` holds the managed image list as JSON.
"""

from typing import Any, Dict, Iterable, List, Tuple, Type, TypeVar
from fastapi import Request
from pydantic import BaseModel, ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile
from app.services.error_handler import ErrorHandlerService
from app.utils.exceptions import BadRequestError, ValidationError
import json
import re
import logging

logger = logging.getLogger(__name__)

SchemaType = TypeVar("SchemaType", bound=BaseModel)

FILE_FIELDS = frozenset({"images", "images[]"})
LIST_FIELDS = frozenset({"images_to_delete"})
JSON_FIELDS = frozenset({"images", "images_to_delete"})

_NESTED_KEY = re.compile(r"^(?P<parent>\w+)\[(?P<child>\w+)\]$")
_LIST_KEY = re.compile(r"^(?P<field>\w+)\[\]$")


def _decode_json(field: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        raise BadRequestError(f"Field '{field}' must be valid JSON")


def form_to_dict(items: Iterable[Tuple[str, Any]]) -> Dict[str, Any]:
    """Fold flat form items into the nested structure the schemas expect."""
    data: Dict[str, Any] = {}

    for key, value in items:
        if not isinstance(value, str):
            continue
        value = value.strip()
        if value == "":
            continue

        nested = _NESTED_KEY.match(key)
        if nested:
            data.setdefault(nested.group("parent"), {})[nested.group("child")] = value
            continue

        list_key = _LIST_KEY.match(key)
        field = list_key.group("field") if list_key else key

        if field in JSON_FIELDS and value.startswith("["):
            decoded = _decode_json(field, value)
            if field in LIST_FIELDS:
                data.setdefault(field, []).extend(decoded if isinstance(decoded, list) else [decoded])
            else:
                data[field] = decoded
            continue

        if list_key or field in LIST_FIELDS:
            data.setdefault(field, []).append(value)
            continue

        data[field] = value

    return data


def uploaded_files(items: Iterable[Tuple[str, Any]]) -> List[UploadFile]:
    """File parts named ``images`` that actually carry a file."""
    return [
        value for key, value in items
        if key in FILE_FIELDS and isinstance(value, UploadFile) and value.filename
    ]


def validate_payload(schema: Type[SchemaType], data: Any) -> SchemaType:
    """
    Validate parsed data against a schema.

    Raises:
        ValidationError: With per-field details when validation fails
    """
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            "Request validation failed",
            field_errors=ErrorHandlerService.validation_details(e.errors())
        )


async def parse_request_body(
    request: Request,
    schema: Type[SchemaType]
) -> Tuple[SchemaType, List[UploadFile]]:
    """
    Read a body in whichever format the client sent it.

    Returns:
        Tuple of (validated payload, uploaded image files)

    Raises:
        BadRequestError: If the body cannot be decoded
        ValidationError: If the payload does not satisfy the schema
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        items = form.multi_items()
        data = form_to_dict(items)
        files = uploaded_files(items)
    else:
        body = await request.body()
        if body.strip():
            try:
                data = json.loads(body)
            except (json.JSONDecodeError, UnicodeDecodeError):
                raise BadRequestError("Request body must be valid JSON or multipart form data")
        else:
            data = {}
        files = []

    logger.debug(f"Parsed request payload with {len(files)} uploaded files")
    return validate_payload(schema, data), files
