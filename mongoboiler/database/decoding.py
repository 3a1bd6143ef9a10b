"""
Document decoding.

Turns raw documents returned by the driver into instances of a
caller-chosen type, and turns such instances back into documents for
inserts. Supported targets:

- ``dict`` (default) and other mapping types such as ``bson.SON``
- pydantic models (validated with ``model_validate``)
- dataclasses (unknown keys dropped, ``_id`` mapped onto an ``id`` field)
- any other callable accepting the document's keys as keyword arguments
"""

import dataclasses
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..exceptions import DecodeError

T = TypeVar("T")


def _dataclass_kwargs(document: Mapping[str, Any], document_class: type) -> dict[str, Any]:
    field_names = {f.name for f in dataclasses.fields(document_class) if f.init}
    data = dict(document)
    if "_id" in data and "_id" not in field_names and "id" in field_names:
        data.setdefault("id", data.pop("_id"))
    return {k: v for k, v in data.items() if k in field_names}


def decode_document(document: Mapping[str, Any], document_class: type[T] = dict) -> T:
    """
    Decode a single document into ``document_class``.

    Args:
        document: Document as returned by the driver
        document_class: Target type

    Returns:
        A new ``document_class`` instance

    Raises:
        DecodeError: If the document does not fit the target type
    """
    if not isinstance(document, Mapping):
        raise DecodeError(
            f"Expected a document mapping, got {type(document).__name__}",
            document_class=document_class,
        )

    try:
        if document_class is dict:
            return dict(document)
        if isinstance(document_class, type) and issubclass(document_class, Mapping):
            return document_class(document)
        if isinstance(document_class, type) and issubclass(document_class, BaseModel):
            return document_class.model_validate(dict(document))
        if dataclasses.is_dataclass(document_class):
            return document_class(**_dataclass_kwargs(document, document_class))
        return document_class(**document)
    except (ValidationError, TypeError, ValueError) as e:
        raise DecodeError(
            f"Cannot decode document into {getattr(document_class, '__name__', document_class)}",
            document_class=document_class,
            cause=e,
        ) from e


def encode_document(document: Any) -> Any:
    """
    Turn a pydantic model or dataclass instance into a document for the driver.

    Pydantic models are dumped by alias, so ``id: ObjectId = Field(alias="_id")``
    becomes ``_id``. A dataclass ``id`` field is stored as ``_id`` unless the
    dataclass also declares ``_id``. An ``_id`` of None is left out so the
    driver generates one. Anything else is returned unchanged.
    """
    if isinstance(document, BaseModel):
        data = document.model_dump(by_alias=True)
    elif dataclasses.is_dataclass(document) and not isinstance(document, type):
        data = dataclasses.asdict(document)
        if "id" in data and "_id" not in data:
            data["_id"] = data.pop("id")
    else:
        return document
    if "_id" in data and data["_id"] is None:
        del data["_id"]
    return data
