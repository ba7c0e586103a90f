"""Temporal DataConverter for keeper payloads.

Frozen dataclasses travel as JSON objects tagged with ``__type__``;
Decimal and timedelta carry their own tags so they survive the trip
without float rounding.
"""

from __future__ import annotations

import dataclasses
import importlib
import json
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, get_type_hints

from temporalio.converter import (
    CompositePayloadConverter,
    DataConverter,
    DefaultPayloadConverter,
    JSONPlainPayloadConverter,
    JSONTypeConverter,
)


def _to_json(obj: Any) -> Any:  # noqa: PLR0911
    if obj is None or isinstance(obj, bool | int | float | str):
        return obj
    if isinstance(obj, Decimal):
        return {"__decimal__": str(obj)}
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, timedelta):
        return {"__timedelta_s__": obj.total_seconds()}
    if isinstance(obj, Enum):
        return obj.value
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        tagged: dict[str, Any] = {
            "__type__": f"{type(obj).__module__}.{type(obj).__qualname__}",
        }
        for field in dataclasses.fields(obj):
            tagged[field.name] = _to_json(getattr(obj, field.name))
        return tagged
    if isinstance(obj, tuple | list):
        return [_to_json(x) for x in obj]
    if isinstance(obj, dict):
        return {str(k): _to_json(v) for k, v in obj.items()}
    raise TypeError(f"Cannot encode {type(obj).__name__} for Temporal")


class VaultJSONEncoder(json.JSONEncoder):
    def default(self, o: Any) -> Any:
        return _to_json(o)

    def encode(self, o: Any) -> str:
        return super().encode(_to_json(o))


# Only classes from these modules may be rebuilt from a payload.
_ALLOWED_MODULES: frozenset[str] = frozenset({
    "putvault.core.types",
    "putvault.workflow.types",
})

_CLASS_CACHE: dict[str, type] = {}


def _resolve_class(fqn: str) -> type | None:
    if fqn in _CLASS_CACHE:
        return _CLASS_CACHE[fqn]
    module_name, _, class_name = fqn.rpartition(".")
    if module_name not in _ALLOWED_MODULES:
        return None
    module = importlib.import_module(module_name)
    cls = getattr(module, class_name, None)
    if isinstance(cls, type):
        _CLASS_CACHE[fqn] = cls
        return cls
    return None


def _from_json(hint: Any, value: Any) -> Any:  # noqa: PLR0911
    if value is None:
        return None
    if isinstance(value, dict) and "__type__" in value:
        cls = _resolve_class(value["__type__"])
        if cls is None or not dataclasses.is_dataclass(cls):
            raise TypeError(f"Refusing to decode {value['__type__']}")
        hints = get_type_hints(cls)
        kwargs = {
            field.name: _from_json(hints.get(field.name, Any), value[field.name])
            for field in dataclasses.fields(cls)
            if field.name in value
        }
        return cls(**kwargs)
    if isinstance(value, dict) and "__decimal__" in value:
        return Decimal(value["__decimal__"])
    if isinstance(value, dict) and "__timedelta_s__" in value:
        return timedelta(seconds=value["__timedelta_s__"])
    if hint is Decimal and isinstance(value, int | float | str):
        return Decimal(str(value))
    if hint is datetime and isinstance(value, str):
        return datetime.fromisoformat(value)
    if isinstance(hint, type) and issubclass(hint, Enum):
        return hint(value)
    if isinstance(value, list):
        return tuple(_from_json(Any, x) for x in value)
    return value


class VaultJSONTypeConverter(JSONTypeConverter):
    def to_typed_value(self, hint: type, value: Any) -> Any:
        if isinstance(value, dict) and (
            "__type__" in value or "__decimal__" in value or "__timedelta_s__" in value
        ):
            return _from_json(hint, value)
        if hint is Decimal and isinstance(value, int | float | str):
            return Decimal(str(value))
        return JSONTypeConverter.Unhandled


class VaultPayloadConverter(CompositePayloadConverter):
    """Default converters with the JSON one swapped for the tagged variant."""

    def __init__(self) -> None:
        json_converter = JSONPlainPayloadConverter(
            encoder=VaultJSONEncoder,
            custom_type_converters=[VaultJSONTypeConverter()],
        )
        super().__init__(
            *(
                c
                for c in DefaultPayloadConverter.default_encoding_payload_converters
                if not isinstance(c, JSONPlainPayloadConverter)
            ),
            json_converter,
        )


VAULT_DATA_CONVERTER = DataConverter(
    payload_converter_class=VaultPayloadConverter,
)
