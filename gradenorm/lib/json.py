"""JSON for log extras, which carry grades, enums and records"""

from __future__ import annotations

import decimal
import enum
import json as pyjson
import typing as t

import pydantic as p

JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]


def encode_decimal(obj: decimal.Decimal) -> str:
    # grades keep their scale, "85.00000" is not "85"
    return str(obj)


class JSONEncoder(pyjson.JSONEncoder):
    def default(self, o: t.Any) -> JSONValue:
        if isinstance(o, p.BaseModel):
            return o.model_dump(mode="json")
        if isinstance(o, decimal.Decimal):
            return encode_decimal(o)
        if isinstance(o, enum.Enum):
            return o.value
        return pyjson.JSONEncoder.default(self, o)
