"""
JSON Encoder for producer-supplied values

Converts arbitrary values handed to the tracer (context, step input/output,
metadata) into a plain JSON tree: dict / list / str / int / float / bool / None.
Everything downstream of the tracer only sees that tree.

Handles:
- scalars (str, int, float, bool, None)
- mappings with string keys (int/float/bool/enum keys are stringified)
- lists, tuples, sets, frozensets
- dataclasses, pydantic models, objects with to_dict()
- datetime/date/time → ISO string, Decimal → int/float, UUID → str, Enum → value

Rejects (BadInputError):
- reference cycles
- trees nested deeper than the interpreter recursion limit
- NaN / Infinity (not representable in JSON)
- unknown object types

Usage:
    encoder = JsonEncoder()
    tree = encoder.encode({"product": product, "limit": 50}, field="input")
"""

import dataclasses
import math
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Set
from uuid import UUID

from pydantic import BaseModel

from .exceptions import BadInputError

JsonTree = Any


class JsonEncoder:
    """Converts producer values to JSON trees"""

    def encode(self, value: Any, field: Optional[str] = None) -> JsonTree:
        """
        Encode a value.

        Args:
            value: Any producer value
            field: Name of the traced field, used in error messages

        Raises:
            BadInputError: If the value cannot be represented as JSON
        """
        root = field or "value"
        try:
            return self._encode(value, root, set(), field)
        except RecursionError:
            raise BadInputError(f"{root}: value nested too deeply", field=field) from None

    def _encode(self, value: Any, path: str, active: Set[int], field: Optional[str]) -> JsonTree:
        # bool is a subclass of int, check it first
        if value is None or isinstance(value, (bool, str)):
            return value

        if isinstance(value, Enum):
            return self._encode(value.value, path, active, field)

        if isinstance(value, int):
            return int(value)

        if isinstance(value, float):
            if not math.isfinite(value):
                raise BadInputError(f"{path}: {value!r} is not a valid JSON number", field=field)
            return float(value)

        if isinstance(value, Decimal):
            if not value.is_finite():
                raise BadInputError(f"{path}: {value!r} is not a valid JSON number", field=field)
            return int(value) if value == value.to_integral_value() else float(value)

        if isinstance(value, (datetime, date, time)):
            return value.isoformat()

        if isinstance(value, UUID):
            return str(value)

        # Containers: track ids on the current path to detect cycles
        marker = id(value)
        if marker in active:
            raise BadInputError(f"{path}: reference cycle detected", field=field)
        active.add(marker)
        try:
            return self._encode_container(value, path, active, field)
        finally:
            active.discard(marker)

    def _encode_container(self, value: Any, path: str, active: Set[int], field: Optional[str]) -> JsonTree:
        if isinstance(value, Mapping):
            result = {}
            for key, item in value.items():
                name = self._encode_key(key, path, field)
                result[name] = self._encode(item, f"{path}.{name}", active, field)
            return result

        if isinstance(value, (list, tuple)):
            return [
                self._encode(item, f"{path}[{index}]", active, field)
                for index, item in enumerate(value)
            ]

        if isinstance(value, (set, frozenset)):
            items = [self._encode(item, f"{path}[]", active, field) for item in value]
            try:
                return sorted(items)
            except TypeError:
                return items

        if isinstance(value, BaseModel):
            return self._encode(value.model_dump(by_alias=True), path, active, field)

        if hasattr(value, "to_dict") and callable(value.to_dict):
            return self._encode(value.to_dict(), path, active, field)

        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return {
                f.name: self._encode(getattr(value, f.name), f"{path}.{f.name}", active, field)
                for f in dataclasses.fields(value)
            }

        raise BadInputError(
            f"{path}: object of type '{type(value).__name__}' is not JSON encodable",
            field=field,
        )

    def _encode_key(self, key: Any, path: str, field: Optional[str]) -> str:
        if isinstance(key, str):
            return key
        if isinstance(key, Enum):
            key = key.value
            if isinstance(key, str):
                return key
        if key is None or isinstance(key, (bool, int, float)):
            # Same stringification json.dumps applies to scalar keys
            if isinstance(key, float) and not math.isfinite(key):
                raise BadInputError(f"{path}: invalid mapping key {key!r}", field=field)
            if key is None or isinstance(key, bool):
                return {None: "null", True: "true", False: "false"}[key]
            return str(key)
        raise BadInputError(
            f"{path}: mapping key of type '{type(key).__name__}' is not a string",
            field=field,
        )
