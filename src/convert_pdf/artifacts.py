from __future__ import annotations

import json
from typing import Any

from .contracts import ConversionResult


def serialize_conversion_result(result: ConversionResult, *, include_meta: bool = False) -> str:
    payload: dict[str, Any] = result.to_dict()
    if include_meta:
        payload["meta"] = result.meta
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"
