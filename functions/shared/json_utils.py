# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from dacite import Config, from_dict

from shared.records import LEGACY_FIELD_ALIASES

T = TypeVar("T")

DOCUMENT_CONFIG = Config(cast=[Enum], check_types=False)


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def to_document(record: Any) -> dict:
    """
    Converts a record dataclass (or a dict) to a plain dict that every store
    backend can persist: enums become their string values.
    """
    if is_dataclass(record):
        record = asdict(record)
    return _plain(record)


def from_document(
    data_class: Type[T], data: dict, doc_id: Optional[str] = None
) -> T:
    """
    Materialises a stored document as `data_class`.

    Unknown keys are ignored and legacy field names are mapped onto their
    current names. Raises ValueError (or a dacite error) on values that cannot
    be cast, e.g. an unknown enum value.
    """
    payload = dict(data)
    for legacy, current in LEGACY_FIELD_ALIASES.get(data_class, {}).items():
        if legacy in payload and current not in payload:
            payload[current] = payload.pop(legacy)
    if doc_id is not None:
        payload["id"] = doc_id
    # Stored nulls fall back to the dataclass defaults.
    payload = {k: v for k, v in payload.items() if v is not None}
    return from_dict(data_class=data_class, data=payload, config=DOCUMENT_CONFIG)


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a trailing Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def timestamp_millis(value: Any) -> int:
    """Epoch milliseconds of a stored timestamp, 0 when it cannot be parsed."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return 0
    return int(parsed.timestamp() * 1000)
