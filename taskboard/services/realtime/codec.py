from __future__ import annotations

"""事件信封与快照的 JSON 编解码（唯一的序列化边界）"""

import json
from typing import Any, Dict

from pydantic import ValidationError

from taskboard.core.errors import MalformedStoredRecord, SerializationError
from taskboard.schemas.events import EventEnvelope


def encode_json(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"无法编码为JSON: {e}") from e


def encode_envelope(envelope: EventEnvelope) -> str:
    return encode_json(envelope.to_wire())


def decode_json_object(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedStoredRecord(f"非UTF-8记录: {e}") from e
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedStoredRecord(f"无法解析JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedStoredRecord(f"记录不是JSON对象: {type(data).__name__}")
    return data


def decode_envelope(raw: Any) -> EventEnvelope:
    data = decode_json_object(raw)
    try:
        return EventEnvelope.model_validate(data)
    except ValidationError as e:
        raise MalformedStoredRecord(f"事件信封字段不合法: {e.error_count()} errors") from e
