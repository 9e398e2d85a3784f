"""
Pub/Sub push envelope and the event payloads it can carry.
"""

import base64
import binascii
import json
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

RESTITCH_EVENT_TYPE = "RE_STITCH"


class PubSubMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    data: Optional[str] = None
    message_id: Optional[str] = Field(default=None, alias="messageId")
    attributes: Dict[str, str] = Field(default_factory=dict)


class PushEnvelope(BaseModel):
    """Body of a Pub/Sub push delivery"""
    model_config = ConfigDict(extra="allow")

    message: PubSubMessage
    subscription: Optional[str] = None


class RestitchDirective(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: Literal["RE_STITCH"]
    video_id: str = Field(alias="videoId")

    @field_validator("video_id", mode="before")
    @classmethod
    def _numeric_id_as_text(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class StorageObjectEvent(BaseModel):
    """Cloud Storage object notification (subset of fields)"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: Optional[str] = None
    kind: Optional[str] = None
    bucket: Optional[str] = None
    content_type: Optional[str] = Field(default=None, alias="contentType")


PipelineEvent = Union[RestitchDirective, StorageObjectEvent]


def decode_message_data(message: PubSubMessage) -> Dict[str, Any]:
    """Decode the base64 JSON payload. An absent payload decodes to ``{}``.

    Raises:
        ValueError: if the payload is not base64-encoded JSON object text
    """
    if not message.data:
        return {}
    try:
        text = base64.b64decode(message.data, validate=True).decode("utf-8").strip()
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise ValueError("message data is not base64-encoded UTF-8") from exc
    if not text:
        return {}
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError("message data is not JSON") from exc
    if not isinstance(payload, dict):
        raise ValueError("message data is not a JSON object")
    return payload


def classify_event(payload: Dict[str, Any]) -> Optional[PipelineEvent]:
    """Map a decoded payload to a restitch directive, a storage event, or None (ignore)."""
    if payload.get("type") == RESTITCH_EVENT_TYPE:
        try:
            return RestitchDirective.model_validate(payload)
        except ValidationError:
            return None
    if "name" in payload or "kind" in payload:
        try:
            return StorageObjectEvent.model_validate(payload)
        except ValidationError:
            return None
    return None


__all__ = [
    "RESTITCH_EVENT_TYPE",
    "PubSubMessage",
    "PushEnvelope",
    "RestitchDirective",
    "StorageObjectEvent",
    "PipelineEvent",
    "decode_message_data",
    "classify_event",
]
