"""Versioned wire encoding for messages crossing a worker boundary."""

import json
from typing import Any

from pydantic import TypeAdapter, ValidationError

from ..errors import CodecError
from ..models import AnyJVMEvent, JVMEvent

WIRE_VERSION = 1


class JVMEventCodec:
    """Encodes raw log lines and JVM events as a tagged JSON envelope.

    The set of event kinds is closed: decoding an unknown ``kind`` fails
    instead of producing a generic object.
    """

    def __init__(self) -> None:
        self._adapter: TypeAdapter = TypeAdapter(AnyJVMEvent)

    def encode(self, message: Any) -> bytes:
        if isinstance(message, JVMEvent):
            envelope = {"v": WIRE_VERSION, "event": message.model_dump(mode="json")}
        elif isinstance(message, str):
            envelope = {"v": WIRE_VERSION, "line": message}
        else:
            raise CodecError(f"Cannot encode {type(message).__name__}")
        return json.dumps(envelope, separators=(",", ":")).encode("utf-8")

    def decode(self, data: bytes) -> str | JVMEvent:
        try:
            envelope = json.loads(data)
        except (TypeError, ValueError) as e:
            raise CodecError(f"Malformed envelope: {e}") from e

        if not isinstance(envelope, dict):
            raise CodecError("Envelope must be an object")
        if envelope.get("v") != WIRE_VERSION:
            raise CodecError(f"Unsupported wire version: {envelope.get('v')!r}")

        if "line" in envelope:
            return envelope["line"]
        if "event" in envelope:
            try:
                return self._adapter.validate_python(envelope["event"])
            except ValidationError as e:
                raise CodecError(f"Invalid event payload: {e}") from e
        raise CodecError("Envelope carries neither a line nor an event")
