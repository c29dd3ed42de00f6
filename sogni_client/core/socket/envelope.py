"""
Wire envelope codec

Every frame is {"type": str, "data": base64(JSON payload)}, in both directions.
"""
import binascii
import json
from typing import Any, Tuple, Union

import pybase64

from ..exceptions import ProtocolError


def encode_message(message_type: str, data: Any) -> str:
    payload = pybase64.b64encode(json.dumps(data).encode("utf-8")).decode("ascii")
    return json.dumps({"type": message_type, "data": payload})


def decode_message(frame: Union[str, bytes]) -> Tuple[str, Any]:
    """
    Decode one inbound frame

    Returns:
        (event type, decoded payload or None)

    Raises:
        ProtocolError: If the envelope or its payload is malformed
    """
    try:
        if isinstance(frame, (bytes, bytearray)):
            frame = frame.decode("utf-8")
        envelope = json.loads(frame)
    except (UnicodeDecodeError, ValueError) as e:
        raise ProtocolError(f"Undecodable envelope: {e}") from e

    if not isinstance(envelope, dict) or not isinstance(envelope.get("type"), str):
        raise ProtocolError("Envelope has no 'type'")

    raw = envelope.get("data")
    if not raw:
        return envelope["type"], None
    try:
        payload = json.loads(pybase64.b64decode(raw, validate=True).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError, TypeError) as e:
        raise ProtocolError(f"Undecodable payload for '{envelope['type']}': {e}") from e
    return envelope["type"], payload
