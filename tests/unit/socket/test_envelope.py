"""
Unit tests for the wire envelope codec and close code taxonomy
"""
import json
import pytest

from conftest import make_frame
from sogni_client.core.exceptions import ProtocolError
from sogni_client.core.socket import ErrorCode, decode_message, encode_message, is_not_recoverable


class TestEnvelope:
    """Test envelope framing"""

    def test_encode_uses_base64_json_payload(self):
        frame = json.loads(encode_message("jobRequest", {"jobID": "p1"}))
        assert frame["type"] == "jobRequest"
        assert decode_message(json.dumps(frame)) == ("jobRequest", {"jobID": "p1"})

    def test_decode_frame_without_data(self):
        assert decode_message('{"type": "ping"}') == ("ping", None)

    def test_decode_bytes_frame(self):
        frame = make_frame("jobState", {"type": "queued"}).encode()
        assert decode_message(frame) == ("jobState", {"type": "queued"})

    @pytest.mark.parametrize("frame", [
        "not json",
        "[]",
        '{"data": "e30="}',
        '{"type": 5}',
        '{"type": "jobState", "data": "***"}',
        '{"type": "jobState", "data": "bm90IGpzb24="}',
    ])
    def test_malformed_frames_raise_protocol_error(self, frame):
        with pytest.raises(ProtocolError):
            decode_message(frame)


class TestErrorCodes:
    """Test close code classification"""

    @pytest.mark.parametrize("code", [4010, 4015, 4021])
    def test_not_recoverable(self, code):
        assert is_not_recoverable(code)

    @pytest.mark.parametrize("code", [1000, 1001, 1006, 1011, 4000, 4020])
    def test_recoverable(self, code):
        assert not is_not_recoverable(code)

    def test_named_codes(self):
        assert ErrorCode.APP_ID_BLOCKED == 4010
        assert ErrorCode.SWITCH_CONNECTION == 4015
        assert ErrorCode.AUTH_ERROR == 4021
