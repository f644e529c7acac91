"""Tests for the SSE frame codec."""

import json

import pytest

from mcp_chat.core.sse import DONE, SSEDecoder, encode_done, encode_frame, stream_as_sse
from mcp_chat.models.events import TextDelta

STREAM = (
    'data: {"type": "response.created", "response": {"id": "resp_1"}}\n\n'
    'data: {"type": "response.output_text.delta", "delta": "Héllo ✓"}\n\n'
    ": keep-alive comment\n\n"
    'data: {"type": "response.output_text.delta", "delta": " world"}\n\n'
    "data: [DONE]\n\n"
)


def decode_in_chunks(data: bytes, size: int):
    decoder = SSEDecoder()
    frames = []
    for start in range(0, len(data), size):
        frames.extend(decoder.feed(data[start:start + size]))
    frames.extend(decoder.flush())
    return frames


class TestEncoding:
    def test_frame_is_data_line_with_blank_line(self):
        frame = encode_frame({"type": "text-delta", "text": "hi"})
        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        assert json.loads(frame[len("data: "):]) == {"type": "text-delta", "text": "hi"}

    def test_pydantic_models_are_serialized(self):
        frame = encode_frame(TextDelta(text="x"))
        assert json.loads(frame[len("data: "):]) == {"kind": "text_delta", "text": "x"}

    def test_done_token(self):
        assert encode_done() == "data: [DONE]\n\n"


class TestDecoder:
    def test_decodes_whole_stream(self):
        frames = SSEDecoder().feed(STREAM)
        assert frames[0] == {"type": "response.created", "response": {"id": "resp_1"}}
        assert frames[1]["delta"] == "Héllo ✓"
        assert frames[2]["delta"] == " world"
        assert frames[3] is DONE
        assert len(frames) == 4

    @pytest.mark.parametrize("size", [1, 2, 3, 7, 16, 64])
    def test_chunk_boundaries_do_not_change_frames(self, size):
        """Splitting anywhere, even inside a multibyte character, yields the same frames."""
        data = STREAM.encode("utf-8")
        assert decode_in_chunks(data, size) == decode_in_chunks(data, len(data))

    def test_partial_record_waits_for_terminator(self):
        decoder = SSEDecoder()
        assert decoder.feed('data: {"type": "text-delta", ') == []
        assert decoder.feed('"text": "a"}\n') == []
        assert decoder.feed("\n") == [{"type": "text-delta", "text": "a"}]

    def test_crlf_line_endings(self):
        frames = SSEDecoder().feed('data: {"type": "a"}\r\n\r\ndata: [DONE]\r\n\r\n')
        assert frames == [{"type": "a"}, DONE]

    def test_malformed_frames_are_dropped(self):
        decoder = SSEDecoder()
        frames = decoder.feed(
            "data: {not json}\n\n"
            'data: ["no", "type"]\n\n'
            'data: {"text": "missing type"}\n\n'
            'data: {"type": "ok"}\n\n'
        )
        assert frames == [{"type": "ok"}]

    def test_flush_parses_unterminated_tail(self):
        decoder = SSEDecoder()
        assert decoder.feed('data: {"type": "last"}') == []
        assert decoder.flush() == [{"type": "last"}]

    def test_multiline_data_is_joined(self):
        frames = SSEDecoder().feed('data: {"type":\ndata: "joined"}\n\n')
        assert frames == [{"type": "joined"}]


class TestStreamAsSSE:
    @pytest.mark.asyncio
    async def test_ends_with_done(self):
        async def events():
            yield {"type": "text-delta", "text": "a"}
            yield {"type": "text-delta", "text": "b"}

        chunks = [chunk async for chunk in stream_as_sse(events())]
        assert chunks[-1] == encode_done()
        assert len(chunks) == 3

    @pytest.mark.asyncio
    async def test_failure_mid_stream_ends_with_error_frame(self):
        async def events():
            yield {"type": "text-delta", "text": "partial"}
            raise RuntimeError("connection reset")

        chunks = [chunk async for chunk in stream_as_sse(events())]
        assert len(chunks) == 2
        last = json.loads(chunks[-1][len("data: "):])
        assert last == {"type": "error", "error": "connection reset"}
