# The module implements the server-sent-event frame codec used on both sides of the relay.
# Author: Shibo Li
# Date: 2025-06-20
# Version: 0.1.0

import codecs
import json
from typing import Any, AsyncIterator, Dict, List, Union
from pydantic import BaseModel
from mcp_chat.utils.logger import console

DONE_TOKEN = "[DONE]"


class _DoneSentinel:
    """Marker yielded by the decoder for the `data: [DONE]` frame."""

    def __repr__(self) -> str:
        return "DONE"


DONE = _DoneSentinel()

Frame = Union[Dict[str, Any], _DoneSentinel]


def encode_frame(payload: Union[Dict[str, Any], BaseModel]) -> str:
    """Serializes one event as a `data: <json>` frame."""
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json", exclude_none=True)
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def encode_done() -> str:
    return f"data: {DONE_TOKEN}\n\n"


class SSEDecoder:
    """
    Incremental decoder for `data: <json>` event streams.

    Chunks may split a record (or a multibyte character) anywhere; records are
    only parsed once their terminating blank line has arrived. Records that are
    not valid JSON objects with a string `type` are logged and dropped so that a
    single bad frame never ends the stream.
    """

    def __init__(self):
        self._buffer = ""
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk: Union[str, bytes]) -> List[Frame]:
        if isinstance(chunk, bytes):
            chunk = self._utf8.decode(chunk)
        self._buffer = (self._buffer + chunk).replace("\r\n", "\n")

        frames: List[Frame] = []
        while "\n\n" in self._buffer:
            record, self._buffer = self._buffer.split("\n\n", 1)
            frame = self._parse_record(record)
            if frame is not None:
                frames.append(frame)
        return frames

    def flush(self) -> List[Frame]:
        """Parses whatever is left once the stream has ended."""
        tail = self._utf8.decode(b"", final=True)
        remaining = (self._buffer + tail).replace("\r\n", "\n")
        self._buffer = ""
        frames: List[Frame] = []
        for record in remaining.split("\n\n"):
            frame = self._parse_record(record)
            if frame is not None:
                frames.append(frame)
        return frames

    def _parse_record(self, record: str):
        data_lines = []
        for line in record.split("\n"):
            if not line.startswith("data:"):
                # event:, id:, retry: and ':' comments carry nothing we use
                continue
            value = line[5:]
            if value.startswith(" "):
                value = value[1:]
            data_lines.append(value)

        if not data_lines:
            return None

        data = "\n".join(data_lines).strip()
        if not data:
            return None
        if data == DONE_TOKEN:
            return DONE

        try:
            payload = json.loads(data)
        except json.JSONDecodeError as e:
            console.warning(f"Dropping malformed SSE frame ({e}): {data[:200]}")
            return None

        if not isinstance(payload, dict) or not isinstance(payload.get("type"), str):
            console.warning(f"Dropping SSE frame without a type discriminator: {data[:200]}")
            return None
        return payload


async def stream_as_sse(events: AsyncIterator[Union[Dict[str, Any], BaseModel]]) -> AsyncIterator[str]:
    """
    Republishes an event iterator as SSE frames.

    The stream always ends with either `[DONE]` or an `error` frame, even when
    the upstream iterator raises halfway through.
    """
    try:
        async for event in events:
            yield encode_frame(event)
    except Exception as e:
        console.exception("Upstream stream failed while relaying.")
        yield encode_frame({"type": "error", "error": str(e) or "Upstream stream failed."})
        return
    yield encode_done()
