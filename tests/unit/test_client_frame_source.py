"""Tests for the client video frame source."""

import struct

import numpy as np
import pytest

from interview_coach.domain.entities import DeviceError
from interview_coach.infrastructure import ClientFrameSource
from interview_coach.infrastructure.client_frame_source import decode_frame


def encode(width: int, height: int, value: int = 0) -> bytes:
    return struct.pack("<II", width, height) + bytes([value]) * (width * height * 4)


def test_decode_frame():
    frame = decode_frame(encode(4, 2, value=7), timestamp=1.5)

    assert frame.width == 4
    assert frame.height == 2
    assert frame.pixels.shape == (2, 4, 4)
    assert frame.pixels.dtype == np.uint8
    assert int(frame.pixels[1, 3, 2]) == 7
    assert frame.timestamp == 1.5


@pytest.mark.parametrize(
    "payload",
    [
        b"\x01\x02",
        encode(4, 2)[:-1],
        struct.pack("<II", 0, 0),
    ],
)
def test_decode_rejects_malformed_payloads(payload):
    with pytest.raises(ValueError):
        decode_frame(payload)


def test_source_starts_unavailable():
    source = ClientFrameSource()

    assert not source.available
    assert source.latest_frame() is None


def test_push_keeps_latest_frame():
    source = ClientFrameSource()

    source.push(encode(2, 2, value=1))
    source.push(encode(2, 2, value=9))

    assert source.available
    assert source.frames_received == 2
    assert int(source.latest_frame().pixels[0, 0, 0]) == 9


def test_mark_unavailable_drops_frame():
    source = ClientFrameSource()
    source.push(encode(2, 2))

    source.mark_unavailable(DeviceError("Permission denied"))

    assert not source.available
    assert source.latest_frame() is None
