import pytest

from zeicube.core.orientation import decode, decode_payload
from zeicube.core.types import Orientation


@pytest.mark.parametrize("raw", range(0, 9))
def test_valid_values_map_to_same_face(raw):
    assert decode(raw) is Orientation(raw)
    assert int(decode(raw)) == raw


@pytest.mark.parametrize("raw", [9, 10, 0x7F, 0x80, 0xFF, 256, -1])
def test_out_of_range_clamps_to_vertical(raw):
    assert decode(raw) is Orientation.VERTICAL


def test_decode_is_total_over_bytes():
    for raw in range(256):
        assert isinstance(decode(raw), Orientation)


def test_payload_uses_first_byte():
    assert decode_payload(b"\x04\x09") is Orientation.FACE4
    assert decode_payload(bytearray([6])) is Orientation.FACE6


def test_empty_payload_is_vertical():
    assert decode_payload(b"") is Orientation.VERTICAL
