import pytest

from graalnet.codec import (
    GUINT8_MAX,
    GUINT16_MAX,
    GUINT24_MAX,
    GUINT32_MAX,
    GUINT40_MAX,
    GraalIoError,
    ValueExceedsMaximumError,
    decode_bits,
    encode_bits,
    guint_max,
)


@pytest.mark.parametrize(
    "count, expected",
    [
        (1, 0xDF),
        (2, 0x705F),
        (3, 0x38305F),
        (4, 0x1C18305F),
        (5, 0xFFFFFFFF),
    ],
)
def test_guint_max(count, expected):
    assert guint_max(count) == expected


def test_module_constants_match_guint_max():
    assert [GUINT8_MAX, GUINT16_MAX, GUINT24_MAX, GUINT32_MAX, GUINT40_MAX] == [
        guint_max(n) for n in range(1, 6)
    ]


@pytest.mark.parametrize("count", [0, 6, 8])
def test_guint_max_unsupported(count):
    with pytest.raises(GraalIoError, match="Unsupported byte count"):
        guint_max(count)


def test_encode_zero_is_space():
    assert encode_bits(0, 2) == b"  "


def test_decode_offset():
    assert decode_bits(b" ") == 0


@pytest.mark.parametrize(
    "value, count",
    [(0, 1), (5, 1), (127, 1), (128, 2), (300, 2), (16383, 2), (123456, 3), (2**28 - 1, 4), (GUINT40_MAX, 5)],
)
def test_round_trip(value, count):
    encoded = encode_bits(value, count)
    assert len(encoded) == count
    assert decode_bits(encoded) == value


def test_encoded_bytes_are_printable_offset():
    for byte in encode_bits(GUINT40_MAX, 5):
        assert 32 <= byte < 32 + 128


def test_value_exceeds_maximum_message():
    err = ValueExceedsMaximumError(500, GUINT8_MAX)
    assert err.value == 500
    assert err.maximum == GUINT8_MAX
    assert "500" in str(err) and str(GUINT8_MAX) in str(err)
    assert isinstance(err, GraalIoError)