import pytest

from graalnet.compression import (
    compress_bzip2,
    compress_zlib,
    decompress_bzip2,
    decompress_zlib,
)

SAMPLES = [b"", b"hello world", bytes(range(256)) * 4, b"\n" * 1000]


@pytest.mark.parametrize("data", SAMPLES)
def test_zlib_round_trip(data):
    assert decompress_zlib(compress_zlib(data)) == data


@pytest.mark.parametrize("data", SAMPLES)
def test_bzip2_round_trip(data):
    assert decompress_bzip2(compress_bzip2(data)) == data


def test_zlib_header_byte():
    assert compress_zlib(b"payload")[:1] == b"\x78"


def test_bzip2_magic():
    assert compress_bzip2(b"payload").startswith(b"BZh")


def test_zlib_compresses_repetitive_data():
    data = b"a" * 10000
    assert len(compress_zlib(data)) < len(data)


def test_invalid_zlib_raises():
    with pytest.raises(OSError):
        decompress_zlib(b"not zlib data at all")


def test_invalid_bzip2_raises():
    with pytest.raises(OSError):
        decompress_bzip2(b"not bzip2 data at all")


def test_accepts_bytearray():
    data = bytearray(b"some bytes")
    assert decompress_zlib(compress_zlib(data)) == bytes(data)