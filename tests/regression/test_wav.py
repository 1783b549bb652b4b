import struct
import numpy as np
import pytest
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../../')))

from tonemodem.codec.wav import encode_wav, decode_wav, write_wav, read_wav, HEADER_SIZE
from tonemodem.errors import ContainerParseError, ErrorKind

SR = 44100


@pytest.fixture
def pcm():
    rng = np.random.default_rng(3)
    return rng.uniform(-1, 1, 1000)


def test_canonical_header(pcm):
    wav = encode_wav(pcm, SR)
    assert len(wav) == HEADER_SIZE + 2 * len(pcm)
    riff, riff_size, wave, fmt, fmt_size = struct.unpack_from('<4sI4s4sI', wav, 0)
    assert (riff, wave, fmt) == (b'RIFF', b'WAVE', b'fmt ')
    assert riff_size == len(wav) - 8
    assert fmt_size == 16
    audio_format, channels, rate, byte_rate, align, bits = struct.unpack_from('<HHIIHH', wav, 20)
    assert (audio_format, channels, rate, byte_rate, align, bits) == (1, 1, SR, SR * 2, 2, 16)
    data_id, data_size = struct.unpack_from('<4sI', wav, 36)
    assert data_id == b'data'
    assert data_size == 2 * len(pcm)


def test_scaling_and_clamping():
    wav = encode_wav(np.array([1.0, -1.0, 0.0, 2.0, -3.0, 0.5, -0.5]), SR)
    ints = struct.unpack_from('<7h', wav, HEADER_SIZE)
    assert ints == (32767, -32768, 0, 32767, -32768, 16384, -16384)


def test_round_trip(pcm):
    samples, rate = decode_wav(encode_wav(pcm, SR))
    assert rate == SR
    assert samples.shape == pcm.shape
    assert np.max(np.abs(samples - pcm)) <= 1 / 32768


def test_round_trip_error_is_within_one_step():
    pcm = np.array([0.99, 0.75, 0.3, 1.0, -1.0, -0.99, 1e-6, -1e-6])
    samples, _ = decode_wav(encode_wav(pcm, SR))
    err = np.abs(samples - pcm) * 32768
    assert np.all(err <= 1.0)
    # Only +1.0 needs the saturated step
    assert np.all(err[[0, 1, 2, 4, 5, 6, 7]] <= 0.5)


def test_empty_buffer_encodes_header_only():
    wav = encode_wav(np.zeros(0), SR)
    assert len(wav) == HEADER_SIZE
    with pytest.raises(ContainerParseError, match="No samples"):
        decode_wav(wav)


def _mutate(wav, offset, fmt, value):
    buf = bytearray(wav)
    struct.pack_into(fmt, buf, offset, value)
    return bytes(buf)


@pytest.mark.parametrize("offset, fmt, value, message", [
    (0, '4s', b'RIFX', "No 'RIFF'"),
    (8, '4s', b'AVI ', "No 'WAVE'"),
    (12, '4s', b'junk', "No 'fmt '"),
    (16, '<I', 14, "Invalid 'fmt ' size"),
    (20, '<H', 3, "Unsupported format: 3"),
    (22, '<H', 2, "Unsupported channels: 2"),
    (34, '<H', 8, "Unsupported bits: 8"),
    (36, '4s', b'dat_', "'data' chunk not found"),
])
def test_rejects_unsupported_containers(pcm, offset, fmt, value, message):
    bad = _mutate(encode_wav(pcm, SR), offset, fmt, value)
    with pytest.raises(ContainerParseError) as err:
        decode_wav(bad)
    assert message in str(err.value)
    assert err.value.kind == ErrorKind.CONTAINER_PARSE_ERROR


def test_too_small():
    with pytest.raises(ContainerParseError, match="File too small"):
        decode_wav(b'RIFF\x00\x00')


def test_skips_unknown_odd_sized_chunk(pcm):
    wav = encode_wav(pcm, SR)
    extra = b'LIST' + struct.pack('<I', 5) + b'abcde' + b'\x00'
    patched = wav[:36] + extra + wav[36:]
    samples, rate = decode_wav(patched)
    expected, _ = decode_wav(wav)
    np.testing.assert_array_equal(samples, expected)


def test_overrunning_data_size_is_clipped(pcm):
    wav = _mutate(encode_wav(pcm[:10], SR), 40, '<I', 100000)
    samples, _ = decode_wav(wav)
    assert len(samples) == 10


def test_trailing_partial_sample_is_ignored(pcm):
    wav = encode_wav(pcm[:10], SR) + b'\x7f'
    wav = _mutate(wav, 40, '<I', 21)
    samples, _ = decode_wav(wav)
    assert len(samples) == 10


def test_file_helpers(tmp_path, pcm):
    path = tmp_path / "pcm.wav"
    write_wav(path, pcm, 8000)
    samples, rate = read_wav(path)
    assert rate == 8000
    assert len(samples) == len(pcm)


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-q"]))
