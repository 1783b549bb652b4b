import logging
import struct

import numpy as np

from tonemodem.errors import ContainerParseError

logger = logging.getLogger("TONEMODEM.wav")

NUM_CHANNELS = 1  # Mono
BITS_PER_SAMPLE = 16
BYTES_PER_SAMPLE = BITS_PER_SAMPLE // 8
HEADER_SIZE = 44
PCM_FORMAT = 1


def encode_wav(samples: np.ndarray, sample_rate: int) -> bytes:
    """
    Serialize mono float samples in [-1, 1] to a canonical 44-byte-header PCM WAV.
    Samples scale by 32768 and round to the nearest step; +1.0 saturates at 32767.
    """
    x = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    pcm = np.clip(np.rint(x * 32768), -32768, 32767).astype('<i2')
    data_size = pcm.size * NUM_CHANNELS * BYTES_PER_SAMPLE
    block_align = NUM_CHANNELS * BYTES_PER_SAMPLE

    header = (b'RIFF'
              + struct.pack('<I', HEADER_SIZE + data_size - 8)
              + b'WAVE'
              + b'fmt '
              + struct.pack('<I', 16)                          # fmt chunk size
              + struct.pack('<H', PCM_FORMAT)
              + struct.pack('<H', NUM_CHANNELS)
              + struct.pack('<I', sample_rate)
              + struct.pack('<I', sample_rate * block_align)   # byte rate
              + struct.pack('<H', block_align)
              + struct.pack('<H', BITS_PER_SAMPLE)
              + b'data'
              + struct.pack('<I', data_size))
    return header + pcm.tobytes()


def _find_data_chunk(data: bytes):
    """Walk RIFF chunks from offset 12 and return (payload offset, declared size) of 'data'."""
    idx = 12
    while idx + 8 <= len(data):
        chunk_id = data[idx:idx + 4]
        chunk_size = struct.unpack_from('<I', data, idx + 4)[0]
        if chunk_id == b'data':
            return idx + 8, chunk_size
        idx += 8 + chunk_size + (chunk_size % 2)
    return None, 0


def decode_wav(data: bytes):
    """
    Parse a mono 16-bit PCM WAV buffer.

    Returns:
        (samples, sample_rate) with samples as float64 normalized by 32768.
    Raises:
        ContainerParseError for anything that is not mono 16-bit PCM WAV.
    """
    data = bytes(data)
    if len(data) < HEADER_SIZE:
        raise ContainerParseError("File too small", size=len(data))
    if data[0:4] != b'RIFF':
        raise ContainerParseError("No 'RIFF'")
    if data[8:12] != b'WAVE':
        raise ContainerParseError("No 'WAVE'")
    if data[12:16] != b'fmt ':
        raise ContainerParseError("No 'fmt '")

    fmt_size = struct.unpack_from('<I', data, 16)[0]
    if fmt_size < 16:
        raise ContainerParseError("Invalid 'fmt ' size.", fmt_size=fmt_size)
    audio_format, channels, sample_rate = struct.unpack_from('<HHI', data, 20)
    bits_per_sample = struct.unpack_from('<H', data, 34)[0]
    if audio_format != PCM_FORMAT:
        raise ContainerParseError(f"Unsupported format: {audio_format}", audio_format=audio_format)
    if channels != NUM_CHANNELS:
        raise ContainerParseError(f"Unsupported channels: {channels}", channels=channels)
    if bits_per_sample != BITS_PER_SAMPLE:
        raise ContainerParseError(f"Unsupported bits: {bits_per_sample}", bits_per_sample=bits_per_sample)

    offset, size = _find_data_chunk(data)
    if offset is None:
        raise ContainerParseError("'data' chunk not found")
    if offset + size > len(data):
        logger.warning(f"'data' chunk overflow corrected ({size} declared, {len(data) - offset} available).")
        size = len(data) - offset

    num_samples = size // BYTES_PER_SAMPLE
    if num_samples <= 0:
        raise ContainerParseError("No samples.")
    pcm = np.frombuffer(data, dtype='<i2', count=num_samples, offset=offset)
    return pcm.astype(np.float64) / 32768.0, sample_rate


def write_wav(path, samples: np.ndarray, sample_rate: int):
    with open(path, 'wb') as f:
        f.write(encode_wav(samples, sample_rate))


def read_wav(path):
    """Read a WAV file from disk. Returns (samples, sample_rate)."""
    with open(path, 'rb') as f:
        return decode_wav(f.read())
