"""
Boundary between the modem core and a request/response layer.

The core raises ModemError subclasses; this module turns them into tagged
Success / Failure values with JSON-ready payloads and HTTP-style status codes.
"""
import base64
import logging
from dataclasses import dataclass, field
from typing import Any

from tonemodem.core.modem import ToneModem
from tonemodem.errors import ErrorKind, ModemError, ContainerParseError

logger = logging.getLogger("TONEMODEM.service")

MAX_UPLOAD_BYTES = 5 * 10 * 1024 * 1024
WAV_CONTENT_TYPES = ("audio/wav", "audio/wave", "audio/x-wav")
ENCODED_FILE_NAME = "encoded_melodic.wav"
EMPTY_RESULT_TEXT = "(Empty result)"

STATUS_BY_KIND = {
    ErrorKind.INVALID_MESSAGE: 400,
    ErrorKind.UNSUPPORTED_MEDIA: 400,
    ErrorKind.CONTAINER_PARSE_ERROR: 400,
    ErrorKind.PAYLOAD_TOO_LARGE: 413,
    ErrorKind.SAMPLE_RATE_MISMATCH: 500,
    ErrorKind.SYNC_NOT_FOUND: 500,
    ErrorKind.INSUFFICIENT_BITS: 500,
    ErrorKind.GENERIC_DECODE_ERROR: 500,
}


@dataclass(frozen=True)
class Success:
    value: Any
    payload: dict = field(default_factory=dict)
    status: int = 200
    ok = True

    def to_json(self) -> dict:
        return dict(self.payload)


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    status: int = 500
    details: dict = field(default_factory=dict)
    ok = False

    def to_json(self) -> dict:
        return {"error": self.message}

    @classmethod
    def from_error(cls, error: ModemError, prefix: str = "") -> "Failure":
        return cls(kind=error.kind,
                   message=f"{prefix}{error.message}",
                   status=STATUS_BY_KIND.get(error.kind, 500),
                   details=dict(error.details))


def encode_message(text, modem: ToneModem | None = None):
    """Text field -> WAV bytes (base64 in the JSON payload)."""
    modem = modem or ToneModem()
    if not text:
        return Failure(ErrorKind.INVALID_MESSAGE, "Message required", 400)

    logger.info(f"[Encode] Encoding: {text!r}")
    try:
        wav = modem.encode(text)
    except ModemError as e:
        return Failure.from_error(e)
    except Exception as e:
        logger.exception("Encode error")
        return Failure(ErrorKind.GENERIC_DECODE_ERROR, f"Unknown encoding error: {e}", 500)

    return Success(wav, payload={
        "audioData": base64.b64encode(wav).decode("ascii"),
        "fileName": ENCODED_FILE_NAME,
    })


def decode_upload(data: bytes, content_type: str, modem: ToneModem | None = None):
    """Uploaded audio file -> decoded text."""
    modem = modem or ToneModem()
    if data is None:
        return Failure(ErrorKind.INVALID_MESSAGE, "Audio file required", 400)
    if len(data) > MAX_UPLOAD_BYTES:
        return Failure(ErrorKind.PAYLOAD_TOO_LARGE, "File too large.", 413, {"size": len(data)})
    if not (content_type or "").lower().startswith(WAV_CONTENT_TYPES):
        return Failure(ErrorKind.UNSUPPORTED_MEDIA,
                       "Please convert audio to WAV format before uploading", 400,
                       {"content_type": content_type})

    try:
        text = modem.decode_wav(data)
    except ContainerParseError as e:
        return Failure.from_error(e, prefix="Audio Parse Fail: ")
    except ModemError as e:
        return Failure.from_error(e, prefix="Decode Fail: ")
    except Exception as e:
        logger.exception("Decode error")
        return Failure(ErrorKind.GENERIC_DECODE_ERROR, f"Server Error: {e}", 500)

    return Success(text, payload={"decodedText": text or EMPTY_RESULT_TEXT})
