from enum import Enum


class ErrorKind(Enum):
    CONFIG_WARNING = "config_warning"
    CONTAINER_PARSE_ERROR = "container_parse_error"
    SAMPLE_RATE_MISMATCH = "sample_rate_mismatch"
    SYNC_NOT_FOUND = "sync_not_found"
    INSUFFICIENT_BITS = "insufficient_bits"
    GENERIC_DECODE_ERROR = "generic_decode_error"
    # Raised or reported at the service boundary
    INVALID_MESSAGE = "invalid_message"
    UNSUPPORTED_MEDIA = "unsupported_media"
    PAYLOAD_TOO_LARGE = "payload_too_large"


class ModemError(Exception):
    """Base class for every expected modem failure. Carries a kind and diagnostics."""
    kind = ErrorKind.GENERIC_DECODE_ERROR

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details


class ContainerParseError(ModemError):
    kind = ErrorKind.CONTAINER_PARSE_ERROR


class SampleRateMismatch(ModemError):
    kind = ErrorKind.SAMPLE_RATE_MISMATCH

    def __init__(self, expected, actual):
        super().__init__(f"SR mismatch: File={actual}, Expected={expected}",
                         expected=expected, actual=actual)
        self.expected = expected
        self.actual = actual


class SyncNotFound(ModemError):
    kind = ErrorKind.SYNC_NOT_FOUND

    def __init__(self, max_energy, required_energy):
        super().__init__(f"Sync tone not detected (Max E: {max_energy:.3e})",
                         max_energy=max_energy, required_energy=required_energy)
        self.max_energy = max_energy
        self.required_energy = required_energy


class InsufficientBits(ModemError):
    kind = ErrorKind.INSUFFICIENT_BITS

    def __init__(self, bits, stage):
        if stage == "fec":
            message = f"Insufficient bits after FEC ({bits})"
        else:
            message = f"Insufficient bits decoded ({bits})"
        super().__init__(message, bits=bits, stage=stage)
        self.bits = bits
        self.stage = stage


class GenericDecodeError(ModemError):
    kind = ErrorKind.GENERIC_DECODE_ERROR


class InvalidMessage(ModemError):
    kind = ErrorKind.INVALID_MESSAGE
