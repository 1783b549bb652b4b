import logging

from tonemodem.errors import InvalidMessage

logger = logging.getLogger("TONEMODEM.bits")


def text_to_bits(text: str) -> str:
    """8 bits per character, MSB first."""
    bad = [c for c in text if ord(c) > 0xFF]
    if bad:
        raise InvalidMessage(f"Characters outside 8-bit range: {''.join(bad)!r}", characters=bad)
    return "".join(format(ord(c), '08b') for c in text)


def expand_fec(bits: str, redundancy: int) -> str:
    """Repeat every bit `redundancy` times."""
    redundancy = max(1, redundancy)
    if redundancy == 1:
        return bits
    return "".join(b * redundancy for b in bits)


def reduce_fec(bits: str, redundancy: int) -> str:
    """
    Undo expand_fec by majority vote over each group of `redundancy` raw bits.
    Ties go to '1', like the bit decision. A trailing incomplete group is dropped.
    """
    redundancy = max(1, redundancy)
    if redundancy == 1:
        return bits
    out = []
    for i in range(0, len(bits) - redundancy + 1, redundancy):
        group = bits[i:i + redundancy]
        ones = group.count('1')
        out.append('1' if ones >= redundancy - ones else '0')
    return "".join(out)


def is_non_printable(code: int) -> bool:
    return code == 0 or code < 32 or 127 <= code < 160


def bits_to_text(bits: str) -> str:
    """
    Convert whole 8-bit groups to characters. Control codes (0-31, 127-159) become
    empty strings; groups that are not binary become '?'.
    """
    valid = len(bits) - len(bits) % 8
    if valid != len(bits):
        logger.warning(f"[bits_to_text] Truncated {len(bits) - valid} bits.")
    if valid == 0:
        return ""

    chars = []
    for i in range(0, valid, 8):
        group = bits[i:i + 8]
        try:
            code = int(group, 2)
        except ValueError:
            logger.error(f"[bits_to_text] Error parsing byte {group!r}")
            chars.append('?')
            continue
        chars.append('' if is_non_printable(code) else chr(code))
    return "".join(chars)
