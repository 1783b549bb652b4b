import pytest
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../../')))

from tonemodem.errors import InvalidMessage
from tonemodem.protocol.bits import text_to_bits, expand_fec, reduce_fec, bits_to_text


def test_text_to_bits_msb_first():
    assert text_to_bits("Hi") == "0100100001101001"
    assert text_to_bits("") == ""
    assert text_to_bits("\xff") == "11111111"


def test_rejects_characters_wider_than_a_byte():
    with pytest.raises(InvalidMessage):
        text_to_bits("price: €5")


def test_expand_fec():
    assert expand_fec("10", 3) == "111000"
    assert expand_fec("10", 1) == "10"
    assert expand_fec("10", 0) == "10"


def test_reduce_fec_majority_vote():
    assert reduce_fec("111000", 3) == "10"
    # One flipped bit per group is corrected
    assert reduce_fec("101010", 3) == "10"
    # Trailing incomplete group is dropped
    assert reduce_fec("1110", 3) == "1"
    # Ties go to '1'
    assert reduce_fec("1000", 2) == "10"


def test_reduce_fec_is_pass_through_for_single_redundancy():
    assert reduce_fec("0100100", 1) == "0100100"


def test_bits_to_text():
    assert bits_to_text("0100100001101001") == "Hi"
    assert bits_to_text("") == ""
    assert bits_to_text("0100") == ""


def test_incomplete_trailing_byte_is_dropped():
    assert bits_to_text("0100100001") == "H"


@pytest.mark.parametrize("code", [0, 1, 10, 31, 127, 128, 159])
def test_control_codes_are_dropped(code):
    assert bits_to_text(format(code, '08b')) == ""


@pytest.mark.parametrize("code", [32, 65, 126, 160, 255])
def test_printable_codes_are_kept(code):
    assert bits_to_text(format(code, '08b')) == chr(code)


def test_unparseable_group_becomes_placeholder():
    assert bits_to_text("01a00001" + "01000001") == "?A"


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-q"]))
