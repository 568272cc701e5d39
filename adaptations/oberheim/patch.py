#
#   Copyright (c) 2020 Christof Ruch. All rights reserved.
#
#   Dual licensed: Distributed under Affero GPL license by default, an MIT license is available for purchase
#
import hashlib
import re
import unicodedata
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from oberheim import nibble, protocol
from oberheim.constants import PATCHES_PER_BANK, NUMBER_OF_BANKS, TOTAL_PATCHES, PATCH_NAME_LENGTH, PATCH_DATA_SIZE
from oberheim.errors import OutOfRangeArgument, MalformedLength, MalformedMessage, BankDumpNotSupported

# ICU and friends produce this when a character has no ASCII representation
SUBSTITUTION_MARKER = 0x1a

_DEFAULT_NAME = re.compile(r"BNK[0-9]: [0-9][0-9]", re.IGNORECASE)

# The first 8 bytes are the name. The Matrix 1000 never displays it and clears it when a patch is sent to it and back,
# so it must not take part in duplicate detection
BLANK_OUT_ZONES = [(0, PATCH_NAME_LENGTH)]


def to_bank_and_slot(program_number: int) -> Tuple[int, int]:
    if not 0 <= program_number < TOTAL_PATCHES:
        raise OutOfRangeArgument("Program number", program_number, 0, TOTAL_PATCHES - 1)
    return program_number // PATCHES_PER_BANK, program_number % PATCHES_PER_BANK


def from_bank_and_slot(bank: int, slot: int) -> int:
    if not 0 <= bank < NUMBER_OF_BANKS:
        raise OutOfRangeArgument("Bank", bank, 0, NUMBER_OF_BANKS - 1)
    if not 0 <= slot < PATCHES_PER_BANK:
        raise OutOfRangeArgument("Slot", slot, 0, PATCHES_PER_BANK - 1)
    return bank * PATCHES_PER_BANK + slot


def friendly_program_name(program_number: int) -> str:
    # The Matrix does a 3 digit display, with the first patch being "000" and the highest being "999"
    return "%03d" % program_number


def friendly_bank_name(bank: int) -> str:
    if not 0 <= bank < NUMBER_OF_BANKS:
        raise OutOfRangeArgument("Bank", bank, 0, NUMBER_OF_BANKS - 1)
    return "%03d - %03d" % (bank * PATCHES_PER_BANK, (bank + 1) * PATCHES_PER_BANK - 1)


def to_ascii_with_marker(text: str) -> bytes:
    """
    Bring an arbitrary unicode string into 7 bit ASCII. Every character that has no ASCII equivalent becomes the
    substitution marker 0x1a, the same way a US-ASCII converter would do it.
    """
    composed = unicodedata.normalize("NFC", text)
    return bytes(ord(c) if ord(c) < 0x80 else SUBSTITUTION_MARKER for c in composed)


def decode_name(data: Sequence[int]) -> str:
    name = []
    for value in data[:PATCH_NAME_LENGTH]:
        if value < 0x20:
            # Old factory banks store the letters as their 1-based number in the alphabet
            value += ord('A') - 1
        name.append(chr(value))
    return ''.join(name)


def encode_name(ascii_name: Sequence[int]) -> List[int]:
    result = []
    for i in range(PATCH_NAME_LENGTH):
        if i >= len(ascii_name):
            result.append(0x20)
            continue
        c = ascii_name[i]
        if c == SUBSTITUTION_MARKER:
            result.append(0x40)  # @
        elif c > 0x5f:
            # Only 6 bits are used for the name, so there are only uppercase letters. This brings 0x7f down to 0x5f
            result.append(c - 0x20)
        elif c < 0x20:
            result.append(0x5f)  # _
        else:
            result.append(c)
    return result


def is_default_name(name: str) -> bool:
    return _DEFAULT_NAME.search(name) is not None


@dataclass
class Matrix1000Patch:
    data: List[int]
    program_number: Optional[int] = None
    _fingerprint: Optional[str] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        if len(self.data) != PATCH_DATA_SIZE:
            raise MalformedLength(f"Patch data must be {PATCH_DATA_SIZE} bytes, got {len(self.data)}", len(self.data))
        self.data = list(self.data)
        if self.program_number is not None and not 0 <= self.program_number < TOTAL_PATCHES:
            raise OutOfRangeArgument("Program number", self.program_number, 0, TOTAL_PATCHES - 1)

    @property
    def name(self) -> str:
        return decode_name(self.data)

    def set_name(self, name: str):
        self.data[0:PATCH_NAME_LENGTH] = encode_name(to_ascii_with_marker(name))
        self._fingerprint = None

    def is_default_name(self) -> bool:
        return is_default_name(self.name)

    def friendly_number(self) -> str:
        return friendly_program_name(self.program_number) if self.program_number is not None else "---"

    def blanked_out(self) -> List[int]:
        result = list(self.data)
        for start, end in BLANK_OUT_ZONES:
            result[start:end] = [0] * (end - start)
        return result

    def fingerprint(self) -> str:
        if self._fingerprint is None:
            self._fingerprint = hashlib.md5(bytearray(self.blanked_out())).hexdigest()
        return self._fingerprint


def _unpack_patch_data(wire: Sequence[int]) -> List[int]:
    data = nibble.unpack(wire)
    if len(data) != PATCH_DATA_SIZE:
        raise MalformedLength(f"Patch data must be {PATCH_DATA_SIZE} bytes, got {len(data)}", len(data))
    return data


def patch_from_program_dump(payload: Sequence[int], bank: Optional[int] = None) -> Matrix1000Patch:
    """
    Decode a single patch data message. The message only carries the number inside the current bank, so the bank
    is only known if the caller remembers which bank was selected.
    """
    if not protocol.is_single_program_dump(payload):
        raise MalformedMessage("Not a single program dump of the Matrix 1000")
    program_number = from_bank_and_slot(bank, payload[3]) if bank is not None else payload[3]
    return Matrix1000Patch(_unpack_patch_data(payload[4:]), program_number)


def patch_from_edit_buffer(payload: Sequence[int]) -> Matrix1000Patch:
    if not (protocol.is_edit_buffer_dump(payload) or protocol.is_edit_buffer_upload(payload)):
        raise MalformedMessage("Not an edit buffer dump of the Matrix 1000")
    return Matrix1000Patch(_unpack_patch_data(payload[4:]))


def patches_from_bank_message(payload: Sequence[int]) -> List[Matrix1000Patch]:
    # Coming here is a logic error, the Matrix answers a bank request with lots of individual patch dumps
    raise BankDumpNotSupported("The Matrix 1000 has no bank dump message, collect the program dumps with a BankDumpAssembler")
