#
#   Copyright (c) 2020 Christof Ruch. All rights reserved.
#
#   Dual licensed: Distributed under Affero GPL license by default, an MIT license is available for purchase
#
from typing import List, Sequence

from oberheim.errors import ChecksumMismatch, InvalidNibble, MalformedLength, MalformedMessage


def checksum(data: Sequence[int]) -> int:
    return sum(data) & 0x7f


def pack(data: Sequence[int]) -> List[int]:
    """
    Escape 8 bit data into the 4 bit per byte wire format of the Matrix, low nibble first, and append
    the 7 bit checksum of the original bytes.
    """
    result = []
    for b in data:
        if not 0 <= b < 256:
            raise MalformedMessage(f"Can't pack value {b}, only bytes are allowed")
        result.append(b & 0x0f)
        result.append((b >> 4) & 0x0f)
    result.append(checksum(data))
    return result


def unpack(wire: Sequence[int]) -> List[int]:
    """
    Inverse of pack(). The wire data must consist of nibble pairs plus the trailing checksum byte.
    Raises MalformedLength or ChecksumMismatch (InvalidNibble for bytes above 0x0f), and never returns partial data.
    """
    if len(wire) % 2 != 1:
        raise MalformedLength(f"Nibble data must have odd length (pairs plus checksum), got {len(wire)} bytes", len(wire))
    result = []
    for index in range(0, len(wire) - 1, 2):
        low, high = wire[index], wire[index + 1]
        if low > 0x0f:
            raise InvalidNibble(index, low)
        if high > 0x0f:
            raise InvalidNibble(index + 1, high)
        result.append(low | (high << 4))
    expected = checksum(result)
    if expected != wire[-1]:
        raise ChecksumMismatch(expected, wire[-1])
    return result
