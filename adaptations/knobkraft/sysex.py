#
#   Copyright (c) 2022 Christof Ruch. All rights reserved.
#
#   Dual licensed: Distributed under Affero GPL license by default, an MIT license is available for purchase
#
from typing import List, Tuple, Sequence
import binascii

SYSEX_START = 0xf0
SYSEX_END = 0xf7


def load_sysex(filename, as_single_list=False) -> List[List[int]]:
    with open(filename, mode="rb") as midi_messages:
        content = midi_messages.read()
        if as_single_list:
            return list(content)
        return splitSysexMessage(list(content))


def save_sysex(filename, messages: List[List[int]]):
    with open(filename, mode="wb") as midi_messages:
        for message in messages:
            midi_messages.write(bytes(message))


def splitSysexMessage(messages: Sequence[int]) -> List[List[int]]:
    return [list(messages[start:end]) for start, end in findSysexDelimiters(messages)]


def stringToSyx(string):
    return list(binascii.unhexlify(string.replace(' ', '')))


def findSysexDelimiters(messages: Sequence[int], max_no=None) -> List[Tuple[int, int]]:
    result = []
    start = None
    for read in range(len(messages)):
        if messages[read] == SYSEX_START:
            start = read
        elif messages[read] == SYSEX_END and start is not None:
            result.append((start, read + 1))
            start = None
            if max_no is not None and len(result) >= max_no:
                # Early abort when we only want the first max_no messages
                return result
    return result


def sysex_message(payload: Sequence[int]) -> List[int]:
    # Wrap the data bytes into sysex start and end
    return [SYSEX_START] + list(payload) + [SYSEX_END]


def is_sysex(message: Sequence[int]) -> bool:
    return len(message) >= 2 and message[0] == SYSEX_START and message[-1] == SYSEX_END


def sysex_payload(message: Sequence[int]) -> List[int]:
    # The data bytes between 0xf0 and 0xf7. Anything that is not a single complete sysex has no payload
    if not is_sysex(message):
        return []
    return list(message[1:-1])


def to_hex_str(data: Sequence[int]):
    return ' '.join([f'{i:02X}' for i in data])
