#
#   Copyright (c) 2020 Christof Ruch. All rights reserved.
#
#   Dual licensed: Distributed under Affero GPL license by default, an MIT license is available for purchase
#
#   Builders for the messages we send to the Matrix 1000. They return complete sysex messages including
#   0xf0 and 0xf7, and validate all numbers before creating anything.
#
from typing import List, Sequence

from knobkraft.sysex import sysex_message
from oberheim import nibble
from oberheim.constants import OBERHEIM_ID, MATRIX6_1000_ID, Command, RequestType, NUMBER_OF_BANKS, PATCHES_PER_BANK, \
    TOTAL_PATCHES, UNIVERSAL_NON_REALTIME, GENERAL_INFORMATION, IDENTITY_REQUEST, PATCH_DATA_SIZE
from oberheim.errors import OutOfRangeArgument, MalformedLength
from oberheim.patch import to_bank_and_slot


def _check_range(what: str, value: int, low: int, high: int):
    if not low <= value <= high:
        raise OutOfRangeArgument(what, value, low, high)


def _matrix_message(command: Command, *data: int) -> List[int]:
    return sysex_message([OBERHEIM_ID, MATRIX6_1000_ID, int(command)] + [int(x) for x in data])


def request_data(request_type: RequestType, number: int = 0) -> List[int]:
    """
    04H - Request Data

    F0H 10H 06H 04H <type> <number> F7H

    <number> is the patch in the current bank for a single patch request, and 0 for all other types
    """
    try:
        request_type = RequestType(request_type)
    except ValueError:
        raise OutOfRangeArgument("Request type", request_type, int(min(RequestType)), int(max(RequestType))) from None
    if request_type == RequestType.SINGLE_PATCH:
        _check_range("Patch number in bank", number, 0, PATCHES_PER_BANK - 1)
    else:
        number = 0
    return _matrix_message(Command.REQUEST_DATA, request_type, number)


def request_edit_buffer() -> List[int]:
    return request_data(RequestType.EDIT_BUFFER)


def request_master_settings() -> List[int]:
    return request_data(RequestType.MASTER)


def bank_select(bank: int) -> List[int]:
    _check_range("Bank", bank, 0, NUMBER_OF_BANKS - 1)
    return _matrix_message(Command.SET_BANK, bank)


def bank_unlock() -> List[int]:
    return _matrix_message(Command.BANK_UNLOCK)


def store_edit_buffer(program_number: int) -> List[int]:
    _check_range("Program number", program_number, 0, TOTAL_PATCHES - 1)
    bank, slot = to_bank_and_slot(program_number)
    # The last byte is the group mode flag, which we always leave off
    return _matrix_message(Command.STORE_EDIT_BUFFER, slot, bank, 0)


def parameter_edit(parameter: int, value: int) -> List[int]:
    _check_range("Parameter", parameter, 0, 0x7f)
    _check_range("Parameter value", value, 0, 0x7f)
    return _matrix_message(Command.PARAMETER_EDIT, parameter, value)


def device_inquiry(channel: int) -> List[int]:
    # Universal device inquiry, 0x7f addresses all devices
    _check_range("Device inquiry channel", channel, 0, 0x7f)
    return sysex_message([UNIVERSAL_NON_REALTIME, channel, GENERAL_INFORMATION, IDENTITY_REQUEST])


def request_patch(program_number: int) -> List[List[int]]:
    _check_range("Program number", program_number, 0, TOTAL_PATCHES - 1)
    bank, slot = to_bank_and_slot(program_number)
    return [bank_select(bank), bank_unlock(), request_data(RequestType.SINGLE_PATCH, slot)]


def request_bank_dump(bank: int) -> List[List[int]]:
    # The Matrix replies with 100 single patch data messages followed by the master parameters
    return [bank_select(bank), request_data(RequestType.BANK_AND_MASTER)]


def _check_patch_data(data: Sequence[int]):
    if len(data) != PATCH_DATA_SIZE:
        raise MalformedLength(f"Patch data must be {PATCH_DATA_SIZE} bytes, got {len(data)}", len(data))


def edit_buffer_message(data: Sequence[int]) -> List[int]:
    _check_patch_data(data)
    return _matrix_message(Command.SINGLE_PATCH_TO_EDIT_BUFFER, 0x00, *nibble.pack(data))


def program_dump_message(data: Sequence[int], program_number: int) -> List[int]:
    # This stores into the current bank, so it needs to be preceded by a bank_select() to be complete
    _check_patch_data(data)
    _check_range("Program number", program_number, 0, TOTAL_PATCHES - 1)
    _, slot = to_bank_and_slot(program_number)
    return _matrix_message(Command.SINGLE_PATCH_DATA, slot, *nibble.pack(data))
