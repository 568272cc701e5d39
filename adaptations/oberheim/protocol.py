#
#   Copyright (c) 2020 Christof Ruch. All rights reserved.
#
#   Dual licensed: Distributed under Affero GPL license by default, an MIT license is available for purchase
#
#   Classification of incoming Matrix 1000 sysex. All functions work on the sysex payload, i.e. with the
#   0xf0 and 0xf7 framing bytes already stripped (see knobkraft.sysex_payload()).
#
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from oberheim.constants import OBERHEIM_ID, MATRIX6_1000_ID, Command, PATCHES_PER_BANK, UNIVERSAL_NON_REALTIME, \
    GENERAL_INFORMATION, IDENTITY_REPLY, IDENTITY_REPLY_LENGTH


@dataclass(frozen=True)
class Unrecognized:
    pass


@dataclass(frozen=True)
class OwnSysex:
    command: int


@dataclass(frozen=True)
class EditBufferDump:
    pass


@dataclass(frozen=True)
class SingleProgramDump:
    program_number: int


@dataclass(frozen=True)
class DeviceInquiryResponse:
    channel: int


SysexMessageKind = Union[Unrecognized, OwnSysex, EditBufferDump, SingleProgramDump, DeviceInquiryResponse]


def is_own_sysex(payload: Sequence[int]) -> bool:
    return (len(payload) > 1
            and payload[0] == OBERHEIM_ID
            and payload[1] == MATRIX6_1000_ID)


def is_edit_buffer_dump(payload: Sequence[int]) -> bool:
    # Unspecified in the documentation, but a single patch data message for program 0 is what the
    # Matrix sends as reply to an edit buffer request
    return (is_own_sysex(payload)
            and len(payload) > 3
            and payload[2] == Command.SINGLE_PATCH_DATA
            and payload[3] == 0x00)


def is_single_program_dump(payload: Sequence[int]) -> bool:
    return (is_own_sysex(payload)
            and len(payload) > 3
            and payload[2] == Command.SINGLE_PATCH_DATA
            and 0 <= payload[3] < PATCHES_PER_BANK)


def is_bank_dump_fragment(payload: Sequence[int]) -> bool:
    # There is no bank dump message. A bank request makes the Matrix send 100 single program dumps
    return is_single_program_dump(payload)


def is_edit_buffer_upload(payload: Sequence[int]) -> bool:
    return (is_own_sysex(payload)
            and len(payload) > 3
            and payload[2] == Command.SINGLE_PATCH_TO_EDIT_BUFFER)


def is_global_settings_dump(payload: Sequence[int]) -> bool:
    return (is_own_sysex(payload)
            and len(payload) > 2
            and payload[2] == Command.MASTER_PARAMETER_DATA)


def device_inquiry_response(payload: Sequence[int]) -> Optional[int]:
    """
    Returns the MIDI channel reported in a universal device inquiry reply of a Matrix 6/1000, or None.
    Bytes 9 to 12 carry the firmware revision, which we don't look at.
    """
    if (len(payload) == IDENTITY_REPLY_LENGTH
            and payload[0] == UNIVERSAL_NON_REALTIME
            and payload[2] == GENERAL_INFORMATION
            and payload[3] == IDENTITY_REPLY
            and payload[4] == OBERHEIM_ID
            and payload[5] == MATRIX6_1000_ID
            and payload[6] == 0x00
            and payload[8] == 0x00):
        return payload[1]
    return None


def classify(payload: Sequence[int]) -> SysexMessageKind:
    channel = device_inquiry_response(payload)
    if channel is not None:
        return DeviceInquiryResponse(channel)
    # Program 0 is ambiguous, we treat it as the edit buffer reply. Bank dumps use is_bank_dump_fragment() instead
    if is_edit_buffer_dump(payload):
        return EditBufferDump()
    if is_single_program_dump(payload):
        return SingleProgramDump(payload[3])
    if is_own_sysex(payload):
        return OwnSysex(payload[2] if len(payload) > 2 else -1)
    return Unrecognized()
