#
#   Copyright (c) 2020 Christof Ruch. All rights reserved.
#
#   Dual licensed: Distributed under Affero GPL license by default, an MIT license is available for purchase
#
import logging
import sys
from typing import List, Optional, Tuple

import knobkraft
import testing
from knobkraft import knobkraft_api
from knobkraft.template import SynthBase, BankDescriptor, EditBufferCapability, ProgramDumpCapability, BankDumpCapability, \
    NameCapability
from oberheim import protocol, requests, nibble
from oberheim.bank_dump import is_bank_complete, distinct_program_dumps
from oberheim.constants import Command, NUMBER_OF_BANKS, PATCHES_PER_BANK, WRITABLE_BANKS, DEVICE_DETECT_WAIT_MS
from oberheim.patch import Matrix1000Patch, patch_from_program_dump, patch_from_edit_buffer, patches_from_bank_message, \
    to_bank_and_slot, from_bank_and_slot, friendly_bank_name, friendly_program_name, is_default_name
from oberheim.errors import MalformedMessage


def _flatten(messages: List[List[int]]) -> List[int]:
    return [x for m in messages for x in m]


def _payloads(message: List[int]) -> List[List[int]]:
    # The host might hand us several sysex messages in one list, e.g. a bank select followed by a program dump
    return [knobkraft.sysex_payload(m) for m in knobkraft.splitSysexMessage(message)]


class Matrix1000Adaptation(SynthBase, EditBufferCapability, ProgramDumpCapability, BankDumpCapability, NameCapability):

    def __init__(self):
        super().__init__("Oberheim Matrix 1000",
                         [BankDescriptor(bank=b, name=friendly_bank_name(b), size=PATCHES_PER_BANK, type="Patch", isROM=b >= WRITABLE_BANKS)
                          for b in range(NUMBER_OF_BANKS)],
                         needs_channel_specific_detection=True,
                         device_detect_ms=DEVICE_DETECT_WAIT_MS)

    @knobkraft_api
    def setupHelp(self) -> str:
        return ("Only banks 0 and 1 (000 - 199) of the Matrix 1000 can be written to. "
                "Switch off memory protect on the device before sending programs to it.")

    @knobkraft_api
    def friendlyBankName(self, bank_number: int) -> str:
        return friendly_bank_name(bank_number)

    @knobkraft_api
    def friendlyProgramName(self, program: int) -> str:
        return friendly_program_name(program)

    @knobkraft_api
    def createDeviceDetectMessage(self, channel: int) -> List[int]:
        return requests.device_inquiry(channel)

    @knobkraft_api
    def channelIfValidDeviceResponse(self, message: List[int]) -> int:
        channel = protocol.device_inquiry_response(knobkraft.sysex_payload(message))
        return channel if channel is not None else -1

    @knobkraft_api
    def createEditBufferRequest(self, channel: int) -> List[int]:
        return requests.request_edit_buffer()

    @knobkraft_api
    def isEditBufferDump(self, message: List[int]) -> bool:
        payload = knobkraft.sysex_payload(message)
        # What the Matrix sends, and what we send to it
        return protocol.is_edit_buffer_dump(payload) or protocol.is_edit_buffer_upload(payload)

    @knobkraft_api
    def convertToEditBuffer(self, channel: int, message: List[int]) -> List[int]:
        patch = self._patch(message)
        return requests.edit_buffer_message(patch.data)

    @knobkraft_api
    def createProgramDumpRequest(self, channel: int, patchNo: int) -> List[int]:
        return _flatten(requests.request_patch(patchNo))

    @knobkraft_api
    def isSingleProgramDump(self, message: List[int]) -> bool:
        bank, dump = self._split_program_dump(message)
        return dump is not None

    @knobkraft_api
    def numberFromDump(self, message: List[int]) -> int:
        bank, dump = self._split_program_dump(message)
        if dump is None:
            return -1
        return from_bank_and_slot(bank, dump[3]) if bank is not None else dump[3]

    @knobkraft_api
    def convertToProgramDump(self, channel: int, message: List[int], program_number: int) -> List[int]:
        patch = self._patch(message)
        bank, _ = to_bank_and_slot(program_number)
        if not self.is_writable(program_number):
            logging.warning(f"Program {friendly_program_name(program_number)} is in a ROM bank, the Matrix 1000 will not store it")
        # Single patch data is stored into the current bank, so select the bank first
        return requests.bank_select(bank) + requests.program_dump_message(patch.data, program_number)

    @knobkraft_api
    def nameFromDump(self, message: List[int]) -> str:
        return self._patch(message).name

    @knobkraft_api
    def renamePatch(self, message: List[int], new_name: str) -> List[int]:
        patch = self._patch(message)
        patch.set_name(new_name)
        result = []
        for payload in _payloads(message):
            if self._carries_patch(payload):
                payload = payload[:4] + nibble.pack(patch.data)
            result.extend(knobkraft.sysex_message(payload))
        return result

    @knobkraft_api
    def isDefaultName(self, patchName: str) -> bool:
        return is_default_name(patchName)

    @knobkraft_api
    def calculateFingerprint(self, message: List[int]) -> str:
        return self._patch(message).fingerprint()

    @knobkraft_api
    def blankedOut(self, message: List[int]) -> List[int]:
        return self._patch(message).blanked_out()

    @knobkraft_api
    def createBankDumpRequest(self, channel: int, bank: int) -> List[int]:
        return _flatten(requests.request_bank_dump(bank))

    @knobkraft_api
    def isPartOfBankDump(self, message: List[int]) -> bool:
        return protocol.is_bank_dump_fragment(knobkraft.sysex_payload(message))

    @knobkraft_api
    def isBankDumpFinished(self, messages: List[List[int]]) -> bool:
        return is_bank_complete([knobkraft.sysex_payload(m) for m in messages])

    @knobkraft_api
    def extractPatchesFromBank(self, messages: List[int]) -> List[int]:
        # Raises, a bank dump of the Matrix is not a single message
        patches_from_bank_message(knobkraft.sysex_payload(messages))
        return []

    @knobkraft_api
    def extractPatchesFromAllBankMessages(self, messages: List[List[int]]) -> List[List[int]]:
        return [knobkraft.sysex_message(p) for p in distinct_program_dumps([knobkraft.sysex_payload(m) for m in messages])]

    @staticmethod
    def _carries_patch(payload: List[int]) -> bool:
        return protocol.is_single_program_dump(payload) or protocol.is_edit_buffer_upload(payload)

    @staticmethod
    def _split_program_dump(message: List[int]) -> Tuple[Optional[int], Optional[List[int]]]:
        # A program dump is either a single patch data message, or a bank select followed by it
        payloads = _payloads(message)
        if len(payloads) == 1 and protocol.is_single_program_dump(payloads[0]):
            return None, payloads[0]
        if (len(payloads) == 2
                and protocol.is_own_sysex(payloads[0])
                and len(payloads[0]) == 4
                and payloads[0][2] == Command.SET_BANK
                and 0 <= payloads[0][3] < NUMBER_OF_BANKS
                and protocol.is_single_program_dump(payloads[1])):
            return payloads[0][3], payloads[1]
        return None, None

    def _patch(self, message: List[int]) -> Matrix1000Patch:
        try:
            bank, dump = self._split_program_dump(message)
            if dump is not None:
                return patch_from_program_dump(dump, bank)
            for payload in _payloads(message):
                if protocol.is_edit_buffer_upload(payload):
                    return patch_from_edit_buffer(payload)
        except MalformedMessage as e:
            logging.warning(f"Corrupt Matrix 1000 patch: {e}")
            raise
        raise Exception("Neither edit buffer nor program dump of a Matrix 1000")


this_module = sys.modules[__name__]
matrix1000 = Matrix1000Adaptation()
matrix1000.install(this_module)


# Test data picked up by test_adaptations.py
def make_test_data():
    # Factory program 216, as sent by a Matrix 1000 after a single program request in bank 2
    patch_from_device = "f01006011002040e040b0402030a0300020103060302000c0000000901030001000c00000000000300020000000f0101000000010000000000040600000000010000000000020302000000080200000100060000000d000f030a03000000000000000009000f0300000000000000000f030d020f030000000000000000000000000f030d0204010000000000000f03080200000f030203080200000000090008020f000f010f020f03000000000000000000000000000000000f03000005000e0102030f030f03000000000000000000000000000000000000000001000f030b0003000f03040000000000000002000f030b000b000f030c000400010209000400020004000a00090c01000a000f03040057f7"
    program = knobkraft.stringToSyx(patch_from_device)

    def programs(data: testing.TestData) -> List[testing.ProgramTestData]:
        yield testing.ProgramTestData(message=program, name='BNK2: 16', number=16, friendly_number="016", rename_name="NEW NAME")
        # Old factory banks store the name as letter numbers, renaming to the same name is not byte identical then
        legacy_name = [0x0d, 0x01, 0x14, 0x12, 0x09, 0x18, 0x20, 0x31]
        legacy = patch_from_program_dump(knobkraft.sysex_payload(program)).data
        legacy[0:8] = legacy_name
        yield testing.ProgramTestData(message=requests.program_dump_message(legacy, 42), name="MATRIX 1", number=42, dont_rename=True)

    def edit_buffers(data: testing.TestData) -> List[testing.ProgramTestData]:
        # The edit buffer reply is a single patch data message for program 0
        yield testing.ProgramTestData(message=program[0:4] + [0x00] + program[5:], name='BNK2: 16', rename_name="FA@ADE")

    def banks(data: testing.TestData) -> List[testing.BankTestData]:
        patch_data = patch_from_program_dump(knobkraft.sysex_payload(program)).data
        dumps = [requests.program_dump_message(patch_data, slot) for slot in range(PATCHES_PER_BANK)]
        # A resent program must neither finish the bank early nor show up twice
        yield testing.BankTestData(messages=dumps[:50] + [dumps[10]] + dumps[50:], expected_patch_count=100)
        yield testing.BankTestData(messages=dumps[:99] + [dumps[98]], expected_patch_count=99, finished=False)

    return testing.TestData(program_generator=programs,
                            edit_buffer_generator=edit_buffers,
                            bank_generator=banks,
                            program_dump_request=(0, 123, "f0 10 06 0a 01 f7 f0 10 06 0c f7 f0 10 06 04 01 17 f7"),
                            device_detect_call="f0 7e 00 06 01 f7",
                            device_detect_reply=("f0 7e 03 06 02 10 06 00 02 00 01 00 05 00 f7", 3),
                            friendly_bank_name=(2, "200 - 299"),
                            not_idempotent=True)
