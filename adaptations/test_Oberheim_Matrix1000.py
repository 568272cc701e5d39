import logging

import pytest

import knobkraft
import Oberheim_Matrix1000 as matrix1000
from oberheim import requests
from oberheim.errors import BankDumpNotSupported, ChecksumMismatch


def _program(number=5, name=b"STRINGS "):
    data = list(name) + [0x22] * 126
    return requests.program_dump_message(data, number)


def test_banks():
    banks = matrix1000.bankDescriptors()
    assert len(banks) == 10 == matrix1000.numberOfBanks()
    assert matrix1000.numberOfPatchesPerBank() == 100
    assert [b["isROM"] for b in banks] == [False, False] + [True] * 8
    assert banks[9]["name"] == "900 - 999"


def test_device_detection():
    assert matrix1000.needsChannelSpecificDetection()
    assert matrix1000.deviceDetectWaitMilliseconds() == 200
    assert matrix1000.channelIfValidDeviceResponse(_program()) == -1


def test_edit_buffer_request():
    assert matrix1000.createEditBufferRequest(0) == [0xf0, 0x10, 0x06, 0x04, 0x04, 0x00, 0xf7]


def test_edit_buffer_upload_is_edit_buffer():
    edit_buffer = matrix1000.convertToEditBuffer(0, _program())
    assert edit_buffer[:5] == [0xf0, 0x10, 0x06, 0x0d, 0x00]
    assert matrix1000.isEditBufferDump(edit_buffer)
    assert not matrix1000.isSingleProgramDump(edit_buffer)
    assert matrix1000.nameFromDump(edit_buffer) == "STRINGS "


def test_program_dump_carries_bank():
    moved = matrix1000.convertToProgramDump(0, _program(), 150)
    messages = knobkraft.splitSysexMessage(moved)
    assert messages[0] == [0xf0, 0x10, 0x06, 0x0a, 0x01, 0xf7]
    assert messages[1][:5] == [0xf0, 0x10, 0x06, 0x01, 50]
    assert matrix1000.numberFromDump(moved) == 150
    assert matrix1000.numberFromDump(_program(77)) == 77


def test_program_dump_to_rom_warns(caplog):
    with caplog.at_level(logging.WARNING):
        matrix1000.convertToProgramDump(0, _program(), 523)
    assert "ROM" in caplog.text


def test_rename_keeps_bank_select():
    moved = matrix1000.convertToProgramDump(0, _program(), 150)
    renamed = matrix1000.renamePatch(moved, "Pads")
    assert matrix1000.numberFromDump(renamed) == 150
    assert matrix1000.nameFromDump(renamed) == "PADS    "


def test_not_a_patch():
    assert not matrix1000.isSingleProgramDump(requests.bank_unlock())
    assert matrix1000.numberFromDump(requests.bank_unlock()) == -1
    with pytest.raises(Exception):
        matrix1000.nameFromDump(requests.bank_unlock())


def test_corrupt_patch_is_reported(caplog):
    broken = _program()
    broken[-2] ^= 0x01
    with pytest.raises(ChecksumMismatch):
        matrix1000.nameFromDump(broken)
    assert "Corrupt" in caplog.text


def test_default_names():
    assert matrix1000.isDefaultName("BNK0: 42")
    assert not matrix1000.isDefaultName("STRINGS ")


def test_bank_requests():
    assert matrix1000.createBankDumpRequest(0, 1) == [0xf0, 0x10, 0x06, 0x0a, 0x01, 0xf7, 0xf0, 0x10, 0x06, 0x04, 0x00, 0x00, 0xf7]
    with pytest.raises(BankDumpNotSupported):
        matrix1000.extractPatchesFromBank(_program())


def test_help_mentions_writable_banks():
    assert "000 - 199" in matrix1000.setupHelp()


def test_invalid_bank_select_is_no_program_dump():
    with_bad_bank = knobkraft.sysex_message([0x10, 0x06, 0x0a, 0x0a]) + _program()
    assert not matrix1000.isSingleProgramDump(with_bad_bank)
    assert matrix1000.numberFromDump(with_bad_bank) == -1
    with pytest.raises(Exception):
        matrix1000.convertToProgramDump(0, with_bad_bank, 5)
    assert matrix1000.isSingleProgramDump(requests.bank_select(9) + _program())
