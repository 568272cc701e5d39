import pytest

import knobkraft
from oberheim import patch, requests
from oberheim.errors import OutOfRangeArgument, MalformedMessage, MalformedLength, ChecksumMismatch, BankDumpNotSupported
from oberheim.patch import Matrix1000Patch


def _data(name=b"TESTNAME"):
    return list(name) + [0x11] * 126


def test_bank_and_slot_addressing():
    for program in range(1000):
        bank, slot = patch.to_bank_and_slot(program)
        assert 0 <= bank < 10
        assert 0 <= slot < 100
        assert patch.from_bank_and_slot(bank, slot) == program


def test_addressing_ranges():
    with pytest.raises(OutOfRangeArgument):
        patch.to_bank_and_slot(1000)
    with pytest.raises(OutOfRangeArgument):
        patch.from_bank_and_slot(10, 0)
    with pytest.raises(OutOfRangeArgument):
        patch.from_bank_and_slot(0, 100)


def test_friendly_names():
    assert patch.friendly_program_name(7) == "007"
    assert patch.friendly_program_name(999) == "999"
    assert patch.friendly_bank_name(0) == "000 - 099"
    assert patch.friendly_bank_name(9) == "900 - 999"


def test_ascii_substitution():
    assert patch.to_ascii_with_marker("façade") == b"fa\x1aade"
    # Decomposed input is composed first, so it is still one character
    assert patch.to_ascii_with_marker("fac\u0327ade") == b"fa\x1aade"


def test_encode_name():
    assert bytes(patch.encode_name(patch.to_ascii_with_marker("façade"))) == b"FA@ADE  "
    # 0x7f folds down to 0x5f, control characters become an underscore
    assert patch.encode_name(b"\x7f\x01ab") == [0x5f, 0x5f, 0x41, 0x42, 0x20, 0x20, 0x20, 0x20]
    assert patch.encode_name(b"TOO LONG NAME") == list(b"TOO LONG")


def test_decode_name():
    assert patch.decode_name(list(b"BNK2: 16")) == "BNK2: 16"
    assert patch.decode_name([0x0d, 0x01, 0x14, 0x12, 0x09, 0x18, 0x20, 0x31]) == "MATRIX 1"


def test_default_names():
    assert patch.is_default_name("BNK2: 16")
    assert patch.is_default_name("bnk0: 00")
    assert not patch.is_default_name("BNK2:16 ")
    assert not patch.is_default_name("STRINGS ")


def test_patch_name():
    p = Matrix1000Patch(_data(), 123)
    assert p.name == "TESTNAME"
    assert p.friendly_number() == "123"
    p.set_name("lead")
    assert p.name == "LEAD    "
    assert not p.is_default_name()
    assert Matrix1000Patch(_data()).friendly_number() == "---"


def test_patch_validation():
    with pytest.raises(MalformedLength):
        Matrix1000Patch([0] * 133)
    with pytest.raises(OutOfRangeArgument):
        Matrix1000Patch(_data(), 1000)


def test_fingerprint_ignores_name():
    a = Matrix1000Patch(_data(b"AAAAAAAA"))
    b = Matrix1000Patch(_data(b"BBBBBBBB"))
    assert a.fingerprint() == b.fingerprint()
    assert a.blanked_out()[:8] == [0] * 8
    assert a.blanked_out()[8:] == a.data[8:]
    c = Matrix1000Patch(_data())
    c.data[100] = 0x12
    assert c.fingerprint() != a.fingerprint()


def test_fingerprint_follows_rename():
    p = Matrix1000Patch(_data())
    before = p.fingerprint()
    p.set_name("OTHER")
    assert p.fingerprint() == before
    assert len(before) == 32


def test_patch_from_program_dump():
    payload = knobkraft.sysex_payload(requests.program_dump_message(_data(), 342))
    p = patch.patch_from_program_dump(payload)
    assert p.program_number == 42
    assert p.data == _data()
    assert patch.patch_from_program_dump(payload, bank=3).program_number == 342


def test_patch_from_program_dump_errors():
    payload = knobkraft.sysex_payload(requests.program_dump_message(_data(), 5))
    broken = list(payload)
    broken[-1] ^= 0x7f
    with pytest.raises(ChecksumMismatch):
        patch.patch_from_program_dump(broken)
    with pytest.raises(MalformedMessage):
        patch.patch_from_program_dump([0x10, 0x06, 0x0d, 0x00] + payload[4:])
    short = [0x10, 0x06, 0x01, 0x05] + [0x00] * 10 + [0x00]
    with pytest.raises(MalformedLength):
        patch.patch_from_program_dump(short)


def test_patch_from_edit_buffer():
    upload = knobkraft.sysex_payload(requests.edit_buffer_message(_data()))
    assert patch.patch_from_edit_buffer(upload).name == "TESTNAME"
    reply = knobkraft.sysex_payload(requests.program_dump_message(_data(), 0))
    assert patch.patch_from_edit_buffer(reply).program_number is None
    with pytest.raises(MalformedMessage):
        patch.patch_from_edit_buffer(knobkraft.sysex_payload(requests.program_dump_message(_data(), 1)))


def test_no_bank_message():
    with pytest.raises(BankDumpNotSupported):
        patch.patches_from_bank_message([0x10, 0x06, 0x01])
