import pytest

import knobkraft
from oberheim import global_settings, nibble
from oberheim.global_settings import GLOBAL_SETTINGS, GLOBAL_SETTINGS_BY_KEY, GlobalSettingsSink
from oberheim.errors import MalformedLength, MalformedMessage, UnmappedLookupValue


def _block(**values):
    block = [0] * 172
    for key, raw in values.items():
        block[GLOBAL_SETTINGS_BY_KEY[key].sysex_offset] = raw
    return block


def _decoded(block):
    return {v.key: v for v in global_settings.decode_global_settings(block)}


class RecordingSink(GlobalSettingsSink):

    def __init__(self):
        self.values = {}

    def set_value(self, key, value):
        self.values[key] = value


def test_table():
    assert len(GLOBAL_SETTINGS) == 28
    assert len(GLOBAL_SETTINGS_BY_KEY) == 28
    assert all(0 <= s.sysex_offset < 172 for s in GLOBAL_SETTINGS)
    assert len({s.sysex_offset for s in GLOBAL_SETTINGS}) == 28


def test_signed_transpose():
    values = _decoded(_block(master_transpose=0xfe))
    assert values["master_transpose"].value == -2
    assert values["master_transpose"].raw == -2


def test_signed_tune():
    values = _decoded(_block(master_tune=0xe0))
    assert values["master_tune"].value == -32
    assert _decoded(_block(master_tune=0x1f))["master_tune"].value == 31


def test_midi_channel_is_displayed_one_based():
    assert _decoded(_block(midi_basic_channel=0))["midi_basic_channel"].value == 1
    assert _decoded(_block(midi_basic_channel=15))["midi_basic_channel"].value == 16


def test_out_of_range_integers_are_clamped():
    values = _decoded(_block(midi_pedal_1_controller=127, bend_range=0))
    assert values["midi_pedal_1_controller"].value == 121
    assert values["bend_range"].value == 1


def test_bools():
    values = _decoded(_block(bank_lock=0x40, memory_protect=1))
    assert values["bank_lock"].value is True
    assert values["memory_protect"].value is True
    assert values["unison"].value is False


def test_lookup():
    values = _decoded(_block(vibrato_waveform=3, vibrato_amp_mod_source=2))
    assert values["vibrato_waveform"].value == "Square"
    assert values["vibrato_amp_mod_source"].value == "Pedal 1"


def test_unmapped_lookup_is_reported_not_raised():
    values = _decoded(_block(vibrato_waveform=6))
    assert not values["vibrato_waveform"].valid
    assert values["vibrato_waveform"].value is None
    assert isinstance(values["vibrato_waveform"].error, UnmappedLookupValue)
    assert values["vibrato_waveform"].error.raw_value == 6
    # The rest is still decoded
    assert values["vibrato_speed"].valid


def test_wrong_block_length():
    with pytest.raises(MalformedLength):
        global_settings.decode_global_settings([0] * 171)
    with pytest.raises(MalformedLength):
        global_settings.decode_global_settings([0] * 173)


def test_from_dump():
    payload = [0x10, 0x06, 0x03] + nibble.pack(_block(master_transpose=12))
    values = {v.key: v.value for v in global_settings.global_settings_from_dump(payload)}
    assert values["master_transpose"] == 12
    with pytest.raises(MalformedMessage):
        global_settings.global_settings_from_dump([0x10, 0x06, 0x01] + payload[3:])


def test_from_dump_checks_checksum():
    payload = [0x10, 0x06, 0x03] + nibble.pack(_block())
    payload[-1] = 0x55
    with pytest.raises(MalformedMessage):
        global_settings.global_settings_from_dump(payload)


def test_publish():
    sink = RecordingSink()
    values = global_settings.decode_global_settings(_block(vibrato_speed_mod_source=9, master_tune=5))
    assert global_settings.publish_global_settings(values, sink) == 27
    assert "vibrato_speed_mod_source" not in sink.values
    assert sink.values["master_tune"] == 5
    assert sink.values["midi_basic_channel"] == 1


def test_decode_from_sysex_file_message():
    message = knobkraft.sysex_message([0x10, 0x06, 0x03] + nibble.pack(_block(number_of_units=4)))
    values = {v.key: v.value for v in global_settings.global_settings_from_dump(knobkraft.sysex_payload(message))}
    assert values["number_of_units"] == 4
