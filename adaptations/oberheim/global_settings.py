#
#   Copyright (c) 2020 Christof Ruch. All rights reserved.
#
#   Dual licensed: Distributed under Affero GPL license by default, an MIT license is available for purchase
#
#   The master parameters of the Matrix 1000. They are sent as a 172 byte block, nibbled the same way as the
#   patches, and we map the interesting bytes to named and typed values. What is left out is the "group enabled"
#   array with one bit per patch.
#
import abc
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Optional, Sequence, Tuple, Union, Any, Mapping

from oberheim import nibble, protocol
from oberheim.constants import GLOBAL_SETTINGS_SIZE
from oberheim.errors import MalformedLength, MalformedMessage, UnmappedLookupValue


@dataclass(frozen=True)
class SettingDefinition:
    key: str
    name: str
    group: str
    sysex_offset: int
    min_value: int
    max_value: int
    is_signed: bool = False
    display_offset: int = 0

    def raw_value(self, block: Sequence[int]) -> int:
        value = block[self.sysex_offset] + self.display_offset
        if self.is_signed and value > 127:
            # Two's complement, only used by the tuning values
            value -= 256
        return value

    def decode(self, block: Sequence[int]) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class IntParameter(SettingDefinition):

    def decode(self, block: Sequence[int]) -> int:
        value = self.raw_value(block)
        if not self.min_value <= value <= self.max_value:
            logging.debug(f"{self.name}: value {value} outside of {self.min_value}..{self.max_value}, clamping")
            value = max(self.min_value, min(self.max_value, value))
        return value


@dataclass(frozen=True)
class BoolParameter(SettingDefinition):
    min_value: int = 0
    max_value: int = 1

    def decode(self, block: Sequence[int]) -> bool:
        # Some flags are stored in the MSB only, so anything but 0 is on
        return self.raw_value(block) != 0


@dataclass(frozen=True)
class LookupParameter(SettingDefinition):
    choices: Tuple[Tuple[int, str], ...] = ()

    def decode(self, block: Sequence[int]) -> str:
        value = self.raw_value(block)
        for raw, label in self.choices:
            if raw == value:
                return label
        raise UnmappedLookupValue(self.name, value)


Parameter = Union[IntParameter, BoolParameter, LookupParameter]

_MOD_SOURCES = ((0, "Off"), (1, "Lever 2"), (2, "Pedal 1"))

GLOBAL_SETTINGS: Tuple[Parameter, ...] = (
    IntParameter("master_transpose", "Master Transpose", "Tuning", 34, -24, 24, is_signed=True),
    IntParameter("master_tune", "Master Tune", "Tuning", 8, -32, 32, is_signed=True),
    IntParameter("midi_basic_channel", "MIDI Basic Channel", "MIDI", 11, 1, 16, display_offset=1),
    BoolParameter("midi_omni_mode", "MIDI OMNI Mode Enable", "MIDI", 12),
    BoolParameter("midi_controllers", "MIDI Controllers enable", "MIDI", 13),
    BoolParameter("midi_patch_changes", "MIDI Patch Changes Enable", "MIDI", 14),
    # 121 is the highest controller number allowed according to the manual
    IntParameter("midi_pedal_1_controller", "MIDI Pedal 1 Controller", "MIDI", 17, 0, 121),
    IntParameter("midi_pedal_2_controller", "MIDI Pedal 2 Controller", "MIDI", 18, 0, 121),
    IntParameter("midi_pedal_3_controller", "MIDI Pedal 3 Controller", "MIDI", 19, 0, 121),
    IntParameter("midi_pedal_4_controller", "MIDI Pedal 4 Controller", "MIDI", 20, 0, 121),
    BoolParameter("midi_echo", "MIDI Echo Enable", "MIDI", 32),
    BoolParameter("midi_spillover", "MIDI Spillover Enable", "MIDI", 33),
    IntParameter("midi_mono_mode", "MIDI Mono Mode (Guitar)", "MIDI", 35, 0, 9),
    BoolParameter("bank_lock", "Bank Lock Enable", "MIDI", 165),  # MSB only
    LookupParameter("vibrato_waveform", "Vibrato Waveform", "Global Vibrato", 4, 0, 7,
                    choices=((0, "Triangle"), (1, "Saw up"), (2, "Saw Down"), (3, "Square"), (4, "Random"), (5, "Noise"))),
    IntParameter("vibrato_speed", "Vibrato Speed", "Global Vibrato", 1, 0, 63),
    IntParameter("vibrato_amplitude", "Vibrato Amplitude", "Global Vibrato", 5, 0, 63),
    LookupParameter("vibrato_speed_mod_source", "Vibrato Speed Mod Source", "Global Vibrato", 2, 0, 2, choices=_MOD_SOURCES),
    IntParameter("vibrato_speed_mod_amount", "Vibrato Speed Mod Amount", "Global Vibrato", 3, 0, 63),
    LookupParameter("vibrato_amp_mod_source", "Vibrato Amp Mod Source", "Global Vibrato", 6, 0, 2, choices=_MOD_SOURCES),
    IntParameter("vibrato_amp_mod_amount", "Vibrato Amp Mod Amount", "Global Vibrato", 7, 0, 63),
    IntParameter("bend_range", "Bend Range", "Controls", 164, 1, 24),
    IntParameter("number_of_units", "Number of Units", "Group Mode", 166, 1, 6),
    IntParameter("current_unit_number", "Current Unit Number", "Group Mode", 167, 0, 7),  # MSB only
    BoolParameter("group_mode", "Group Mode Enable", "Group Mode", 168),  # MSB only
    BoolParameter("unison", "Unison Enable", "General", 169),
    BoolParameter("volume_invert", "Volume Invert Enable", "General", 170),
    BoolParameter("memory_protect", "Memory Protect Enable", "General", 171),
)

GLOBAL_SETTINGS_BY_KEY: Mapping[str, Parameter] = MappingProxyType({s.key: s for s in GLOBAL_SETTINGS})


@dataclass(frozen=True)
class NamedValue:
    setting: Parameter
    value: Any
    raw: int
    error: Optional[UnmappedLookupValue] = None

    @property
    def key(self) -> str:
        return self.setting.key

    @property
    def name(self) -> str:
        return self.setting.name

    @property
    def valid(self) -> bool:
        return self.error is None


def decode_global_settings(block: Sequence[int]) -> List[NamedValue]:
    if len(block) != GLOBAL_SETTINGS_SIZE:
        raise MalformedLength(f"Global settings must be {GLOBAL_SETTINGS_SIZE} bytes, got {len(block)}", len(block))
    result = []
    for setting in GLOBAL_SETTINGS:
        raw = setting.raw_value(block)
        try:
            result.append(NamedValue(setting, setting.decode(block), raw))
        except UnmappedLookupValue as e:
            result.append(NamedValue(setting, None, raw, e))
    return result


def global_settings_from_dump(payload: Sequence[int]) -> List[NamedValue]:
    if not protocol.is_global_settings_dump(payload):
        raise MalformedMessage("Not a master parameter dump of the Matrix 1000")
    return decode_global_settings(nibble.unpack(payload[3:]))


class GlobalSettingsSink(abc.ABC):

    @abc.abstractmethod
    def set_value(self, key: str, value: Any): ...


def publish_global_settings(values: Sequence[NamedValue], sink: GlobalSettingsSink) -> int:
    published = 0
    for named_value in values:
        if named_value.valid:
            sink.set_value(named_value.key, named_value.value)
            published += 1
        else:
            logging.warning(f"Not publishing global setting: {named_value.error}")
    return published
