#
#   Copyright (c) 2022 Christof Ruch. All rights reserved.
#
#   Dual licensed: Distributed under Affero GPL license by default, an MIT license is available for purchase
#
#   Base classes for adaptations written as a class. The host only knows module level functions, so install() copies
#   every method marked with @knobkraft_api into the module namespace.
#
import abc
import dataclasses
from dataclasses import dataclass
from typing import List, Dict

from knobkraft import knobkraft_api


@dataclass
class BankDescriptor:
    bank: int  # Zero-based bank number
    name: str  # Shown in the bank list of the host
    size: int  # Number of patches in this bank
    type: str  # Displayed in the metadata, e.g. "Patch"
    isROM: bool  # The bank can be read, but not written to

    def as_dict(self) -> Dict:
        return dataclasses.asdict(self)


class SynthBase(abc.ABC):

    def __init__(self, name: str, banks: List[BankDescriptor], needs_channel_specific_detection=True, device_detect_ms=200):
        if not banks:
            raise ValueError("An adaptation needs at least one bank")
        self._name = name
        self._banks = banks
        self._needs_channel_specific_detection = needs_channel_specific_detection
        self._device_detect_ms = device_detect_ms

    @knobkraft_api
    def name(self) -> str:
        return self._name

    @knobkraft_api
    def bankDescriptors(self) -> List[Dict]:
        return [bank.as_dict() for bank in self._banks]

    @knobkraft_api
    def numberOfBanks(self) -> int:
        return len(self._banks)

    @knobkraft_api
    def numberOfPatchesPerBank(self) -> int:
        # Only meaningful if all banks have the same size, the host prefers bankDescriptors()
        return self._banks[0].size

    @knobkraft_api
    def needsChannelSpecificDetection(self) -> bool:
        return self._needs_channel_specific_detection

    @knobkraft_api
    def deviceDetectWaitMilliseconds(self) -> int:
        return self._device_detect_ms

    def is_writable(self, program_number: int) -> bool:
        start = 0
        for bank in self._banks:
            if start <= program_number < start + bank.size:
                return not bank.isROM
            start += bank.size
        return False

    @abc.abstractmethod
    def createDeviceDetectMessage(self, channel: int) -> List[int]: ...

    @abc.abstractmethod
    def channelIfValidDeviceResponse(self, message: List[int]) -> int: ...

    def install(self, module):
        # Bound methods keep self, so the module functions work like the ones written by hand
        for attribute in dir(self):
            method = getattr(self, attribute)
            if callable(method) and getattr(method, "_is_knobkraft", False):
                setattr(module, attribute, method)


class EditBufferCapability(abc.ABC):

    @abc.abstractmethod
    def createEditBufferRequest(self, channel: int) -> List[int]: ...

    @abc.abstractmethod
    def isEditBufferDump(self, message: List[int]) -> bool: ...

    @abc.abstractmethod
    def convertToEditBuffer(self, channel: int, message: List[int]) -> List[int]: ...


class ProgramDumpCapability(abc.ABC):

    @abc.abstractmethod
    def createProgramDumpRequest(self, channel: int, patchNo: int) -> List[int]: ...

    @abc.abstractmethod
    def isSingleProgramDump(self, message: List[int]) -> bool: ...

    @abc.abstractmethod
    def convertToProgramDump(self, channel: int, message: List[int], program_number: int) -> List[int]: ...

    @abc.abstractmethod
    def numberFromDump(self, message: List[int]) -> int: ...


class BankDumpCapability(abc.ABC):

    @abc.abstractmethod
    def createBankDumpRequest(self, channel: int, bank: int) -> List[int]: ...

    @abc.abstractmethod
    def isPartOfBankDump(self, message: List[int]) -> bool: ...

    @abc.abstractmethod
    def isBankDumpFinished(self, messages: List[List[int]]) -> bool: ...

    @abc.abstractmethod
    def extractPatchesFromBank(self, messages: List[int]) -> List[int]: ...

    @abc.abstractmethod
    def extractPatchesFromAllBankMessages(self, messages: List[List[int]]) -> List[List[int]]: ...


class NameCapability(abc.ABC):

    @abc.abstractmethod
    def nameFromDump(self, message: List[int]) -> str: ...

    @abc.abstractmethod
    def renamePatch(self, message: List[int], new_name: str) -> List[int]: ...
