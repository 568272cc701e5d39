#
#   Copyright (c) 2020 Christof Ruch. All rights reserved.
#
#   Dual licensed: Distributed under Affero GPL license by default, an MIT license is available for purchase
#
import logging
import time
from enum import Enum
from typing import Callable, Dict, List, Sequence

from knobkraft.sysex import sysex_message
from oberheim import protocol, requests
from oberheim.constants import PATCHES_PER_BANK, DEFAULT_BANK_DUMP_TIMEOUT
from oberheim.errors import IncompleteBankDump


class AssemblyState(Enum):
    IDLE = 1
    COLLECTING = 2
    COMPLETE = 3
    ABANDONED = 4


class BankDumpAssembler:
    """
    Collects the program dumps the Matrix sends after a bank request. The Matrix has no bank dump message, it just
    sends 100 single patch data messages. The bank is complete once we have seen 100 different program numbers, so
    a resent or echoed message can't finish the bank early.

    Not thread safe, feed it from a single message dispatcher.
    """

    def __init__(self, timeout: float = DEFAULT_BANK_DUMP_TIMEOUT, clock: Callable[[], float] = time.monotonic,
                 expected: int = PATCHES_PER_BANK):
        self.timeout = timeout
        self.expected = expected
        self._clock = clock
        self._state = AssemblyState.IDLE
        self._started_at = 0.0
        self._dumps: Dict[int, List[int]] = {}

    @property
    def state(self) -> AssemblyState:
        return self._state

    def start(self):
        self._dumps.clear()
        self._started_at = self._clock()
        self._state = AssemblyState.COLLECTING

    def cancel(self):
        if self._state == AssemblyState.COLLECTING:
            logging.info(f"Bank dump cancelled after {len(self._dumps)} programs")
            self._state = AssemblyState.ABANDONED

    def reset(self):
        self._dumps.clear()
        self._state = AssemblyState.IDLE

    def check_timeout(self) -> bool:
        """
        Abandon the session if the timeout has passed. Returns True if the assembler is abandoned.
        """
        if self._state == AssemblyState.COLLECTING and self._clock() - self._started_at > self.timeout:
            logging.warning(f"Bank dump timed out after {self.timeout} seconds, received {len(self._dumps)} of {self.expected} programs")
            self._state = AssemblyState.ABANDONED
        return self._state == AssemblyState.ABANDONED

    def on_message(self, payload: Sequence[int]) -> bool:
        """
        Feed one received sysex payload. Returns True if the message was taken as part of the bank.
        """
        if self._state != AssemblyState.COLLECTING or self.check_timeout():
            return False
        if not protocol.is_bank_dump_fragment(payload):
            logging.debug(f"Ignoring message during bank dump: {protocol.classify(payload)}")
            return False
        program = payload[3]
        if program in self._dumps:
            logging.debug(f"Program {program} received again during bank dump, keeping the newer one")
        self._dumps[program] = list(payload)
        if len(self._dumps) >= self.expected:
            logging.info(f"Bank dump complete with {len(self._dumps)} programs")
            self._state = AssemblyState.COMPLETE
        return True

    def is_complete(self) -> bool:
        return self._state == AssemblyState.COMPLETE

    def is_abandoned(self) -> bool:
        return self._state == AssemblyState.ABANDONED

    def received(self) -> int:
        return len(self._dumps)

    def missing(self) -> List[int]:
        return [p for p in range(self.expected) if p not in self._dumps]

    def program_dumps(self) -> List[List[int]]:
        """
        The payloads of the collected bank, ordered by program number. Raises IncompleteBankDump unless complete.
        """
        if not self.is_complete():
            raise IncompleteBankDump(len(self._dumps), self.expected)
        return [self._dumps[p] for p in sorted(self._dumps)]


def is_bank_complete(payloads: Sequence[Sequence[int]], expected: int = PATCHES_PER_BANK) -> bool:
    # Stateless check over a list of already received messages
    seen = {p[3] for p in payloads if protocol.is_bank_dump_fragment(p)}
    return len(seen) >= expected


def distinct_program_dumps(payloads: Sequence[Sequence[int]]) -> List[List[int]]:
    dumps = {p[3]: list(p) for p in payloads if protocol.is_bank_dump_fragment(p)}
    return [dumps[p] for p in sorted(dumps)]


def bank_messages(bank: int, payloads: Sequence[Sequence[int]]) -> List[List[int]]:
    """
    The sysex messages to store a downloaded bank in a file. The program dumps only carry the slot, so the bank
    select comes first.
    """
    return [requests.bank_select(bank)] + [sysex_message(p) for p in payloads]
