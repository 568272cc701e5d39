#
#   Copyright (c) 2020 Christof Ruch. All rights reserved.
#
#   Dual licensed: Distributed under Affero GPL license by default, an MIT license is available for purchase
#


class Matrix1000Error(Exception):
    pass


class MalformedMessage(Matrix1000Error, ValueError):
    pass


class MalformedLength(MalformedMessage):

    def __init__(self, message: str, length: int):
        super().__init__(message)
        self.length = length


class ChecksumMismatch(MalformedMessage):

    def __init__(self, expected: int, received: int):
        super().__init__(f"Checksum mismatch: computed {expected:#04x}, message says {received:#04x}")
        self.expected = expected
        self.received = received


class InvalidNibble(ChecksumMismatch):
    # Wire byte above 0x0f, reported as a failed checksum

    def __init__(self, index: int, value: int):
        MalformedMessage.__init__(self, f"Invalid nibble {value:#04x} at index {index}")
        self.expected = None
        self.received = value
        self.index = index


class OutOfRangeArgument(Matrix1000Error, ValueError):

    def __init__(self, what: str, value: int, low: int, high: int):
        super().__init__(f"{what} out of range: {value} should be from {low} to {high}")
        self.value = value


class IncompleteBankDump(Matrix1000Error):

    def __init__(self, received: int, expected: int):
        super().__init__(f"Bank dump incomplete: received {received} of {expected} programs")
        self.received = received
        self.expected = expected


class UnmappedLookupValue(Matrix1000Error, ValueError):

    def __init__(self, setting_name: str, raw_value: int):
        super().__init__(f"{setting_name}: value {raw_value} has no lookup entry")
        self.raw_value = raw_value


class BankDumpNotSupported(Matrix1000Error, NotImplementedError):
    pass
