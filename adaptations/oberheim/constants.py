#
#   Copyright (c) 2020 Christof Ruch. All rights reserved.
#
#   Dual licensed: Distributed under Affero GPL license by default, an MIT license is available for purchase
#
from enum import IntEnum

OBERHEIM_ID = 0x10
MATRIX6_1000_ID = 0x06


class Command(IntEnum):
    SINGLE_PATCH_DATA = 0x01
    MASTER_PARAMETER_DATA = 0x03
    REQUEST_DATA = 0x04
    SET_BANK = 0x0a
    PARAMETER_EDIT = 0x0b
    BANK_UNLOCK = 0x0c
    SINGLE_PATCH_TO_EDIT_BUFFER = 0x0d
    STORE_EDIT_BUFFER = 0x0e


class RequestType(IntEnum):
    BANK_AND_MASTER = 0x00
    SINGLE_PATCH = 0x01
    MASTER = 0x03
    EDIT_BUFFER = 0x04


# Universal non-realtime messages used for device detection
UNIVERSAL_NON_REALTIME = 0x7e
GENERAL_INFORMATION = 0x06
IDENTITY_REQUEST = 0x01
IDENTITY_REPLY = 0x02
IDENTITY_REPLY_LENGTH = 13

NUMBER_OF_BANKS = 10
PATCHES_PER_BANK = 100
TOTAL_PATCHES = NUMBER_OF_BANKS * PATCHES_PER_BANK
WRITABLE_BANKS = 2

# One voice, unpacked. No layers, alternate tunings or other data types exist
PATCH_DATA_SIZE = 134
GLOBAL_SETTINGS_SIZE = 172
PATCH_NAME_LENGTH = 8

DEVICE_DETECT_WAIT_MS = 200
# 100 program dumps of ~275 bytes each take about 9 seconds on a 31250 baud line alone
DEFAULT_BANK_DUMP_TIMEOUT = 30.0
