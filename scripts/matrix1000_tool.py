#!/usr/bin/env python3
#
#   Copyright (c) 2020 Christof Ruch. All rights reserved.
#
#   Dual licensed: Distributed under Affero GPL license by default, an MIT license is available for purchase
#
"""Inspect Matrix 1000 sysex files, and talk to a Matrix 1000 connected via MIDI."""
import argparse
import logging
import queue
import sys
import time
from typing import List, Optional

import knobkraft
from knobkraft.midi import RtMidiController, list_ports
from oberheim import protocol, requests
from oberheim.bank_dump import BankDumpAssembler, bank_messages
from oberheim.constants import DEVICE_DETECT_WAIT_MS, DEFAULT_BANK_DUMP_TIMEOUT, NUMBER_OF_BANKS, Command
from oberheim.errors import Matrix1000Error
from oberheim.global_settings import global_settings_from_dump
from oberheim.patch import patch_from_program_dump, patch_from_edit_buffer, friendly_program_name


def describe(payload: List[int], bank: Optional[int] = None) -> List[str]:
    kind = protocol.classify(payload)
    if isinstance(kind, protocol.SingleProgramDump):
        patch = patch_from_program_dump(payload, bank)
        return [f"Program {friendly_program_name(patch.program_number)} '{patch.name}' {patch.fingerprint()}"]
    elif isinstance(kind, protocol.EditBufferDump) or protocol.is_edit_buffer_upload(payload):
        patch = patch_from_edit_buffer(payload)
        return [f"Edit buffer '{patch.name}' {patch.fingerprint()}"]
    elif protocol.is_global_settings_dump(payload):
        lines = ["Master parameters"]
        for value in global_settings_from_dump(payload):
            shown = value.value if value.valid else f"invalid ({value.raw})"
            lines.append(f"    {value.name}: {shown}")
        return lines
    elif isinstance(kind, protocol.OwnSysex):
        return [f"Matrix 1000 command {kind.command:#04x}"]
    elif isinstance(kind, protocol.DeviceInquiryResponse):
        return [f"Device inquiry reply on channel {kind.channel}"]
    return [f"Unrecognized: {knobkraft.to_hex_str(payload[:8])}"]


def info(args) -> int:
    errors = 0
    bank = None
    for index, message in enumerate(knobkraft.load_sysex(args.file)):
        payload = knobkraft.sysex_payload(message)
        if protocol.is_own_sysex(payload) and len(payload) > 3 and payload[2] == Command.SET_BANK:
            bank = payload[3]
        try:
            lines = describe(payload, bank)
        except Matrix1000Error as e:
            logging.error(f"Message {index}: {e}")
            errors += 1
            continue
        for line in lines:
            print(line)
    return 1 if errors else 0


def _collect(controller: RtMidiController) -> "queue.Queue[List[int]]":
    # rtmidi calls us from its own thread, hand everything over to the main thread
    received = queue.Queue()
    controller.add_message_handler(received.put)
    return received


def detect(args) -> int:
    controller = RtMidiController(args.input, args.output)
    received = _collect(controller)
    channels = [args.channel] if args.channel is not None else range(16)
    try:
        for channel in channels:
            controller.send(requests.device_inquiry(channel))
            time.sleep(DEVICE_DETECT_WAIT_MS / 1000.0)
            while not received.empty():
                found = protocol.device_inquiry_response(knobkraft.sysex_payload(received.get()))
                if found is not None:
                    print(f"Found Matrix 1000 on channel {found + 1}")
                    return 0
    finally:
        controller.close()
    logging.error("No Matrix 1000 replied to the device inquiry")
    return 1


def download_bank(args) -> int:
    controller = RtMidiController(args.input, args.output)
    received = _collect(controller)
    assembler = BankDumpAssembler(timeout=args.timeout)
    try:
        assembler.start()
        controller.send([x for m in requests.request_bank_dump(args.bank) for x in m])
        while not assembler.is_complete() and not assembler.check_timeout():
            try:
                assembler.on_message(knobkraft.sysex_payload(received.get(timeout=0.1)))
            except queue.Empty:
                pass
    finally:
        controller.close()
    if not assembler.is_complete():
        logging.error(f"Bank {args.bank} incomplete, missing programs {assembler.missing()}")
        return 1
    knobkraft.save_sysex(args.file, bank_messages(args.bank, assembler.program_dumps()))
    print(f"Wrote {assembler.received()} programs of bank {args.bank} to {args.file}")
    return 0


def ports(args) -> int:
    for name in list_ports():
        print(name)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Oberheim Matrix 1000 sysex tool.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every MIDI message.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    info_parser = subparsers.add_parser("info", help="List the contents of a .syx file.")
    info_parser.add_argument("file")
    info_parser.set_defaults(func=info)

    ports_parser = subparsers.add_parser("ports", help="List the available MIDI output ports.")
    ports_parser.set_defaults(func=ports)

    for name, func, text in [("detect", detect, "Find a Matrix 1000 via device inquiry."),
                             ("download-bank", download_bank, "Download a bank into a .syx file.")]:
        sub = subparsers.add_parser(name, help=text)
        sub.add_argument("--input", help="Part of the name of the MIDI input port to use.")
        sub.add_argument("--output", help="Part of the name of the MIDI output port to use.")
        if func is detect:
            sub.add_argument("--channel", type=int, choices=range(16), help="Only ask on this channel (0-based).")
        else:
            sub.add_argument("bank", type=int, choices=range(NUMBER_OF_BANKS))
            sub.add_argument("file")
            sub.add_argument("--timeout", type=float, default=DEFAULT_BANK_DUMP_TIMEOUT,
                             help="Seconds to wait for the whole bank.")
        sub.set_defaults(func=func)

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(message)s")
    try:
        return args.func(args)
    except (Matrix1000Error, IOError) as e:
        logging.error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
