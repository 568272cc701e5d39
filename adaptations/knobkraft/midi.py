#
#   Copyright (c) 2022 Christof Ruch. All rights reserved.
#
#   Dual licensed: Distributed under Affero GPL license by default, an MIT license is available for purchase
#
import abc
import logging
from typing import Callable, List, Optional

from knobkraft.sysex import splitSysexMessage, to_hex_str

MessageHandler = Callable[[List[int]], None]


class MidiController(abc.ABC):
    """
    The bits of a MIDI connection the librarian needs: send bytes out, and get called for every message coming in.
    Several sysex messages may be handed to send() as one flat list.
    """

    def __init__(self):
        self._handlers: List[MessageHandler] = []

    def add_message_handler(self, handler: MessageHandler):
        self._handlers.append(handler)

    def clear_message_handlers(self):
        self._handlers.clear()

    def dispatch(self, message: List[int]):
        for handler in list(self._handlers):
            handler(message)

    @abc.abstractmethod
    def send(self, messages: List[int]): ...


class RtMidiController(MidiController):
    """
    MidiController on top of python-rtmidi. Ports are picked by a part of their name, the first port matching
    wins. Incoming messages are dispatched on the rtmidi callback thread.
    """

    def __init__(self, input_name: Optional[str] = None, output_name: Optional[str] = None):
        super().__init__()
        # Only needed when talking to a real device, so the rest of the package works without it
        import rtmidi
        self._midi_out = rtmidi.MidiOut()
        self._midi_in = rtmidi.MidiIn()
        self._open(self._midi_out, output_name, "output")
        self._open(self._midi_in, input_name, "input")
        # Don't ignore sysex, but timing and active sensing
        self._midi_in.ignore_types(sysex=False, timing=True, active_sense=True)
        self._midi_in.set_callback(self._on_midi_input)

    @staticmethod
    def _open(port, name_fragment: Optional[str], direction: str):
        ports = port.get_ports()
        if not ports:
            raise IOError(f"No MIDI {direction} ports available")
        index = 0
        if name_fragment is not None:
            matching = [i for i, name in enumerate(ports) if name_fragment.lower() in name.lower()]
            if not matching:
                raise IOError(f"No MIDI {direction} port matching '{name_fragment}', available are {ports}")
            index = matching[0]
        logging.info(f"Opening MIDI {direction} {ports[index]}")
        port.open_port(index)

    def _on_midi_input(self, event, data=None):
        message, _ = event
        logging.debug(f"Received {to_hex_str(message)}")
        self.dispatch(list(message))

    def send(self, messages: List[int]):
        # rtmidi wants one MIDI message per call
        split = splitSysexMessage(messages)
        for message in split if split else [messages]:
            logging.debug(f"Sending {to_hex_str(message)}")
            self._midi_out.send_message(message)

    def close(self):
        self._midi_in.cancel_callback()
        self._midi_in.close_port()
        self._midi_out.close_port()


def list_ports() -> List[str]:
    import rtmidi
    midi_out = rtmidi.MidiOut()
    ports = midi_out.get_ports()
    midi_out.delete()
    return ports
