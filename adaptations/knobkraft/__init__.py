#
#   Copyright (c) 2022 Christof Ruch. All rights reserved.
#
#   Dual licensed: Distributed under Affero GPL license by default, an MIT license is available for purchase
#


def knobkraft_api(func):
    # Marks the methods SynthBase.install() exposes to the host
    func._is_knobkraft = True
    return func


from .sysex import *
from .test_helper import *
