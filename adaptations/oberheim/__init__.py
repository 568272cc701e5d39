#
#   Copyright (c) 2020 Christof Ruch. All rights reserved.
#
#   Dual licensed: Distributed under Affero GPL license by default, an MIT license is available for purchase
#
from .constants import *
from .errors import *
from .protocol import *
from .patch import *
from .global_settings import *
from .bank_dump import *
from . import nibble, requests
