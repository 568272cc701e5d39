#
#   Copyright (c) 2022 Christof Ruch. All rights reserved.
#
#   Dual licensed: Distributed under Affero GPL license by default, an MIT license is available for purchase
#

import importlib.util
import os
import sys

DEFAULT_ADAPTATION = "Oberheim_Matrix1000.py"


def load_adaptation(adaptation_file):
    # Dynamically load the adaptation and create the generic test suite all adaptations must undergo
    spec = importlib.util.spec_from_file_location(adaptation_file, adaptation_file)
    synth_under_test = importlib.util.module_from_spec(spec)
    sys.modules[adaptation_file] = synth_under_test
    spec.loader.exec_module(synth_under_test)
    return synth_under_test


def adaptation_path(file_name):
    if os.path.isabs(file_name) or os.path.isfile(file_name):
        return file_name
    return os.path.join(os.path.dirname(os.path.realpath(__file__)), file_name)


def pytest_addoption(parser):
    parser.addoption("--all", action="store_true", help="run all adaptations in this directory")
    parser.addoption("--adaptation", default=DEFAULT_ADAPTATION, help="specify adaptation to test")


def pytest_generate_tests(metafunc):
    if "adaptation" in metafunc.fixturenames:
        if metafunc.config.getoption("all"):
            directory = os.path.dirname(os.path.realpath(__file__))
            adaptations_to_test = []
            for file in sorted(os.listdir(directory)):
                if (os.path.isfile(os.path.join(directory, file)) and file != "conftest.py" and file.lower().endswith(".py")
                        and not file.lower().startswith("test_")):
                    adaptations_to_test += [os.path.join(directory, file)]
            metafunc.parametrize("adaptation", [load_adaptation(a) for a in adaptations_to_test])
        else:
            metafunc.parametrize("adaptation", [load_adaptation(adaptation_path(metafunc.config.getoption("adaptation")))])
