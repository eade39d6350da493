import sys

import pytest

from mdlgen.reporting import PlainReporter, set_reporter, set_verbosity


@pytest.fixture(autouse=True)
def _fresh_reporter():
    # capsys swaps sys.stderr per test; never keep a stream across tests
    set_reporter(PlainReporter(stream=sys.stderr))
    set_verbosity(0)
    yield
