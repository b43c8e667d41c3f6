import pytest

import wcomp


@pytest.fixture(autouse=True)
def fresh_defaults():
    """Each test gets its own default scheduler queue and expression cache."""
    previous_scheduler = wcomp.set_scheduler(wcomp.Scheduler())
    previous_interpreter = wcomp.set_interpreter(wcomp.Interpreter())
    yield
    wcomp.set_scheduler(previous_scheduler)
    wcomp.set_interpreter(previous_interpreter)
