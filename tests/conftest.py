import logging

from autopart.util import set_up_console_log


def pytest_configure(config):
    # send the proposal logs to the console so failing tests show them
    logging.getLogger("autopart").setLevel(logging.DEBUG)
    if config.getoption("verbose") > 1:
        set_up_console_log(log_names=["autopart"])
