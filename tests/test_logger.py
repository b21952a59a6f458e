import logging

import pytest

from utils.logger import ROOT_LOGGER_NAME, get_logger, resolve_level


@pytest.mark.parametrize(
    "level_name, expected",
    [
        ("DEBUG", logging.DEBUG),
        ("warning", logging.WARNING),
        (" error ", logging.ERROR),
        ("VERBOSE", logging.INFO),
        ("", logging.INFO),
    ],
)
def test_resolve_level(level_name, expected):
    assert resolve_level(level_name) == expected


def test_module_loggers_share_one_handler():
    first = get_logger("services.one")
    second = get_logger("services.two")

    assert first.name == f"{ROOT_LOGGER_NAME}.services.one"
    assert second.name == f"{ROOT_LOGGER_NAME}.services.two"
    assert len(logging.getLogger(ROOT_LOGGER_NAME).handlers) == 1
