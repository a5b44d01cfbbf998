# -*- coding: utf-8 -*-
"""
backend/tests/shared/config/test_logging_config.py

Autor: EventShot Payments
Fecha: 2025-11-27
"""

import logging

import pytest
from pythonjsonlogger.json import JsonFormatter

from app.shared.config import setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _console_formatter():
    [handler] = [h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler]
    return handler.formatter


def test_json_format_uses_python_json_logger():
    setup_logging("INFO", "json")

    assert isinstance(_console_formatter(), JsonFormatter)
    assert logging.getLogger().level == logging.INFO


def test_plain_format():
    setup_logging("DEBUG", "plain")

    assert _console_formatter()._fmt == "%(levelname)s [%(name)s]: %(message)s"
    assert logging.getLogger().level == logging.DEBUG


def test_noisy_libraries_are_quieted():
    setup_logging("DEBUG", "pretty")

    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("apscheduler").level == logging.WARNING

# Fin del archivo backend/tests/shared/config/test_logging_config.py
