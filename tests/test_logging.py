"""
Unit Tests for Logging

Importing the library must leave the host's structlog and stdlib logging
configuration alone; setup_logging() is the only thing that configures.
"""

import importlib
import logging

import pytest
import structlog

import pgrepo.core.logging as pgrepo_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def _host_processor(logger, method_name, event_dict):
    return event_dict


class TestImport:
    def test_import_keeps_host_configuration(self, restore_logging):
        structlog.configure(processors=[_host_processor, structlog.processors.JSONRenderer()])
        handlers_before = list(logging.getLogger().handlers)

        importlib.reload(pgrepo_logging)
        importlib.reload(importlib.import_module("pgrepo"))

        processors = structlog.get_config()["processors"]
        assert processors[0] is _host_processor
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert logging.getLogger().handlers == handlers_before

    def test_no_module_level_logger(self):
        assert not hasattr(pgrepo_logging, "logger")

    def test_get_logger_uses_active_configuration(self, restore_logging):
        structlog.configure(processors=[_host_processor, structlog.processors.JSONRenderer()])

        logger = pgrepo_logging.get_logger("pgrepo.test")

        assert logger.bind(table="users") is not None
        assert structlog.get_config()["processors"][0] is _host_processor


class TestSetupLogging:
    def test_json_output(self, restore_logging):
        pgrepo_logging.setup_logging(level="DEBUG", json=True)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert structlog.get_config()["wrapper_class"] is structlog.stdlib.BoundLogger

    def test_console_output(self, restore_logging):
        pgrepo_logging.setup_logging(json=False)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
