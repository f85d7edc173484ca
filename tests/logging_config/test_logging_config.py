import logging

import pytest

from fuzzy_forest.logging_config import LoggingConfigurator, ColoredFormatter


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers = handlers
    root.setLevel(level)


def test_setup_console_and_file(tmp_path):
    config = {'logging': {'level': 'DEBUG', 'log_dir': str(tmp_path / "logs")}}

    LoggingConfigurator(config).setup()

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 2
    assert (tmp_path / "logs").is_dir()


def test_file_logging_writes_utf8(tmp_path):
    config = {'logging': {'level': 'INFO', 'log_to_console': False, 'log_dir': str(tmp_path)}}
    configurator = LoggingConfigurator(config)
    configurator.setup()

    configurator.get_logger('fuzzy_forest').info("module µ screened")
    for handler in logging.getLogger().handlers:
        handler.flush()

    content = (tmp_path / "pipeline.log").read_text(encoding='utf-8')
    assert "module µ screened" in content
    assert "[fuzzy_forest]" in content


def test_console_only(tmp_path):
    config = {'logging': {'log_to_file': False, 'colorful_console': False, 'log_dir': str(tmp_path / "x")}}

    LoggingConfigurator(config).setup()

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert not isinstance(root.handlers[0].formatter, ColoredFormatter)
    assert not (tmp_path / "x").exists()


def test_colored_formatter_leaves_record_untouched():
    formatter = ColoredFormatter('%(levelname)s %(message)s')
    record = logging.LogRecord('t', logging.WARNING, __file__, 1, "careful", None, None)

    output = formatter.format(record)

    assert "careful" in output
    assert "\x1b[" in output
    assert record.levelname == 'WARNING'
