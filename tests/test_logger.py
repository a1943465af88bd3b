import logging
import sys

from photo_template.logger import get_logger, setup_logger


def _stderr_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr]


def test_setup_logger_keeps_single_stderr_handler():
    setup_logger()
    logger = setup_logger()
    assert len(_stderr_handlers(logger)) == 1
    assert logger.propagate is False


def test_env_level_override(monkeypatch):
    monkeypatch.setenv("PHOTO_TEMPLATE_LOG_LEVEL", "debug")
    assert setup_logger().level == logging.DEBUG
    monkeypatch.setenv("PHOTO_TEMPLATE_LOG_LEVEL", "warning")
    assert setup_logger().level == logging.WARNING
    monkeypatch.delenv("PHOTO_TEMPLATE_LOG_LEVEL")
    setup_logger()


def test_category_filter(monkeypatch):
    monkeypatch.setenv("PHOTO_TEMPLATE_LOG_CATS", "store, generation")
    logger = setup_logger()
    (handler,) = _stderr_handlers(logger)

    def allowed(name: str) -> bool:
        record = logging.LogRecord(name, logging.INFO, __file__, 1, "msg", None, None)
        return all(f.filter(record) for f in handler.filters)

    assert allowed("photo_template.store")
    assert allowed("photo_template.generation")
    assert not allowed("photo_template.backend")

    monkeypatch.delenv("PHOTO_TEMPLATE_LOG_CATS")
    setup_logger()
    assert handler.filters == []


def test_get_logger_returns_child():
    assert get_logger("store").name == "photo_template.store"
    assert get_logger().name == "photo_template"
