import logging

from quire.log import ClickHandler, configure_logging, log_time_elapsed


def test_configure_logging_installs_handler_once():
    logger = logging.getLogger("quire")
    configure_logging()
    configure_logging(verbose=True)
    handlers = [h for h in logger.handlers if isinstance(h, ClickHandler)]
    assert len(handlers) == 1
    assert logger.level == logging.DEBUG
    configure_logging()
    assert logger.level == logging.INFO


def test_click_handler_format(capsys):
    handler = ClickHandler()
    handler.setFormatter(logging.Formatter("[+] %(levelname)s: %(message)s"))
    record = logging.LogRecord("quire", logging.INFO, __file__, 1, "Built %d", (3,), None)
    handler.emit(record)
    warning = logging.LogRecord("quire", logging.WARNING, __file__, 1, "Empty", (), None)
    handler.emit(warning)
    captured = capsys.readouterr()
    assert captured.out == "[+] INFO: Built 3\n"
    assert "[+] WARNING: Empty" in captured.err


def test_log_time_elapsed(caplog):
    with caplog.at_level(logging.INFO, logger="quire"):
        with log_time_elapsed("Creating Tags"):
            pass
    assert any(
        r.getMessage().startswith("Creating Tags ") and r.getMessage().endswith(" secs")
        for r in caplog.records
    )
