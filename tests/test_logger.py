import io
import logging

from context.logger import Logger, log_func


def test_console_sink_receives_loguru_and_stdlib_records():
    console = io.StringIO()
    Logger.init_logger(console=console, level="DEBUG")

    Logger.get_loguru().info("direct message")
    logging.getLogger("ccazure.test").warning("routed message")

    text = console.getvalue()
    assert "direct message" in text
    assert "routed message" in text
    assert "WARNING" in text


def test_level_filters_console():
    console = io.StringIO()
    Logger.init_logger(console=console, level="WARNING")

    logging.getLogger("ccazure.test").info("quiet")
    logging.getLogger("ccazure.test").error("loud")

    assert "quiet" not in console.getvalue()
    assert "loud" in console.getvalue()


def test_log_func_tags_records_with_call_stack():
    console = io.StringIO()
    Logger.init_logger(console=console)

    with log_func("preflight"):
        with log_func("roles"):
            Logger.get_loguru().info("nested")
        Logger.get_loguru().info("outer")

    lines = console.getvalue().splitlines()
    assert any("preflight.roles" in line and "nested" in line for line in lines)
    assert any("| preflight |" in line and "outer" in line for line in lines)


def test_file_sink(tmp_path):
    Logger.init_logger(log_dir=tmp_path / "logs", label="run", console=io.StringIO())
    Logger.get_loguru().info("to disk")
    Logger.reset()

    files = list((tmp_path / "logs").glob("*__run.log"))
    assert len(files) == 1
    assert "to disk" in files[0].read_text(encoding="utf-8")


def test_init_is_idempotent():
    first = Logger.init_logger(console=io.StringIO())
    assert Logger.init_logger(console=io.StringIO()) is first
