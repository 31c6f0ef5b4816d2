"""Tests for structured log fields and the rich handler setup."""

import io
import logging

from rich.console import Console
from rich.logging import RichHandler

from ch_schema_sync.logging_setup import (
    PACKAGE_LOGGER,
    FieldsFormatter,
    configure_logging,
    format_fields,
    log_fields,
)


class TestLogFields:
    """log_fields() builds the ``extra`` mapping."""

    def test_drops_none(self) -> None:
        assert log_fields(host="ch1", column=None) == {"fields": {"host": "ch1"}}

    def test_empty(self) -> None:
        assert log_fields() == {"fields": {}}


class TestFormatFields:
    """Known keys first in a fixed order, the rest alphabetically."""

    def test_order(self) -> None:
        fields = {"statement": "X", "column": "c", "host": "ch1", "table": "t", "database": "db"}
        assert format_fields(fields) == "host=ch1 database=db table=t column=c statement=X"

    def test_type_fields(self) -> None:
        fields = {"has_type": "UInt32", "need_type": "UInt64", "column": "id"}
        assert format_fields(fields) == "column=id need_type=UInt64 has_type=UInt32"


class TestFieldsFormatter:
    """Fields are appended to the rendered message."""

    def _record(self, **extra) -> logging.LogRecord:
        record = logging.LogRecord("ch_schema_sync.test", logging.ERROR, __file__, 1, "Table does not exist", None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_with_fields(self) -> None:
        record = self._record(fields={"host": "ch1", "table": "t"})
        assert FieldsFormatter("%(message)s").format(record) == "Table does not exist  host=ch1 table=t"

    def test_without_fields(self) -> None:
        assert FieldsFormatter("%(message)s").format(self._record()) == "Table does not exist"


class TestConfigureLogging:
    """configure_logging() installs exactly one rich handler."""

    def test_levels(self) -> None:
        assert configure_logging().level == logging.INFO
        assert configure_logging(verbose=True).level == logging.DEBUG

    def test_reconfigure_replaces_handler(self) -> None:
        configure_logging()
        logger = configure_logging()
        handlers = [h for h in logger.handlers if isinstance(h, RichHandler)]
        assert len(handlers) == 1
        assert logger.name == PACKAGE_LOGGER
        assert logger.propagate is False

    def test_output_contains_fields(self) -> None:
        buffer = io.StringIO()
        configure_logging(console=Console(file=buffer, width=200))

        logging.getLogger("ch_schema_sync.schema.sync").error(
            "Column type mismatch",
            extra=log_fields(host="ch1", column="id", need_type="UInt64", has_type="UInt32"),
        )

        output = buffer.getvalue()
        assert "Column type mismatch" in output
        assert "host=ch1 column=id need_type=UInt64 has_type=UInt32" in output

    def test_debug_hidden_unless_verbose(self) -> None:
        buffer = io.StringIO()
        configure_logging(console=Console(file=buffer, width=200))
        logging.getLogger("ch_schema_sync.schema.fix").debug("ALTER TABLE t DROP COLUMN c")
        assert buffer.getvalue() == ""
