import logging

from intake.logging.logger import StructuredFormatter


def _record(**fields: object) -> logging.LogRecord:
    record = logging.makeLogRecord({"msg": "hello", "levelname": "INFO", "levelno": 20})
    for key, value in fields.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    def test_plain_message_without_fields(self) -> None:
        formatter = StructuredFormatter("[%(levelname)s] %(message)s")
        assert formatter.format(_record()) == "[INFO] hello"

    def test_appends_sorted_fields(self) -> None:
        formatter = StructuredFormatter("%(message)s")
        line = formatter.format(_record(storage_key="t/s/INVOICE/x.pdf", failed_step="Step"))
        assert line == "hello | failed_step=Step storage_key=t/s/INVOICE/x.pdf"
