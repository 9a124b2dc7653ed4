"""Ready-made line consumers."""

import json
import logging
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)


def default_printer(line: str, is_last: bool) -> None:
    # Keep it minimal, callers can override
    print(line)


class JsonLineConsumer:
    """
    Parses each delivered line as a JSON document and keeps the records.

    A line that fails to parse, or whose record `on_record` rejects, is logged
    and counted in ``errors``; it never stops the lines that follow it.
    """

    def __init__(self, on_record: Optional[Callable[[Any, bool], None]] = None):
        self.on_record = on_record
        self.records: List[Any] = []
        self.errors = 0
        self.completed = False

    def accept(self, line: str, is_last: bool) -> None:
        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            self.errors += 1
            logger.error(f"Failed to parse JSON line: {e}; data: {line[:200]!r}")
        else:
            logger.debug(f"Received record: {record!r}")
            self.records.append(record)
            if self.on_record:
                try:
                    self.on_record(record, is_last)
                except Exception as e:
                    self.errors += 1
                    logger.exception(f"Record handler failed: {e}; record: {record!r}")

        if is_last:
            self.completed = True
            logger.info(f"Stream complete: {len(self.records)} records, {self.errors} failed lines")
