"""
Computed parameter values resolved when a statement is bound
"""
import random
import string
import time
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

RANDOM_STRING_ALPHABET = string.ascii_lowercase + string.digits
RANDOM_STRING_LENGTH = 8
RANDOM_INT_RANGE = (1, 9999)


class Keyword(Enum):
    """
    Placeholder values a caller can put in parameter data.

    Each member is replaced by its computed value right before the
    statement is bound, so a parameter can refer to e.g. the id generated
    by the previous insert without the caller fetching it first.
    """
    LAST_INSERT_ID = "@lastInsertId"
    CURRENT_DATE = "@currentDate"
    CURRENT_DATETIME = "@currentDateTime"
    CURRENT_TIME = "@currentTime"
    CURRENT_TIMESTAMP = "@currentTimestamp"
    CURRENT_YEAR = "@currentYear"
    CURRENT_MONTH = "@currentMonth"
    CURRENT_DAY = "@currentDay"
    CURRENT_WEEKDAY = "@currentWeekday"
    RANDOM_STRING = "@randomString"
    RANDOM_INT = "@randomInt"
    RANDOM_FLOAT = "@randomFloat"
    RANDOM_BOOLEAN = "@randomBoolean"

    def resolve(self, last_insert_id: Optional[Callable[[], Any]] = None,
                now: Optional[datetime] = None) -> Any:
        """
        Compute the value this keyword stands for

        Args:
            last_insert_id: Callable returning the connection's last inserted id
            now: Reference time for the date and time keywords
        """
        if self is Keyword.LAST_INSERT_ID:
            if last_insert_id is None:
                raise ValueError("LAST_INSERT_ID needs a connection to resolve")
            return last_insert_id()

        if self is Keyword.CURRENT_TIMESTAMP:
            return int(now.timestamp()) if now else int(time.time())

        now = now or datetime.now()
        formats = {
            Keyword.CURRENT_DATE: '%Y-%m-%d',
            Keyword.CURRENT_DATETIME: '%Y-%m-%d %H:%M:%S',
            Keyword.CURRENT_TIME: '%H:%M:%S',
            Keyword.CURRENT_YEAR: '%Y',
            Keyword.CURRENT_MONTH: '%m',
            Keyword.CURRENT_DAY: '%d',
            Keyword.CURRENT_WEEKDAY: '%A',
        }
        if self in formats:
            return now.strftime(formats[self])

        if self is Keyword.RANDOM_STRING:
            return ''.join(random.sample(RANDOM_STRING_ALPHABET, RANDOM_STRING_LENGTH))
        if self is Keyword.RANDOM_INT:
            return random.randint(*RANDOM_INT_RANGE)
        if self is Keyword.RANDOM_FLOAT:
            return random.randint(*RANDOM_INT_RANGE) / 100
        return random.random() < 0.5
