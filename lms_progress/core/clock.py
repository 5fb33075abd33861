from __future__ import annotations

import datetime
from collections.abc import Callable

Clock = Callable[[], int]


def epoch_now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


def format_epoch(ts: int, fmt: str) -> str:
    return datetime.datetime.fromtimestamp(ts, datetime.UTC).strftime(fmt)
