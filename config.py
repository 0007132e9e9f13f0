import os
from functools import lru_cache

DEFAULT_DATE_FIELDS = (
    "created_at",
    "date",
    "formatted_date",
    "order_date",
    "last_message_at",
    "chat_date",
)

MIN_SEARCH_DEBOUNCE_MS = 300


class Settings:
    def __init__(
        self,
        timezone: str,
        week_start: int,
        date_fields: tuple[str, ...],
        search_debounce_ms: int,
        log_level: str,
    ) -> None:
        self.timezone = timezone
        self.week_start = week_start
        self.date_fields = date_fields
        self.search_debounce_ms = search_debounce_ms
        self.log_level = log_level


def _parse_fields(raw: str) -> tuple[str, ...]:
    fields = tuple(part.strip() for part in raw.split(",") if part.strip())
    return fields or DEFAULT_DATE_FIELDS


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    timezone = os.getenv("LISTINGS_TIMEZONE", "Africa/Lagos")
    week_start = int(os.getenv("LISTINGS_WEEK_START", "0"))
    if not 0 <= week_start <= 6:
        raise ValueError("LISTINGS_WEEK_START must be between 0 (Monday) and 6")
    date_fields = _parse_fields(
        os.getenv("LISTINGS_DATE_FIELDS", ",".join(DEFAULT_DATE_FIELDS))
    )
    debounce_ms = int(os.getenv("LISTINGS_SEARCH_DEBOUNCE_MS", "300"))
    search_debounce_ms = max(MIN_SEARCH_DEBOUNCE_MS, debounce_ms)
    log_level = os.getenv("LISTINGS_LOG_LEVEL", "INFO").upper()
    return Settings(
        timezone=timezone,
        week_start=week_start,
        date_fields=date_fields,
        search_debounce_ms=search_debounce_ms,
        log_level=log_level,
    )
