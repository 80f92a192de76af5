from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the database stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_id_list(value: str | list | None) -> list[int] | None:
    """
    Normalizes a model allow-list given as a list or a comma separated string.
    None and empty input mean "no list configured".
    """
    if value is None:
        return None
    items = value.split(",") if isinstance(value, str) else value
    ids = [int(str(item).strip()) for item in items if str(item).strip()]
    return ids or None


def format_id_list(ids: list[int] | None) -> str | None:
    if not ids:
        return None
    return ",".join(str(i) for i in ids)
