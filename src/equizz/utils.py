from datetime import UTC, datetime, timedelta


def now() -> datetime:
    return datetime.now(UTC)


def days_ago(days: int) -> datetime:
    return now() - timedelta(days=days)


def is_institutional_email(email: str, domain: str) -> bool:
    """Check that the email belongs to the given domain (case-insensitive, exact domain match)."""
    local, sep, email_domain = email.strip().rpartition("@")
    return bool(sep and local) and email_domain.lower() == domain.lower()


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with stored values."""
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
