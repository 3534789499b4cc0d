"""Startup-time helpers for safe config logging."""

from pydantic_settings import BaseSettings

from custrack.common.logging import logger

SECRET_MARKERS = ("key", "secret", "password", "token", "dsn")


def redact(field: str, value) -> str:
    """Render one setting for logs, hiding anything credential-shaped."""

    if value is None:
        return "<unset>"
    if any(marker in field.lower() for marker in SECRET_MARKERS):
        return "<redacted>"
    return str(value)


def log_startup_config(config: BaseSettings, fields: list[str] | None = None) -> dict[str, str]:
    """Log resolved settings (all of them, or just `fields`) for quick troubleshooting."""

    values = config.model_dump()
    selected = fields or sorted(values)
    summary = {field: redact(field, values.get(field)) for field in selected}
    logger.info("startup_config=%s", summary)
    return summary
