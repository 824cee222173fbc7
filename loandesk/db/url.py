from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


def normalize_database_url(url: str) -> str:
    """Point plain Postgres URLs at the asyncpg driver and fold libpq ssl flags."""
    url = (url or "").strip()
    if not url:
        return url

    parts = urlsplit(url)
    scheme = parts.scheme
    if scheme in {"postgres", "postgresql", "postgresql+psycopg", "postgresql+psycopg2"}:
        scheme = "postgresql+asyncpg"

    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    if scheme == "postgresql+asyncpg":
        sslmode = query.pop("sslmode", None)
        ssl_key = next((key for key in query if key.lower() == "ssl"), None)
        ssl_val = query.pop(ssl_key, None) if ssl_key else sslmode
        if ssl_val is not None:
            normalized = ssl_val.lower().strip()
            if normalized in {"0", "false", "no", "off", "disable"}:
                query["ssl"] = "disable"
            elif normalized in {"prefer", "allow", "verify-ca", "verify-full"}:
                query["ssl"] = normalized
            else:
                query["ssl"] = "require"

    new_query = urlencode(query, doseq=True)
    return urlunsplit((scheme, parts.netloc, parts.path, new_query, parts.fragment))
