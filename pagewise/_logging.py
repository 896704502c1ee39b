import hashlib
import logging
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

# Create the library logger
logger = logging.getLogger("pagewise")

# Add NullHandler to prevent "No handlers could be found" warnings
# if the application doesn't configure logging.
logger.addHandler(logging.NullHandler())


def redact_url(url: str) -> str:
    """
    Redacts query-string values of a URL for logging.
    Values are hashed so requests can be correlated without leaking tokens.
    """
    try:
        split = urlsplit(str(url))
        if not split.query:
            return urlunsplit(split)
        redacted = [
            (k, hashlib.sha256(v.encode("utf-8")).hexdigest()[:8])
            for k, v in parse_qsl(split.query, keep_blank_values=True)
        ]
        return urlunsplit(split._replace(query=urlencode(redacted)))
    except Exception:
        return "<redaction_failed>"
