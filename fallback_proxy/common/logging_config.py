import json
import logging
import traceback
import re
from datetime import datetime, timezone


class ApiKeyFilter(logging.Filter):
    """Masks credentials (management keys, bearer tokens, provider keys) in log records."""

    KEY_PATTERN = re.compile(
        # key=VALUE in query strings, until & or space or quote
        r"(?P<prefix>key=)(?P<key1>[^&\s\"']+)"
        r"|"
        # Bearer tokens in headers or error messages
        r"(?P<bearer_prefix>Bearer\s+|Authorization:\s*Bearer\s*)(?P<key2>[^\"'\s]+)"
        r"|"
        # Provider key formats (Google AIza, OpenAI sk-), whole tokens only
        r"(?<![A-Za-z0-9\-_])(?P<key3>"
        r"AIzaSy[A-Za-z0-9\-_]{33}|"
        r"sk-[a-zA-Z0-9\-_]{20,}"
        r")"
    )

    KNOWN_KEYS = set()

    @classmethod
    def add_sensitive_keys(cls, keys):
        """Registers a list of keys to be explicitly masked."""
        if not keys:
            return
        cls.KNOWN_KEYS.update(str(k) for k in keys if k)

    def mask(self, s: str) -> str:
        def replacer(match):
            if match.group("prefix"):
                return f"{match.group('prefix')}***MASKED***"
            if match.group("bearer_prefix"):
                return f"{match.group('bearer_prefix')}***MASKED***"
            return "***MASKED***"

        s = self.KEY_PATTERN.sub(replacer, s)

        # Exact match pass for registered keys the patterns miss
        for key in self.KNOWN_KEYS:
            if key in s:
                s = s.replace(key, "***MASKED***")
        return s

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.mask(record.msg)
        if record.args:
            args = list(record.args)
            for i, arg in enumerate(args):
                if isinstance(arg, str):
                    args[i] = self.mask(arg)
            record.args = tuple(args)
        return True


class JSONFormatter(logging.Formatter):
    """
    Formats log records as a JSON string.
    """

    def format(self, record):
        log_record = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "name": record.name,
        }

        if record.exc_info:
            log_record["exception"] = "".join(
                traceback.format_exception(*record.exc_info)
            )

        return json.dumps(log_record)


def setup_json_logging(level: int = logging.INFO):
    """
    Sets up the root logger to use the JSONFormatter.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    # Safety net for every record reaching root
    handler.addFilter(ApiKeyFilter())

    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Quieten down noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logging.info("JSON logging configured.")
