"""
Logging setup: structured JSON lines on stdout with secrets redacted.
"""
import json
import logging
import re

SENSITIVE_PATTERNS = [
    (re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^"\'&\s,}]+)', re.I), r'\1***REDACTED***'),  # Senhas
    (re.compile(r'(senha["\']?\s*[:=]\s*["\']?)([^"\'&\s,}]+)', re.I), r'\1***REDACTED***'),
    (re.compile(r'(auth_?code["\']?\s*[:=]\s*["\']?)([^"\'&\s,}]+)', re.I), r'\1***REDACTED***'),  # Códigos OTP
    (re.compile(r'(api[_-]?key["\']?\s*[:=]\s*["\']?)([^"\'&\s,}]+)', re.I), r'\1***REDACTED***'),
    (re.compile(r'(token["\']?\s*[:=]\s*["\']?)([^"\'&\s,}]+)', re.I), r'\1***REDACTED***'),
    (re.compile(r'(secret["\']?\s*[:=]\s*["\']?)([^"\'&\s,}]+)', re.I), r'\1***REDACTED***'),
    (re.compile(r'(Bearer\s+)([a-zA-Z0-9._-]+)', re.I), r'\1***REDACTED***'),
]


def sanitize_log_message(message: str) -> str:
    """Remove sensitive data patterns from log messages."""
    for pattern, replacement in SENSITIVE_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


class SensitiveDataFilter(logging.Filter):
    def filter(self, record):
        message = record.getMessage()
        sanitized = sanitize_log_message(message)
        if sanitized != message:
            record.msg = sanitized
            record.args = None
        return True


# Configuração de Logs (JSON Estruturado)
class JsonFormatter(logging.Formatter):
    def format(self, record):
        json_log = {
            "severity": record.levelname,
            "message": record.getMessage(),
            "timestamp": self.formatTime(record, self.datefmt),
            "logger": record.name,
            "module": record.module,
        }
        if hasattr(record, "props"):
            json_log.update(record.props)

        if record.exc_info:
            json_log["exception"] = self.formatException(record.exc_info)

        return json.dumps(json_log, ensure_ascii=False, default=str)


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach the JSON handler to the application logger. Safe to call repeatedly."""
    app_logger = logging.getLogger("certguardian")
    app_logger.setLevel(level.upper() if isinstance(level, str) else level)

    if not any(getattr(h, "_certguardian", False) for h in app_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        handler.addFilter(SensitiveDataFilter())
        handler._certguardian = True
        app_logger.addHandler(handler)

    return app_logger
