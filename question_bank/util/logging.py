"""
Structured logging for catalog operations: record writes, bulk imports,
reconciliation runs and dropped parse lines.
"""

import logging
from typing import Any, Dict, List


class StructuredLogger:
    """Structured logger for question catalog operations."""

    def __init__(self, name: str = "question_bank"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status in ("failed", "error"):
            self.logger.warning(message)
        else:
            self.logger.info(message)

    def log_record_operation(self, operation: str, category: str, identifier: str,
                             record_id: Any = None, status: str = "success", content: str = None):
        """Log a write against a single question record."""
        details = {"category": category, "identifier": identifier}
        if record_id is not None:
            details["id"] = record_id
        if content is not None:
            details["content"] = sanitize_payload(content, limit=50)

        self.log_operation(f"question.{operation}", status, details)

    def log_bulk_progress(self, completed: int, total: int, failed: int = 0):
        """Log sequential bulk import progress."""
        percentage = round(completed / total * 100) if total else 100
        self.logger.debug(
            f"Operation: bulk.progress, Status: running, Details: "
            f"{{'completed': {completed}, 'total': {total}, 'failed': {failed}, 'percent': {percentage}}}"
        )

    def log_bulk_summary(self, total: int, succeeded: int, failed: int, skipped: int, aborted: bool):
        """Log the outcome of a bulk import."""
        log_details = {
            "total": total,
            "succeeded": succeeded,
            "failed": failed,
            "skipped": skipped,
        }
        status = "aborted" if aborted else ("partial" if failed else "success")
        self.log_operation("bulk.import", status, log_details)

    def log_reconcile(self, category: str, requested: int, found: int, missing: int, errors: int = 0):
        """Log a reconciliation run."""
        log_details = {
            "category": category,
            "requested": requested,
            "found": found,
            "missing": missing,
        }
        if errors:
            log_details["normalization_errors"] = errors

        self.log_operation("reconcile", "success", log_details)

    def log_parse_drop(self, error):
        """Log a text line the block parser could not use (a ParseError)."""
        self.logger.debug(
            f"Operation: parse.drop, Status: skipped, Details: {{'line_no': {error.line_no}, 'line': {error.line[:60]!r}}}"
        )

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()


def sanitize_payload(payload: Any, sensitive_fields: List[str] = None, limit: int = 100) -> Any:
    """Truncate long strings and mask listed fields before they reach a log line."""
    if sensitive_fields is None:
        sensitive_fields = []

    if isinstance(payload, dict):
        sanitized = {}
        for k, v in payload.items():
            if k in sensitive_fields:
                sanitized[k] = "[REDACTED]"
            else:
                sanitized[k] = sanitize_payload(v, sensitive_fields, limit)
        return sanitized
    elif isinstance(payload, str):
        return payload[:limit] + "..." if len(payload) > limit else payload
    elif isinstance(payload, list):
        return [sanitize_payload(item, sensitive_fields, limit) for item in payload]
    else:
        return payload
