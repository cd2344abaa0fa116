"""
Structured operation logging for the query service.
Credentials and long free-text payloads are masked before they reach the log.
"""

import logging
from typing import Any, Dict, List


def mask_token(token: str) -> str:
    """Keep only the recognizable prefix and the last four characters of a token."""
    if not token:
        return ""
    if len(token) <= 8:
        return "***"
    return f"{token[:4]}...{token[-4:]}"


def truncate(value: str, limit: int = 50) -> str:
    """Shorten long text for log output."""
    if value is None:
        return value
    return value[:limit] + "..." if len(value) > limit else value


class StructuredLogger:
    """Structured logger for teach, resolution, training, credential and heartbeat operations."""

    def __init__(self, name: str = "nash"):
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
            self.logger.error(message)
        else:
            self.logger.info(message)

    def log_teach(self, question: str, answer: str, status: str = "success"):
        """Log a teach request outcome (created, duplicate, failed)."""
        details = {"question": truncate(question), "answer": truncate(answer)}
        self.log_operation("knowledge.teach", status, details)

    def log_resolution(self, language: str, prompt: str, source: str):
        """Log which pipeline stage answered a prompt."""
        details = {"language": language, "prompt": truncate(prompt), "source": source}
        self.log_operation("pipeline.resolve", "success", details)

    def log_training(self, start_time: float, end_time: float, documents: int, status: str = "success", details: Dict[str, Any] = None):
        """Log a matcher training run."""
        log_details = {
            "duration_ms": round((end_time - start_time) * 1000, 2),
            "documents": documents
        }
        if details:
            log_details.update(details)

        self.log_operation("matcher.train", status, log_details)

    def log_credential_event(self, action: str, token: str = None, details: Dict[str, Any] = None, status: str = "success"):
        """Log a credential lifecycle event with the token masked."""
        log_details = {}
        if token is not None:
            log_details["api_key"] = mask_token(token)
        if details:
            log_details.update(details)

        self.log_operation(f"credentials.{action}", status, log_details)

    def log_heartbeat_task(self, task_name: str, start_time: float, end_time: float, status: str = "success", details: Dict[str, Any] = None):
        """Log heartbeat task execution."""
        duration_ms = round((end_time - start_time) * 1000, 2)
        log_details = {"duration_ms": duration_ms}
        if details:
            log_details.update(details)
        elif status == "success":
            log_details["message"] = f"Heartbeat task '{task_name}' completed in {duration_ms}ms"
        elif status == "failed":
            log_details["message"] = f"Heartbeat task '{task_name}' failed after {duration_ms}ms"

        self.log_operation(f"heartbeat.{task_name}", status, log_details)

    def log_validation_error(self, path: str, errors: List[Any]):
        """Log rejected request parameters without echoing their values."""
        fields = []
        for error in errors:
            if isinstance(error, dict):
                fields.append(error.get("field", "unknown"))
            else:
                fields.append(str(error)[:100])

        self.log_operation("request.validation", "rejected", {"path": path, "fields": fields})

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
