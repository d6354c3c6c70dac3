"""
BlueCarbon Registry - Logging System
======================================
Logging strutturato del registro.

Last Updated: 2026-10-18
Version: 1.0.0

- File bluecarbon.log con rotation, una riga JSON per record
- Console colorata (stderr)
- extra_data su ogni chiamata: campi strutturati accanto al messaggio
- Audit trail lifecycle su audit.log (JSON, senza rotation)
"""

import logging
import logging.handlers
import json
import sys
import time
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime, timezone


ROOT_LOGGER_NAME = "bluecarbon"


def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


# ============================================================================
# FORMATTERS
# ============================================================================

class JSONFormatter(logging.Formatter):
    """
    Un record per riga:

    {"timestamp": "2026-10-18T10:00:00.000000Z", "level": "INFO",
     "logger": "bluecarbon.credit_service", "message": "Credit minted",
     "source": "credit_service:mint_credits:120", "extra_data": {...}}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": _record_time(record).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            entry["extra_data"] = extra_data

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ColoredTextFormatter(logging.Formatter):
    """Console: `HH:MM:SS LEVEL logger: message | extra_data`"""

    COLORS = {
        'DEBUG': '\033[90m',
        'INFO': '\033[92m',
        'WARNING': '\033[93m',
        'ERROR': '\033[91m',
        'CRITICAL': '\033[1;91m',
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.use_colors and level in self.COLORS:
            level = f"{self.COLORS[level]}{level}{self.RESET}"

        line = f"{_record_time(record):%Y-%m-%d %H:%M:%S} [{level}] {record.name}: {record.getMessage()}"

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            line += f" | {extra_data}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ============================================================================
# LOGGER CLASS
# ============================================================================

class RegistryLogger:
    """
    Wrapper di logging.Logger con argomento `extra_data`.

    extra_data finisce sul record come attributo omonimo ed è
    serializzato dai formatter del modulo.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, message: str, extra_data: Optional[Dict[str, Any]], exc_info: Any = None):
        self._logger.log(
            level,
            message,
            exc_info=exc_info,
            extra={'extra_data': extra_data} if extra_data else None,
            stacklevel=3,
        )

    def debug(self, message: str, extra_data: Optional[Dict] = None):
        self._log(logging.DEBUG, message, extra_data)

    def info(self, message: str, extra_data: Optional[Dict] = None):
        self._log(logging.INFO, message, extra_data)

    def warning(self, message: str, extra_data: Optional[Dict] = None):
        self._log(logging.WARNING, message, extra_data)

    def error(self, message: str, extra_data: Optional[Dict] = None, exc_info: Any = None):
        self._log(logging.ERROR, message, extra_data, exc_info)

    def exception(self, message: str, extra_data: Optional[Dict] = None):
        """ERROR con traceback dell'eccezione corrente"""
        self._log(logging.ERROR, message, extra_data, exc_info=sys.exc_info())


# ============================================================================
# SETUP
# ============================================================================

def setup_logging(
    log_level: str = "INFO",
    log_to_file: bool = False,
    log_dir: Path = Path("./logs"),
    log_format: str = "json",
    log_rotation_mb: int = 100,
    log_retention_days: int = 30,
    enable_console: bool = True,
) -> RegistryLogger:
    """
    Configura il logger "bluecarbon" (sostituisce handler precedenti).

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR, CRITICAL
        log_to_file: Scrive log_dir/bluecarbon.log con rotation
        log_format: Formato file, json o text
        log_rotation_mb: Dimensione massima del file prima della rotation
        log_retention_days: Numero di file ruotati conservati
        enable_console: Handler colorato su stderr

    Example:
        >>> logger = setup_logging(log_level="DEBUG", log_to_file=True)
        >>> logger.info("API started", extra_data={"port": 5000})
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    if log_to_file:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / "bluecarbon.log",
            maxBytes=log_rotation_mb * 1024 * 1024,
            backupCount=log_retention_days,
            encoding='utf-8'
        )
        file_handler.setFormatter(
            JSONFormatter() if log_format == "json" else ColoredTextFormatter(use_colors=False)
        )
        root_logger.addHandler(file_handler)

    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(ColoredTextFormatter())
        root_logger.addHandler(console_handler)

    return RegistryLogger(root_logger)


def setup_logging_from_settings(config, enable_console: bool = True) -> RegistryLogger:
    """Setup logging usando i campi log_* di RegistrySettings"""
    return setup_logging(
        log_level=config.log_level,
        log_to_file=config.log_to_file,
        log_dir=config.log_dir,
        log_format=config.log_format,
        log_rotation_mb=config.log_rotation_mb,
        log_retention_days=config.log_retention_days,
        enable_console=enable_console,
    )


def get_logger(category: str) -> RegistryLogger:
    """
    Logger "bluecarbon.<category>".

    Example:
        >>> storage_logger = get_logger("storage")
        >>> storage_logger.info("Store opened")
    """
    return RegistryLogger(logging.getLogger(f"{ROOT_LOGGER_NAME}.{category}"))


# ============================================================================
# PERFORMANCE TRACKING
# ============================================================================

class PerformanceLogger:
    """
    Misura la durata del blocco e la logga a DEBUG.

    Example:
        >>> with PerformanceLogger(get_logger("analytics"), "market_stats"):
        ...     compute()
    """

    def __init__(self, logger: RegistryLogger, operation: str):
        self.logger = logger
        self.operation = operation
        self.start_time = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed_ms = round((time.perf_counter() - self.start_time) * 1000, 2)
        outcome = "failed" if exc_type is not None else "completed"
        self.logger.debug(
            f"{self.operation} {outcome} in {elapsed_ms}ms",
            extra_data={"operation": self.operation, "duration_ms": elapsed_ms}
        )


# ============================================================================
# AUDIT LOGGER
# ============================================================================

class AuditLogger:
    """
    Audit trail delle operazioni lifecycle (progetti e crediti).

    Senza log_dir i record passano solo dal logger "bluecarbon.audit"
    e quindi dagli handler configurati con setup_logging.
    """

    def __init__(self, log_dir: Optional[Path] = None):
        self.log_dir = log_dir
        self.logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.audit")
        self.logger.setLevel(logging.INFO)

        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            audit_file = (log_dir / "audit.log").resolve()

            # Un solo handler per file anche con più istanze
            already_attached = any(
                isinstance(h, logging.FileHandler) and Path(h.baseFilename) == audit_file
                for h in self.logger.handlers
            )
            if not already_attached:
                handler = logging.FileHandler(audit_file, encoding='utf-8')
                handler.setFormatter(JSONFormatter())
                self.logger.addHandler(handler)

    def _record(self, message: str, action: str, **fields):
        self.logger.info(
            message,
            extra={
                'extra_data': {
                    "action": action,
                    **fields,
                    "timestamp": datetime.now(timezone.utc).isoformat()
                }
            }
        )

    def log_project_registered(self, project_id: str, project_type: str, developer_id: str):
        self._record(
            "Project registered", "project_registered",
            project_id=project_id, project_type=project_type, developer_id=developer_id
        )

    def log_project_verified(self, project_id: str, status: str):
        self._record("Project verification", "project_verified", project_id=project_id, status=status)

    def log_credit_minted(self, credit_id: str, token_id: str, amount: int, owner_id: str, tx_hash: str):
        self._record(
            "Credit minted", "credit_minted",
            credit_id=credit_id, token_id=token_id, amount=amount,
            owner_id=owner_id, tx_hash=tx_hash
        )

    def log_credit_purchased(self, credit_id: str, buyer_id: str, amount: int, tx_hash: str):
        self._record(
            "Credit purchased", "credit_purchased",
            credit_id=credit_id, buyer_id=buyer_id, amount=amount, tx_hash=tx_hash
        )

    def log_credit_retired(
        self,
        credit_id: str,
        retired_by: str,
        amount: int,
        tx_hash: str,
        reason: Optional[str] = None
    ):
        """reason è opzionale e viene scritto anche se None"""
        self._record(
            "Credit retired", "credit_retired",
            credit_id=credit_id, retired_by=retired_by, amount=amount,
            tx_hash=tx_hash, reason=reason
        )


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "ROOT_LOGGER_NAME",
    "setup_logging",
    "setup_logging_from_settings",
    "get_logger",
    "RegistryLogger",
    "PerformanceLogger",
    "AuditLogger",
    "JSONFormatter",
    "ColoredTextFormatter",
]
