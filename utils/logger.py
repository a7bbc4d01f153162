# DEPENDENCIES
import sys
import time
import json
import logging
from typing import Any
from typing import Dict
from pathlib import Path
from typing import Optional
from functools import wraps
from datetime import datetime
from datetime import timezone


class ContractAnalyzerLogger:
    """
    Structured JSON logging for contract analysis

    Only allow-listed field names reach the log sink: contract text, clause text,
    moderation verdicts and raw provider payloads are dropped, never serialized
    """
    _loggers  : Dict[str, logging.Logger] = dict()
    _log_dir  : Optional[Path]            = None
    _app_name : str                       = "contract_analyzer"

    SAFE_KEYS                             = frozenset({"req_id",
                                                       "owner_id",
                                                       "route",
                                                       "method",
                                                       "status",
                                                       "duration_ms",
                                                       "component",
                                                       "operation",
                                                       "ai_provider",
                                                       "ai_model",
                                                       "ai_tokens_in",
                                                       "ai_tokens_out",
                                                       "ai_latency_ms",
                                                       "ai_ran",
                                                       "ai_fallback_used",
                                                       "attempt",
                                                       "attempts",
                                                       "models",
                                                       "error_code",
                                                       "error_type",
                                                       "analysis_id",
                                                       "contract_id",
                                                       "flag_count",
                                                       "overall_risk",
                                                       "text_length",
                                                       "truncated",
                                                       "degraded",
                                                       "use_ai",
                                                       "providers",
                                                       "retry_after",
                                                      })

    # Log levels
    DEBUG                                 = logging.DEBUG
    INFO                                  = logging.INFO
    WARNING                               = logging.WARNING
    ERROR                                 = logging.ERROR
    CRITICAL                              = logging.CRITICAL


    @classmethod
    def setup(cls, log_dir: str = "logs", app_name: str = "contract_analyzer", level: str = "INFO"):
        """
        Setup logging system with file sinks

        Arguments:
        ----------
            log_dir  { str } : Directory for log files

            app_name { str } : Application name for log files

            level    { str } : Level name for the main logger
        """
        cls._log_dir  = Path(log_dir)
        cls._app_name = app_name
        cls._log_dir.mkdir(parents = True, exist_ok = True)

        cls._create_logger(name     = app_name,
                           log_file = cls._log_dir / f"{app_name}.log",
                           level    = getattr(logging, level.upper(), logging.INFO),
                          )

        cls._create_logger(name     = f"{app_name}.error",
                           log_file = cls._log_dir / f"{app_name}_error.log",
                           level    = logging.ERROR,
                          )

        cls._create_logger(name     = f"{app_name}.performance",
                           log_file = cls._log_dir / f"{app_name}_performance.log",
                           level    = logging.INFO,
                          )


    @classmethod
    def _create_logger(cls, name: str, log_file: Optional[Path], level: int) -> logging.Logger:
        """
        Create and configure a logger; without a log file only the console handler is attached
        """
        logger          = logging.getLogger(name)
        logger.setLevel(level)
        logger.propagate = False

        # Clear existing handlers
        logger.handlers.clear()

        formatter       = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s', datefmt = '%Y-%m-%d %H:%M:%S')

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        # Console handler (for warnings and above)
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        cls._loggers[name] = logger

        return logger


    @classmethod
    def get_logger(cls, name: Optional[str] = None) -> logging.Logger:
        """
        Get logger by name; console-only until setup() is called
        """
        name = name or cls._app_name

        if name not in cls._loggers:
            cls._create_logger(name = name, log_file = None, level = logging.INFO)

        return cls._loggers[name]


    @classmethod
    def safe_fields(cls, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Keep only allow-listed keys; unknown keys are dropped silently
        """
        return {key: value for key, value in fields.items() if key in cls.SAFE_KEYS}


    @classmethod
    def log_structured(cls, level: int, message: str, **kwargs):
        """
        Log structured data as JSON

        Arguments:
        ----------
            level      { int } : Log level

            message    { str } : Log message

            **kwargs           : Additional structured data (filtered by SAFE_KEYS)
        """
        logger   = cls.get_logger()

        log_data = {"ts"      : datetime.now(timezone.utc).isoformat(),
                    "message" : message,
                    **cls.safe_fields(kwargs),
                   }

        logger.log(level, json.dumps(log_data, default = str))


    @classmethod
    def log_error(cls, error: Exception, context: Dict[str, Any] = None):
        """
        Log error type and message with allow-listed context

        Arguments:
        ----------
            error      { Exception } : Exception object

            context      { dict }    : Additional context dictionary
        """
        error_logger = cls.get_logger(f"{cls._app_name}.error")

        error_data   = {"ts"            : datetime.now(timezone.utc).isoformat(),
                        "error_type"    : type(error).__name__,
                        "error_message" : str(error)[:500],
                        "context"       : cls.safe_fields(context or {}),
                       }

        error_logger.error(json.dumps(error_data, default = str))


    @classmethod
    def log_performance(cls, operation: str, duration: float, **metrics):
        """
        Log performance metrics

        Arguments:
        ----------
            operation  { str }  : Operation name

            duration  { float } : Duration in seconds

            **metrics           : Additional metrics (filtered by SAFE_KEYS)
        """
        perf_logger = cls.get_logger(f"{cls._app_name}.performance")

        perf_data   = {"ts"          : datetime.now(timezone.utc).isoformat(),
                       "operation"   : operation,
                       "duration_ms" : int(duration * 1000),
                       **cls.safe_fields(metrics),
                      }

        perf_logger.info(json.dumps(perf_data, default = str))


    @staticmethod
    def log_execution_time(operation_name: str = None):
        """
        Decorator to log execution time of functions
        """
        def decorator(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                op_name    = operation_name or func.__name__
                start_time = time.time()

                try:
                    result   = func(*args, **kwargs)
                    duration = time.time() - start_time

                    ContractAnalyzerLogger.log_performance(operation = op_name,
                                                           duration  = duration,
                                                           status    = "success",
                                                          )

                    return result

                except Exception as e:
                    duration = time.time() - start_time

                    ContractAnalyzerLogger.log_performance(operation  = op_name,
                                                           duration   = duration,
                                                           status     = "error",
                                                           error_type = type(e).__name__,
                                                          )

                    raise

            return wrapper

        return decorator



# Convenience functions
def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get logger instance
    """
    return ContractAnalyzerLogger.get_logger(name)


def log_event(event: str, **fields):
    """
    Log a named event with allow-listed fields only
    """
    ContractAnalyzerLogger.log_structured(logging.INFO, event, **fields)


def log_info(message: str, **kwargs):
    ContractAnalyzerLogger.log_structured(logging.INFO, message, **kwargs)


def log_warning(message: str, **kwargs):
    ContractAnalyzerLogger.log_structured(logging.WARNING, message, **kwargs)


def log_error(error: Exception, context: Dict[str, Any] = None):
    ContractAnalyzerLogger.log_error(error, context)


def log_debug(message: str, **kwargs):
    ContractAnalyzerLogger.log_structured(logging.DEBUG, message, **kwargs)
