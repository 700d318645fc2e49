import logging
import time
from functools import wraps
from typing import Callable

def setup_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Sets up a logger with a standard format.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(level)
    return logger

def log_execution_time(logger: logging.Logger, threshold_ms: float = 10.0):
    """
    Decorator to measure execution time of a function.
    Only calls slower than threshold_ms are logged, at debug level.
    Failures are logged with their traceback and re-raised.
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                elapsed_ms = (time.perf_counter() - start) * 1000
                # Ticks and paints share the event loop with every slot
                if elapsed_ms > threshold_ms:
                    logger.debug(f"{func.__qualname__} took {elapsed_ms:.1f}ms (threshold {threshold_ms:.0f}ms)")
                return result
            except Exception as e:
                logger.error(f"{func.__qualname__} failed: {e}", exc_info=True)
                raise
        return wrapper
    return decorator
