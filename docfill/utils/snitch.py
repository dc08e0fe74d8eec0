import contextvars
import functools
import logging
import uuid
from typing import Optional

# Trace id of the record operation currently running
_trace_id_ctx = contextvars.ContextVar("trace_id", default="NO-TRACE")

logger = logging.getLogger("docfill.trace")


def start_trace(custom_id: Optional[str] = None) -> str:
    """Call this once at the start of every externally triggered operation."""
    tid = custom_id or f"op-{str(uuid.uuid4())[:8]}"
    _trace_id_ctx.set(tid)
    return tid


def get_trace_id() -> str:
    """Retrieve the current id anywhere in the code."""
    return _trace_id_ctx.get()


def traced(func):
    """
    Decorator to log entry/exit of a record operation with the trace id.

    A fresh trace id is started when the call is not already inside one, so
    nested service calls share the id of the outermost operation.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        token = None
        if _trace_id_ctx.get() == "NO-TRACE":
            token = _trace_id_ctx.set(f"op-{str(uuid.uuid4())[:8]}")
        tid = get_trace_id()
        func_name = func.__qualname__
        try:
            logger.info(f"[{tid}] >> ENTER: {func_name}")
            result = func(*args, **kwargs)
            logger.info(f"[{tid}] OK EXIT:  {func_name}")
            return result
        except Exception as e:
            logger.error(f"[{tid}] !! CRASH: {func_name} | {e}")
            raise
        finally:
            if token is not None:
                _trace_id_ctx.reset(token)
    return wrapper
