import logging
import time
import traceback
from typing import List, Optional

logger = logging.getLogger(__name__)


class OperationMonitor:
    """
    Context manager around one record operation. Logs every pipeline stage
    and the outcome; the record's own row is the only persisted state, so
    nothing is written on exit.
    """

    def __init__(self, operation: str, record_type: str, record_id: Optional[str] = None):
        self.operation = operation
        self.record_type = record_type
        self.record_id = record_id
        self.stages: List[str] = []
        self.current_stage: Optional[str] = None
        self.status = "pending"
        self.start_time = None

    def __enter__(self):
        self.start_time = time.time()
        logger.info(f"=== {self.record_type} {self.operation} started ===")
        return self

    def stage(self, name: str) -> None:
        if self.current_stage:
            self.stages.append(self.current_stage)
        self.current_stage = name
        suffix = f" [{self.record_id}]" if self.record_id else ""
        logger.info(f"{self.record_type} {self.operation}: {name}{suffix}")

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.time() - self.start_time
        if exc_type:
            self.status = "failed"
            logger.error(
                f"{self.record_type} {self.operation} failed at stage '{self.current_stage}' "
                f"after {duration:.2f}s: {exc_val}"
            )
            logger.debug("".join(traceback.format_exception(exc_type, exc_val, exc_tb)))
        else:
            if self.current_stage:
                self.stages.append(self.current_stage)
            self.status = "success"
            logger.info(
                f"=== {self.record_type} {self.operation} finished in {duration:.2f}s "
                f"({' -> '.join(self.stages)}) ==="
            )
        # Exceptions propagate to the service boundary
        return False
