import logging
import subprocess
from typing import List, Optional

logger = logging.getLogger(__name__)


class Executor:
    """
    Handles safe execution of subprocess commands.
    """

    def __init__(self, timeout: Optional[float] = 120):
        self.timeout = timeout

    def run_command(self, command: List[str], verbose: bool = False) -> bool:
        """
        Executes a command in a subprocess and handles output.

        Args:
            command (list): The command and its arguments to execute.
            verbose (bool): If True, log the command and its output.

        Returns:
            bool: True for success, False for failure.
        """
        if verbose:
            logger.info(f"Running command: {' '.join(command)}")

        try:
            process = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding='utf-8',
                errors='replace',
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.error(f"Exception during command execution: {e}")
            return False

        if process.returncode != 0:
            logger.error(f"Error executing: {' '.join(command)}")
            if process.stdout:
                logger.error("--- STDOUT ---")
                logger.error(process.stdout)
            if process.stderr:
                logger.error("--- STDERR ---")
                logger.error(process.stderr)
            return False

        if verbose and process.stdout:
            logger.info(process.stdout)

        return True
