# notifywait/processing/executor.py

"""
External command execution with a bounded wait
"""
import os
import shlex
import logging
import subprocess
import threading
from typing import IO, List, Optional, TextIO

from notifywait.utils.config import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

BEGIN_MARKER = "===> Begin job : {cmd}"
END_MARKER = "===> End job : {cmd}, result = {result}"
READER_JOIN_TIMEOUT = 1.0  # seconds


class CommandExecutor:
    """
    Runs the configured command once per reported event

    Output and error streams of the child are copied line by line into the
    writer as they arrive. A run never raises; the outcome is reported in
    the end-of-job marker line.
    """

    def __init__(self, command: str, parameter: str = "",
                 timeout: int = DEFAULT_TIMEOUT,
                 write_lock: Optional[threading.Lock] = None):
        """
        Initialize executor

        Args:
            command: Executable to launch
            parameter: Argument string, split with shell quoting rules
            timeout: Seconds to wait for the command to exit
            write_lock: Lock serializing writes to the shared writer
        """
        self.command = command
        self.parameter = parameter or ""
        self.timeout = timeout
        self.write_lock = write_lock or threading.Lock()

    @property
    def command_line(self) -> str:
        return f"{self.command} {self.parameter}"

    def build_args(self) -> List[str]:
        return [self.command] + shlex.split(self.parameter, posix=(os.name != 'nt'))

    def run(self, writer: TextIO) -> bool:
        """
        Execute the command

        Args:
            writer: Stream receiving marker lines and the child's output

        Returns:
            True if the command exited within the timeout
        """
        cmd = self.command_line
        self._write_line(writer, BEGIN_MARKER.format(cmd=cmd))

        try:
            process = subprocess.Popen(
                self.build_args(),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors='replace',
            )
        except (OSError, ValueError) as e:
            logger.error(f"Failed to start job '{cmd}': {e}")
            self._write_line(writer, END_MARKER.format(cmd=cmd, result=False))
            return False

        readers = [
            self._start_reader(process.stdout, writer, "stdout"),
            self._start_reader(process.stderr, writer, "stderr"),
        ]

        result = False
        try:
            process.wait(timeout=self.timeout)
            result = True
        except subprocess.TimeoutExpired:
            logger.warning(f"Job '{cmd}' did not finish within {self.timeout}s, killing it")
            process.kill()
            process.wait()

        for reader in readers:
            reader.join(timeout=READER_JOIN_TIMEOUT)

        if result and process.returncode != 0:
            logger.warning(f"Job '{cmd}' exited with code {process.returncode}")

        self._write_line(writer, END_MARKER.format(cmd=cmd, result=result))
        return result

    def _start_reader(self, stream: IO[str], writer: TextIO, name: str) -> threading.Thread:
        thread = threading.Thread(
            target=self._pump,
            args=(stream, writer),
            name=f"job-{name}",
            daemon=True,
        )
        thread.start()
        return thread

    def _pump(self, stream: IO[str], writer: TextIO):
        """Copy non-empty lines from a child stream into the writer"""
        try:
            with stream:
                for line in stream:
                    line = line.rstrip('\r\n')
                    if line:
                        self._write_line(writer, line)
        except (OSError, ValueError) as e:
            logger.debug(f"Job output stream closed: {e}")

    def _write_line(self, writer: TextIO, line: str):
        with self.write_lock:
            writer.write(line + '\n')
            writer.flush()
