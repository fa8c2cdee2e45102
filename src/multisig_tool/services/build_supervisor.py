from __future__ import annotations

"""Run the contract build and stream its output.

``start_build`` spawns ``<build command> build --release`` in the project
directory and returns immediately. Two reader threads (stdout, stderr) push
decoded lines onto one ``BuildLog`` as they arrive, so lines from the same
stream keep their order while the two streams interleave by arrival time. A
supervisor thread waits for both readers and the process, appends a summary
with the source and artifact paths, then closes the log.

Closing the log from the receiving side stops delivery only; the build always
runs to completion.
"""

import logging
import queue
import shlex
import subprocess
import time
from pathlib import Path
from threading import Event, Lock, Thread
from typing import IO, Iterator, Optional, Sequence

from ..config import DEFAULT_BUILD_COMMAND
from ..domain.errors import BuildSpawnError
from ..observability.metrics import observe_build
from .materializer import ProjectLayout
from .telemetry_sink import TelemetryEvent, record_event

logger = logging.getLogger("multisig.build")

BUILD_ARGS = ("build", "--release")

_CLOSED = object()


class BuildLog:
    """Receiving end of a build's output.

    Iterate it (or call ``recv``) to consume lines until the build finishes.
    ``close`` drops the receiver: pending lines are discarded and every later
    ``send`` returns False.
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._dropped = Event()
        self._finished = Event()
        self._lock = Lock()
        self.returncode: Optional[int] = None

    def send(self, line: str) -> bool:
        # checked and enqueued under the lock so nothing lands after close() drains
        with self._lock:
            if self._dropped.is_set() or self._finished.is_set():
                return False
            self._queue.put(line)
            return True

    def finish(self, returncode: Optional[int] = None) -> None:
        """Close the sending side; called once by the supervisor."""
        with self._lock:
            self.returncode = returncode
            self._finished.set()
            self._queue.put(_CLOSED)

    def recv(self, timeout: Optional[float] = None) -> Optional[str]:
        """Return the next line, or None once the log is closed.

        Raises ``queue.Empty`` if no line arrives within ``timeout``.
        """
        if self._dropped.is_set():
            return None
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            # leave the marker for any other consumer
            self._queue.put(_CLOSED)
            return None
        return item  # type: ignore[return-value]

    def __iter__(self) -> Iterator[str]:
        while True:
            line = self.recv()
            if line is None:
                return
            yield line

    def close(self) -> None:
        with self._lock:
            self._dropped.set()
            while True:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    break

    @property
    def closed(self) -> bool:
        return self._dropped.is_set()

    @property
    def finished(self) -> bool:
        return self._finished.is_set()

    def __enter__(self) -> "BuildLog":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _decode(raw: bytes) -> str:
    try:
        line = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        logger.debug("build output is not valid UTF-8, replacing bytes: %s", exc)
        line = raw.decode("utf-8", errors="replace")
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


def _pump(stream: IO[bytes], log: BuildLog, name: str) -> None:
    forwarding = True
    try:
        for raw in iter(stream.readline, b""):
            if forwarding and not log.send(_decode(raw)):
                # keep draining so the build is never blocked on a full pipe
                logger.info("stopping sending %s: receiver dropped", name)
                forwarding = False
    finally:
        stream.close()


class BuildSession:
    """A running build: its command, output log and process."""

    def __init__(
        self,
        layout: ProjectLayout,
        command: Sequence[str],
        process: subprocess.Popen,
        output: BuildLog,
    ) -> None:
        self.layout = layout
        self.command = list(command)
        self.output = output
        self._process = process
        self._started = time.perf_counter()
        self._readers = [
            Thread(target=_pump, args=(process.stdout, output, "stdout"), daemon=True),
            Thread(target=_pump, args=(process.stderr, output, "stderr"), daemon=True),
        ]
        self._supervisor = Thread(target=self._supervise, daemon=True)

    @property
    def project_dir(self) -> Path:
        return self.layout.project_dir

    @property
    def contract_name(self) -> str:
        return self.layout.contract_name

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> Optional[int]:
        """Raw exit status once the build has finished, else None."""
        return self.output.returncode

    def _start(self) -> None:
        for reader in self._readers:
            reader.start()
        self._supervisor.start()

    def _supervise(self) -> None:
        returncode: Optional[int] = None
        try:
            for reader in self._readers:
                reader.join()
            returncode = self._process.wait()
            elapsed = time.perf_counter() - self._started
            logger.info(
                "build finished name=%s returncode=%s elapsed=%.2fs",
                self.contract_name,
                returncode,
                elapsed,
            )
            try:
                observe_build(returncode, elapsed)
                record_event(
                    TelemetryEvent(
                        name="build_finished",
                        properties={
                            "contract_name": self.contract_name,
                            "returncode": returncode,
                            "elapsed_seconds": round(elapsed, 3),
                        },
                    )
                )
            except Exception:
                logger.exception("failed to record build outcome name=%s", self.contract_name)

            for line in (
                "",
                "Smart contract source code:",
                str(self.layout.source_file.resolve()),
                "",
                "Compiled smart contract:",
                str(self.layout.artifact.resolve()),
            ):
                self.output.send(line)
        finally:
            self.output.finish(returncode)

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        """Block until the build and its summary are done; return the exit status."""
        self._supervisor.join(timeout)
        return self.returncode

    def terminate(self) -> None:
        """Ask the build process to stop.

        Never called by the pipeline itself; available for callers that want
        to cancel a build rather than just stop listening to it.
        """
        if self._process.poll() is None:
            logger.warning("terminating build name=%s pid=%s", self.contract_name, self.pid)
            self._process.terminate()

    def __iter__(self) -> Iterator[str]:
        return iter(self.output)


def start_build(
    project_dir: Path,
    contract_name: str,
    build_command: Sequence[str] = DEFAULT_BUILD_COMMAND,
) -> BuildSession:
    """Spawn the build and return without waiting for it.

    Raises ``BuildSpawnError`` if the build tool cannot be launched.
    """
    layout = ProjectLayout(project_dir=Path(project_dir), contract_name=contract_name)
    command = [*build_command, *BUILD_ARGS]
    output = BuildLog()
    output.send(f"Running {shlex.join(command)} in {layout.project_dir}")
    output.send("")

    try:
        process = subprocess.Popen(
            command,
            cwd=layout.project_dir,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as exc:
        logger.error("failed to launch build command=%s err=%s", command, exc)
        raise BuildSpawnError(command, exc) from exc

    session = BuildSession(layout, command, process, output)
    logger.info("build started name=%s pid=%s dir=%s", contract_name, process.pid, layout.project_dir)
    record_event(
        TelemetryEvent(
            name="build_started",
            properties={"contract_name": contract_name, "project_dir": str(layout.project_dir)},
        )
    )
    session._start()
    return session
