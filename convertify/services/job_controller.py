"""Supervises the single in-flight FFmpeg conversion.

``JobController.start()`` spawns FFmpeg and returns a :class:`JobHandle`
right away. A daemon supervisor thread streams FFmpeg's stderr through
:class:`ProgressParser`, publishes each snapshot on the handle and, when
the process exits, publishes exactly one :class:`JobResult` followed by the
handle's closed marker.

All state transitions happen under one lock. The only transition out of
``RUNNING`` is :meth:`JobController._finish`, which is a no-op for a job
that has already finished, so whichever of the supervisor (process exit) or
the kill timer (cancel grace period elapsed) gets there first decides the
result.
"""

from __future__ import annotations

import logging
import queue
import subprocess
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Callable, Iterator, Union

from convertify.infrastructure.ffmpeg_runner import FFmpegRunner, get_ffmpeg_runner
from convertify.models.conversion import (
    ConversionRequest,
    JobResult,
    JobState,
    ProgressSnapshot,
)
from convertify.models.media import MediaDescription
from convertify.services.command_builder import build_ffmpeg_args, format_command
from convertify.services.conversion_log import ConversionLog, LogLevel, LogStore
from convertify.services.errors import AlreadyRunningError, EngineRuntimeError
from convertify.services.ffmpeg_logger import log_ffmpeg_command, log_ffmpeg_line
from convertify.services.progress_parser import ProgressParser
from convertify.utils.config import CANCEL_GRACE_SEC, DIAGNOSTIC_TAIL_LINES

logger = logging.getLogger(__name__)

JobEvent = Union[ProgressSnapshot, JobResult]

_CLOSED = object()
_READ_SIZE = 4096


class JobHandle:
    """Event channel of one conversion job.

    ``events()`` yields :class:`ProgressSnapshot` objects in time order and
    then exactly one :class:`JobResult`, after which the iteration ends.
    """

    def __init__(
        self,
        job_id: int,
        output_path: str,
        args: list[str],
        cancel: Callable[[], None],
    ):
        self.job_id = job_id
        self.output_path = output_path
        self.args = list(args)
        self._cancel = cancel
        self._queue: queue.Queue = queue.Queue()
        self._done = threading.Event()
        self._result: JobResult | None = None

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def result(self) -> JobResult | None:
        return self._result

    @property
    def state(self) -> JobState:
        return self._result.state if self._result is not None else JobState.RUNNING

    def events(self, timeout: float | None = None) -> Iterator[JobEvent]:
        """Iterate over the job's events until the terminal result.

        Raises:
            TimeoutError: If no event arrives within *timeout* seconds.
        """
        while True:
            try:
                item = self._queue.get(timeout=timeout)
            except queue.Empty:
                raise TimeoutError(f"No conversion event within {timeout}s") from None
            if item is _CLOSED:
                # Leave the marker in place for any later iteration
                self._queue.put(_CLOSED)
                return
            yield item

    def wait(self, timeout: float | None = None) -> JobResult | None:
        """Block until the job finishes; None if *timeout* elapses first."""
        self._done.wait(timeout)
        return self._result

    def cancel(self) -> None:
        """Request cancellation of this job (no-op once it has finished)."""
        if not self.done:
            self._cancel()

    def raise_for_result(self) -> None:
        """Raise EngineRuntimeError if the job finished with a failure."""
        if self._result is not None and self._result.state is JobState.FAILED:
            raise EngineRuntimeError(self._result.message or "Conversion failed")

    # Called by JobController with its lock held
    def _publish(self, snapshot: ProgressSnapshot) -> None:
        self._queue.put(snapshot)

    def _close(self, result: JobResult) -> None:
        self._result = result
        self._queue.put(result)
        self._queue.put(_CLOSED)
        self._done.set()


@dataclass
class _Job:
    id: int
    request: ConversionRequest
    media: MediaDescription
    args: list[str]
    handle: JobHandle
    log: ConversionLog
    started_at: float = field(default_factory=time.monotonic)
    state: JobState = JobState.RUNNING
    process: subprocess.Popen | None = None
    cancel_requested: bool = False
    kill_timer: threading.Timer | None = None
    diagnostics: deque = field(default_factory=lambda: deque(maxlen=DIAGNOSTIC_TAIL_LINES))
    warning_count: int = 0
    error_count: int = 0


def _read_chunks(stream: IO[bytes]) -> Iterator[bytes]:
    # read1 returns whatever is available instead of waiting for a full block
    read = getattr(stream, "read1", None) or stream.read
    while True:
        chunk = read(_READ_SIZE)
        if not chunk:
            return
        yield chunk


def _line_level(line: str) -> LogLevel:
    lowered = line.lower()
    if "error" in lowered or "invalid" in lowered or "fatal" in lowered:
        return LogLevel.ERROR
    if "warning" in lowered or "deprecated" in lowered:
        return LogLevel.WARNING
    return LogLevel.DEBUG


class JobController:
    """Owns the one conversion that may be running at a time."""

    def __init__(
        self,
        runner: FFmpegRunner | None = None,
        grace_period: float = CANCEL_GRACE_SEC,
        log_store: LogStore | None = None,
    ):
        self._runner = runner or get_ffmpeg_runner()
        self._grace_period = grace_period
        self._log_store = log_store if log_store is not None else LogStore()
        self._lock = threading.RLock()
        self._job: _Job | None = None
        self._next_id = 0

    @property
    def state(self) -> JobState:
        with self._lock:
            return self._job.state if self._job is not None else JobState.IDLE

    @property
    def current(self) -> JobHandle | None:
        """Handle of the current (running or last finished) job."""
        with self._lock:
            return self._job.handle if self._job is not None else None

    @property
    def log_store(self) -> LogStore:
        return self._log_store

    def is_running(self) -> bool:
        return self.state is JobState.RUNNING

    # ------------------------------------------------------------ start

    def start(self, request: ConversionRequest, media: MediaDescription) -> JobHandle:
        """Spawn FFmpeg for *request* and return immediately.

        Raises:
            AlreadyRunningError: If a job is running (that job is unaffected).
            BuildError: If the request cannot be turned into a command.
        """
        with self._lock:
            if self._job is not None and self._job.state is JobState.RUNNING:
                raise AlreadyRunningError()

            args = build_ffmpeg_args(request, media)
            self._job = None

            self._next_id += 1
            command = format_command(args, self._runner.ffmpeg_path or "ffmpeg")
            advanced = request.advanced
            conv_log = ConversionLog(
                input_path=request.input_path,
                output_path=request.output_path,
                command=command,
                preset_id=request.preset_id,
                advanced_options=advanced.summary() if advanced else None,
            )
            handle = JobHandle(self._next_id, args[-1], args, lambda: self._cancel_job(job))
            job = _Job(
                id=self._next_id,
                request=request,
                media=media,
                args=args,
                handle=handle,
                log=conv_log,
            )
            self._job = job

            conv_log.add_entry(LogLevel.INFO, "Starting conversion")
            if media.duration:
                conv_log.add_entry(LogLevel.INFO, f"Input duration: {media.duration:.2f}s")
            log_ffmpeg_command(command)
            logger.info(f"Starting conversion #{job.id}: {command}")

            try:
                job.process = self._runner.run_async(
                    args,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.PIPE,
                )
            except OSError as e:
                logger.error(f"Failed to spawn ffmpeg: {e}")
                self._finish(job, JobState.FAILED, f"Failed to spawn ffmpeg: {e}")
                return handle

            job.started_at = time.monotonic()
            conv_log.add_entry(LogLevel.INFO, "Spawned FFmpeg process")
            threading.Thread(
                target=self._supervise,
                args=(job,),
                name=f"convertify-job-{job.id}",
                daemon=True,
            ).start()
            return handle

    # ------------------------------------------------------------ cancel

    def cancel(self) -> None:
        """Ask the running FFmpeg to stop; kill it after the grace period.

        Safe to call at any time: without a running job, or a second time,
        it does nothing.
        """
        with self._lock:
            job = self._job
        if job is not None:
            self._cancel_job(job)

    def _cancel_job(self, job: _Job) -> None:
        with self._lock:
            if job.state is not JobState.RUNNING or job.cancel_requested:
                return
            # Already exited on its own; the supervisor reports the real outcome
            if job.process is not None and job.process.poll() is not None:
                return
            job.cancel_requested = True
            job.log.add_entry(LogLevel.WARNING, "Conversion cancelled by user")
            process = job.process
            timer = threading.Timer(self._grace_period, self._force_kill, args=(job,))
            timer.daemon = True
            job.kill_timer = timer

        logger.info(f"Cancelling conversion #{job.id}")
        if process is not None:
            try:
                process.terminate()
            except OSError:
                pass  # already exited; the supervisor reports it
        timer.start()

    def shutdown(self, timeout: float | None = None) -> None:
        """Cancel any running job and wait for its terminal result."""
        handle = self.current
        self.cancel()
        if handle is not None:
            handle.wait(timeout)

    # ------------------------------------------------------------ supervision

    def _supervise(self, job: _Job) -> None:
        process = job.process
        parser = ProgressParser(
            job.media.duration,
            on_line=lambda line: self._on_engine_line(job, line),
        )
        try:
            if process.stderr is not None:
                for snapshot in parser.iter_snapshots(_read_chunks(process.stderr)):
                    self._publish_progress(job, snapshot)
            returncode = process.wait()
        except (OSError, ValueError) as e:
            with self._lock:
                if job.cancel_requested:
                    self._finish(job, JobState.CANCELLED, "Cancelled")
                    return
            logger.exception(f"Lost FFmpeg output for conversion #{job.id}")
            self._finish(job, JobState.FAILED, f"Lost connection to FFmpeg: {e}")
            return
        finally:
            if process.stderr is not None:
                process.stderr.close()

        self._on_exit(job, returncode)

    def _publish_progress(self, job: _Job, snapshot: ProgressSnapshot) -> None:
        with self._lock:
            if job.state is JobState.RUNNING:
                job.handle._publish(snapshot)

    def _on_engine_line(self, job: _Job, line: str) -> None:
        log_ffmpeg_line(line)
        level = _line_level(line)
        with self._lock:
            job.diagnostics.append(line)
            if level is LogLevel.ERROR:
                job.error_count += 1
            elif level is LogLevel.WARNING:
                job.warning_count += 1
            job.log.add_entry(level, line, "FFmpeg")

    def _on_exit(self, job: _Job, returncode: int) -> None:
        logger.info(f"FFmpeg for conversion #{job.id} exited with code {returncode}")
        with self._lock:
            if job.cancel_requested:
                self._finish(job, JobState.CANCELLED, "Cancelled")
            elif returncode == 0:
                self._finish(job, JobState.COMPLETED)
            else:
                message = "\n".join(job.diagnostics) or f"FFmpeg exited with code {returncode}"
                self._finish(job, JobState.FAILED, message)

    def _force_kill(self, job: _Job) -> None:
        process = job.process
        if process is not None and process.poll() is None:
            logger.warning(
                f"FFmpeg did not stop within {self._grace_period}s, killing conversion #{job.id}"
            )
            try:
                process.kill()
                process.wait(timeout=self._grace_period)
            except (OSError, subprocess.TimeoutExpired) as e:
                logger.error(f"Could not kill FFmpeg for conversion #{job.id}: {e}")
        self._finish(job, JobState.CANCELLED, "Cancelled")

    def _finish(self, job: _Job, state: JobState, message: str | None = None) -> bool:
        """Move *job* out of RUNNING. Returns False if it had already finished."""
        with self._lock:
            if job.state is not JobState.RUNNING:
                return False
            job.state = state
            if job.kill_timer is not None:
                job.kill_timer.cancel()
            elapsed = time.monotonic() - job.started_at

            if state is JobState.CANCELLED:
                self._remove_partial_output(job)

            conv_log = job.log
            conv_log.add_entry(LogLevel.INFO, f"Conversion took {elapsed:.2f}s")
            if job.warning_count:
                conv_log.add_entry(LogLevel.INFO, f"Total warnings: {job.warning_count}")
            if job.error_count:
                conv_log.add_entry(LogLevel.INFO, f"Total errors: {job.error_count}")
            if state is JobState.COMPLETED:
                conv_log.add_entry(LogLevel.INFO, "Conversion successful")
                conv_log.finish(True)
            else:
                conv_log.add_entry(LogLevel.ERROR, f"Conversion {state.value}: {message}")
                conv_log.finish(False, message)
            self._log_store.add_log(conv_log)

            job.handle._close(JobResult(
                state=state,
                output_path=job.handle.output_path,
                duration_secs=elapsed,
                message=message,
            ))

        logger.info(f"Conversion #{job.id} {state.value} after {elapsed:.2f}s")
        return True

    def _remove_partial_output(self, job: _Job) -> None:
        output = Path(job.handle.output_path)
        try:
            output.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove partial output {output}: {e}")
