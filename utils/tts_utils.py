"""
TTS conversion utilities for exam-listening-studio.

Engines turn one text into one audio file. run_batch fans a list of jobs out
over an engine with a concurrency ceiling and returns one result per job,
in input order, whatever happened to the individual jobs.
"""

import asyncio
import shlex
import shutil
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import List, Union

from edge_tts import Communicate
from loguru import logger

from utils.errors import (
    EmptyInputError,
    EmptyOutputError,
    EngineExecutionError,
    EngineTimeoutError,
    InvalidBatchError,
    JobError,
)
from utils.jobs import EMPTY_TEXT_ERROR, BatchOutcome, Job, JobResult, artifact_name

CONCURRENCY_LIMIT = 5
JOB_TIMEOUT = 60.0


def clean_text(text: str) -> str:
    """Flattens line breaks into spaces and trims the result."""
    return text.replace("\r", "").replace("\n", " ").strip()


class CommunicateEngine:
    """Edge TTS through the edge_tts library, inside this process."""

    name = "edge-tts"

    async def synthesize(self, text: str, voice: str, rate: str, out_path: Path):
        try:
            communicate = Communicate(text=text, voice=voice, rate=rate)
            await communicate.save(str(out_path))
        except Exception as exc:
            raise EngineExecutionError(f"TTS conversion failed: {exc}") from exc

    def available(self) -> bool:
        return True


class CommandEngine:
    """
    Edge TTS through its command line tool, one subprocess per text.
    `command` may carry extra arguments, e.g. "python -m edge_tts".
    """

    def __init__(self, command: Union[str, Sequence] = "edge-tts"):
        self.argv = shlex.split(command) if isinstance(command, str) else list(command)
        if not self.argv:
            raise ValueError("engine command must not be empty")
        self.name = " ".join(self.argv)

    def build_args(self, text: str, voice: str, rate: str, out_path: Path) -> List[str]:
        # "=" form so values starting with "-" (e.g. -20%) are not read as flags
        return [
            *self.argv,
            f"--text={text}",
            f"--voice={voice}",
            f"--rate={rate}",
            f"--write-media={out_path}",
        ]

    async def synthesize(self, text: str, voice: str, rate: str, out_path: Path):
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.build_args(text, voice, rate, out_path),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise EngineExecutionError(f"could not start {self.name}: {exc}") from exc
        try:
            _, stderr = await proc.communicate()
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
            raise
        if proc.returncode != 0:
            lines = stderr.decode("utf-8", errors="replace").strip().splitlines()
            detail = f": {lines[-1]}" if lines else ""
            raise EngineExecutionError(f"{self.name} exited with code {proc.returncode}{detail}")

    def available(self) -> bool:
        """Probes `<command> --version` the way a user would from a shell."""
        if shutil.which(self.argv[0]) is None:
            return False
        try:
            subprocess.run(
                [*self.argv, "--version"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=5,
                check=True,
            )
        except (OSError, subprocess.SubprocessError):
            return False
        return True


def build_engine(config):
    if config.engine == "command":
        return CommandEngine(config.engine_command)
    return CommunicateEngine()


async def synthesize_to_file(engine, text: str, voice: str, rate: str, out_path: Path,
                             timeout: float = JOB_TIMEOUT) -> Path:
    """
    Runs one engine call with a time bound and checks that it left a
    non-empty audio file behind. Raises a JobError subclass on any failure.
    """
    cleaned = clean_text(text)
    if not cleaned:
        raise EmptyInputError()
    out_path = Path(out_path)
    out_path.unlink(missing_ok=True)
    logger.debug("Generating audio: {!r}", cleaned[:40])
    try:
        await _synthesize_checked(engine, cleaned, voice, rate, out_path, timeout)
    except JobError:
        # no partial or empty artifacts are left behind for failed jobs
        out_path.unlink(missing_ok=True)
        raise
    return out_path


async def _synthesize_checked(engine, text: str, voice: str, rate: str, out_path: Path, timeout: float) -> None:
    try:
        await asyncio.wait_for(engine.synthesize(text, voice, rate, out_path), timeout)
    except asyncio.TimeoutError as exc:
        raise EngineTimeoutError(f"TTS engine timed out after {timeout:g}s") from exc
    except JobError:
        raise
    except Exception as exc:
        raise EngineExecutionError(f"TTS conversion failed: {exc}") from exc

    if not out_path.exists():
        raise EmptyOutputError("audio file was not created")
    if out_path.stat().st_size == 0:
        raise EmptyOutputError("generated audio file is empty")


async def _run_job_limited(job: Job, engine, out_path: Path, sem: asyncio.Semaphore,
                           timeout: float) -> JobResult:
    async with sem:
        try:
            path = await synthesize_to_file(engine, job.text, job.voice, job.rate, out_path, timeout)
        except JobError as exc:
            logger.warning("Sentence {} failed: {}", job.index + 1, exc)
            return JobResult.failed(job, str(exc))
    logger.info("Sentence {} → {} ({} bytes)", job.index + 1, path.name, path.stat().st_size)
    return JobResult.ok(job, path)


async def run_batch(jobs: Sequence, engine, output_dir: Path, batch_id: str,
                    concurrency_limit: int = CONCURRENCY_LIMIT, timeout: float = JOB_TIMEOUT,
                    extension: str = "mp3") -> BatchOutcome:
    """
    Generates one audio file per job with at most `concurrency_limit`
    engine calls in flight. A slot freed by any job admits the next job in
    input order. Blank jobs fail with "empty text" without taking a slot.
    Job failures never propagate; the outcome holds exactly one result per
    job, sorted by job index.
    """
    if isinstance(jobs, (str, bytes)) or not isinstance(jobs, Sequence):
        raise InvalidBatchError("jobs must be an ordered sequence")
    if isinstance(concurrency_limit, bool) or not isinstance(concurrency_limit, int) or concurrency_limit < 1:
        raise InvalidBatchError(f"concurrency limit must be a positive integer, got {concurrency_limit!r}")

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Batch {}: generating {} sentence(s), up to {} in parallel",
                batch_id, len(jobs), concurrency_limit)

    sem = asyncio.Semaphore(concurrency_limit)
    results: List[JobResult] = []
    dispatched: List[Job] = []
    coros = []
    for job in jobs:
        if job.is_blank:
            results.append(JobResult.failed(job, EMPTY_TEXT_ERROR))
            continue
        out_path = output_dir / artifact_name(batch_id, job.index, extension)
        dispatched.append(job)
        coros.append(_run_job_limited(job, engine, out_path, sem, timeout))

    settled = await asyncio.gather(*coros, return_exceptions=True)
    for job, value in zip(dispatched, settled):
        if isinstance(value, BaseException):
            if not isinstance(value, Exception):
                raise value
            logger.opt(exception=value).error("Sentence {} crashed", job.index + 1)
            value = JobResult.failed(job, str(value) or type(value).__name__)
        results.append(value)

    results.sort(key=lambda r: r.index)
    outcome = BatchOutcome(batch_id=batch_id, results=tuple(results))
    logger.info("Batch {} done: {}/{} succeeded", batch_id, outcome.success_count, outcome.total)
    return outcome
