"""Update executor: updates a project checkout and runs its build command.

One dedicated worker thread receives repository names from the trigger
channel and processes them strictly one at a time. Each job walks an
explicit state sequence:

    LOOKUP -> CHECKOUT -> REMOTE_UPDATE -> CHANGE_CHECK -> DONE
                                                      \\-> PULL -> RUN_COMMAND -> DONE

CHANGE_CHECK compares `git rev-parse @` with `git rev-parse @{u}`. When
they are equal the branch has not advanced and the job ends without
pulling or building.

Any failure aborts the current job only. The worker logs it and goes
back to waiting for the next trigger.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

import sentry_sdk

from hubhook.engine.channel import TriggerChannel
from hubhook.engine.process import ProcessResult, ProcessRunner, run_process
from hubhook.errors import CommandFailed, JobError, ProjectMissing
from hubhook.projects.registry import Conf, Project

logger = logging.getLogger(__name__)


class JobState(str, Enum):
    LOOKUP = "lookup"
    CHECKOUT = "checkout"
    REMOTE_UPDATE = "remote update"
    CHANGE_CHECK = "change check"
    PULL = "pull"
    RUN_COMMAND = "run command"
    DONE = "done"


# Successor of each state on success. CHANGE_CHECK may also go straight to DONE.
NEXT_STATE: dict[JobState, set[JobState]] = {
    JobState.LOOKUP: {JobState.CHECKOUT},
    JobState.CHECKOUT: {JobState.REMOTE_UPDATE},
    JobState.REMOTE_UPDATE: {JobState.CHANGE_CHECK},
    JobState.CHANGE_CHECK: {JobState.PULL, JobState.DONE},
    JobState.PULL: {JobState.RUN_COMMAND},
    JobState.RUN_COMMAND: {JobState.DONE},
}


@dataclass
class JobResult:
    """Outcome of one successful update job."""

    repo: str
    states: list[JobState] = field(default_factory=list)
    changed: bool = False

    @property
    def built(self) -> bool:
        return JobState.RUN_COMMAND in self.states


@dataclass
class _Job:
    repo: str
    project: Optional[Project] = None
    path: Optional[Path] = None
    changed: bool = False


class UpdateExecutor:
    """Consumes the trigger channel on a single dedicated thread."""

    def __init__(
        self,
        conf: Conf,
        channel: TriggerChannel,
        runner: ProcessRunner = run_process,
    ):
        self.conf = conf
        self.channel = channel
        self._run_process = runner
        self._thread: Optional[threading.Thread] = None
        # Serialises jobs even when run() is called outside the worker thread.
        self._job_lock = threading.Lock()
        self._handlers: dict[JobState, Callable[[_Job], JobState]] = {
            JobState.LOOKUP: self._lookup,
            JobState.CHECKOUT: self._checkout,
            JobState.REMOTE_UPDATE: self._remote_update,
            JobState.CHANGE_CHECK: self._change_check,
            JobState.PULL: self._pull,
            JobState.RUN_COMMAND: self._run_command,
        }

    # ------------------------------------------------------------------
    # Worker lifecycle
    # ------------------------------------------------------------------

    def start(self) -> threading.Thread:
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._thread = threading.Thread(
            target=self.run_forever, name="update-executor", daemon=True
        )
        self._thread.start()
        logger.info("Update executor started")
        return self._thread

    def stop(self, timeout: Optional[float] = None) -> None:
        """Close the channel and wait for queued jobs to finish."""
        self.channel.close()
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_forever(self) -> None:
        try:
            while True:
                repo = self.channel.receive()
                if repo is None:
                    break
                self.run(repo)
        finally:
            # Nobody will receive any more, so later sends must fail.
            self.channel.close()
            logger.info("Update executor stopped")

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def run(self, repo: str) -> Optional[JobResult]:
        """Run one update job, logging instead of raising on failure."""
        try:
            result = self.run_job(repo)
        except JobError as exc:
            logger.error("Failed to update repository %s: %s", repo, exc)
            return None
        except Exception as exc:
            logger.exception("Unexpected error while updating repository %s", repo)
            sentry_sdk.capture_exception(exc)
            return None

        logger.info("Repository %s updated successfully", repo)
        return result

    def run_job(self, repo: str) -> JobResult:
        """Walk the job state machine for `repo`.

        Raises:
            ProjectMissing: If `repo` is not in the registry.
            CommandFailed: If any git or build command exits non-zero.
        """
        with self._job_lock:
            job = _Job(repo=repo)
            result = JobResult(repo=repo)
            state = JobState.LOOKUP
            while state is not JobState.DONE:
                result.states.append(state)
                next_state = self._handlers[state](job)
                if next_state not in NEXT_STATE[state]:
                    raise RuntimeError(f"Invalid job state transition: {state} -> {next_state}")
                state = next_state
            result.states.append(JobState.DONE)
            result.changed = job.changed
            return result

    def _lookup(self, job: _Job) -> JobState:
        project = self.conf.projects.lookup(job.repo)
        if project is None:
            raise ProjectMissing(job.repo)
        job.project = project
        job.path = self.conf.checkout_dir(project)
        return JobState.CHECKOUT

    def _checkout(self, job: _Job) -> JobState:
        logger.info("Checking out branch %s in %s", job.project.branch, job.path)
        self._git(job, "checkout", "checkout", job.project.branch)
        return JobState.REMOTE_UPDATE

    def _remote_update(self, job: _Job) -> JobState:
        logger.info("Updating remotes in %s", job.path)
        self._git(job, "remote update", "remote", "update")
        return JobState.CHANGE_CHECK

    def _change_check(self, job: _Job) -> JobState:
        local = self._git(job, "rev-parse", "rev-parse", "@").stdout
        upstream = self._git(job, "rev-parse", "rev-parse", "@{u}").stdout
        if local == upstream:
            logger.info("No changes in %s. Skipping update command.", job.repo)
            return JobState.DONE
        job.changed = True
        return JobState.PULL

    def _pull(self, job: _Job) -> JobState:
        logger.info("Pulling changes in %s", job.path)
        self._git(job, "pull", "pull")
        return JobState.RUN_COMMAND

    def _run_command(self, job: _Job) -> JobState:
        command = job.project.command
        logger.info("Running update command %s in %s", command, job.path)
        self._check(command, self._run_process(command, job.path, shell=True))
        return JobState.DONE

    def _git(self, job: _Job, step: str, *args: str) -> ProcessResult:
        result = self._run_process([self.conf.gitpath, *args], job.path)
        return self._check(step, result)

    @staticmethod
    def _check(step: str, result: ProcessResult) -> ProcessResult:
        if not result.is_success:
            raise CommandFailed(step, result.returncode, result.stderr_text())
        return result
