"""End-to-end task pipeline: issue lookup, branch, agent run, commit, push, PR."""

from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from ..agent import AgentRequest, AgentRunner, RunCompleted, build_instruction, task_prompt
from ..chat import formatter
from ..config import CourierSettings, get_settings
from ..errors import (
    AdmissionError,
    AgentRunError,
    BranchCreationError,
    GitOperationError,
    WorkflowCancelled,
    WorkflowError,
)
from ..git import GitRepository, create_task_branch, derive_branch_name
from ..github import GitHubGateway, Issue
from ..progress import ProgressNotifier, SendMessage
from ..projects import ProjectCatalog
from ..sessions import Session, SessionRegistry, TaskRequest
from . import summaries

logger = logging.getLogger(__name__)


class WorkflowState(str, Enum):
    ADMITTED = "admitted"
    ISSUE_LOOKUP = "issue_lookup"
    BRANCHING = "branching"
    RUNNING = "running"
    DIFF_CHECK = "diff_check"
    NO_OP = "no_op"
    COMMITTING = "committing"
    PUSHING = "pushing"
    PR_CREATION = "pr_creation"
    REPORTING = "reporting"
    RELEASED = "released"
    CANCELLED = "cancelled"
    FAILED = "failed"


class WorkflowResult(str, Enum):
    COMPLETED = "completed"
    NO_OP = "no_op"
    CANCELLED = "cancelled"
    FAILED = "failed"
    REJECTED = "rejected"


@dataclass(slots=True)
class WorkflowOutcome:
    """What a single workflow invocation did."""

    project: str
    result: WorkflowResult = WorkflowResult.FAILED
    branch_name: str | None = None
    pull_request_url: str | None = None
    changed_files: list[str] = field(default_factory=list)
    cost_usd: float | None = None
    elapsed_seconds: int = 0
    cancelled: bool = False
    error: str | None = None
    states: list[WorkflowState] = field(default_factory=list)


class WorkflowOrchestrator:
    """Drive one task per project from admission to release.

    The registry slot is released on every exit path. Git and GitHub calls
    are blocking and run in worker threads so other projects keep moving.
    """

    def __init__(
        self,
        *,
        registry: SessionRegistry,
        projects: ProjectCatalog,
        agent: AgentRunner,
        github: GitHubGateway | None = None,
        repository_factory: Callable[[Path], GitRepository] = GitRepository,
        settings: CourierSettings | None = None,
    ) -> None:
        self._registry = registry
        self._projects = projects
        self._agent = agent
        self._github = github
        self._repository_factory = repository_factory
        self._settings = settings or get_settings()
        self._tasks: set[asyncio.Task] = set()

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def projects(self) -> ProjectCatalog:
        return self._projects

    @property
    def github(self) -> GitHubGateway | None:
        return self._github

    def admit(self, request: TaskRequest) -> Session:
        """Resolve the project and claim its registry slot.

        Raises ``AdmissionError`` subclasses before any side effect.
        """

        project = self._projects.resolve(request.project)
        return self._registry.create(
            project.key, task_kind=request.task_kind, issue_number=request.issue_number
        )

    def launch(self, request: TaskRequest, send_message: SendMessage) -> asyncio.Task:
        """Admit synchronously, then run the pipeline as a background task."""

        session = self.admit(request)
        task = asyncio.get_running_loop().create_task(
            self.run(session, request, send_message), name=f"courier:{session.project}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def execute(self, request: TaskRequest, send_message: SendMessage) -> WorkflowOutcome:
        """Admit and run in the caller's task, reporting rejections to chat."""

        try:
            session = self.admit(request)
        except AdmissionError as exc:
            logger.info("Task rejected", extra={"project": request.project, "error": str(exc)})
            await self._notify(send_message, formatter.error(exc), request.project)
            return WorkflowOutcome(
                project=request.project, result=WorkflowResult.REJECTED, error=str(exc)
            )
        return await self.run(session, request, send_message)

    async def run(
        self, session: Session, request: TaskRequest, send_message: SendMessage
    ) -> WorkflowOutcome:
        outcome = WorkflowOutcome(project=session.project)
        try:
            self._enter(session, outcome, WorkflowState.ADMITTED)
            await self._notify(send_message, formatter.starting(request), session.project)
            await self._pipeline(session, request, send_message, outcome)
        except WorkflowCancelled:
            self._enter(session, outcome, WorkflowState.CANCELLED)
            outcome.result = WorkflowResult.CANCELLED
            outcome.cancelled = True
            await self._notify(send_message, formatter.cancelled(session.project), session.project)
        except (AgentRunError, GitOperationError) as exc:
            self._fail(session, outcome, exc)
            await self._notify(send_message, formatter.error(exc), session.project)
        except Exception as exc:
            logger.exception("Unexpected workflow failure", extra={"project": session.project})
            wrapped = WorkflowError(f"Workflow failed: {exc}")
            self._fail(session, outcome, wrapped)
            await self._notify(send_message, formatter.error(wrapped), session.project)
        finally:
            self._registry.remove(session.project, session)
            outcome.elapsed_seconds = self._elapsed(session)
            self._enter(session, outcome, WorkflowState.RELEASED)

        return outcome

    async def _pipeline(
        self,
        session: Session,
        request: TaskRequest,
        send_message: SendMessage,
        outcome: WorkflowOutcome,
    ) -> None:
        project = self._projects.resolve(session.project)
        repository = self._repository_factory(project.path)

        issue = await self._lookup_issue(session, outcome, project.path)
        if session.cancellation.cancelled:
            raise WorkflowCancelled(session.project)

        prompt = task_prompt(request.prompt, request.issue_number, issue)
        kind = request.task_kind.resolve(prompt)

        self._enter(session, outcome, WorkflowState.BRANCHING)
        branch_name = derive_branch_name(
            issue_number=request.issue_number, task_kind=kind, prompt=prompt
        )
        main_branch = await asyncio.to_thread(repository.discover_main_branch)
        try:
            await asyncio.to_thread(create_task_branch, repository, branch_name, main_branch=main_branch)
        except BranchCreationError:
            raise
        except Exception as exc:
            raise BranchCreationError(f"Could not create branch {branch_name}: {exc}") from exc
        session.branch_name = branch_name
        outcome.branch_name = branch_name
        await self._notify(send_message, formatter.branch_created(branch_name), session.project)

        self._enter(session, outcome, WorkflowState.RUNNING)
        notifier = ProgressNotifier(
            send_message, interval=self._settings.progress_interval, clock=self._registry.clock
        )
        completed = await self._run_agent(session, project.path, build_instruction(prompt, issue), notifier)
        outcome.cancelled = session.cancellation.cancelled
        if completed is not None:
            outcome.cost_usd = completed.total_cost_usd
            if completed.is_error:
                logger.warning(
                    "Agent finished with an error result",
                    extra={"project": session.project, "subtype": completed.subtype},
                )

        self._enter(session, outcome, WorkflowState.DIFF_CHECK)
        if not await asyncio.to_thread(repository.has_changes):
            self._enter(session, outcome, WorkflowState.NO_OP)
            await self._notify(send_message, formatter.NO_CHANGES, session.project)
            await asyncio.to_thread(self._discard_branch, repository, main_branch, branch_name)
            outcome.result = WorkflowResult.NO_OP
            return

        files_changed = await asyncio.to_thread(repository.changed_files)
        outcome.changed_files = files_changed

        self._enter(session, outcome, WorkflowState.COMMITTING)
        message = summaries.commit_message(
            prompt, request.issue_number, issue, partial=outcome.cancelled
        )
        await asyncio.to_thread(repository.commit_all, message)

        self._enter(session, outcome, WorkflowState.PUSHING)
        await asyncio.to_thread(repository.push, branch_name)

        self._enter(session, outcome, WorkflowState.PR_CREATION)
        pull_request_url = None
        if self._github is not None:
            pull_request_url = await asyncio.to_thread(
                self._github.create_pull_request,
                project.path,
                branch_name,
                title=summaries.pull_request_title(prompt, request.issue_number, issue),
                body=summaries.pull_request_body(
                    files_changed, request.issue_number, partial=outcome.cancelled
                ),
                base=main_branch,
            )
        session.pull_request_url = pull_request_url
        outcome.pull_request_url = pull_request_url

        self._enter(session, outcome, WorkflowState.REPORTING)
        summary = formatter.complete(
            project=session.project,
            branch_name=branch_name,
            pull_request_url=pull_request_url,
            files_modified=len(files_changed),
            elapsed=self._elapsed(session),
            cost=outcome.cost_usd,
            cancelled=outcome.cancelled,
        )
        await self._notify(send_message, summary, session.project)
        outcome.result = WorkflowResult.COMPLETED

    async def _lookup_issue(
        self, session: Session, outcome: WorkflowOutcome, repo_path: Path
    ) -> Issue | None:
        if session.issue_number is None:
            return None
        self._enter(session, outcome, WorkflowState.ISSUE_LOOKUP)
        if self._github is None:
            logger.info("No GitHub gateway configured, skipping issue lookup")
            return None
        issue = await asyncio.to_thread(self._github.get_issue, repo_path, session.issue_number)
        if issue is not None:
            session.issue_title = issue.title
        return issue

    async def _run_agent(
        self, session: Session, repo_path: Path, instruction: str, notifier: ProgressNotifier
    ) -> RunCompleted | None:
        if session.cancellation.cancelled:
            logger.info("Cancelled before the agent started", extra={"project": session.project})
            return None

        settings = self._settings
        request = AgentRequest(
            instruction=instruction,
            working_directory=repo_path,
            allowed_tools=tuple(settings.agent_allowed_tools),
            permission_mode=settings.agent_permission_mode,
            max_turns=settings.agent_max_turns,
            max_budget_usd=settings.agent_max_budget_usd,
            cancellation=session.cancellation,
            model=settings.agent_model,
        )

        completed: RunCompleted | None = None
        try:
            async with aclosing(self._agent.stream(request)) as events:
                async for event in events:
                    if session.cancellation.cancelled:
                        logger.info(
                            "Cancellation observed, salvaging partial work",
                            extra={"project": session.project},
                        )
                        break
                    if isinstance(event, RunCompleted):
                        completed = event
                        continue
                    await notifier.on_event(event, session)
        except AgentRunError:
            raise
        except Exception as exc:
            raise AgentRunError(f"Agent run failed: {exc}") from exc
        return completed

    @staticmethod
    def _discard_branch(repository: GitRepository, main_branch: str, branch_name: str) -> None:
        try:
            repository.checkout(main_branch)
            repository.delete_branch(branch_name)
        except GitOperationError as exc:
            logger.warning(
                "Could not clean up task branch", extra={"branch": branch_name, "error": str(exc)}
            )

    async def _notify(self, send_message: SendMessage, text: str, project: str) -> None:
        try:
            await send_message(text)
        except Exception:
            logger.warning("Chat delivery failed", extra={"project": project}, exc_info=True)

    def _enter(self, session: Session, outcome: WorkflowOutcome, state: WorkflowState) -> None:
        session.state = state.value
        outcome.states.append(state)
        logger.info("Workflow state", extra={"project": session.project, "state": state.value})

    def _fail(self, session: Session, outcome: WorkflowOutcome, exc: BaseException) -> None:
        logger.error("Workflow failed", extra={"project": session.project, "error": str(exc)})
        self._enter(session, outcome, WorkflowState.FAILED)
        outcome.result = WorkflowResult.FAILED
        outcome.error = str(exc)

    def _elapsed(self, session: Session) -> int:
        return int(self._registry.clock() - session.started_at)


__all__ = ["WorkflowOrchestrator", "WorkflowOutcome", "WorkflowResult", "WorkflowState"]
