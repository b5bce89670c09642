import asyncio

import pytest

from src.flow.application.poller import PollingPolicy, TaskPoller
from src.flow.application.tracker import SubmissionTracker
from src.flow.application.transformer import ResultTransformer
from src.flow.domain.events.task_event import EventType
from src.flow.domain.exceptions import PollingTimeoutError, TaskCancelledError, TaskFailedError
from src.flow.domain.models import (
    EatingTipResult,
    EatingTipsResult,
    FoodAnalysis,
    GlucoseTrendResult,
    SubmissionResult,
    TaskResultPayload,
    TaskState,
    TaskType,
)
from tests.stubs import (
    FailingBroadcaster,
    FakeScheduler,
    RecordingBroadcaster,
    StubTaskRepository,
    make_task,
)

SUBMISSION = SubmissionResult(
    analysis_result=FoodAnalysis(food_items=["dumplings"]),
    async_tasks={TaskType.GLUCOSE_TREND: "t1", TaskType.EATING_ORDER: "t2"},
    record_id=42,
)

GLUCOSE_DONE = make_task(
    "t1", TaskState.COMPLETED, TaskType.GLUCOSE_TREND, TaskResultPayload(peak_value=148)
)
TIPS_DONE = make_task(
    "t2",
    TaskState.COMPLETED,
    TaskType.EATING_ORDER,
    TaskResultPayload(
        title="Vegetables first",
        tips=[
            EatingTipResult(order=1, title="Vegetables", description="Fiber first"),
            EatingTipResult(order=2, title="Protein", description="Then meat"),
            EatingTipResult(order=3, title="Staples", description="Rice last"),
        ],
    ),
)
TIPS_RUNNING = make_task("t2", TaskState.RUNNING, TaskType.EATING_ORDER)


def build_tracker(
    repository: StubTaskRepository,
    scheduler: FakeScheduler,
    broadcaster,
    submission: SubmissionResult = SUBMISSION,
    policy: PollingPolicy | None = None,
) -> SubmissionTracker:
    poller = TaskPoller(repository, scheduler, policy or PollingPolicy())
    return SubmissionTracker(submission, poller, ResultTransformer(), broadcaster, repository)


@pytest.mark.asyncio
async def test_each_result_is_delivered_when_its_own_poller_resolves(
    task_repository: StubTaskRepository,
    scheduler: FakeScheduler,
    broadcaster: RecordingBroadcaster,
) -> None:
    task_repository.script("t1", GLUCOSE_DONE)
    task_repository.script("t2", TIPS_RUNNING, TIPS_RUNNING, TIPS_RUNNING, TIPS_DONE)
    tracker = build_tracker(task_repository, scheduler, broadcaster)

    delivered = []
    async with tracker:
        async for outcome in tracker.outcomes():
            delivered.append((outcome, task_repository.calls_for("t2")))

    (first, t2_calls_at_first), (second, _) = delivered
    assert first.task_type is TaskType.GLUCOSE_TREND
    assert isinstance(first.result, GlucoseTrendResult)
    assert first.result.peak_value == 148
    # The glucose result did not wait for the eating order task to finish.
    assert t2_calls_at_first < 4

    assert second.task_type is TaskType.EATING_ORDER
    assert isinstance(second.result, EatingTipsResult)
    assert [tip.order for tip in second.result.tips] == [1, 2, 3]
    assert task_repository.calls_for("t1") == 1
    assert task_repository.calls_for("t2") == 4


@pytest.mark.asyncio
async def test_failures_are_delivered_as_outcomes(
    task_repository: StubTaskRepository,
    scheduler: FakeScheduler,
    broadcaster: RecordingBroadcaster,
) -> None:
    task_repository.script("t1", make_task("t1", TaskState.FAILED, error_message="no glucose model"))
    task_repository.script("t2", TIPS_RUNNING)
    tracker = build_tracker(
        task_repository, scheduler, broadcaster, policy=PollingPolicy(interval_seconds=1, max_attempts=3)
    )

    outcomes = await tracker.wait_all()

    glucose = outcomes[TaskType.GLUCOSE_TREND]
    assert not glucose.ok
    assert isinstance(glucose.error, TaskFailedError)
    assert glucose.error.user_message == "no glucose model"
    tips = outcomes[TaskType.EATING_ORDER]
    assert isinstance(tips.error, PollingTimeoutError)
    assert task_repository.calls_for("t2") == 3


@pytest.mark.asyncio
async def test_events_are_broadcast(
    task_repository: StubTaskRepository,
    scheduler: FakeScheduler,
    broadcaster: RecordingBroadcaster,
) -> None:
    task_repository.script("t1", make_task("t1", TaskState.RUNNING), GLUCOSE_DONE)
    task_repository.script("t2", make_task("t2", TaskState.CANCELLED, TaskType.EATING_ORDER))

    await build_tracker(task_repository, scheduler, broadcaster).wait_all()

    by_task = {}
    for event in broadcaster.events:
        by_task.setdefault(event.task_id, []).append(event.type)
    assert by_task["t1"] == [EventType.TASK_STATUS, EventType.TASK_STATUS, EventType.TASK_RESULT]
    assert by_task["t2"] == [EventType.TASK_STATUS, EventType.TASK_ERROR]
    (error_event,) = [event for event in broadcaster.events if event.type is EventType.TASK_ERROR]
    assert error_event.payload["error"] == "TaskCancelledError"
    assert error_event.payload["message"] == TaskCancelledError.MESSAGE


@pytest.mark.asyncio
async def test_broken_observer_does_not_stop_tracking(
    task_repository: StubTaskRepository, scheduler: FakeScheduler
) -> None:
    task_repository.script("t1", GLUCOSE_DONE)
    task_repository.script("t2", TIPS_DONE)

    outcomes = await build_tracker(task_repository, scheduler, FailingBroadcaster()).wait_all()

    assert all(outcome.ok for outcome in outcomes.values())


@pytest.mark.asyncio
async def test_submission_without_tasks_yields_nothing(
    task_repository: StubTaskRepository,
    scheduler: FakeScheduler,
    broadcaster: RecordingBroadcaster,
) -> None:
    submission = SubmissionResult(analysis_result=FoodAnalysis())
    tracker = build_tracker(task_repository, scheduler, broadcaster, submission=submission)

    outcomes = [outcome async for outcome in tracker.outcomes()]

    assert outcomes == []
    assert task_repository.fetch_calls == []


class ParkingScheduler(FakeScheduler):
    def __init__(self, parked_expected: int) -> None:
        super().__init__()
        self._parked_expected = parked_expected
        self.all_parked = asyncio.Event()

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if len(self.sleeps) >= self._parked_expected:
            self.all_parked.set()
        await asyncio.Event().wait()


@pytest.mark.asyncio
async def test_closing_tracker_withdraws_every_poller(
    task_repository: StubTaskRepository, broadcaster: RecordingBroadcaster
) -> None:
    scheduler = ParkingScheduler(parked_expected=2)
    task_repository.script("t1", make_task("t1", TaskState.PENDING))
    task_repository.script("t2", TIPS_RUNNING)
    tracker = build_tracker(task_repository, scheduler, broadcaster)

    async with tracker:
        await scheduler.all_parked.wait()

    assert sorted(task_repository.fetch_calls) == ["t1", "t2"]
    await asyncio.sleep(0)
    assert sorted(task_repository.fetch_calls) == ["t1", "t2"]


@pytest.mark.asyncio
async def test_refresh_reads_all_tasks_in_one_batch(
    task_repository: StubTaskRepository,
    scheduler: FakeScheduler,
    broadcaster: RecordingBroadcaster,
) -> None:
    task_repository.known = {"t1": GLUCOSE_DONE, "t2": TIPS_RUNNING}
    tracker = build_tracker(task_repository, scheduler, broadcaster)

    outcomes = await tracker.refresh()

    assert task_repository.batch_calls == [["t1", "t2"]]
    assert task_repository.fetch_calls == []
    assert [outcome.task_type for outcome in outcomes] == [TaskType.GLUCOSE_TREND]
    assert outcomes[0].result.peak_value == 148


@pytest.mark.asyncio
async def test_refresh_reports_terminal_failures(
    task_repository: StubTaskRepository,
    scheduler: FakeScheduler,
    broadcaster: RecordingBroadcaster,
) -> None:
    task_repository.known = {
        "t1": make_task("t1", TaskState.FAILED, error_message="boom"),
        "t2": make_task("t2", TaskState.CANCELLED, TaskType.EATING_ORDER),
    }
    tracker = build_tracker(task_repository, scheduler, broadcaster)

    outcomes = {outcome.task_type: outcome for outcome in await tracker.refresh()}

    assert isinstance(outcomes[TaskType.GLUCOSE_TREND].error, TaskFailedError)
    assert isinstance(outcomes[TaskType.EATING_ORDER].error, TaskCancelledError)


class WithdrawalScheduler(FakeScheduler):
    def __init__(self) -> None:
        super().__init__()
        self.withdrawn = asyncio.Event()

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.withdrawn.set()
            raise


@pytest.mark.asyncio
async def test_unexpected_poller_error_withdraws_siblings(
    task_repository: StubTaskRepository, broadcaster: RecordingBroadcaster
) -> None:
    scheduler = WithdrawalScheduler()
    task_repository.script("t1", RuntimeError("repository bug"))
    task_repository.script("t2", TIPS_RUNNING)
    tracker = build_tracker(task_repository, scheduler, broadcaster)

    with pytest.raises(RuntimeError, match="repository bug"):
        async for _ in tracker.outcomes():
            pass

    await asyncio.wait_for(scheduler.withdrawn.wait(), timeout=1)
    assert task_repository.calls_for("t2") == 1


@pytest.mark.asyncio
async def test_wait_all_withdraws_siblings_on_unexpected_error(
    task_repository: StubTaskRepository, broadcaster: RecordingBroadcaster
) -> None:
    scheduler = WithdrawalScheduler()
    task_repository.script("t1", RuntimeError("repository bug"))
    task_repository.script("t2", TIPS_RUNNING)
    tracker = build_tracker(task_repository, scheduler, broadcaster)

    with pytest.raises(RuntimeError, match="repository bug"):
        await tracker.wait_all()

    await asyncio.wait_for(scheduler.withdrawn.wait(), timeout=1)
