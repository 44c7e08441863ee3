"""生命周期引擎单元测试

测试内容：
1. submit_proof / approve / reject 的合法流转
2. 非 pending_validation 时 approve / reject 拒绝且不产生写入
3. 重新提交只替换 proof_url
4. 五轮提交+审批推进到 closed
5. closed 为终态
6. 权限校验
"""

import pytest
from talentops.core import lifecycle
from talentops.core.exceptions import (
    EmptyProofError,
    NotAuthorizedError,
    NotPendingValidationError,
    TaskClosedError,
)
from talentops.core.models import (
    PHASE_SEQUENCE,
    Actor,
    LifecyclePhase,
    Role,
    SubState,
    TaskAction,
    TaskStatus,
)


class TestSubmitProof:
    """submit_proof 流转"""

    def test_submit_moves_to_pending_validation(self, task_factory, employee):
        task = task_factory()
        tr = lifecycle.submit_proof(task, employee, "doc1")

        assert tr.task.lifecycle_state == LifecyclePhase.REQUIREMENT_REFINER
        assert tr.task.sub_state == SubState.PENDING_VALIDATION
        assert tr.task.proof_url == "doc1"
        assert tr.expected_sub_state == SubState.IN_PROGRESS
        assert tr.is_resubmission is False
        assert tr.advanced is False

    def test_resubmission_only_replaces_proof(self, task_factory, employee):
        """已在 pending_validation 时再次提交只更新 proof_url"""
        task = task_factory(sub_state=SubState.PENDING_VALIDATION, proof_url="doc1")
        tr = lifecycle.submit_proof(task, employee, "doc2")

        assert tr.is_resubmission is True
        assert set(tr.patch) == {"proof_url", "updated_at"}
        assert tr.task.proof_url == "doc2"
        assert tr.task.lifecycle_state == task.lifecycle_state
        assert tr.task.sub_state == SubState.PENDING_VALIDATION
        assert tr.expected_sub_state == SubState.PENDING_VALIDATION

    def test_submit_twice_never_changes_phase(self, task_factory, employee):
        task = task_factory()
        first = lifecycle.submit_proof(task, employee, "doc1").task
        second = lifecycle.submit_proof(first, employee, "doc2").task

        assert second.lifecycle_state == task.lifecycle_state
        assert second.sub_state == SubState.PENDING_VALIDATION
        assert second.proof_url == "doc2"

    def test_legacy_rejected_sub_state_can_submit(self, task_factory, employee):
        task = task_factory(sub_state=SubState.REJECTED)
        tr = lifecycle.submit_proof(task, employee, "doc1")
        assert tr.task.sub_state == SubState.PENDING_VALIDATION
        assert tr.expected_sub_state == SubState.REJECTED

    @pytest.mark.parametrize("proof_url", ["", "   ", None])
    def test_empty_proof_refused(self, task_factory, employee, proof_url):
        with pytest.raises(EmptyProofError):
            lifecycle.transition(
                task_factory(), TaskAction.SUBMIT_PROOF, employee, proof_url=proof_url
            )

    def test_only_assignee_can_submit(self, task_factory, lead):
        with pytest.raises(NotAuthorizedError):
            lifecycle.submit_proof(task_factory(), lead, "doc1")

    def test_team_task_without_assignee_refused(self, task_factory, employee):
        with pytest.raises(NotAuthorizedError):
            lifecycle.submit_proof(task_factory(assigned_to=None), employee, "doc1")

    def test_closed_task_refuses_submit(self, task_factory, employee):
        task = task_factory(phase=LifecyclePhase.CLOSED, sub_state=SubState.APPROVED)
        with pytest.raises(TaskClosedError):
            lifecycle.submit_proof(task, employee, "doc1")


class TestApproveReject:
    """approve / reject 流转"""

    def test_approve_advances_to_next_phase(self, task_factory, lead):
        task = task_factory(sub_state=SubState.PENDING_VALIDATION, proof_url="doc1")
        tr = lifecycle.approve(task, lead)

        assert tr.task.lifecycle_state == LifecyclePhase.DESIGN_GUIDANCE
        assert tr.task.sub_state == SubState.IN_PROGRESS
        assert tr.task.status == TaskStatus.IN_PROGRESS
        assert tr.expected_sub_state == SubState.PENDING_VALIDATION
        assert tr.advanced is True

    def test_approve_from_deployment_closes_task(self, task_factory, lead):
        task = task_factory(
            phase=LifecyclePhase.DEPLOYMENT, sub_state=SubState.PENDING_VALIDATION
        )
        tr = lifecycle.approve(task, lead)

        assert tr.task.lifecycle_state == LifecyclePhase.CLOSED
        assert tr.task.sub_state == SubState.APPROVED
        assert tr.task.status == TaskStatus.COMPLETED

    def test_reject_preserves_phase(self, task_factory, lead):
        task = task_factory(
            phase=LifecyclePhase.BUILD_GUIDANCE,
            sub_state=SubState.PENDING_VALIDATION,
            proof_url="doc1",
        )
        tr = lifecycle.reject(task, lead)

        assert tr.task.lifecycle_state == LifecyclePhase.BUILD_GUIDANCE
        assert tr.task.sub_state == SubState.IN_PROGRESS
        assert tr.task.proof_url == "doc1"
        assert "proof_url" not in tr.patch

    @pytest.mark.parametrize("action", [TaskAction.APPROVE, TaskAction.REJECT])
    @pytest.mark.parametrize(
        "sub_state",
        [SubState.IN_PROGRESS, SubState.APPROVED, SubState.REJECTED],
    )
    def test_review_refused_off_pending_validation(
        self, task_factory, lead, action, sub_state
    ):
        task = task_factory(sub_state=sub_state)
        with pytest.raises(NotPendingValidationError) as exc_info:
            lifecycle.transition(task, action, lead)
        assert exc_info.value.message == "Task is not pending validation"

    def test_employee_cannot_review(self, task_factory, employee):
        task = task_factory(sub_state=SubState.PENDING_VALIDATION)
        with pytest.raises(NotAuthorizedError):
            lifecycle.approve(task, employee)
        with pytest.raises(NotAuthorizedError):
            lifecycle.reject(task, employee)

    @pytest.mark.parametrize("role", [Role.TEAM_LEAD, Role.MANAGER, Role.EXECUTIVE])
    def test_reviewer_roles(self, task_factory, role):
        reviewer = Actor(actor_id="rev-1", role=role, org_id="org-1")
        task = task_factory(sub_state=SubState.PENDING_VALIDATION)
        assert lifecycle.approve(task, reviewer).task.sub_state == SubState.IN_PROGRESS

    def test_input_task_not_mutated(self, task_factory, lead):
        task = task_factory(sub_state=SubState.PENDING_VALIDATION)
        lifecycle.approve(task, lead)
        assert task.lifecycle_state == LifecyclePhase.REQUIREMENT_REFINER
        assert task.sub_state == SubState.PENDING_VALIDATION


class TestFullLifecycle:
    """五轮提交+审批"""

    def test_five_cycles_reach_closed(self, task_factory, employee, lead):
        task = task_factory()
        visited = [task.lifecycle_state]

        for cycle in range(5):
            task = lifecycle.submit_proof(task, employee, f"doc{cycle}").task
            task = lifecycle.approve(task, lead).task
            visited.append(task.lifecycle_state)

        assert visited == list(PHASE_SEQUENCE)
        assert task.lifecycle_state == LifecyclePhase.CLOSED
        assert task.sub_state == SubState.APPROVED
        assert task.status == TaskStatus.COMPLETED

    def test_closed_is_terminal(self, task_factory, employee, lead):
        task = task_factory(phase=LifecyclePhase.CLOSED, sub_state=SubState.APPROVED)
        for action, actor in [
            (TaskAction.SUBMIT_PROOF, employee),
            (TaskAction.APPROVE, lead),
            (TaskAction.REJECT, lead),
        ]:
            with pytest.raises((TaskClosedError, NotPendingValidationError)):
                lifecycle.transition(task, action, actor, proof_url="doc")

    def test_submit_approve_scenario(self, task_factory, employee, lead):
        task = task_factory()
        task = lifecycle.submit_proof(task, employee, "doc1").task
        assert (task.lifecycle_state, task.sub_state) == (
            LifecyclePhase.REQUIREMENT_REFINER,
            SubState.PENDING_VALIDATION,
        )
        assert task.proof_url == "doc1"

        task = lifecycle.approve(task, lead).task
        assert (task.lifecycle_state, task.sub_state) == (
            LifecyclePhase.DESIGN_GUIDANCE,
            SubState.IN_PROGRESS,
        )

    def test_submit_reject_scenario(self, task_factory, employee, lead):
        task = task_factory()
        task = lifecycle.submit_proof(task, employee, "doc1").task
        task = lifecycle.reject(task, lead).task

        assert (task.lifecycle_state, task.sub_state) == (
            LifecyclePhase.REQUIREMENT_REFINER,
            SubState.IN_PROGRESS,
        )
        assert task.proof_url == "doc1"


class TestNormalizeLifecycle:
    """旧数据规整"""

    def test_completed_legacy_becomes_closed(self):
        assert lifecycle.normalize_lifecycle("completed", None, None) == (
            LifecyclePhase.CLOSED,
            SubState.APPROVED,
            TaskStatus.COMPLETED,
        )

    @pytest.mark.parametrize("status", ["pending", "in_progress", None])
    def test_other_legacy_becomes_initial(self, status):
        assert lifecycle.normalize_lifecycle(status, None, None) == (
            LifecyclePhase.REQUIREMENT_REFINER,
            SubState.IN_PROGRESS,
            TaskStatus.IN_PROGRESS,
        )

    def test_status_recomputed_from_phase(self):
        """已有生命周期字段时 status 按阶段重新派生"""
        phase, sub, status = lifecycle.normalize_lifecycle(
            "pending", "build_guidance", "pending_validation"
        )
        assert phase == LifecyclePhase.BUILD_GUIDANCE
        assert sub == SubState.PENDING_VALIDATION
        assert status == TaskStatus.IN_PROGRESS


class TestViewHelpers:
    def test_can_submit_and_review(self, task_factory):
        assert lifecycle.can_submit_proof(task_factory()) is True
        assert lifecycle.can_review(task_factory()) is False

        pending = task_factory(sub_state=SubState.PENDING_VALIDATION)
        assert lifecycle.can_submit_proof(pending) is True
        assert lifecycle.can_review(pending) is True

        closed = task_factory(phase=LifecyclePhase.CLOSED, sub_state=SubState.APPROVED)
        assert lifecycle.can_submit_proof(closed) is False
        assert lifecycle.can_review(closed) is False
