"""任务创建与查询路由测试

测试内容：
1. 项目向导批量创建（整批成功 / 非法输入）
2. 看板临时创建
3. 按角色视图列出 + 搜索 + 状态筛选 + 汇总
4. 任务详情
"""

from httpx import AsyncClient


async def _wizard(client: AsyncClient, headers_for, project_id: str, assignments: list):
    return await client.post(
        f"/api/projects/{project_id}/tasks",
        json={"assignments": assignments},
        headers=headers_for("mgr-1", "manager"),
    )


class TestProjectWizard:
    async def test_creates_one_task_per_pair(self, client: AsyncClient, headers_for, project_id):
        resp = await _wizard(
            client,
            headers_for,
            project_id,
            [
                {"employee_id": "emp-1", "tasks": [{"title": "API"}, {"title": "UI", "hours": 4}]},
                {"employee_id": "emp-2", "tasks": [{"title": "Docs", "priority": "high"}]},
            ],
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["count"] == 3
        for task in body["tasks"]:
            assert task["lifecycle_state"] == "requirement_refiner"
            assert task["sub_state"] == "in_progress"
            assert task["status"] == "in_progress"
            assert task["description"] == "Task for Apollo"
            assert task["assigned_by"] == "mgr-1"
        hours = {t["title"]: t["allocated_hours"] for t in body["tasks"]}
        assert hours == {"API": 8.0, "UI": 4.0, "Docs": 8.0}

    async def test_blank_title_rejects_whole_batch(
        self, client: AsyncClient, headers_for, project_id
    ):
        resp = await _wizard(
            client,
            headers_for,
            project_id,
            [{"employee_id": "emp-1", "tasks": [{"title": "API"}, {"title": "   "}]}],
        )
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "INVALID_TASK"
        assert "Task #1" in resp.json()["error"]["message"]

        listing = await client.get(
            "/api/tasks", headers=headers_for("mgr-1", "manager", project_id)
        )
        assert listing.json()["tasks"] == []

    async def test_unknown_project(self, client: AsyncClient, headers_for):
        resp = await _wizard(
            client,
            headers_for,
            "01JNOPE0000000000000000000",
            [{"employee_id": "emp-1", "tasks": [{"title": "API"}]}],
        )
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "PROJECT_NOT_FOUND"

    async def test_employee_cannot_create_project(self, client: AsyncClient, headers_for):
        resp = await client.post(
            "/api/projects", json={"name": "Side quest"}, headers=headers_for("emp-1")
        )
        assert resp.status_code == 403


class TestAdHocCreation:
    async def test_creates_in_active_project(self, client: AsyncClient, headers_for, project_id):
        resp = await client.post(
            "/api/tasks",
            json={"title": "  Fix login  ", "assigned_to": "emp-2"},
            headers=headers_for("lead-1", "team_lead", project_id),
        )
        assert resp.status_code == 201
        task = resp.json()["task"]
        assert task["title"] == "Fix login"
        assert task["project_id"] == project_id
        assert task["lifecycle_state"] == "requirement_refiner"
        assert task["start_date"] == task["due_date"]

    async def test_team_task_without_assignee(self, client: AsyncClient, headers_for, project_id):
        resp = await client.post(
            "/api/tasks",
            json={"title": "Retro"},
            headers=headers_for("lead-1", "team_lead", project_id),
        )
        assert resp.status_code == 201
        assert resp.json()["task"]["assigned_to"] is None

    async def test_requires_active_project(self, client: AsyncClient, headers_for):
        resp = await client.post(
            "/api/tasks", json={"title": "Retro"}, headers=headers_for("lead-1", "team_lead")
        )
        assert resp.status_code == 422
        assert resp.json()["error"]["message"] == "No active project selected"

    async def test_employee_cannot_create(self, client: AsyncClient, headers_for, project_id):
        resp = await client.post(
            "/api/tasks", json={"title": "Retro"}, headers=headers_for("emp-1", project_id=project_id)
        )
        assert resp.status_code == 403


class TestListing:
    async def test_employee_sees_only_own_tasks(
        self, client: AsyncClient, headers_for, project_id
    ):
        await _wizard(
            client,
            headers_for,
            project_id,
            [
                {"employee_id": "emp-1", "tasks": [{"title": "API"}]},
                {"employee_id": "emp-2", "tasks": [{"title": "Docs"}]},
            ],
        )
        resp = await client.get("/api/tasks", headers=headers_for("emp-1", project_id=project_id))
        assert resp.status_code == 200
        body = resp.json()
        assert [c["task"]["title"] for c in body["tasks"]] == ["API"]
        card = body["tasks"][0]
        assert card["project_name"] == "Apollo"
        assert card["can_submit"] is True
        assert card["submit_label"] == "Submit"

    async def test_lead_sees_project_newest_first(
        self, client: AsyncClient, headers_for, project_id
    ):
        for title in ("First", "Second"):
            await _wizard(
                client, headers_for, project_id, [{"employee_id": "emp-1", "tasks": [{"title": title}]}]
            )
        resp = await client.get(
            "/api/tasks", headers=headers_for("lead-1", "team_lead", project_id)
        )
        titles = [c["task"]["title"] for c in resp.json()["tasks"]]
        assert titles == ["Second", "First"]

    async def test_search_and_status_filter(self, client: AsyncClient, headers_for, project_id):
        await _wizard(
            client,
            headers_for,
            project_id,
            [{"employee_id": "emp-1", "tasks": [{"title": "Build login"}, {"title": "Docs"}]}],
        )
        headers = headers_for("lead-1", "team_lead", project_id)

        resp = await client.get("/api/tasks", params={"q": "LOGIN"}, headers=headers)
        body = resp.json()
        assert [c["task"]["title"] for c in body["tasks"]] == ["Build login"]
        # 汇总基于筛选前的全部任务
        assert body["summary"]["total"] == 2

        resp = await client.get("/api/tasks", params={"status": "completed"}, headers=headers)
        assert resp.json()["tasks"] == []

    async def test_employee_cannot_request_org_view(
        self, client: AsyncClient, headers_for, project_id
    ):
        resp = await client.get(
            "/api/tasks",
            params={"view": "org"},
            headers=headers_for("emp-1", project_id=project_id),
        )
        assert resp.status_code == 403

    async def test_overlong_query_rejected(self, client: AsyncClient, headers_for, project_id):
        resp = await client.get(
            "/api/tasks",
            params={"q": "x" * 500},
            headers=headers_for("lead-1", "team_lead", project_id),
        )
        assert resp.status_code == 422


class TestDetail:
    async def test_detail_includes_progress_and_notes(
        self, client: AsyncClient, headers_for, task_id
    ):
        await client.post(
            f"/api/tasks/{task_id}/notes",
            json={"note_text": "Kickoff done"},
            headers=headers_for("emp-1"),
        )
        resp = await client.get(f"/api/tasks/{task_id}", headers=headers_for("emp-1"))
        assert resp.status_code == 200
        body = resp.json()
        progress = body["card"]["progress"]
        assert [p["state"] for p in progress] == [
            "current",
            "upcoming",
            "upcoming",
            "upcoming",
            "upcoming",
        ]
        assert [n["note_text"] for n in body["notes"]] == ["Kickoff done"]

    async def test_unknown_task_is_404(self, client: AsyncClient, headers_for):
        resp = await client.get("/api/tasks/01JNOPE0000000000000000000", headers=headers_for("emp-1"))
        assert resp.status_code == 404
        assert resp.json()["error"] == {
            "code": "TASK_NOT_FOUND",
            "message": "Task with id 01JNOPE0000000000000000000 does not exist",
        }
