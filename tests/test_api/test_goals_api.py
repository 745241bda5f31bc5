"""Tests for /api/goals"""


def _create_goal(client, headers, **overrides):
    payload = {
        "userId": None,
        "name": "Chores",
        "calculationType": "fixed_time",
        "targetValue": 60,
        "periodType": "weekly",
        "listIds": [],
    }
    payload.update(overrides)
    return client.post("/api/goals", json=payload, headers=headers)


class TestGoalsApi:
    def test_create_and_progress(self, client, make_user, make_list, make_task, complete, freeze_now, auth_headers):
        freeze_now("2024-06-14 12:00:00")
        admin = make_user("admin", role="admin")
        alice = make_user("alice")
        chores = make_list(admin)
        vacuum = make_task(chores, "Vacuum", duration_minutes=20, sort_order=0)
        mop = make_task(chores, "Mop", duration_minutes=25, sort_order=1)
        complete(vacuum, alice, "2024-06-11 09:00:00")
        complete(mop, alice, "2024-06-12 09:00:00")

        created = _create_goal(client, auth_headers(admin), userId=alice.id, listIds=[chores.id])
        assert created.status_code == 201
        goal_id = created.json()["goalId"]

        response = client.get(f"/api/goals/{goal_id}/progress", headers=auth_headers(alice))
        assert response.status_code == 200
        progress = response.json()["progress"]
        assert (progress["completed"], progress["required"], progress["percentage"]) == (45, 60, 75)
        assert progress["isAchieved"] is False
        assert (progress["periodStart"], progress["periodEnd"]) == ("2024-06-10", "2024-06-16")

    def test_progress_for_past_date(self, client, make_user, make_list, make_task, complete, make_goal, freeze_now, auth_headers):
        freeze_now("2024-06-14 12:00:00")
        alice = make_user("alice")
        chores = make_list(alice)
        dishes = make_task(chores, "Dishes")
        complete(dishes, alice, "2024-05-20 09:00:00")
        goal = make_goal(alice, [chores.id], period_type="monthly")

        response = client.get(f"/api/goals/{goal.id}/progress?date=2024-05-31", headers=auth_headers(alice))
        progress = response.json()["progress"]
        assert progress["isAchieved"] is True
        assert (progress["periodStart"], progress["periodEnd"]) == ("2024-05-01", "2024-05-31")

    def test_my_goals(self, client, make_user, make_list, make_goal, freeze_now, auth_headers):
        freeze_now("2024-06-14 12:00:00")
        alice = make_user("alice")
        bob = make_user("bob")
        chores = make_list(alice)
        make_goal(alice, [chores.id], name="Alice goal")
        make_goal(bob, [chores.id], name="Bob goal")

        goals = client.get("/api/goals/my-goals", headers=auth_headers(alice)).json()["goals"]
        assert [g["name"] for g in goals] == ["Alice goal"]
        assert goals[0]["progress"]["percentage"] == 0

    def test_all_goals_admin_only(self, client, make_user, auth_headers):
        alice = make_user("alice")
        response = client.get("/api/goals/all-goals", headers=auth_headers(alice))
        assert response.status_code == 403

    def test_other_users_goal_forbidden(self, client, make_user, make_goal, auth_headers):
        alice = make_user("alice")
        bob = make_user("bob")
        goal = make_goal(alice, [1])
        response = client.get(f"/api/goals/{goal.id}/progress", headers=auth_headers(bob))
        assert response.status_code == 403

    def test_empty_list_ids_rejected(self, client, make_user, auth_headers):
        admin = make_user("admin", role="admin")
        response = _create_goal(client, auth_headers(admin), userId=admin.id, listIds=[])
        assert response.status_code == 400
        assert response.json()["fields"] == ["listIds"]

    def test_update_and_delete(self, client, make_user, make_goal, auth_headers):
        admin = make_user("admin", role="admin")
        alice = make_user("alice")
        goal = make_goal(alice, [1])
        headers = auth_headers(admin)

        updated = client.patch(f"/api/goals/{goal.id}", json={"targetValue": 3}, headers=headers)
        assert updated.status_code == 200

        deleted = client.delete(f"/api/goals/{goal.id}", headers=headers)
        assert deleted.status_code == 200
        assert client.get(f"/api/goals/{goal.id}/progress", headers=headers).status_code == 404
