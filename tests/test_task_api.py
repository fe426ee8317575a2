from tasktrack.extensions import db
from tasktrack.models.task import Task

from .factories import make_task


def _task(app, org_id, creator_id, **kw):
    with app.app_context():
        return make_task(org_id, creator_id, **kw).id


def _stored(app, task_id):
    with app.app_context():
        task = db.session.get(Task, task_id)
        return task.to_dict() if task else None


def test_admin_creates_task(client, seed, headers):
    resp = client.post("/api/tasks", json={
        "title": "Ship release",
        "description": "Cut the tag",
        "priority": "high",
        "assignedTo": seed.emp1,
        "dueDate": "2031-03-01T09:00:00Z",
        "tags": ["release"],
    }, headers=headers(seed.admin))
    assert resp.status_code == 201
    task = resp.get_json()["data"]["task"]
    assert task["status"] == "todo"
    assert task["assignedTo"] == seed.emp1
    assert task["createdBy"] == seed.admin
    assert task["dueDate"] == "2031-03-01T09:00:00Z"
    assert task["completedAt"] is None
    assert task["tags"] == ["release"]


def test_create_rejects_foreign_assignee_and_bad_input(client, seed, headers):
    resp = client.post("/api/tasks", json={"title": "Cross org", "assignedTo": seed.emp_b}, headers=headers(seed.admin))
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "ValidationError"

    assert client.post("/api/tasks", json={"title": "no"}, headers=headers(seed.admin)).status_code == 400
    assert client.post("/api/tasks", data="[1, 2]", content_type="application/json",
                       headers=headers(seed.admin)).status_code == 400


def test_employee_cannot_create(client, seed, headers):
    resp = client.post("/api/tasks", json={"title": "Sneaky"}, headers=headers(seed.emp1))
    assert resp.status_code == 403


def test_list_tasks_respects_role(client, seed, headers, app):
    _task(app, seed.acme, seed.admin, title="Bob's", assignee_id=seed.emp1)
    _task(app, seed.acme, seed.admin, title="Carol's", assignee_id=seed.emp2, priority="urgent")

    admin_view = client.get("/api/tasks", headers=headers(seed.admin)).get_json()
    assert admin_view["results"] == 2

    bob_view = client.get("/api/tasks", headers=headers(seed.emp1)).get_json()
    assert [t["title"] for t in bob_view["data"]["tasks"]] == ["Bob's"]

    urgent = client.get("/api/tasks?priority=urgent", headers=headers(seed.admin)).get_json()
    assert [t["title"] for t in urgent["data"]["tasks"]] == ["Carol's"]

    assert client.get("/api/tasks?status=bogus", headers=headers(seed.admin)).status_code == 400
    assert client.get("/api/tasks?sort=password", headers=headers(seed.admin)).status_code == 400


def test_my_tasks(client, seed, headers, app):
    _task(app, seed.acme, seed.admin, title="Mine", assignee_id=seed.emp2)
    _task(app, seed.acme, seed.admin, title="Not mine", assignee_id=seed.emp1)
    body = client.get("/api/tasks/my-tasks", headers=headers(seed.emp2)).get_json()
    assert [t["title"] for t in body["data"]["tasks"]] == ["Mine"]


def test_get_task_access(client, seed, headers, app):
    own = _task(app, seed.acme, seed.admin, assignee_id=seed.emp1)
    foreign = _task(app, seed.globex, seed.admin_b)

    assert client.get(f"/api/tasks/{own}", headers=headers(seed.emp1)).status_code == 200
    assert client.get(f"/api/tasks/{own}", headers=headers(seed.emp2)).status_code == 403
    assert client.get(f"/api/tasks/{foreign}", headers=headers(seed.admin)).status_code == 404
    assert client.get("/api/tasks/999999", headers=headers(seed.admin)).status_code == 404


def test_employee_update_ignores_restricted_fields(client, seed, headers, app):
    task_id = _task(app, seed.acme, seed.admin, assignee_id=seed.emp1)
    resp = client.put(f"/api/tasks/{task_id}", json={
        "assignedTo": seed.emp2,
        "status": "approved",
        "description": "Drafted the outline",
    }, headers=headers(seed.emp1))
    assert resp.status_code == 200

    stored = _stored(app, task_id)
    assert stored["assignedTo"] == seed.emp1
    assert stored["status"] == "todo"
    assert stored["description"] == "Drafted the outline"


def test_complete_and_approve_flow(client, seed, headers, app):
    task_id = _task(app, seed.acme, seed.admin, assignee_id=seed.emp1)

    resp = client.patch(f"/api/tasks/{task_id}/status", json={"status": "completed"}, headers=headers(seed.emp1))
    assert resp.status_code == 200
    assert resp.get_json()["data"]["task"]["completedAt"] is not None

    # employees cannot approve
    assert client.patch(f"/api/tasks/{task_id}/approve", headers=headers(seed.emp1)).status_code == 403

    resp = client.patch(f"/api/tasks/{task_id}/approve", headers=headers(seed.admin))
    assert resp.status_code == 200
    assert resp.get_json()["data"]["task"]["status"] == "approved"

    again = client.patch(f"/api/tasks/{task_id}/approve", headers=headers(seed.admin))
    assert again.status_code == 409
    assert again.get_json()["error"] == "InvalidState"


def test_status_change_validation(client, seed, headers, app):
    task_id = _task(app, seed.acme, seed.admin, assignee_id=seed.emp1)
    resp = client.patch(f"/api/tasks/{task_id}/status", json={"status": "finished"}, headers=headers(seed.emp1))
    assert resp.status_code == 400
    resp = client.patch(f"/api/tasks/{task_id}/status", json={"status": "completed"}, headers=headers(seed.emp2))
    assert resp.status_code == 403


def test_non_assignee_update_is_forbidden_before_validation(client, seed, headers, app):
    task_id = _task(app, seed.acme, seed.admin, assignee_id=seed.emp1)
    resp = client.put(f"/api/tasks/{task_id}", json={"title": "x"}, headers=headers(seed.emp2))
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "Forbidden"

    # the assignee still gets the validation error
    resp = client.put(f"/api/tasks/{task_id}", json={"title": "x"}, headers=headers(seed.emp1))
    assert resp.status_code == 400


def test_status_endpoint_cannot_set_overdue(client, seed, headers, app):
    task_id = _task(app, seed.acme, seed.admin, assignee_id=seed.emp1)
    resp = client.patch(f"/api/tasks/{task_id}/status", json={"status": "overdue"}, headers=headers(seed.emp1))
    assert resp.status_code == 409
    assert _stored(app, task_id)["status"] == "todo"


def test_assign_task(client, seed, headers, app):
    task_id = _task(app, seed.acme, seed.admin)
    resp = client.patch(f"/api/tasks/{task_id}/assign", json={"assignedTo": seed.emp2}, headers=headers(seed.admin))
    assert resp.status_code == 200
    assert resp.get_json()["data"]["task"]["assignedTo"] == seed.emp2

    resp = client.patch(f"/api/tasks/{task_id}/assign", json={"assignedTo": seed.newbie}, headers=headers(seed.admin))
    assert resp.status_code == 400


def test_overdue_endpoint_flags_past_due(client, seed, headers, yesterday):
    created = client.post("/api/tasks", json={
        "title": "Ship release",
        "priority": "high",
        "assignedTo": seed.emp1,
        "dueDate": yesterday.isoformat() + "Z",
    }, headers=headers(seed.admin)).get_json()["data"]["task"]

    body = client.get("/api/tasks/overdue", headers=headers(seed.admin)).get_json()
    assert body["results"] == 1
    task = body["data"]["tasks"][0]
    assert task["id"] == created["id"]
    assert task["status"] == "overdue"
    assert task["isOverdue"] is True

    again = client.get("/api/tasks/overdue", headers=headers(seed.admin)).get_json()
    assert [t["id"] for t in again["data"]["tasks"]] == [created["id"]]


def test_delete_task(client, seed, headers, app):
    task_id = _task(app, seed.acme, seed.admin, assignee_id=seed.emp1)
    assert client.delete(f"/api/tasks/{task_id}", headers=headers(seed.emp1)).status_code == 403
    assert client.delete(f"/api/tasks/{task_id}", headers=headers(seed.admin)).status_code == 204
    assert _stored(app, task_id) is None
