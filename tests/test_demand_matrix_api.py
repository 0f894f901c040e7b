from __future__ import annotations

from fastapi.testclient import TestClient


def _payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "forecast_periods": [
            {"period": "2024-01", "demand": [{"skill": "Tax Preparation", "hours": 12}]},
            {"period": "2024-02", "demand": [{"skill": "Tax Preparation", "hours": 12}]},
        ],
        "tasks": [
            {
                "id": "task-a",
                "client_id": "client-1",
                "client_name": "Acme Ltd",
                "required_skills": ["Tax Preparation"],
                "estimated_hours": 12,
                "recurrence_type": "monthly",
                "recurrence_interval": 1,
                "due_date": "2024-01-01",
            },
            {
                "id": "task-b",
                "client_id": "client-2",
                "required_skills": ["Tax Preparation"],
                "estimated_hours": 3,
                "recurrence_type": "monthly",
                "due_date": "2024-02-01",
                "preferred_staff_id": "staff-7",
            },
        ],
        "staff": [{"id": "staff-7", "display_name": "Sam Lee"}],
        "skill_fee_rates": {"Tax Preparation": 100},
    }
    payload.update(overrides)
    return payload


def test_build_demand_matrix(client: TestClient) -> None:
    response = client.post("/api/v1/demand-matrix", json=_payload())

    assert response.status_code == 200
    body = response.json()
    matrix = body["matrix"]
    assert [month["key"] for month in matrix["months"]] == ["2024-01", "2024-02"]
    assert matrix["total_demand"] == 27
    assert matrix["total_tasks"] == 3
    assert matrix["total_clients"] == 2
    assert matrix["skill_fee_rates"] == {"Tax Preparation": 100}
    assert matrix["staff_summary"]["UNASSIGNED"]["total_hours"] == 24
    assert matrix["staff_summary"]["staff-7"]["total_hours"] == 3
    february = matrix["data_points"][1]
    assert february["month"] == "2024-02"
    assert february["suggested_revenue"] == 1500
    assert {line["task_id"] for line in february["task_breakdown"]} == {"task-a", "task-b"}
    assert body["validation"]["is_valid"] is True


def test_orphan_staff_is_reported(client: TestClient) -> None:
    response = client.post("/api/v1/demand-matrix", json=_payload(staff=[]))

    assert response.status_code == 200
    validation = response.json()["validation"]
    assert validation["is_valid"] is True
    assert any("staff-7" in issue for issue in validation["staff_related_issues"])


def test_empty_periods_return_empty_matrix(client: TestClient) -> None:
    response = client.post("/api/v1/demand-matrix", json=_payload(forecast_periods=[]))

    assert response.status_code == 200
    body = response.json()
    assert body["matrix"]["data_points"] == []
    assert body["matrix"]["total_demand"] == 0
    assert body["validation"]["is_valid"] is False


def test_reserved_staff_id_is_rejected(client: TestClient) -> None:
    payload = _payload()
    payload["tasks"][1]["preferred_staff_id"] = "UNASSIGNED"

    response = client.post("/api/v1/demand-matrix", json=payload)

    assert response.status_code == 422


def test_unassigned_filter(client: TestClient) -> None:
    response = client.post("/api/v1/demand-matrix", json=_payload(assignment_filter="unassigned"))

    assert response.status_code == 200
    assert response.json()["matrix"]["total_demand"] == 24
