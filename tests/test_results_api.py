"""
Tests for result submission, listing, summary and export.
"""
from io import BytesIO

import pandas as pd


class TestSubmitResult:
    """Tests for POST /api/results."""

    def test_server_grades_answers(self, client, created_test, submit):
        response = submit(created_test, "Amy", "A", answers=["Paris ", "rome"])

        assert response.status_code == 201
        assert response.json() == {"message": "Results saved successfully.", "score": 5}

    def test_server_grade_partial(self, client, created_test, submit):
        assert submit(created_test, "Amy", "A", answers=["london", "rome"]).json()["score"] == 3

    def test_server_grade_no_answers(self, client, created_test, submit):
        assert submit(created_test, "Amy", "A", answers=[]).json()["score"] == 0

    def test_explicit_score_stored(self, client, created_test, submit):
        response = submit(created_test, "Bob", "A", score=4)

        assert response.status_code == 201
        results = client.get(f"/api/tests/{created_test}/results").json()
        assert [r["score"] for r in results] == [4]

    def test_zero_score_accepted(self, client, created_test, submit):
        response = submit(created_test, "Zoe", "B", score=0)

        assert response.status_code == 201
        assert response.json()["score"] == 0

    def test_answers_take_precedence_over_score(self, client, created_test, submit):
        response = submit(created_test, "Eve", "C", score=100, answers=["paris", ""])
        assert response.json()["score"] == 2

    def test_missing_score_and_answers_rejected(self, client, created_test, submit):
        response = submit(created_test, "Amy", "A")
        assert response.status_code == 400

    def test_missing_name_rejected(self, client, created_test):
        response = client.post("/api/results", json={
            "test_id": created_test, "student_group": "A", "score": 1,
        })
        assert response.status_code == 400
        assert "student_name" in response.json()["detail"]

    def test_blank_group_rejected(self, client, created_test, submit):
        assert submit(created_test, "Amy", "  ", score=1).status_code == 400

    def test_missing_test_id_rejected(self, client):
        response = client.post("/api/results", json={
            "student_name": "Amy", "student_group": "A", "score": 1,
        })
        assert response.status_code == 400

    def test_unknown_test_rejected(self, client, submit):
        response = submit(999999, "Amy", "A", score=1)
        assert response.status_code == 400
        assert "does not exist" in response.json()["detail"]

    def test_out_of_range_test_id_rejected(self, client, submit):
        response = submit(9223372036854775808, "Amy", "A", score=1)
        assert response.status_code == 400
        assert "test_id" in response.json()["detail"]

    def test_score_above_maximum_rejected(self, client, created_test, submit):
        response = submit(created_test, "Mallory", "A", score=9999)

        assert response.status_code == 400
        assert "maximum of 5" in response.json()["detail"]
        assert client.get(f"/api/tests/{created_test}/results").json() == []

    def test_maximum_score_accepted(self, client, created_test, submit):
        assert submit(created_test, "Amy", "A", score=5).status_code == 201

    def test_names_stored_as_given(self, client, created_test, submit):
        submit(created_test, " Amy ", "A-1 ", score=1)

        rows = client.get(f"/api/tests/{created_test}/results").json()
        assert [(r["student_name"], r["student_group"]) for r in rows] == [(" Amy ", "A-1 ")]

    def test_repeat_submissions_kept(self, client, created_test, submit):
        submit(created_test, "Amy", "A", score=1)
        submit(created_test, "Amy", "A", score=2)

        results = client.get(f"/api/tests/{created_test}/results").json()
        assert [r["score"] for r in results] == [1, 2]


class TestListResults:
    """Tests for GET /api/tests/{id}/results."""

    def test_ordered_by_group_then_name(self, client, created_test, submit):
        for group, name in [("B", "Zoe"), ("A", "Amy"), ("A", "Bob")]:
            submit(created_test, name, group, score=1)

        response = client.get(f"/api/tests/{created_test}/results")

        assert response.status_code == 200
        rows = response.json()
        assert [(r["student_group"], r["student_name"]) for r in rows] == [
            ("A", "Amy"), ("A", "Bob"), ("B", "Zoe"),
        ]
        for row in rows:
            assert set(row) == {"student_name", "student_group", "score", "created_at"}

    def test_empty_for_test_without_results(self, client, created_test):
        response = client.get(f"/api/tests/{created_test}/results")
        assert response.status_code == 200
        assert response.json() == []

    def test_empty_for_unknown_test(self, client):
        response = client.get("/api/tests/999999/results")
        assert response.status_code == 200
        assert response.json() == []

    def test_empty_for_out_of_range_test(self, client):
        response = client.get("/api/tests/9223372036854775808/results")
        assert response.status_code == 200
        assert response.json() == []
        assert client.get("/api/tests/9223372036854775808/results/summary").json() == []

    def test_results_scoped_to_test(self, client, created_test, submit):
        other = client.post("/api/tests", json={
            "title": "Other",
            "questions": [{"text": "q", "answer": "a", "score": 1}],
        }).json()["test_id"]
        submit(created_test, "Amy", "A", score=1)
        submit(other, "Bob", "A", score=1)

        rows = client.get(f"/api/tests/{other}/results").json()
        assert [r["student_name"] for r in rows] == ["Bob"]


class TestResultsSummary:
    """Tests for GET /api/tests/{id}/results/summary."""

    def test_group_aggregates(self, client, created_test, submit):
        submit(created_test, "Amy", "A", score=2)
        submit(created_test, "Bob", "A", score=5)
        submit(created_test, "Zoe", "B", score=3)

        response = client.get(f"/api/tests/{created_test}/results/summary")

        assert response.status_code == 200
        assert response.json() == [
            {"student_group": "A", "submissions": 2, "average_score": 3.5, "best_score": 5},
            {"student_group": "B", "submissions": 1, "average_score": 3.0, "best_score": 3},
        ]

    def test_empty_summary(self, client, created_test):
        assert client.get(f"/api/tests/{created_test}/results/summary").json() == []


class TestExportResults:
    """Tests for GET /api/tests/{id}/results/export."""

    def test_export_workbook(self, client, created_test, submit):
        submit(created_test, "Zoe", "B", score=3)
        submit(created_test, "Amy", "A", answers=["paris", "rome"])

        response = client.get(f"/api/tests/{created_test}/results/export")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert f"test_{created_test}_results.xlsx" in response.headers["content-disposition"]

        sheets = pd.read_excel(BytesIO(response.content), sheet_name=None)
        results = sheets["Results"].dropna(subset=["Name"])
        assert list(results["Name"]) == ["Amy", "Zoe"]
        assert list(results["Score"]) == [5, 3]
        assert list(sheets["Groups"]["Group"]) == ["A", "B"]

    def test_export_without_results(self, client, created_test):
        response = client.get(f"/api/tests/{created_test}/results/export")
        assert response.status_code == 200

    def test_export_unknown_test_404(self, client):
        assert client.get("/api/tests/999999/results/export").status_code == 404
