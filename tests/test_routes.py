"""Tests for the HTTP API."""

from __future__ import annotations

import datetime
import unittest
from unittest.mock import patch

from tourneyhub import _start_background_work, create_app
from tests.mock_utils import FirestoreTestCase

TOURNAMENT_ID = "cup"
TASK_TOKEN = "secret-task-token"  # nosec


class RoutesTestCase(FirestoreTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.app = create_app(
            {"TESTING": True, "TASK_TOKEN": TASK_TOKEN, "SERVER_NAME": "localhost"}
        )
        self.client = self.app.test_client()
        self.app_context = self.app.app_context()
        self.app_context.push()
        self.addCleanup(self.app_context.pop)

        self.add_user("organizer", displayName="Olive")
        self.add_user("stranger")
        self.add_user("root", role="admin")
        self.add_tournament(TOURNAMENT_ID, organizerId="organizer")
        for i in range(4):
            self.add_registration(f"r{i}", TOURNAMENT_ID, f"u{i}", playerGameId=f"P{i}")

    def _login_as(self, uid: str) -> dict[str, str]:
        self.mocks["verify_id_token"].return_value = {"uid": uid}
        return {"Authorization": "Bearer mock-token"}

    def _generate(self) -> dict:
        response = self.client.post(
            f"/tournaments/{TOURNAMENT_ID}/bracket", headers=self._login_as("organizer")
        )
        self.assertEqual(response.status_code, 201)
        return response.get_json()["data"]

    def test_generate_bracket(self) -> None:
        data = self._generate()
        self.assertEqual(data["totalEntrants"], 4)
        self.assertEqual(data["totalMatches"], 3)
        self.assertTrue(data["bracketId"])

    def test_generate_bracket_requires_login(self) -> None:
        response = self.client.post(f"/tournaments/{TOURNAMENT_ID}/bracket")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()["error"]["code"], "unauthenticated")

    def test_invalid_token(self) -> None:
        self.mocks["verify_id_token"].side_effect = ValueError("expired")
        response = self.client.post(
            f"/tournaments/{TOURNAMENT_ID}/bracket",
            headers={"Authorization": "Bearer stale"},
        )
        self.assertEqual(response.status_code, 401)

    def test_session_login(self) -> None:
        with self.client.session_transaction() as sess:
            sess["user_id"] = "organizer"
        response = self.client.post(f"/tournaments/{TOURNAMENT_ID}/bracket")
        self.assertEqual(response.status_code, 201)

    def test_generate_bracket_forbidden(self) -> None:
        response = self.client.post(
            f"/tournaments/{TOURNAMENT_ID}/bracket", headers=self._login_as("stranger")
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.get_json()["error"]["code"], "permission-denied")

    def test_generate_bracket_twice(self) -> None:
        self._generate()
        response = self.client.post(
            f"/tournaments/{TOURNAMENT_ID}/bracket", headers=self._login_as("organizer")
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["error"]["code"], "failed-precondition")

    def test_generate_bracket_missing_tournament(self) -> None:
        response = self.client.post(
            "/tournaments/nope/bracket", headers=self._login_as("organizer")
        )
        self.assertEqual(response.status_code, 404)

    def test_view_bracket(self) -> None:
        self._generate()
        response = self.client.get(f"/tournaments/{TOURNAMENT_ID}/bracket")
        self.assertEqual(response.status_code, 200)
        rounds = response.get_json()["data"]["rounds"]
        self.assertEqual([len(r["matches"]) for r in rounds], [2, 1])

    def test_view_missing_bracket(self) -> None:
        response = self.client.get(f"/tournaments/{TOURNAMENT_ID}/bracket")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["error"]["code"], "not-found")

    def test_report_result_queues_progression(self) -> None:
        self._generate()
        bracket = self.client.get(f"/tournaments/{TOURNAMENT_ID}/bracket").get_json()
        match = bracket["data"]["rounds"][0]["matches"][0]
        final_id = bracket["data"]["rounds"][1]["matches"][0]["id"]

        response = self.client.post(
            f"/matches/{match['id']}/result",
            json={"winner_id": match["team2Id"], "team1_score": 1, "team2_score": 2},
            headers=self._login_as("organizer"),
        )

        self.assertEqual(response.status_code, 200)
        data = response.get_json()["data"]
        self.assertEqual(data["status"], "completed")
        self.assertEqual(data["winnerId"], match["team2Id"])
        self.assertEqual(data["scores"], {"team1Score": 1, "team2Score": 2})

        events = self.app.extensions["match_events"]
        self.assertEqual(events.drain(), 1)
        self.assertEqual(self.get_doc("matches", final_id)["team1Id"], match["team2Id"])

    def test_report_result_validation(self) -> None:
        self._generate()
        match = self.stream("matches")[0]
        headers = self._login_as("organizer")

        response = self.client.post("/matches/any/result", json={}, headers=headers)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"]["code"], "invalid-argument")

        response = self.client.post(
            "/matches/any/result",
            json={"winner_id": match.get("team1Id", "x"), "team1_score": 3},
            headers=headers,
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            "/matches/any/result",
            json={"winner_id": "x", "team1_score": -1, "team2_score": 2},
            headers=headers,
        )
        self.assertEqual(response.status_code, 400)

    def test_report_result_for_undecided_match(self) -> None:
        self._generate()
        bracket = self.client.get(f"/tournaments/{TOURNAMENT_ID}/bracket").get_json()
        final_id = bracket["data"]["rounds"][1]["matches"][0]["id"]
        response = self.client.post(
            f"/matches/{final_id}/result",
            json={"winner_id": "u1"},
            headers=self._login_as("organizer"),
        )
        self.assertEqual(response.status_code, 409)

    def test_view_match(self) -> None:
        self._generate()
        match_id = next(iter(self.db.collection("matches").stream())).id
        response = self.client.get(f"/matches/{match_id}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"]["id"], match_id)
        self.assertEqual(self.client.get("/matches/nope").status_code, 404)

    def test_verify_payment(self) -> None:
        self.add_registration("pending", TOURNAMENT_ID, "u9", paymentStatus="pending")
        response = self.client.post(
            "/registrations/pending/verify",
            json={"decision": "approved"},
            headers=self._login_as("organizer"),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"]["paymentStatus"], "approved")

    def test_verify_payment_invalid_decision(self) -> None:
        response = self.client.post(
            "/registrations/r1/verify",
            json={"decision": "maybe"},
            headers=self._login_as("organizer"),
        )
        self.assertEqual(response.status_code, 400)

    def test_set_role(self) -> None:
        response = self.client.post(
            "/admin/users/stranger/role",
            json={"role": "organizer"},
            headers=self._login_as("root"),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.get_doc("users", "stranger")["role"], "organizer")

    def test_set_role_forbidden(self) -> None:
        response = self.client.post(
            "/admin/users/stranger/role",
            json={"role": "admin"},
            headers=self._login_as("stranger"),
        )
        self.assertEqual(response.status_code, 403)

    def test_reveal_rooms_task(self) -> None:
        self.db.collection("tournaments").document(TOURNAMENT_ID).update(
            {
                "status": "live",
                "room": {
                    "id": "R1",
                    "password": "pw",
                    "visibleFrom": datetime.datetime.now(datetime.timezone.utc)
                    - datetime.timedelta(hours=1),
                    "revealed": False,
                },
            }
        )
        response = self.client.post(
            "/tasks/reveal-rooms", headers={"X-Task-Token": TASK_TOKEN}
        )
        self.assertEqual(response.status_code, 200)
        data = response.get_json()["data"]
        self.assertEqual(data["revealed"], 1)
        self.assertEqual(data["notified"], 4)

    def test_task_token_required(self) -> None:
        response = self.client.post("/tasks/reveal-rooms")
        self.assertEqual(response.status_code, 401)
        response = self.client.post(
            "/tasks/reveal-rooms", headers={"X-Task-Token": "wrong"}
        )
        self.assertEqual(response.status_code, 401)

    def test_task_endpoints_disabled_without_token(self) -> None:
        self.app.config["TASK_TOKEN"] = None
        response = self.client.post(
            "/tasks/reveal-rooms", headers={"X-Task-Token": TASK_TOKEN}
        )
        self.assertEqual(response.status_code, 403)

    def test_match_completed_task(self) -> None:
        self._generate()
        bracket = self.client.get(f"/tournaments/{TOURNAMENT_ID}/bracket").get_json()
        match = bracket["data"]["rounds"][0]["matches"][1]
        self.db.collection("matches").document(match["id"]).update(
            {"status": "completed", "winnerId": match["team1Id"]}
        )

        response = self.client.post(
            f"/tasks/matches/{match['id']}/completed",
            headers={"X-Task-Token": TASK_TOKEN},
        )

        self.assertEqual(response.status_code, 200)
        data = response.get_json()["data"]
        self.assertEqual(data["outcome"], "advanced")
        self.assertEqual(data["slot"], "team2")

    def test_unknown_route(self) -> None:
        response = self.client.get("/nowhere")
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.get_json()["success"])


class AppFactoryTestCase(FirestoreTestCase):
    def test_defaults(self) -> None:
        app = create_app({"TESTING": True})
        self.assertEqual(app.config["ROOM_REVEAL_LEAD_MINUTES"], 15)
        self.assertEqual(app.config["ROOM_REVEAL_INTERVAL_SECONDS"], 300)
        self.assertFalse(app.config["ROOM_REVEAL_SCHEDULER_ENABLED"])
        self.assertIn("match_events", app.extensions)
        self.mocks["init_app"].assert_not_called()

    def test_blueprints_registered(self) -> None:
        app = create_app({"TESTING": True})
        for name in ("registration", "bracket", "match", "admin", "tasks"):
            self.assertIn(name, app.blueprints)

    def test_background_work_is_opt_in(self) -> None:
        app = create_app(
            {
                "TESTING": True,
                "MATCH_EVENT_WORKER_ENABLED": False,
                "MATCH_WATCHER_ENABLED": True,
                "ROOM_REVEAL_SCHEDULER_ENABLED": True,
            }
        )
        with patch("tourneyhub.tasks.events.watch_completed_matches") as watch, patch(
            "tourneyhub.tasks.scheduler.PeriodicTask.start"
        ) as start:
            _start_background_work(app)

        watch.assert_called_once_with(self.db, app.extensions["match_events"])
        start.assert_called_once()
        self.assertEqual(app.extensions["room_reveal"].interval, 300)


if __name__ == "__main__":
    unittest.main()
