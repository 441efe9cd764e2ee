"""Tests for advancing winners through the bracket."""

from __future__ import annotations

import random
import unittest
from typing import Any
from unittest.mock import patch

from tourneyhub.bracket.services import BracketService
from tourneyhub.errors import IntegrityError, InvalidStateError, NotFoundError
from tourneyhub.match.progression import Outcome, ProgressionService
from tourneyhub.match.services import MatchService
from tourneyhub.tasks.events import MatchCompleted
from tests.mock_utils import FirestoreTestCase

TOURNAMENT_ID = "cup"


class ProgressionTestCase(FirestoreTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.add_user("organizer")
        self.add_tournament(
            TOURNAMENT_ID,
            organizerId="organizer",
            prizePool=1000,
            prizeDistribution=[{"position": 1, "percentage": 100}],
        )

    def _generate(self, count: int) -> dict[str, Any]:
        for i in range(count):
            self.add_user(f"u{i}")
            self.add_registration(f"r{i}", TOURNAMENT_ID, f"u{i}", playerGameId=f"P{i}")
        result = BracketService.generate_bracket(
            self.db, TOURNAMENT_ID, "organizer", random.Random(count)
        )
        bracket = self.get_doc("brackets", result.bracketId)
        bracket["id"] = result.bracketId
        return bracket

    def _match_id(
        self, bracket: dict[str, Any], round_number: int, position: int
    ) -> str:
        return bracket["rounds"][round_number - 1]["matches"][position]

    def _complete(self, match_id: str, side: str = "team1") -> str:
        match = self.get_doc("matches", match_id)
        winner_id = match[f"{side}Id"]
        self.db.collection("matches").document(match_id).update(
            {
                "status": "completed",
                "winnerId": winner_id,
                "winnerName": match[f"{side}Name"],
            }
        )
        return winner_id

    def test_even_position_advances_to_team1(self) -> None:
        bracket = self._generate(4)
        match_id = self._match_id(bracket, 1, 0)
        winner_id = self._complete(match_id, "team2")

        outcome = ProgressionService.handle_match_completed(self.db, match_id)

        next_id = self._match_id(bracket, 2, 0)
        self.assertEqual(outcome.outcome, Outcome.ADVANCED)
        self.assertEqual(outcome.next_match_id, next_id)
        self.assertEqual(outcome.slot, "team1")
        next_match = self.get_doc("matches", next_id)
        self.assertEqual(next_match["team1Id"], winner_id)
        self.assertNotIn("team2Id", next_match)
        self.assertIn("match_advanced", self.audit_actions())

    def test_odd_position_advances_to_team2(self) -> None:
        bracket = self._generate(4)
        match_id = self._match_id(bracket, 1, 1)
        winner_id = self._complete(match_id)

        outcome = ProgressionService.handle_match_completed(self.db, match_id)

        self.assertEqual(outcome.slot, "team2")
        next_match = self.get_doc("matches", self._match_id(bracket, 2, 0))
        self.assertEqual(next_match["team2Id"], winner_id)

    def test_duplicate_delivery_is_a_no_op(self) -> None:
        bracket = self._generate(4)
        match_id = self._match_id(bracket, 1, 0)
        self._complete(match_id)

        first = ProgressionService.handle_match_completed(self.db, match_id)
        second = ProgressionService.handle_match_completed(self.db, match_id)

        self.assertEqual(first.outcome, Outcome.ADVANCED)
        self.assertEqual(second.outcome, Outcome.ALREADY_ADVANCED)
        self.assertEqual(self.audit_actions().count("match_advanced"), 1)

    def test_bye_matches_are_already_advanced(self) -> None:
        bracket = self._generate(3)
        bye_id = next(
            match_id
            for match_id in bracket["rounds"][0]["matches"]
            if self.get_doc("matches", match_id)["isBye"]
        )

        outcome = ProgressionService.handle_match_completed(self.db, bye_id)

        self.assertEqual(outcome.outcome, Outcome.ALREADY_ADVANCED)

    def test_refuses_to_overwrite_a_different_entrant(self) -> None:
        bracket = self._generate(4)
        match_id = self._match_id(bracket, 1, 0)
        self._complete(match_id)
        next_id = self._match_id(bracket, 2, 0)
        self.db.collection("matches").document(next_id).update(
            {"team1Id": "intruder", "team1Name": "Intruder"}
        )

        with self.assertLogs("tourneyhub.match.progression", level="ERROR"):
            with self.assertRaises(InvalidStateError):
                ProgressionService.handle_match_completed(self.db, match_id)

        self.assertEqual(self.get_doc("matches", next_id)["team1Id"], "intruder")

    def test_match_must_be_completed(self) -> None:
        bracket = self._generate(4)
        with self.assertRaises(InvalidStateError):
            ProgressionService.handle_match_completed(
                self.db, self._match_id(bracket, 1, 0)
            )

    def test_winner_must_be_a_side(self) -> None:
        bracket = self._generate(4)
        match_id = self._match_id(bracket, 1, 0)
        self.db.collection("matches").document(match_id).update(
            {"status": "completed", "winnerId": "someone-else"}
        )
        with self.assertRaises(InvalidStateError):
            ProgressionService.handle_match_completed(self.db, match_id)

    def test_missing_match(self) -> None:
        with self.assertRaises(NotFoundError):
            ProgressionService.handle_match_completed(self.db, "missing")

    def test_missing_bracket(self) -> None:
        self.db.collection("matches").document("orphan").set(
            {
                "tournamentId": TOURNAMENT_ID,
                "round": 1,
                "position": 0,
                "team1Id": "a",
                "team2Id": "b",
                "status": "completed",
                "winnerId": "a",
            }
        )
        with self.assertRaises(NotFoundError):
            ProgressionService.handle_match_completed(self.db, "orphan")

    def test_missing_next_match_is_an_integrity_error(self) -> None:
        bracket = self._generate(4)
        match_id = self._match_id(bracket, 1, 0)
        self._complete(match_id)
        rounds = bracket["rounds"]
        rounds[1]["matches"] = []
        bracket_ref = self.db.collection("brackets").document(bracket["id"])
        bracket_ref.update({"rounds": rounds})

        with self.assertRaises(IntegrityError):
            ProgressionService.handle_match_completed(self.db, match_id)

    def test_misplaced_next_match_is_an_integrity_error(self) -> None:
        bracket = self._generate(4)
        match_id = self._match_id(bracket, 1, 0)
        self._complete(match_id)
        self.db.collection("matches").document(self._match_id(bracket, 2, 0)).update(
            {"position": 3}
        )

        with self.assertRaises(IntegrityError):
            ProgressionService.handle_match_completed(self.db, match_id)

    def test_final_settles_once(self) -> None:
        bracket = self._generate(2)
        final_id = self._match_id(bracket, 1, 0)
        winner_id = self._complete(final_id)

        first = ProgressionService.handle_match_completed(self.db, final_id)
        second = ProgressionService.handle_match_completed(self.db, final_id)

        self.assertEqual(first.outcome, Outcome.SETTLED)
        self.assertEqual(second.outcome, Outcome.ALREADY_SETTLED)
        tournament = self.get_doc("tournaments", TOURNAMENT_ID)
        self.assertEqual(tournament["status"], "completed")
        self.assertEqual(tournament["winnerId"], winner_id)
        self.assertEqual(self.get_doc("users", winner_id)["stats"]["tournamentsWon"], 1)

    def test_full_tournament(self) -> None:
        bracket = self._generate(5)
        for bracket_round in bracket["rounds"]:
            for match_id in bracket_round["matches"]:
                match = self.get_doc("matches", match_id)
                if match["status"] != "completed":
                    MatchService.report_result(
                        self.db, match_id, "organizer", match["team1Id"], 2, 1
                    )
                ProgressionService.handle_match_completed(self.db, match_id)

        final = self.get_doc("matches", self._match_id(bracket, 3, 0))
        tournament = self.get_doc("tournaments", TOURNAMENT_ID)
        self.assertEqual(tournament["status"], "completed")
        self.assertEqual(tournament["winnerId"], final["winnerId"])
        winner_stats = self.get_doc("users", final["winnerId"])["stats"]
        self.assertEqual(winner_stats["totalEarnings"], 1000)
        self.assertEqual(winner_stats["tournamentsJoined"], 1)


class ProcessEventTestCase(FirestoreTestCase):
    def test_errors_are_logged_not_raised(self) -> None:
        event = MatchCompleted(match_id="missing", tournament_id="cup")
        with self.assertLogs("tourneyhub.match.progression", level="WARNING") as logs:
            self.assertIsNone(ProgressionService.process_event(self.db, event))
        self.assertIn("missing", logs.output[0])

    def test_unexpected_errors_are_logged(self) -> None:
        event = MatchCompleted(match_id="m1", tournament_id="cup")
        with patch.object(
            ProgressionService,
            "handle_match_completed",
            side_effect=RuntimeError("boom"),
        ):
            with self.assertLogs("tourneyhub.match.progression", level="ERROR"):
                self.assertIsNone(ProgressionService.process_event(self.db, event))


if __name__ == "__main__":
    unittest.main()
