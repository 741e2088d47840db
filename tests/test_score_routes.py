"""
Test suite for Score routes
Tests routes defined in routes/score_routes.py
"""

import pytest
from app import db
from database.models import Match as DBMatch, ScoreEntry, Wicket


def _submit(client, match, team, score, overs, **extra):
    payload = {"match": match.id, "team": team.id, "score": score, "overs": overs}
    payload.update(extra)
    return client.post("/scores", json=payload)


class TestSubmitScore:
    """Tests for POST /scores."""

    def test_first_innings_is_stored_but_winner_pending(self, client, past_match, test_team):
        response = _submit(client, past_match, test_team, 180, 20)

        assert response.status_code == 409
        body = response.get_json()
        assert "has not recorded a score" in body["error"]
        assert body["score"]["team_id"] == test_team.id
        assert body["score"]["score"] == 180

        entries = db.session.execute(db.select(ScoreEntry)).scalars().all()
        assert len(entries) == 1
        match = db.session.get(DBMatch, past_match.id)
        assert match.winner_team_id is None
        assert match.match_status == "completed"

    def test_second_innings_sets_winner(self, client, past_match, test_team, test_team_2):
        _submit(client, past_match, test_team, 180, 20)
        response = _submit(client, past_match, test_team_2, 165, 20)

        assert response.status_code == 201
        body = response.get_json()
        assert body["winner"] == test_team.id
        assert body["matchStatus"] == "completed"
        assert body["score"]["run_rate"] == pytest.approx(8.25)

        db.session.expire_all()
        match = db.session.get(DBMatch, past_match.id)
        assert match.winner_team_id == test_team.id

    def test_tie_leaves_winner_empty(self, client, past_match, test_team, test_team_2):
        _submit(client, past_match, test_team, 150, 20)
        response = _submit(client, past_match, test_team_2, 150, 20)

        assert response.status_code == 201
        assert response.get_json()["winner"] is None

    def test_future_match_stays_upcoming(self, client, future_match, test_team, test_team_2):
        _submit(client, future_match, test_team, 10, 1)
        response = _submit(client, future_match, test_team_2, 11, 1)

        assert response.status_code == 201
        assert response.get_json()["matchStatus"] == "upcoming"

    def test_client_run_rate_is_ignored(self, client, past_match, test_team):
        _submit(client, past_match, test_team, 150, 20, runRate=42)
        entry = db.session.execute(db.select(ScoreEntry)).scalar_one()
        assert entry.run_rate == 7.5

    def test_zero_overs(self, client, past_match, test_team):
        _submit(client, past_match, test_team, 80, 0)
        entry = db.session.execute(db.select(ScoreEntry)).scalar_one()
        assert entry.run_rate == 0

    def test_wickets_are_recorded(self, client, past_match, test_team, test_player):
        _submit(
            client, past_match, test_team, 120, 20,
            wickets=[{"type": "caught", "player": test_player.id}, {"type": "Run Out"}],
        )
        wickets = db.session.execute(db.select(Wicket).order_by(Wicket.id)).scalars().all()
        assert [w.kind for w in wickets] == ["caught", "run out"]
        assert wickets[0].player_id == test_player.id

    @pytest.mark.parametrize("player", [True, 9999, "someone"])
    def test_wicket_player_must_exist(self, client, past_match, test_team, player):
        response = _submit(client, past_match, test_team, 120, 20, wickets=[{"type": "bowled", "player": player}])
        assert response.status_code == 400
        assert response.get_json()["field"] == "wickets"
        assert db.session.execute(db.select(ScoreEntry)).first() is None

    def test_unknown_wicket_type(self, client, past_match, test_team):
        response = _submit(client, past_match, test_team, 120, 20, wickets=[{"type": "timed out twice"}])
        assert response.status_code == 400
        assert response.get_json()["field"] == "wickets"
        assert db.session.execute(db.select(ScoreEntry)).first() is None

    @pytest.mark.parametrize("field,value", [("score", "lots"), ("overs", None), ("score", None)])
    def test_invalid_numbers_rejected(self, client, past_match, test_team, field, value):
        payload = {"match": past_match.id, "team": test_team.id, "score": 100, "overs": 10}
        payload[field] = value
        response = client.post("/scores", json=payload)

        assert response.status_code == 400
        assert response.get_json()["field"] == field
        assert db.session.execute(db.select(ScoreEntry)).first() is None

    def test_missing_team(self, client, past_match):
        response = client.post("/scores", json={"match": past_match.id, "score": 100, "overs": 10})
        assert response.status_code == 400
        assert response.get_json()["field"] == "team_id"

    def test_team_not_in_match(self, client, past_match):
        response = client.post("/scores", json={"match": past_match.id, "team": 9999, "score": 100, "overs": 10})
        assert response.status_code == 400
        assert response.get_json()["field"] == "team"

    def test_unknown_match(self, client, test_team):
        response = client.post("/scores", json={"match": 9999, "team": test_team.id, "score": 1, "overs": 1})
        assert response.status_code == 404

    def test_missing_json_body(self, client):
        response = client.post("/scores", data="not json")
        assert response.status_code == 400


class TestListScores:
    """Tests for GET /scores."""

    def test_empty(self, client):
        response = client.get("/scores")
        assert response.status_code == 200
        assert response.get_json() == []

    def test_filter_by_team(self, client, past_match, test_team, test_team_2):
        _submit(client, past_match, test_team, 180, 20)
        _submit(client, past_match, test_team_2, 165, 20)

        response = client.get(f"/scores?team_id={test_team_2.id}")
        data = response.get_json()
        assert len(data) == 1
        assert data[0]["score"] == 165

    def test_filter_by_match(self, client, past_match, future_match, test_team):
        _submit(client, past_match, test_team, 180, 20)
        _submit(client, future_match, test_team, 90, 10)

        data = client.get(f"/scores?match_id={future_match.id}").get_json()
        assert [d["match_id"] for d in data] == [future_match.id]
