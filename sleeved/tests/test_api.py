"""
Tests for API layer.

Tests:
- EngineService methods
- Error responses
- Match lifecycle via the service
- HTTP endpoints
"""

import pytest
from pydantic import ValidationError

from ..api.schemas import (
    CardModel,
    CardStatsModel,
    CommitRequest,
    CompositionRequest,
    CreateMatchRequest,
    EloRequest,
    ErrorCode,
    ErrorResponse,
    PersistentModifierModel,
    RulesModel,
    SimulatedPlayer,
    SimulateRequest,
    SurrenderRequest,
)
from ..api.service import EngineService, card_from_model, card_to_model
from ..engine_core.rules import GameRules
from ..session import CardCatalog


def _animal_model(card_id, damage, health, initiative=None):
    return CardModel(
        id=card_id,
        name=card_id.title(),
        type="animal",
        stats=CardStatsModel(damage=damage, health=health, initiative=initiative),
    )


@pytest.fixture
def service(catalog) -> EngineService:
    """A fresh service over the test catalog."""
    return EngineService(catalog=catalog)


class TestConversion:
    """Cards survive the trip through the API models."""

    def test_card_round_trip(self, catalog):
        """Every catalog card converts to a model and back unchanged."""
        for card in catalog.all_cards:
            assert card_from_model(card_to_model(card)) == card

    def test_absent_stats_stay_absent(self):
        """Stats the model omits stay undefined on the card."""
        card = card_from_model(_animal_model("wolf", 5, None))
        assert card.stats.health is None


class TestEngineService:
    """Tests for the stateless engine endpoints."""

    def test_resolve_from_catalog(self, service):
        """Composition ids resolve against the server catalog."""
        response = service.resolve(CompositionRequest(
            sleeve_id="sleeve_iron", animal_id="wolf", equipment_ids=["sword"],
        ))
        assert (response.damage, response.health, response.initiative) == (8, 6, 1)

    def test_resolve_with_modifiers(self, service):
        """Persistent and initiative modifiers reach the resolved stats."""
        response = service.resolve(CompositionRequest(
            animal_id="wolf",
            persistent_modifiers=[PersistentModifierModel(stat="damage", amount=-100)],
            initiative_modifier=-5,
        ))
        assert response.damage == 0
        assert response.initiative == -3

    def test_resolve_unknown_card(self, service):
        """Unknown card ids come back as UNKNOWN_CARD."""
        response = service.resolve(CompositionRequest(animal_id="dragon"))
        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.UNKNOWN_CARD

    def test_resolve_wrong_card_type(self, service):
        """A card used in the wrong slot is rejected."""
        response = service.resolve(CompositionRequest(sleeve_id="wolf"))
        assert response.error_code == ErrorCode.UNKNOWN_CARD
        assert "expected sleeve" in response.error

    def test_request_cards_take_precedence(self, service):
        """Cards sent with the request shadow catalog cards."""
        response = service.resolve(CompositionRequest(
            animal_id="wolf", cards=[_animal_model("wolf", 1, 1)],
        ))
        assert (response.damage, response.health) == (1, 1)

    def test_attribution(self, service):
        """Attribution lists the layers and the winner of each stat."""
        response = service.attribution(CompositionRequest(
            sleeve_id="sleeve_iron", animal_id="wolf", equipment_ids=["shield"],
        ))
        assert [layer.layer_type for layer in response.layers] == [
            "sleeve_bg", "animal", "equipment", "sleeve_fg",
        ]
        assert response.active_layer.damage == "wolf"
        assert response.active_layer.health == "shield"
        assert response.active_layer.initiative == "sleeve_iron_fg"
        assert response.resolved.health == 12

    def test_simulate_mutual_destruction(self, service):
        """Both sides destroyed: nobody scores."""
        response = service.simulate(SimulateRequest(
            player1=SimulatedPlayer(player_id="p1", animal_id="x", cards=[_animal_model("x", 5, 5, 0)]),
            player2=SimulatedPlayer(player_id="p2", animal_id="y", cards=[_animal_model("y", 10, 5, 0)]),
        ))
        assert not response.player1.outcome.survived
        assert not response.player2.outcome.survived
        assert response.player1.outcome.points_earned == 0
        assert response.player2.outcome.points_earned == 0
        assert response.combat_log[0] == "=== ROUND START ==="

    def test_simulate_with_rules(self, service):
        """Request rules override the server rules."""
        response = service.simulate(SimulateRequest(
            player1=SimulatedPlayer(player_id="p1", animal_id="bear"),
            player2=SimulatedPlayer(player_id="p2", animal_id="badger"),
            rules=RulesModel(scoring="absorption"),
        ))
        # Both survive; points equal the damage each absorbed
        assert response.player1.outcome.points_earned == 4
        assert response.player2.outcome.points_earned == 7

    def test_simulate_reports_effects(self, service):
        """Triggered effects are reported with a description."""
        response = service.simulate(SimulateRequest(
            player1=SimulatedPlayer(player_id="p1", sleeve_id="sleeve_swift", animal_id="badger"),
            player2=SimulatedPlayer(player_id="p2", animal_id="hare"),
        ))
        triggered = response.player1.effect_triggered
        assert triggered.trigger == "if_survives"
        assert triggered.effect.type == "modify_initiative"
        assert triggered.description == "+1 Initiative next round"

    def test_elo(self, service):
        """Elo endpoint returns the new rating and the change."""
        response = service.elo(EloRequest(self_rating=1500, opponent_rating=1500, result="win"))
        assert response.new_elo == 1520
        assert response.elo_change == 20

    def test_rules(self):
        """Service exposes its configured rules."""
        service = EngineService(rules=GameRules(points_to_win=10))
        assert service.get_rules().points_to_win == 10
        assert service.get_rules().scoring == "survival"

    def test_list_cards(self, service, catalog):
        """Card listing counts every catalog card."""
        response = service.list_cards()
        assert response.count == len(catalog.all_cards)


class TestMatchService:
    """Match lifecycle through the service."""

    def _commit_first(self, service, match_id, player_id):
        state = service.get_player_state(match_id, player_id)
        return service.commit(match_id, CommitRequest(
            player_id=player_id,
            sleeve_id=state.available_sleeves[0],
            animal_id=state.animal_hand[0],
        ))

    def test_create_and_get(self, service):
        """A created match can be fetched and listed."""
        created = service.create_match(CreateMatchRequest(player_ids=["alice", "bob"], seed=5))
        assert created.status == "active"
        assert created.current_round == 1
        assert created.scores == {"alice": 0, "bob": 0}

        fetched = service.get_match(created.match_id)
        assert fetched.match_id == created.match_id
        assert service.list_matches() == [created.match_id]

    def test_player_state(self, service):
        """Player state shows the dealt hands and sleeves."""
        created = service.create_match(CreateMatchRequest(player_ids=["alice", "bob"]))
        state = service.get_player_state(created.match_id, "alice")
        assert len(state.animal_hand) == 3
        assert len(state.equipment_hand) == 5
        assert state.available_sleeves == ["sleeve_iron", "sleeve_swift"]

        missing = service.get_player_state(created.match_id, "carol")
        assert missing.error_code == ErrorCode.NOT_A_PLAYER

    def test_round_via_commits(self, service):
        """Second commit resolves the round."""
        match_id = service.create_match(CreateMatchRequest(player_ids=["alice", "bob"], seed=1)).match_id

        first = self._commit_first(service, match_id, "alice")
        assert first.success
        assert not first.both_committed
        assert first.round_result is None

        second = self._commit_first(service, match_id, "bob")
        assert second.both_committed
        assert second.round_result.round_number == 1
        assert set(second.round_result.results) == {"alice", "bob"}
        assert second.match.current_round == 2

    def test_commit_errors(self, service):
        """Commit failures map to error codes."""
        match_id = service.create_match(CreateMatchRequest(player_ids=["alice", "bob"])).match_id

        response = service.commit(match_id, CommitRequest(
            player_id="alice", sleeve_id="sleeve_iron", animal_id="not_in_hand",
        ))
        assert response.error_code == ErrorCode.INVALID_SELECTION

        response = service.commit("missing", CommitRequest(
            player_id="alice", sleeve_id="sleeve_iron", animal_id="wolf",
        ))
        assert response.error_code == ErrorCode.MATCH_NOT_FOUND

        self._commit_first(service, match_id, "alice")
        response = self._commit_first(service, match_id, "alice")
        assert response.error_code == ErrorCode.ALREADY_COMMITTED

    def test_surrender_with_ratings(self, service):
        """Surrender finishes the match and rates both players."""
        created = service.create_match(CreateMatchRequest(
            player_ids=["alice", "bob"],
            ratings={"alice": {"elo": 1500, "games_played": 50}, "bob": {"elo": 1500, "games_played": 50}},
        ))
        response = service.surrender(created.match_id, SurrenderRequest(player_id="alice"))

        assert response.status == "finished"
        assert response.winner == "bob"
        assert response.end_reason == "surrender"
        assert response.elo_changes["bob"].change == 10
        assert response.elo_changes["alice"].previous_elo == 1500
        assert response.elo_changes["alice"].new_elo == 1490

        again = service.surrender(created.match_id, SurrenderRequest(player_id="bob"))
        assert again.error_code == ErrorCode.MATCH_NOT_ACTIVE

    def test_end_match(self, service):
        """Ended matches are no longer found."""
        match_id = service.create_match(CreateMatchRequest(player_ids=["alice", "bob"])).match_id
        assert service.end_match(match_id)
        assert service.get_match(match_id).error_code == ErrorCode.MATCH_NOT_FOUND

    def test_empty_catalog(self):
        """A match can't start without sleeves and animals."""
        service = EngineService(catalog=CardCatalog())
        response = service.create_match(CreateMatchRequest(player_ids=["alice", "bob"]))
        assert response.error_code == ErrorCode.VALIDATION_ERROR

    def test_same_player_twice(self, service):
        """A player can't play against themselves."""
        response = service.create_match(CreateMatchRequest(player_ids=["alice", "alice"]))
        assert response.error_code == ErrorCode.VALIDATION_ERROR

    def test_player_count_validated_by_schema(self):
        """Request schema requires two players."""
        with pytest.raises(ValidationError):
            CreateMatchRequest(player_ids=["alice"])

    @pytest.mark.parametrize("field", [
        "points_for_surviving", "points_for_defeating", "points_for_kill",
        "points_per_overkill", "points_per_absorbed",
    ])
    def test_negative_scoring_rules_rejected(self, field):
        """Rules schema rejects negative scoring constants."""
        with pytest.raises(ValidationError):
            RulesModel(**{field: -1})


class TestHTTPAPI:
    """Endpoints through FastAPI's TestClient."""

    @pytest.fixture
    def client(self, service):
        from fastapi.testclient import TestClient
        from ..api.app import create_app

        return TestClient(create_app(service=service))

    def test_health(self, client):
        """Health check reports healthy."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_resolve(self, client):
        """Resolve endpoint returns resolved stats."""
        response = client.post("/api/v1/resolve", json={"sleeve_id": "sleeve_iron", "animal_id": "bear"})
        assert response.status_code == 200
        assert response.json()["damage"] == 7

    def test_unknown_card_is_404(self, client):
        """Unknown cards map to 404."""
        response = client.post("/api/v1/resolve", json={"animal_id": "dragon"})
        assert response.status_code == 404
        assert response.json()["error_code"] == "UNKNOWN_CARD"

    def test_invalid_body_is_422(self, client):
        """Malformed bodies are rejected by validation."""
        response = client.post("/api/v1/elo", json={"self_rating": 1500})
        assert response.status_code == 422

    def test_negative_scoring_rules_are_422(self, client):
        """Negative scoring rules are rejected before combat runs."""
        response = client.post("/api/v1/simulate", json={
            "player1": {"player_id": "p1", "animal_id": "bear"},
            "player2": {"player_id": "p2", "animal_id": "badger"},
            "rules": {"points_for_surviving": -1},
        })
        assert response.status_code == 422

    def test_match_flow(self, client):
        """Create, commit, fetch, list and delete a match."""
        created = client.post("/api/v1/matches", json={"player_ids": ["alice", "bob"], "seed": 9})
        assert created.status_code == 200
        match_id = created.json()["match_id"]

        for player_id in ("alice", "bob"):
            state = client.get(f"/api/v1/matches/{match_id}/players/{player_id}").json()
            response = client.post(f"/api/v1/matches/{match_id}/commit", json={
                "player_id": player_id,
                "sleeve_id": state["available_sleeves"][0],
                "animal_id": state["animal_hand"][0],
            })
            assert response.status_code == 200

        match = client.get(f"/api/v1/matches/{match_id}").json()
        assert match["current_round"] == 2
        assert len(match["rounds"]) == 1

        assert client.get("/api/v1/matches").json()["count"] == 1
        assert client.delete(f"/api/v1/matches/{match_id}").json()["success"]

    def test_missing_match_is_404(self, client):
        """Missing matches map to 404."""
        response = client.get("/api/v1/matches/nope")
        assert response.status_code == 404
        assert response.json()["error_code"] == "MATCH_NOT_FOUND"

    def test_bad_commit_is_400(self, client):
        """Commit errors map to 400."""
        match_id = client.post("/api/v1/matches", json={"player_ids": ["alice", "bob"]}).json()["match_id"]
        response = client.post(f"/api/v1/matches/{match_id}/commit", json={
            "player_id": "carol", "sleeve_id": "sleeve_iron", "animal_id": "wolf",
        })
        assert response.status_code == 400
        assert response.json()["error_code"] == "NOT_A_PLAYER"
