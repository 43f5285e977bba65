# app/tests/test_match_api.py

import pytest
from httpx import ASGITransport, AsyncClient
from main import app
from infrastructure.redis_connection import get_redis


@pytest.fixture
async def client(redis_client):
    """HTTP client against the app with Redis replaced by fakeredis"""
    app.dependency_overrides[get_redis] = lambda: redis_client
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


async def create_quick_match(client, match_id="API1"):
    return await client.post("/v1/matches", json={
        "matchId": match_id,
        "players": [{"id": "p1"}, {"id": "p2", "isBot": False}],
        "mode": "quick",
    })


@pytest.mark.asyncio
class TestMatchAPI:
    """Test suite for the match HTTP endpoints"""

    async def test_health(self, client):
        """Test the health check endpoint"""
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    async def test_game_info(self, client):
        """Test static game info"""
        response = await client.get("/v1/matches/info")

        assert response.status_code == 200
        body = response.json()
        assert body["game_name"] == "ludo"
        assert body["supported_modes"] == ["classic", "speed", "quick"]
        assert "auto_move" in body["supported_rules"]

    async def test_create_match(self, client):
        """Test creating a match returns the camelCase snapshot"""
        response = await create_quick_match(client)

        assert response.status_code == 201
        body = response.json()
        assert body["matchId"] == "API1"
        assert body["gameState"]["currentPlayerId"] == "p1"
        assert body["gameState"]["phase"] == "awaiting_roll"
        assert body["gameState"]["tokens"][0] == {"id": "p1-0", "ownerId": "p1", "color": "red", "position": 0}
        assert 0 < body["remainingTime"] <= 5

    async def test_create_match_duplicate(self, client):
        """Test that a duplicate match id conflicts"""
        await create_quick_match(client)
        response = await create_quick_match(client)

        assert response.status_code == 409
        assert response.json()["error"] == "ConflictException"

    async def test_create_match_invalid_players(self, client):
        """Test that a single player cannot create a match"""
        response = await client.post("/v1/matches", json={"matchId": "API2", "players": [{"id": "solo"}]})

        assert response.status_code == 400
        assert "2-4 players" in response.json()["message"]

    async def test_create_match_invalid_body(self, client):
        """Test request validation"""
        response = await client.post("/v1/matches", json={"matchId": "API3"})
        assert response.status_code == 422

    async def test_get_match_not_found(self, client):
        """Test reading a missing match"""
        response = await client.get("/v1/matches/NOPE")

        assert response.status_code == 404
        assert response.json()["path"] == "/v1/matches/NOPE"

    async def test_roll_and_move(self, client):
        """Test a full turn over HTTP"""
        await create_quick_match(client)

        rolled = await client.post("/v1/matches/API1/roll", json={"playerId": "p1"})
        assert rolled.status_code == 200
        outcome = rolled.json()
        dice_value = outcome["diceValue"]
        assert 1 <= dice_value <= 6
        assert outcome["state"]["phase"] == "awaiting_move"
        assert {"tokenId": "p1-0", "from": 0, "to": dice_value} in outcome["legalMoves"]

        legal = await client.get("/v1/matches/API1/legal-moves")
        assert legal.json()["diceValue"] == dice_value
        assert len(legal.json()["moves"]) == 4

        moved = await client.post("/v1/matches/API1/move", json={
            "playerId": "p1",
            "move": {"tokenId": "p1-0", "from": 0, "to": dice_value},
        })
        assert moved.status_code == 200
        state = moved.json()["state"]
        assert state["version"] == 2
        assert state["lastMove"] == {"tokenId": "p1-0", "from": 0, "to": dice_value}
        assert state["currentPlayerId"] == ("p1" if dice_value == 6 else "p2")

        stats = await client.get("/v1/matches/API1/stats")
        assert stats.status_code == 200
        assert stats.json()["stats"][0]["totalProgress"] == dice_value

    async def test_roll_wrong_player(self, client):
        """Test that only the current player can roll"""
        await create_quick_match(client)

        response = await client.post("/v1/matches/API1/roll", json={"playerId": "p2"})

        assert response.status_code == 403
        assert response.json()["error"] == "NotCurrentPlayerException"

    async def test_forged_move_rejected(self, client):
        """Test that a move with an invented destination is rejected"""
        await create_quick_match(client)
        rolled = (await client.post("/v1/matches/API1/roll", json={"playerId": "p1"})).json()

        response = await client.post("/v1/matches/API1/move", json={
            "playerId": "p1",
            "move": {"tokenId": "p1-0", "from": 0, "to": rolled["diceValue"] + 10},
        })

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidMoveException"
        current = (await client.get("/v1/matches/API1")).json()
        assert current["gameState"]["version"] == 1

    async def test_timeout_too_early(self, client):
        """Test that the turn clock cannot act before the limit"""
        await create_quick_match(client)

        response = await client.post("/v1/matches/API1/timeout", json={})

        assert response.status_code == 400
        assert "details" in response.json()

    async def test_create_match_with_bot_fill(self, client):
        """Test that botFill seats bots on the free colors"""
        response = await client.post("/v1/matches", json={
            "matchId": "API4",
            "players": [{"id": "p1"}],
            "botFill": "easy",
        })

        assert response.status_code == 201
        players = response.json()["gameState"]["players"]
        assert [p["id"] for p in players] == ["p1", "bot-blue", "bot-yellow", "bot-green"]
        assert all(p["isBot"] and p["botDifficulty"] == "easy" for p in players[1:])
