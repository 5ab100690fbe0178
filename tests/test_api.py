from collections.abc import AsyncGenerator

import httpx
import pytest

from app.core.config import settings
from app.core.db import get_db, get_transaction_manager
from app.main import app

ADMIN = {"X-Admin-Token": "test-admin-token"}


@pytest.fixture
async def client(session_factory, txn, catalog) -> AsyncGenerator[httpx.AsyncClient]:
    async def override_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_transaction_manager] = lambda: txn

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def test_healthz(client):
    response = await client.get("/")
    assert response.status_code == 200


async def test_register_draw_and_pity(client):
    response = await client.post("/api/players/", json={"id": 1000000000000001, "name": "armin"})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["data"]["id"] == "1000000000000001"
    assert body["data"]["gacha_draws"] == settings.starting_draws

    response = await client.post(
        "/api/gacha/1000000000000001/draw", json={"count": 3, "draw_type": "bonus"}
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["draws"]) == 3
    assert data["remaining_draws"] == settings.starting_draws - 3
    assert all(draw["draw_type"] == "bonus" for draw in data["draws"])

    pity = (await client.get("/api/gacha/1000000000000001/pity")).json()["data"]
    assert pity["max_pity"] == settings.pity_threshold
    assert pity["current_pity"] == data["pity_counter"]

    history = (await client.get("/api/gacha/1000000000000001/history?limit=2")).json()["data"]
    assert len(history) == 2

    stats = (await client.get("/api/gacha/1000000000000001/stats")).json()["data"]
    assert stats["total_pulls"] == 3


async def test_draw_beyond_balance_reports_shortfall(client):
    await client.post("/api/players/", json={"id": 2, "name": "jean"})

    response = await client.post("/api/gacha/2/draw", json={"count": 25})

    assert response.status_code == 400
    body = response.json()
    assert body["status"] == "error"
    assert body["data"]["resource"] == "gacha_draws"
    assert body["data"]["shortfall"] == 25 - settings.starting_draws


@pytest.mark.parametrize("amount", [0, 101, -1])
async def test_purchase_invalid_amount(client, amount: int):
    await client.post("/api/players/", json={"id": 3, "name": "sasha"})

    response = await client.post("/api/gacha/3/purchase", json={"amount": amount})

    assert response.status_code == 400
    player = (await client.get("/api/players/3")).json()["data"]
    assert player["coins"] == settings.starting_coins


async def test_purchase_draws(client):
    await client.post("/api/players/", json={"id": 4, "name": "connie"})

    response = await client.post("/api/gacha/4/purchase", json={"amount": 1})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total_cost"] == settings.draw_price
    assert data["gacha_draws"] == settings.starting_draws + 1


async def test_unknown_player_is_404(client):
    response = await client.get("/api/gacha/404/pity")
    assert response.status_code == 404
    assert response.json()["status"] == "error"


async def test_admin_routes_require_token(client):
    await client.post("/api/players/", json={"id": 5, "name": "historia"})
    grant = {"amount": 5, "reason": "event reward"}

    assert (await client.post("/api/players/5/draws", json=grant)).status_code == 403
    response = await client.post(
        "/api/players/5/draws", json=grant, headers={"X-Admin-Token": "wrong"}
    )
    assert response.status_code == 403

    response = await client.post("/api/players/5/draws", json=grant, headers=ADMIN)
    assert response.status_code == 200
    assert response.json()["data"] == settings.starting_draws + 5


async def test_economy_routes(client):
    await client.post("/api/players/", json={"id": 6, "name": "reiner"})
    await client.post("/api/players/", json={"id": 7, "name": "bertholdt"})

    deposit = await client.post("/api/players/6/deposit", json={"amount": 400})
    assert deposit.json()["data"]["bank_balance"] == 400

    transfer = await client.post(
        "/api/players/6/transfer", json={"to_player_id": 7, "amount": 100}
    )
    assert transfer.json()["data"]["to_balance"] == settings.starting_coins + 100

    invalid = await client.post("/api/players/6/withdraw", json={"amount": 0})
    assert invalid.status_code == 422


async def test_powers_and_arena_routes(client):
    await client.post("/api/players/", json={"id": 8, "name": "annie"})
    await client.post("/api/arena/8/join")

    catalog = (await client.get("/api/powers/?rank=Normal")).json()["data"]
    cheapest = min(catalog, key=lambda power: power["base_price"])
    bought = await client.post("/api/powers/player/8/purchase", json={"power_id": cheapest["id"]})
    assert bought.status_code == 200
    user_power_id = bought.json()["data"]["power"]["id"]

    equipped = await client.post(
        "/api/powers/player/8/equip", json={"user_power_id": user_power_id}
    )
    assert equipped.json()["data"]["equipped"]

    leaderboard = (await client.get("/api/arena/leaderboard")).json()["data"]
    assert leaderboard[0]["player_id"] == 8
    assert leaderboard[0]["total_cp"] == cheapest["base_cp"]


async def test_rates(client):
    rates = (await client.get("/api/gacha/rates")).json()["data"]
    assert [rate["name"] for rate in rates] == ["Normal", "Rare", "Epic", "Legendary", "Mythic"]


async def test_daily_and_coin_flip_routes(client):
    await client.post("/api/players/", json={"id": 9, "name": "ymir"})

    daily = await client.post("/api/players/9/daily")
    assert daily.status_code == 200
    assert daily.json()["data"]["coins"] == settings.starting_coins + settings.daily_reward

    again = await client.post("/api/players/9/daily")
    assert again.status_code == 429
    assert again.json()["data"]["retry_after"] > 0

    flip = await client.post("/api/players/9/coinflip", json={"amount": 50, "choice": "heads"})
    assert flip.status_code == 200
    data = flip.json()["data"]
    assert data["choice"] == "heads"
    assert data["won"] == (data["outcome"] == "heads")

    too_small = await client.post("/api/players/9/coinflip", json={"amount": 1})
    assert too_small.status_code == 400


async def test_merge_route(client):
    await client.post("/api/players/", json={"id": 10, "name": "porco"})
    grant = {"amount": 10_000, "reason": "merge funds"}
    await client.post("/api/players/10/coins", json=grant, headers=ADMIN)
    catalog = (await client.get("/api/powers/?rank=Normal")).json()["data"]

    owned = []
    for power in catalog[:3]:
        bought = await client.post("/api/powers/player/10/purchase", json={"power_id": power["id"]})
        owned.append(bought.json()["data"]["power"]["id"])

    merged = await client.post(
        "/api/powers/player/10/merge", json={"main_id": owned[0], "sacrifice_ids": owned[1:]}
    )
    assert merged.status_code == 200
    assert merged.json()["data"]["consumed_ids"] == owned[1:]
    assert len((await client.get("/api/powers/player/10")).json()["data"]) == 1
