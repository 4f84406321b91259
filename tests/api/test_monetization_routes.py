from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

from docmarket.api.routes import monetization as monetization_routes
from docmarket.monetization.earnings import build_earnings_summary


def _patch_earnings(monkeypatch, *, known_user_ids: set[int], seen: list[int]) -> None:
    async def fake_get_user(session, user_id: int):  # noqa: ARG001
        return SimpleNamespace(id=user_id) if user_id in known_user_ids else None

    async def fake_get_earnings(session, *, seller_id: int, free_download_rate: Decimal):  # noqa: ARG001
        seen.append(seller_id)
        return build_earnings_summary(
            free_downloads=3,
            paid_earnings=Decimal("500.00"),
            withdrawn_total=Decimal("100.00"),
            free_download_rate=free_download_rate,
        )

    monkeypatch.setattr(monetization_routes.UsersRepo, "get_by_id", fake_get_user)
    monkeypatch.setattr(monetization_routes, "get_earnings", fake_get_earnings)
    monkeypatch.setattr(
        monetization_routes,
        "get_settings",
        lambda: SimpleNamespace(free_download_rate=Decimal("1")),
    )


def test_earnings_returns_callers_summary(monkeypatch, api_client) -> None:
    seen: list[int] = []
    _patch_earnings(monkeypatch, known_user_ids={7}, seen=seen)

    response = api_client(user_id=7).get("/monetization/earnings", params={"user_id": 99})

    assert response.status_code == 200
    assert response.json() == {
        "user_id": 7,
        "free_downloads": 3,
        "free_download_rate": "1",
        "free_earnings": "3",
        "paid_earnings": "500.00",
        "total_earnings": "503.00",
        "withdrawn_total": "100.00",
        "available_balance": "403.00",
    }
    assert seen == [7]


def test_admin_can_inspect_other_seller(monkeypatch, api_client) -> None:
    seen: list[int] = []
    _patch_earnings(monkeypatch, known_user_ids={1, 42}, seen=seen)

    response = api_client(user_id=1, role="admin").get("/monetization/earnings", params={"user_id": 42})

    assert response.status_code == 200
    assert response.json()["user_id"] == 42
    assert seen == [42]


def test_earnings_for_unknown_user_returns_404(monkeypatch, api_client) -> None:
    _patch_earnings(monkeypatch, known_user_ids=set(), seen=[])

    response = api_client(user_id=5).get("/monetization/earnings")

    assert response.status_code == 404
    assert response.json() == {"detail": {"code": "E_USER_NOT_FOUND"}}


def test_earnings_response_schema_is_published() -> None:
    schema = monetization_routes.router.routes[0].response_model.model_json_schema()

    assert schema["title"] == "EarningsResponse"
    assert set(schema["required"]) >= {"user_id", "total_earnings", "available_balance"}
