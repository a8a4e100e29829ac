import pytest

import admin
import auth
from errors import Conflict, InvalidValue, ReferenceNotFound
from gamification import RARITY_PRICES, seed_accessories, purchase_accessory
from models import Habit, HabitLog, Task, Accessory, UserRole, AccessoryRarity, HabitFrequency, TaskStatus


# ─────────────────────────────────────────────────────────────────────────────
# Servicio
# ─────────────────────────────────────────────────────────────────────────────

def test_list_users_paginates(db_session, make_user):
    for _ in range(5):
        make_user()

    first = admin.list_users(db_session, page=1, limit=2)
    last = admin.list_users(db_session, page=3, limit=2)

    assert first["meta"] == {"page": 1, "limit": 2, "total": 5, "total_pages": 3}
    assert len(first["users"]) == 2
    assert len(last["users"]) == 1
    seen = {u.id for u in first["users"]} | {u.id for u in last["users"]}
    assert len(seen) == 3


def test_list_users_empty_page(db_session, make_user):
    make_user()
    page = admin.list_users(db_session, page=4, limit=20)
    assert page["users"] == []
    assert page["meta"]["total_pages"] == 1


def test_update_user_role(db_session, make_user):
    user = make_user()
    assert admin.update_user_role(db_session, user.id, UserRole.ADMIN).is_admin
    assert not admin.update_user_role(db_session, user.id, UserRole.USER).is_admin


def test_update_role_unknown_user(db_session):
    with pytest.raises(ReferenceNotFound):
        admin.update_user_role(db_session, 9999, UserRole.ADMIN)


def test_get_stats(db_session, make_user):
    user = make_user()
    make_user()
    habit = Habit(user_id=user.id, name="Leer", frequency=HabitFrequency.DAILY)
    db_session.add_all([habit, Task(user_id=user.id, title="Algo", status=TaskStatus.PENDING)])
    db_session.commit()
    db_session.add(HabitLog(habit_id=habit.id, streak_day=1))
    db_session.commit()

    assert admin.get_stats(db_session) == {
        "total_users": 2, "total_habits": 1, "total_tasks": 1, "total_completions": 1,
    }


def test_create_accessory_uses_rarity_price(db_session):
    accessory = admin.create_accessory(db_session, {"name": "Capa", "rarity": AccessoryRarity.EPIC})
    assert accessory.price == RARITY_PRICES[AccessoryRarity.EPIC]

    custom = admin.create_accessory(db_session, {"name": "Chapa", "price": 3})
    assert (custom.rarity, custom.price) == ("COMMON", 3)


def test_create_accessory_duplicate_name(db_session):
    admin.create_accessory(db_session, {"name": "Capa"})
    with pytest.raises(Conflict):
        admin.create_accessory(db_session, {"name": "Capa"})


def test_update_accessory(db_session):
    capa = admin.create_accessory(db_session, {"name": "Capa"})
    admin.create_accessory(db_session, {"name": "Chapa"})

    updated = admin.update_accessory(db_session, capa.id, {"price": 99, "rarity": AccessoryRarity.RARE})
    assert (updated.price, updated.rarity) == (99, "RARE")

    with pytest.raises(Conflict):
        admin.update_accessory(db_session, capa.id, {"name": "Chapa"})
    with pytest.raises(InvalidValue):
        admin.update_accessory(db_session, capa.id, {"price": None})


def test_delete_accessory(db_session, make_user):
    seed_accessories(db_session)
    owned, unowned = db_session.query(Accessory).order_by(Accessory.id).limit(2).all()
    buyer = make_user(coins=owned.price)
    purchase_accessory(db_session, buyer, owned.id)

    with pytest.raises(Conflict):
        admin.delete_accessory(db_session, owned.id)

    admin.delete_accessory(db_session, unowned.id)
    assert db_session.get(Accessory, unowned.id) is None
    with pytest.raises(ReferenceNotFound):
        admin.delete_accessory(db_session, unowned.id)


# ─────────────────────────────────────────────────────────────────────────────
# API
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def admin_headers(register, monkeypatch):
    monkeypatch.setattr(auth, "ADMIN_EMAILS", {"jefa@example.com"})
    _, headers = register("jefa")
    return headers


ADMIN_ROUTES = [
    ("get", "/admin/users"),
    ("get", "/admin/stats"),
    ("patch", "/admin/users/1/role"),
    ("post", "/admin/accessories"),
    ("patch", "/admin/accessories/1"),
    ("delete", "/admin/accessories/1"),
]


@pytest.mark.parametrize("method, url", ADMIN_ROUTES)
def test_admin_routes_forbidden_for_users(client, register, method, url):
    _, headers = register("ana")
    kwargs = {"json": {}} if method in ("post", "patch") else {}
    response = getattr(client, method)(url, headers=headers, **kwargs)
    assert response.status_code in (403, 422)
    if method in ("get", "delete"):
        assert response.json()["code"] == "FORBIDDEN"


def test_admin_by_email_on_register(client, admin_headers):
    stats = client.get("/admin/stats", headers=admin_headers)
    assert stats.status_code == 200
    assert stats.json()["total_users"] == 1


def test_admin_list_users(client, register, admin_headers):
    register("ana")
    register("luis")
    body = client.get("/admin/users", params={"page": 1, "limit": 2}, headers=admin_headers).json()
    assert body["meta"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}
    assert len(body["users"]) == 2
    assert all("password_hash" not in u for u in body["users"])

    too_big = client.get("/admin/users", params={"limit": 1000}, headers=admin_headers)
    assert too_big.status_code == 422


def test_admin_promotes_user(client, register, admin_headers):
    ana, ana_headers = register("ana")
    assert client.get("/admin/stats", headers=ana_headers).status_code == 403

    promoted = client.patch(f"/admin/users/{ana['id']}/role", json={"role": "ADMIN"}, headers=admin_headers)
    assert promoted.json()["role"] == "ADMIN"
    # El rol se lee de la BD: el mismo token ya sirve
    assert client.get("/admin/stats", headers=ana_headers).status_code == 200

    missing = client.patch("/admin/users/9999/role", json={"role": "ADMIN"}, headers=admin_headers)
    assert missing.status_code == 404


def test_admin_accessory_crud(client, admin_headers):
    created = client.post("/admin/accessories", json={"name": "Capa", "rarity": "EPIC"}, headers=admin_headers)
    assert created.status_code == 201
    capa = created.json()
    assert capa["price"] == RARITY_PRICES[AccessoryRarity.EPIC]
    assert any(a["name"] == "Capa" for a in client.get("/accessories").json())

    duplicate = client.post("/admin/accessories", json={"name": "Capa"}, headers=admin_headers)
    assert duplicate.status_code == 409

    updated = client.patch(f"/admin/accessories/{capa['id']}", json={"price": 1}, headers=admin_headers)
    assert updated.json()["price"] == 1

    assert client.delete(f"/admin/accessories/{capa['id']}", headers=admin_headers).status_code == 200
    assert client.delete(f"/admin/accessories/{capa['id']}", headers=admin_headers).status_code == 404
