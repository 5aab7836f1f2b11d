"""
Tests for the HTTP API.
"""

import pytest
from fastapi.testclient import TestClient

from pokersite.server.app import create_app


@pytest.fixture
def client():
    with TestClient(create_app()) as client:
        yield client


def host_headers(resp):
    return {"X-Host-Token": resp.json()["host_token"]}


def seat_headers(resp):
    return {"X-Seat-Token": resp.json()["token"]}


@pytest.fixture
def table(client):
    """
    A table with alice in seat 0 and bob in seat 1.

    Maps "id" to the table code, "host" to the host's headers and each
    seat index to that player's headers.
    """
    resp = client.post("/tables", json={"settings": {"runout_delay": 0}})
    table = {"id": resp.json()["table_id"], "host": host_headers(resp)}
    for seat_index, username in enumerate(["alice", "bob"]):
        resp = client.post(f"/tables/{table['id']}/seats", json={"seat_index": seat_index, "username": username})
        table[seat_index] = seat_headers(resp)
    return table


def start(client, table):
    return client.post(f"/tables/{table['id']}/hands", headers=table["host"])


def act(client, table, seat_index, action, **body):
    return client.post(
        f"/tables/{table['id']}/seats/{seat_index}/actions",
        json={"action": action, **body},
        headers=table[seat_index],
    )


class TestTables:
    """Tests for opening and inspecting tables."""

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    def test_create_table_defaults(self, client):
        resp = client.post("/tables")
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["table_id"]) == 6
        assert data["host_token"]
        assert data["settings"]["starting_stack"] == 1000
        assert data["settings"]["small_blind"] == 5
        assert data["settings"]["big_blind"] == 10

    def test_create_table_with_settings(self, client):
        resp = client.post("/tables", json={"settings": {"starting_stack": 500, "small_blind": 10, "big_blind": 20}})
        assert resp.status_code == 200
        assert resp.json()["settings"]["starting_stack"] == 500

        table_id = resp.json()["table_id"]
        seat = client.post(f"/tables/{table_id}/seats", json={"seat_index": 0, "username": "alice"})
        assert seat.json()["seat"]["chips"] == 500

    @pytest.mark.parametrize("settings", [
        {"starting_stack": 50},
        {"small_blind": 0},
        {"big_blind": 30000},
        {"small_blind": 20, "big_blind": 10},
    ])
    def test_invalid_settings(self, client, settings):
        resp = client.post("/tables", json={"settings": settings})
        assert resp.status_code == 422

    def test_table_info(self, client, table):
        data = client.get(f"/tables/{table['id']}").json()
        assert data["phase"] == "waiting"
        assert data["seats"][0]["username"] == "alice"
        assert data["seats"][0]["chips"] == 1000
        assert "token" not in data["seats"][0]
        assert data["seats"][2] is None
        assert len(data["seats"]) == 8

    def test_table_code_case_insensitive(self, client, table):
        assert client.get(f"/tables/{table['id'].lower()}").status_code == 200

    def test_unknown_table(self, client):
        assert client.get("/tables/NOPE42").status_code == 404
        assert client.post("/tables/NOPE42/hands").status_code == 404

    def test_close_table(self, client, table):
        assert client.delete(f"/tables/{table['id']}", headers=table[0]).status_code == 403
        assert client.delete(f"/tables/{table['id']}", headers=table["host"]).status_code == 200
        assert client.get(f"/tables/{table['id']}").status_code == 404


class TestSeats:
    """Tests for sitting down and leaving."""

    def test_seat_taken(self, client, table):
        resp = client.post(f"/tables/{table['id']}/seats", json={"seat_index": 0, "username": "carol"})
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Seat unavailable"

    def test_already_seated(self, client, table):
        resp = client.post(f"/tables/{table['id']}/seats", json={"seat_index": 4, "username": "alice"})
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Already seated"

    def test_seat_out_of_range(self, client, table):
        resp = client.post(f"/tables/{table['id']}/seats", json={"seat_index": 8, "username": "carol"})
        assert resp.status_code == 422

    def test_leave_between_hands(self, client, table):
        assert client.delete(f"/tables/{table['id']}/seats/1", headers=table[1]).status_code == 200
        assert client.get(f"/tables/{table['id']}").json()["seats"][1] is None

    def test_leave_needs_own_token(self, client, table):
        assert client.delete(f"/tables/{table['id']}/seats/1").status_code == 403
        assert client.delete(f"/tables/{table['id']}/seats/1", headers=table[0]).status_code == 403
        assert client.get(f"/tables/{table['id']}").json()["seats"][1]["username"] == "bob"

    def test_leave_empty_seat(self, client, table):
        assert client.delete(f"/tables/{table['id']}/seats/5", headers=table[0]).status_code == 403


class TestHands:
    """Tests for playing a hand over HTTP."""

    def test_start_hand(self, client, table):
        resp = start(client, table)
        assert resp.status_code == 200
        data = resp.json()
        assert data["type"] == "hand_started"
        assert data["dealer_seat"] == 0
        assert data["pot"] == 15
        assert "hole_cards" not in data

    def test_only_host_starts(self, client, table):
        assert client.post(f"/tables/{table['id']}/hands").status_code == 403
        assert client.post(f"/tables/{table['id']}/hands", headers=table[0]).status_code == 403
        assert client.get(f"/tables/{table['id']}").json()["phase"] == "waiting"

    def test_start_hand_needs_two_players(self, client):
        resp = client.post("/tables")
        table_id = resp.json()["table_id"]
        client.post(f"/tables/{table_id}/seats", json={"seat_index": 0, "username": "alice"})
        resp = client.post(f"/tables/{table_id}/hands", headers=host_headers(resp))
        assert resp.status_code == 400

    def test_cannot_start_twice(self, client, table):
        start(client, table)
        assert start(client, table).status_code == 400

    def test_action_menu(self, client, table):
        start(client, table)

        menu = client.get(f"/tables/{table['id']}/seats/0/actions").json()["menu"]
        assert menu["actions"] == ["fold", "call", "raise", "allin"]
        assert menu["to_call"] == 5

        assert client.get(f"/tables/{table['id']}/seats/1/actions").json()["menu"] is None

    def test_out_of_turn(self, client, table):
        start(client, table)
        resp = act(client, table, 1, "check")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Not your turn"

    def test_act_for_another_seat(self, client, table):
        start(client, table)
        resp = client.post(
            f"/tables/{table['id']}/seats/0/actions",
            json={"action": "fold"},
            headers=table[1],
        )
        assert resp.status_code == 403
        assert client.get(f"/tables/{table['id']}").json()["phase"] == "preflop"

    def test_fold(self, client, table):
        start(client, table)
        resp = act(client, table, 0, "fold")

        assert resp.status_code == 200
        data = resp.json()
        assert data["type"] == "hand_complete"
        assert data["winners"] == [{"seat_index": 1, "username": "bob", "amount": 15}]

        seats = client.get(f"/tables/{table['id']}").json()["seats"]
        assert seats[0]["chips"] == 995
        assert seats[1]["chips"] == 1005
        assert seats[1]["wins"] == 1

    def test_all_in_runs_to_showdown(self, client, table):
        start(client, table)
        act(client, table, 0, "allin")
        resp = act(client, table, 1, "call")
        assert resp.json()["type"] == "new_phase"

        info = client.get(f"/tables/{table['id']}").json()
        assert info["phase"] == "complete"
        assert sum(s["chips"] for s in info["seats"] if s) == 2000


class TestPrivateState:
    """Hole cards over HTTP only go to the seat's own token."""

    def test_own_state(self, client, table):
        start(client, table)
        state = client.get(f"/tables/{table['id']}/state", params={"seat": 0}, headers=table[0]).json()

        assert state["public_info"]["phase"] == "preflop"
        assert len(state["private_info"]["hand"]) == 2
        assert state["table"]["table_id"] == table["id"]

    @pytest.mark.parametrize("headers", [{}, {"X-Seat-Token": "guess"}])
    def test_stranger_refused(self, client, table, headers):
        start(client, table)
        resp = client.get(f"/tables/{table['id']}/state", params={"seat": 0}, headers=headers)
        assert resp.status_code == 403

    def test_other_players_token_refused(self, client, table):
        start(client, table)
        resp = client.get(f"/tables/{table['id']}/state", params={"seat": 0}, headers=table[1])
        assert resp.status_code == 403

    def test_host_token_is_not_a_seat_token(self, client, table):
        start(client, table)
        headers = {"X-Seat-Token": table["host"]["X-Host-Token"]}
        resp = client.get(f"/tables/{table['id']}/state", params={"seat": 0}, headers=headers)
        assert resp.status_code == 403

    def test_public_state_open(self, client, table):
        start(client, table)
        state = client.get(f"/tables/{table['id']}/state").json()
        assert state["public_info"]["phase"] == "preflop"
        assert state["private_info"] == {}


class TestHostRoutes:
    """Tests for kicking and changing settings."""

    def test_kick(self, client, table):
        resp = client.post(f"/tables/{table['id']}/seats/1/kick", headers=table["host"])
        assert resp.status_code == 200
        assert client.get(f"/tables/{table['id']}").json()["seats"][1] is None

    def test_kick_needs_host(self, client, table):
        resp = client.post(f"/tables/{table['id']}/seats/1/kick", headers=table[0])
        assert resp.status_code == 403
        assert client.get(f"/tables/{table['id']}").json()["seats"][1]["username"] == "bob"

    def test_kick_empty_seat(self, client, table):
        resp = client.post(f"/tables/{table['id']}/seats/5/kick", headers=table["host"])
        assert resp.status_code == 404

    def test_update_settings(self, client, table):
        settings = {"small_blind": 25, "big_blind": 50, "runout_delay": 0}
        resp = client.put(f"/tables/{table['id']}/settings", json=settings, headers=table["host"])
        assert resp.status_code == 200
        assert resp.json()["settings"]["big_blind"] == 50

        assert start(client, table).json()["pot"] == 75

    def test_update_settings_needs_host(self, client, table):
        resp = client.put(f"/tables/{table['id']}/settings", json={"big_blind": 50}, headers=table[0])
        assert resp.status_code == 403

    def test_update_settings_during_hand(self, client, table):
        start(client, table)
        resp = client.put(f"/tables/{table['id']}/settings", json={"big_blind": 50}, headers=table["host"])
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Cannot change settings during a hand"
