import pytest


@pytest.mark.parametrize("resource", ["clients", "categories", "groups"])
def test_reference_data_writes_are_admin_only(client, analyst_headers, resource):
    assert client.post(f"/api/{resource}", json={"name": "Anything"}, headers=analyst_headers).status_code == 403
    assert client.get(f"/api/{resource}").status_code == 401
    assert client.get(f"/api/{resource}", headers=analyst_headers).json() == []


def test_client_lifecycle(client, admin_headers):
    created = client.post("/api/clients", json={"name": "Acme", "cnpj": "11222333000181"}, headers=admin_headers)
    assert created.status_code == 201
    body = created.json()
    assert body["cnpjDigits"] == "11222333000181"
    assert body["active"] is True

    duplicate = client.post(
        "/api/clients", json={"name": "Acme 2", "cnpj": "11.222.333/0001-81"}, headers=admin_headers
    )
    assert duplicate.status_code == 400
    assert duplicate.json() == {"detail": "A client with this CNPJ already exists"}

    updated = client.put(f"/api/clients/{body['id']}", json={"name": "Acme SA"}, headers=admin_headers).json()
    assert updated["name"] == "Acme SA"
    assert updated["updatedAt"] is not None

    assert client.delete(f"/api/clients/{body['id']}", headers=admin_headers).status_code == 204
    assert client.delete(f"/api/clients/{body['id']}", headers=admin_headers).status_code == 404


def test_active_filter_by_role(client, admin_headers, analyst_headers):
    active = client.post("/api/groups", json={"name": "Suporte"}, headers=admin_headers).json()
    hidden = client.post("/api/groups", json={"name": "Legado"}, headers=admin_headers).json()
    client.put(f"/api/groups/{hidden['id']}", json={"active": False}, headers=admin_headers)

    admin_view = client.get("/api/groups", headers=admin_headers).json()
    admin_active = client.get("/api/groups", params={"active": "1"}, headers=admin_headers).json()
    analyst_view = client.get("/api/groups", params={"active": "0"}, headers=analyst_headers).json()

    assert [group["name"] for group in admin_view] == ["Legado", "Suporte"]
    assert [group["id"] for group in admin_active] == [active["id"]]
    assert [group["id"] for group in analyst_view] == [active["id"]]


def test_category_duplicate_in_group(client, admin_headers):
    created = client.post("/api/categories", json={"group": "Rede", "name": "VPN"}, headers=admin_headers)
    assert created.status_code == 201
    assert created.json()["key"] == "rede::vpn"

    duplicate = client.post("/api/categories", json={"group": "rede", "name": " vpn "}, headers=admin_headers)
    assert duplicate.status_code == 400
