"""
End-to-end tests for the drive listing and the folder cascade.
"""
from tests.constants import URLs


def test_data_empty_for_new_user(client, auth_headers):
    headers = auth_headers()

    response = client.get(URLs.DATA, headers=headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "data": {"folders": [], "files": []}}


def test_data_ordered_by_creation(client, auth_headers):
    headers = auth_headers()
    names = ["first", "second", "third"]
    for name in names:
        client.post(URLs.FOLDERS, json={"name": name}, headers=headers)

    folders = client.get(URLs.DATA, headers=headers).json()["data"]["folders"]
    assert [folder["name"] for folder in folders] == names


def test_data_is_scoped_to_caller(client, auth_headers):
    alice = auth_headers("alice@example.com")
    bob = auth_headers("bob@example.com")
    client.post(URLs.FOLDERS, json={"name": "Alice"}, headers=alice)
    client.post(URLs.FILES, files={"file": ("b.txt", b"bob", "text/plain")}, headers=bob)

    alice_data = client.get(URLs.DATA, headers=alice).json()["data"]
    bob_data = client.get(URLs.DATA, headers=bob).json()["data"]

    assert [folder["name"] for folder in alice_data["folders"]] == ["Alice"]
    assert alice_data["files"] == []
    assert bob_data["folders"] == []
    assert [stored["name"] for stored in bob_data["files"]] == ["b.txt"]


def test_register_login_upload_and_cascade_delete(client, storage):
    """Register, build Docs/2024/a.txt, delete Docs: nothing is left."""
    response = client.post(URLs.REGISTER, json={"email": "a@x.com", "password": "pw123"})
    assert response.status_code == 201

    response = client.post(URLs.LOGIN, json={"email": "a@x.com", "password": "pw123"})
    assert response.status_code == 200
    headers = {"Authorization": f"Bearer {response.json()['data']['token']}"}

    docs = client.post(URLs.FOLDERS, json={"name": "Docs"}, headers=headers).json()["data"]
    year = client.post(
        URLs.FOLDERS, json={"name": "2024", "parentId": docs["id"]}, headers=headers
    ).json()["data"]
    assert year["parent_id"] == docs["id"]

    response = client.post(
        URLs.FILES,
        files={"file": ("a.txt", b"contents", "text/plain")},
        data={"folderId": str(year["id"])},
        headers=headers,
    )
    assert response.status_code == 201
    assert len(storage.list_refs()) == 1

    response = client.delete(URLs.FOLDER.format(docs["id"]), headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["deleted_files"] == 1

    data = client.get(URLs.DATA, headers=headers).json()["data"]
    assert data == {"folders": [], "files": []}
    assert storage.list_refs() == []
