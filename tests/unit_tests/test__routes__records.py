import base64

from fastapi import status
from fastapi.testclient import TestClient

LOGO = base64.b64encode(b"PNGDATA").decode("ascii")


def test_create_file_record(client: TestClient, upload_folder_path):
    response = client.post("/v1/records/file/logo-1", json={"name": "logo.png", "fileData": LOGO, "title": "Logo"})

    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["state"] == "committed"
    assert body["uid"] > 0
    assert (upload_folder_path / "logo.png").read_bytes() == b"PNGDATA"


def test_get_record_with_file_info(client: TestClient):
    uid = client.post("/v1/records/file/logo-1", json={"name": "logo.png", "fileData": LOGO, "title": "Logo"}).json()["uid"]

    response = client.get("/v1/records/file/logo-1")

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["record"] == {"uid": uid, "title": "Logo"}
    assert body["file"] == {"identifier": "1:/user_upload/logo.png", "name": "logo.png", "size_bytes": 7}


def test_get_missing_record(client: TestClient):
    response = client.get("/v1/records/article/nope")

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_update_and_delete_record(client: TestClient):
    client.post("/v1/records/article/a-1", json={"title": "One"})

    response = client.put("/v1/records/article/a-1", json={"title": "Two"})
    assert response.status_code == status.HTTP_200_OK
    assert client.get("/v1/records/article/a-1").json()["record"]["title"] == "Two"

    response = client.delete("/v1/records/article/a-1")
    assert response.status_code == status.HTTP_200_OK
    assert client.get("/v1/records/article/a-1").status_code == status.HTTP_404_NOT_FOUND


def test_create_existing_remote_id(client: TestClient):
    client.post("/v1/records/article/a-1", json={"title": "One"})

    conflict = client.post("/v1/records/article/a-1", json={"title": "Two"})
    assert conflict.status_code == status.HTTP_409_CONFLICT
    assert conflict.json()["error"] == "IdentityConflictError"

    upsert = client.post("/v1/records/article/a-1", params={"update": "true"}, json={"title": "Two"})
    assert upsert.status_code == status.HTTP_200_OK
    assert client.get("/v1/records/article/a-1").json()["record"]["title"] == "Two"


def test_error_status_codes(client: TestClient, http_session):
    http_session.add("http://x/missing.jpg", status_code=404)

    missing_source = client.post("/v1/records/file/f-1", json={"name": "a.txt"})
    assert missing_source.status_code == status.HTTP_400_BAD_REQUEST
    assert missing_source.json()["code"] == 1634667221986

    bad_name = client.post("/v1/records/file/f-2", json={"name": "a/b.txt", "fileData": LOGO})
    assert bad_name.status_code == status.HTTP_400_BAD_REQUEST
    assert bad_name.json()["error"] == "InvalidNameError"

    bad_table = client.post("/v1/records/Bad-Table/x", json={})
    assert bad_table.status_code == status.HTTP_400_BAD_REQUEST

    bad_data = client.post("/v1/records/file/f-3", json={"name": "a.txt", "fileData": "###"})
    assert bad_data.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    not_found = client.post("/v1/records/file/f-4", json={"name": "a.jpg", "url": "http://x/missing.jpg"})
    assert not_found.status_code == status.HTTP_404_NOT_FOUND

    unmapped = client.put("/v1/records/article/nope", json={"title": "x"})
    assert unmapped.status_code == status.HTTP_404_NOT_FOUND


def test_health(client: TestClient):
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["ready"] is True
