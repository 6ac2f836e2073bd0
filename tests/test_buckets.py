"""Tests for dental model upload and signed URL retrieval."""

import os


def _dentist_header(make_user, token_for):
    return {"Authorization": f"Bearer {token_for(make_user('drdent', usertype='dentist'))}"}


def _upload(client, headers, record_id="rec-1", with_bin=True):
    files = {"gltf": ("model.gltf", b'{"asset": {"version": "2.0"}}', "model/gltf+json")}
    if with_bin:
        files["bin"] = ("model.bin", b"\x00\x01\x02", "application/octet-stream")
    data = {"record_id": record_id} if record_id is not None else {}
    return client.post("/buckets/upload/beforemodel", data=data, files=files, headers=headers)


def _leftover_uploads(settings):
    if not os.path.isdir(settings.UPLOAD_DIR):
        return []
    return os.listdir(settings.UPLOAD_DIR)


def test_upload_model(client, make_user, token_for, db, settings):
    resp = _upload(client, _dentist_header(make_user, token_for))
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["gltfPath"] == "models/DentalModel_rec-1.gltf"
    assert body["binPath"] == "models/DentalModel_rec-1.bin"

    stored = db.objects[("3d-Dental-Model", "models/DentalModel_rec-1.gltf")]
    assert stored["body"] == b'{"asset": {"version": "2.0"}}'
    assert stored["options"]["content-type"] == "model/gltf+json"
    assert ("3d-Dental-Model", "models/DentalModel_rec-1.bin") in db.objects

    row = db.rows("dental_models")[0]
    assert row["record_id"] == "rec-1"
    assert row["before_model_bin_url"] == "models/DentalModel_rec-1.bin"
    assert row["before_uploaded_at"]

    assert _leftover_uploads(settings) == []


def test_upload_without_bin(client, admin_header, db):
    resp = _upload(client, admin_header, with_bin=False)
    assert resp.status_code == 200
    assert resp.json()["binPath"] is None
    assert db.rows("dental_models")[0]["before_model_bin_url"] is None


def test_reupload_replaces_pointer(client, admin_header, db):
    _upload(client, admin_header)
    _upload(client, admin_header, with_bin=False)
    rows = db.rows("dental_models")
    assert len(rows) == 1
    assert rows[0]["before_model_bin_url"] is None


def test_upload_failure_still_removes_temp_files(client, admin_header, db, settings):
    db.storage_fails = True
    resp = _upload(client, admin_header)
    assert resp.status_code == 500
    assert resp.json()["error"]["type"] == "upstream_error"
    assert _leftover_uploads(settings) == []
    assert db.rows("dental_models") == []


def test_upload_requires_record_id(client, admin_header):
    resp = _upload(client, admin_header, record_id=None)
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Missing record_id"


def test_upload_requires_gltf(client, admin_header):
    resp = client.post("/buckets/upload/beforemodel", data={"record_id": "rec-1"}, headers=admin_header)
    assert resp.status_code == 400


def test_upload_forbidden_for_patients(client, patient_header):
    resp = _upload(client, patient_header)
    assert resp.status_code == 403


def test_get_model_signed_urls(client, admin_header, patient_header):
    _upload(client, admin_header)
    resp = client.get("/buckets/model/rec-1", headers=patient_header)
    assert resp.status_code == 200
    body = resp.json()
    assert body["record_id"] == "rec-1"
    assert body["gltfUrl"].endswith("models/DentalModel_rec-1.gltf?expires=600")
    assert body["binUrl"].endswith("models/DentalModel_rec-1.bin?expires=600")


def test_get_model_without_bin(client, admin_header):
    _upload(client, admin_header, with_bin=False)
    body = client.get("/buckets/model/rec-1", headers=admin_header).json()
    assert body["binUrl"] is None


def test_get_missing_model(client, admin_header):
    resp = client.get("/buckets/model/unknown", headers=admin_header)
    assert resp.status_code == 404
