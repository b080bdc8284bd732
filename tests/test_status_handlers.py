import json

import pytest
from flask import Flask
from sqlalchemy.exc import SQLAlchemyError

from housingapi.database import Database
from housingapi.housing_handlers import EXTENSION_KEY, Dependencies
from housingapi.status_handlers import create_housing_status, get_all_housing_statuses


class BrokenDatabase:
    def create_housing_status(self, status):
        raise SQLAlchemyError("down")

    def get_all_housing_statuses(self):
        raise SQLAlchemyError("down")


def make_app(deps):
    app = Flask(__name__)
    app.extensions[EXTENSION_KEY] = deps
    app.add_url_rule("/v1/housing/status", view_func=create_housing_status, methods=["POST"])
    app.add_url_rule("/v1/housing/status", view_func=get_all_housing_statuses, methods=["GET"])
    return app


@pytest.fixture
def database(tmp_path):
    return Database(f"sqlite:///{tmp_path / 'statuses.db'}")


@pytest.fixture
def client(database):
    return make_app(Dependencies(database=database, storage=None)).test_client()


def test_create_housing_status_returns_created_record(client, database):
    response = client.post("/v1/housing/status", data=json.dumps({"name": "sold"}))
    assert response.status_code == 201
    assert response.mimetype == "application/json"
    payload = response.get_json()
    assert payload["name"] == "sold"
    assert database.get_status_by_id(payload["id"]).name == "sold"


def test_create_housing_status_malformed_body(client):
    response = client.post("/v1/housing/status", data="[1, 2")
    assert response.status_code == 422
    assert response.get_json() == {
        "status_code": 422,
        "error_code": "UnprocessableEntity",
        "message": "Malformed body",
    }


def test_create_housing_status_wrong_field_type(client):
    response = client.post("/v1/housing/status", data=json.dumps({"name": 3}))
    assert response.status_code == 422


def test_create_housing_status_database_failure():
    deps = Dependencies(database=BrokenDatabase(), storage=None)
    client = make_app(deps).test_client()
    response = client.post("/v1/housing/status", data=json.dumps({"name": "sold"}))
    assert response.status_code == 400
    assert response.get_json() == {
        "status_code": 400,
        "error_code": "BadRequest",
        "message": "Housing status creation failed",
    }


def test_get_all_housing_statuses_lists_created_in_order(client):
    for name in ("sold", "rented", "available"):
        client.post("/v1/housing/status", data=json.dumps({"name": name}))
    response = client.get("/v1/housing/status")
    assert response.status_code == 200
    assert [item["name"] for item in response.get_json()] == ["sold", "rented", "available"]


def test_get_all_housing_statuses_empty(client):
    response = client.get("/v1/housing/status")
    assert response.status_code == 200
    assert response.get_json() == []


def test_get_all_housing_statuses_database_failure():
    deps = Dependencies(database=BrokenDatabase(), storage=None)
    client = make_app(deps).test_client()
    response = client.get("/v1/housing/status")
    assert response.status_code == 400
    assert response.get_json()["message"] == "An error occurred during housing statuses retrieval"