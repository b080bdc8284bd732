import uuid
from datetime import datetime, timedelta, timezone

import pytest

from housingapi.database import Database, RecordNotFound
from housingapi.models import ZERO_UUID, Housing, HousingBody, HousingType, Status, Visit


@pytest.fixture
def database():
    return Database("sqlite://")


@pytest.fixture
def type_id():
    return uuid.uuid4()


@pytest.fixture
def status_id():
    return uuid.uuid4()


def make_housing(type_id, status_id, **extra):
    values = dict(title="Flat", city="Lille", type_id=type_id, status_id=status_id)
    values.update(extra)
    return Housing(**values)


def test_create_housing_assigns_id_and_timestamps(database, type_id, status_id):
    housing = database.create_housing(make_housing(type_id, status_id, rent_price=60.95))
    assert housing.id != ZERO_UUID
    assert housing.created_at is not None
    loaded = database.get_housing_by_id(housing.id)
    assert loaded.title == "Flat"
    assert loaded.city == "Lille"
    assert loaded.rent_price == pytest.approx(60.95)
    assert loaded.type_id == type_id


def test_pictures_are_not_persisted(database, type_id, status_id):
    housing = database.create_housing(make_housing(type_id, status_id, pictures=["abc"]))
    assert database.get_housing_by_id(housing.id).pictures is None


def test_get_housing_by_id_missing(database):
    with pytest.raises(RecordNotFound):
        database.get_housing_by_id(uuid.uuid4())


def test_get_all_housing_ordered_by_creation(database, type_id, status_id):
    base = datetime(2021, 1, 1, tzinfo=timezone.utc)
    database.create_housing(make_housing(type_id, status_id, title="second", created_at=base + timedelta(days=1)))
    database.create_housing(make_housing(type_id, status_id, title="first", created_at=base))
    assert [h.title for h in database.get_all_housing()] == ["first", "second"]


def test_get_housing_by_type(database, type_id, status_id):
    database.create_housing(make_housing(type_id, status_id, title="match"))
    database.create_housing(make_housing(uuid.uuid4(), status_id, title="other"))
    assert [h.title for h in database.get_housing_by_type(type_id)] == ["match"]


def test_delete_housing(database, type_id, status_id):
    housing = database.create_housing(make_housing(type_id, status_id))
    database.delete_housing_by_id(housing.id)
    with pytest.raises(RecordNotFound):
        database.get_housing_by_id(housing.id)


def test_update_housing_merges_non_zero_fields(database, type_id, status_id):
    housing = database.create_housing(make_housing(type_id, status_id))
    result = database.update_housing_by_id(housing, HousingBody(title="Renamed", zip="59000"))
    assert result is housing
    loaded = database.get_housing_by_id(housing.id)
    assert loaded.title == "Renamed"
    assert loaded.zip == "59000"
    assert loaded.city == "Lille"


def test_update_housing_status(database, type_id, status_id):
    housing = database.create_housing(make_housing(type_id, status_id))
    new_status = uuid.uuid4()
    database.update_housing_status(housing.id, new_status)
    assert database.get_housing_by_id(housing.id).status_id == new_status


def test_update_publication_status_can_unset(database, type_id, status_id):
    housing = database.create_housing(make_housing(type_id, status_id))
    database.update_housing_publication_status(housing.id, True)
    assert database.get_housing_by_id(housing.id).is_published is True
    database.update_housing_publication_status(housing.id, False)
    assert database.get_housing_by_id(housing.id).is_published is False


def test_get_housing_by_owner(database, type_id, status_id):
    owner = uuid.uuid4()
    database.create_housing(make_housing(type_id, status_id, title="mine", owner_id=owner))
    database.create_housing(make_housing(type_id, status_id, title="theirs", owner_id=uuid.uuid4()))
    assert [h.title for h in database.get_housing_by_owner_id(owner)] == ["mine"]


def test_filtered_housing(database, type_id, status_id):
    database.create_housing(make_housing(type_id, status_id, title="cheap", rent_price=400, surface_area=20))
    database.create_housing(make_housing(type_id, status_id, title="big", rent_price=900, surface_area=80))
    database.create_housing(make_housing(type_id, status_id, title="paris", city="Paris"))

    all_lille = database.get_filtered_housing(type_id, "Lille", "", "", status_id)
    assert sorted(h.title for h in all_lille) == ["big", "cheap"]
    by_price = database.get_filtered_housing(type_id, "Lille", "500", "", status_id)
    assert [h.title for h in by_price] == ["cheap"]
    by_area = database.get_filtered_housing(type_id, "Lille", "", "30", status_id)
    assert [h.title for h in by_area] == ["big"]
    assert database.get_filtered_housing(type_id, "Lille", "", "", uuid.uuid4()) == []


def test_filtered_housing_rejects_bad_number(database, type_id, status_id):
    with pytest.raises(ValueError):
        database.get_filtered_housing(type_id, "Lille", "abc", "", status_id)


def test_housing_types(database):
    base = datetime(2021, 1, 1, tzinfo=timezone.utc)
    garage = database.create_housing_type(HousingType(name="garage", created_at=base + timedelta(hours=1)))
    database.create_housing_type(HousingType(name="flat", created_at=base))
    assert [t.name for t in database.get_all_housing_types()] == ["flat", "garage"]
    assert database.get_housing_type_by_id(garage.id).name == "garage"
    with pytest.raises(RecordNotFound):
        database.get_housing_type_by_id(uuid.uuid4())


def test_statuses(database):
    sold = database.create_housing_status(Status(name="sold"))
    assert [s.name for s in database.get_all_housing_statuses()] == ["sold"]
    assert database.get_status_by_id(str(sold.id)).name == "sold"
    with pytest.raises(RecordNotFound):
        database.get_status_by_id(uuid.uuid4())


def test_visits(database):
    housing_id = uuid.uuid4()
    visit = database.create_visit(
        Visit(date=datetime(2020, 11, 5, tzinfo=timezone.utc), hour="18:00", housing_id=housing_id)
    )
    assert [v.hour for v in database.get_visit_by_housing_id(housing_id)] == ["18:00"]
    assert database.get_visit_booking_by_id(visit.id).is_accepted is False
    database.accept_visit(visit.id)
    assert database.get_visit_booking_by_id(visit.id).is_accepted is True
    with pytest.raises(RecordNotFound):
        database.get_visit_booking_by_id(uuid.uuid4())


def test_from_env_uses_database_url(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    database = Database.from_env()
    created = database.create_housing_status(Status(name="rented"))
    assert database.get_status_by_id(created.id).name == "rented"