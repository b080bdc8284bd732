# housingapi

The parts of a JSON HTTP API for housing listings. It covers housings,
housing types and statuses, and the visits people book to see them. The
package holds:

- the records and request bodies, with their JSON decoding and encoding;
- a SQLAlchemy store for all four kinds of record;
- clients for picture storage in an S3-compatible bucket, for address
  geocoding and for templated e-mail;
- bearer token verification;
- Flask view functions for housings, housing types and housing statuses.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

| Module | Contents |
| --- | --- |
| `housingapi.errors` | `ErrorResponse`, `ErrorKind` and the helpers `bad_request`, `unauthorized`, `not_found`, `unprocessable_entity` |
| `housingapi.models` | `Housing`, `HousingBody`, `HousingType`, `Status`, `Visit`, `CreateVisitBody`, `VisitOwner`, `AcceptVisit`, `UpdateStatusBody`, `UpdatePublicationStatus`, and the `MalformedBody` exception |
| `housingapi.merge` | `merge_nonzero(target, update)`, which copies the non-zero fields of one dataclass onto another |
| `housingapi.database` | `Database`, which raises `RecordNotFound` when a lookup by id finds nothing |
| `housingapi.storage` | `BucketStorage`, which raises `StorageError` |
| `housingapi.geocoding` | `get_coordinates_by_address`, `GeocodingResult` and `GeocodingError` |
| `housingapi.mailer` | `Mailer` and `TemplateValues` |
| `housingapi.tokens` | `validate_jwt_token`, which raises `InvalidToken` |
| `housingapi.auth` | `install_jwt_verification(app, secret)` and `is_unprotected` |
| `housingapi.housing_handlers` | `Dependencies`, `get_dependencies`, `picture_key` and the housing views |
| `housingapi.type_handlers` | the housing type views |
| `housingapi.status_handlers` | the housing status views |

### Records

Each record has a `from_dict` method that decodes a parsed JSON object.
Body types such as `HousingBody`, `UpdateStatusBody` and
`UpdatePublicationStatus` reject unknown fields. Records that are stored
also have a `to_dict` method. An invalid body raises `MalformedBody`.

### Settings from the environment

The `from_env` constructors and the token check read these variables:

| Variable | Read by |
| --- | --- |
| `DATABASE_URL`, or `DB_USER`, `DB_PASSWORD`, `DB_HOST`, `DB_PORT`, `DB_NAME` for PostgreSQL | `Database.from_env` |
| `STORAGE_ENDPOINT`, `STORAGE_ACCESS_KEY_ID`, `STORAGE_SECRET_ACCESS_KEY`, `STORAGE_BUCKET_NAME`, `STORAGE_BUCKET_LOCATION` | `BucketStorage.from_env` |
| `ENV` (TLS to the bucket is off only when it is `dev`) | `BucketStorage.from_env` |
| `GOOGLE_API_KEY` | `get_coordinates_by_address` when no key is passed |
| `MAILGUN_DOMAIN`, `MAILGUN_API_KEY` | `Mailer.from_env` |
| `JWT_TOKEN_SECRET` | `validate_jwt_token` when no secret is passed |

## Wiring the views into a Flask application

The views find their services through `get_dependencies()`. That function
reads a `Dependencies` stored under `app.extensions[EXTENSION_KEY]`.

```python
from flask import Flask

from housingapi.auth import install_jwt_verification
from housingapi.database import Database
from housingapi.housing_handlers import (
    EXTENSION_KEY,
    Dependencies,
    create_housing,
    get_all_housing,
    get_housing_by_id,
)
from housingapi.storage import BucketStorage

app = Flask(__name__)
app.extensions[EXTENSION_KEY] = Dependencies(
    database=Database("sqlite:///housing.db"),
    storage=BucketStorage.from_env(),
)
app.add_url_rule("/v1/housing", view_func=create_housing, methods=["POST"])
app.add_url_rule("/v1/housing", view_func=get_all_housing, methods=["GET"])
app.add_url_rule("/v1/housing/<housing_id>", view_func=get_housing_by_id, methods=["GET"])
install_jwt_verification(app, secret="secret")
```

With `install_jwt_verification` in place, every routed request needs the
header `Authorization: Bearer <token>`, where the token is a JWT signed
with HS256, HS384 or HS512. The exception is a path that contains
`/swagger/`. A missing or malformed header gets `400`. A token that does
not validate gets `401`.

`get_filtered_housings` reads the query arguments `city`, `type_id` and
`status`, and answers `404` if any of them is missing. `max_price` and
`min_size` are optional. Housing pictures go to the bucket under the names
that `picture_key(housing_id, index)` gives, numbered from 1 up to five.

Errors come back as JSON, in the same shape whatever the cause:

```json
{"status_code": 404, "error_code": "NotFound", "message": "The given housing ID doesn't exist"}
```

## What this package does not do

- It has no command and no ready-made application. You build the Flask
  application, register the views and routes yourself, and run it with a
  WSGI server of your choice.
- It has no HTTP views for visits. `Database` can store, list and accept
  visits, and `Mailer` can send templated messages. But no view books a
  visit, lists a housing's visits or accepts a booking.
- It serves no API documentation page.