"""Flask JSON API for fuel tracking."""

import enum
import logging
from dataclasses import asdict, is_dataclass
from datetime import date, datetime

from flask import Flask, Response, current_app, jsonify, request

from fueltrack import (
    AuthenticationError,
    BackendError,
    CsvImportError,
    NotFoundError,
    Notifier,
    ValidationError,
    YamlStore,
    load_settings,
    record_fill_up,
)
from fueltrack.alerts import collect_alerts
from fueltrack.analytics import build_report, efficiency_series
from fueltrack.csv_io import export_all_vehicles_csv, export_vehicle_csv, import_csv
from fueltrack.yaml_store import SERVICE_KEYS, VEHICLE_KEYS

_logger = logging.getLogger(__name__)

# JSON key -> store field name
VEHICLE_FIELDS = {v: k for k, v in VEHICLE_KEYS.items()}
SERVICE_FIELDS = {v: k for k, v in SERVICE_KEYS.items()}


# =============================================================================
# Serialization
# =============================================================================


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_json(value):
    """Convert records, dataclasses, enums and dates into JSON-ready data."""
    if is_dataclass(value):
        return {_camel(k): to_json(v) for k, v in asdict(value).items()}
    if isinstance(value, enum.Enum):
        return value.name.lower() if isinstance(value.value, int) else value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {_camel(str(k)): to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    if hasattr(value, "__dict__"):
        return {_camel(k): to_json(v) for k, v in vars(value).items()}
    return value


def number_field(body: dict, key: str, required: bool = True):
    """Read a numeric field from a request body."""
    value = body.get(key)
    if value is None or value == "":
        if required:
            raise ValidationError(f"{key} is required")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be a number, got {value!r}")


def rename_fields(body: dict, mapping: dict) -> dict:
    """Translate camelCase body keys to store field names."""
    fields = {}
    for key, value in body.items():
        if key not in mapping:
            raise ValidationError(f"Unknown field: {key}")
        fields[mapping[key]] = value
    return fields


def json_body() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


# =============================================================================
# App
# =============================================================================


def default_store_factory(settings, user_id):
    return YamlStore(settings.data_file, user_id)


def get_store():
    """Store for the requesting user (X-User-Id header, else configured user)."""
    settings = current_app.config["SETTINGS"]
    user_id = request.headers.get("X-User-Id") or settings.user_id
    return current_app.config["STORE_FACTORY"](settings, user_id)


def _error_response(exc: Exception, status: int):
    return jsonify({"error": str(exc)}), status


def create_app(settings=None, store_factory=None) -> Flask:
    app = Flask(__name__)
    settings = settings or load_settings()
    app.secret_key = settings.secret_key
    app.config["SETTINGS"] = settings
    app.config["STORE_FACTORY"] = store_factory or default_store_factory

    app.register_error_handler(AuthenticationError, lambda e: _error_response(e, 401))
    app.register_error_handler(ValidationError, lambda e: _error_response(e, 400))
    app.register_error_handler(NotFoundError, lambda e: _error_response(e, 404))

    @app.errorhandler(BackendError)
    def backend_error(exc):
        _logger.error("Backend failure on %s %s: %s", request.method, request.path, exc)
        return _error_response(exc, 502)

    register_routes(app)
    return app


def register_routes(app: Flask) -> None:
    # -------------------------------------------------------------------------
    # Vehicles
    # -------------------------------------------------------------------------

    @app.route("/api/vehicles", methods=["GET"])
    def list_vehicles():
        """All of the user's vehicles, newest first."""
        return jsonify(to_json(get_store().get_vehicles()))

    @app.route("/api/vehicles", methods=["POST"])
    def add_vehicle():
        body = json_body()
        vehicle = get_store().add_vehicle(body.get("name") or "", body.get("type", "car"))
        return jsonify(to_json(vehicle)), 201

    @app.route("/api/vehicles/<vehicle_id>", methods=["GET"])
    def get_vehicle(vehicle_id: str):
        return jsonify(to_json(get_store().get_vehicle(vehicle_id)))

    @app.route("/api/vehicles/<vehicle_id>", methods=["PATCH"])
    def update_vehicle(vehicle_id: str):
        """Update name, type, make/model/year or document expiry dates."""
        store = get_store()
        store.update_vehicle_details(vehicle_id, rename_fields(json_body(), VEHICLE_FIELDS))
        return jsonify(to_json(store.get_vehicle(vehicle_id)))

    @app.route("/api/vehicles/<vehicle_id>", methods=["DELETE"])
    def delete_vehicle(vehicle_id: str):
        get_store().delete_vehicle(vehicle_id)
        return "", 204

    # -------------------------------------------------------------------------
    # Fuel entries
    # -------------------------------------------------------------------------

    @app.route("/api/vehicles/<vehicle_id>/entries", methods=["GET"])
    def list_entries(vehicle_id: str):
        settings = current_app.config["SETTINGS"]
        limit = request.args.get("limit", type=int) or settings.entry_limit
        return jsonify(to_json(get_store().get_fuel_entries(vehicle_id, limit=limit)))

    @app.route("/api/vehicles/<vehicle_id>/entries", methods=["POST"])
    def add_entry(vehicle_id: str):
        """Record a fill-up; distance is derived from the previous odometer."""
        settings = current_app.config["SETTINGS"]
        body = json_body()
        entry = record_fill_up(
            get_store(),
            vehicle_id,
            number_field(body, "odometer"),
            number_field(body, "pricePerLiter"),
            number_field(body, "amountPaid"),
            distance=number_field(body, "distance", required=False),
            allow_rollback=settings.allow_odometer_rollback,
        )
        return jsonify(to_json(entry)), 201

    @app.route("/api/entries/<entry_id>", methods=["PUT"])
    def update_entry(entry_id: str):
        body = json_body()
        entry = get_store().update_fuel_entry(
            entry_id,
            number_field(body, "odometer"),
            number_field(body, "pricePerLiter"),
            number_field(body, "amountPaid"),
            number_field(body, "distance"),
        )
        return jsonify(to_json(entry))

    @app.route("/api/entries/<entry_id>", methods=["DELETE"])
    def delete_entry(entry_id: str):
        get_store().delete_fuel_entry(entry_id)
        return "", 204

    # -------------------------------------------------------------------------
    # Analytics
    # -------------------------------------------------------------------------

    @app.route("/api/vehicles/<vehicle_id>/analytics")
    def analytics(vehicle_id: str):
        """Dashboard stats, rollups, insights, refuel prediction and alerts."""
        settings = current_app.config["SETTINGS"]
        store = get_store()
        store.get_vehicle(vehicle_id)
        entries = store.get_fuel_entries(vehicle_id, limit=settings.analytics_entry_limit)
        data = to_json(build_report(entries))
        data["efficiency"] = to_json(efficiency_series(entries))
        return jsonify(data)

    # -------------------------------------------------------------------------
    # CSV
    # -------------------------------------------------------------------------

    @app.route("/api/vehicles/<vehicle_id>/export")
    def export_vehicle(vehicle_id: str):
        store = get_store()
        vehicle = store.get_vehicle(vehicle_id)
        text = export_vehicle_csv(vehicle, store.get_fuel_entries(vehicle_id, limit=None))
        filename = f"{vehicle.name.lower().replace(' ', '-')}-fuel.csv"
        return csv_response(text, filename)

    @app.route("/api/export")
    def export_all():
        store = get_store()
        groups = [(v, store.get_fuel_entries(v.id, limit=None)) for v in store.get_vehicles()]
        return csv_response(export_all_vehicles_csv(groups), "all-vehicles-fuel.csv")

    @app.route("/api/import", methods=["POST"])
    def import_entries():
        """Import CSV from an uploaded `file` or the raw request body."""
        if request.mimetype == "multipart/form-data":
            upload = request.files.get("file")
            raw = upload.read() if upload else b""
        else:
            raw = request.get_data()
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CsvImportError(f"CSV file is not valid UTF-8: {e}") from e
        if not text.strip():
            raise ValidationError("No CSV data provided")

        notices = []
        notifier = Notifier()
        notifier.subscribe(notices.append)
        result = import_csv(text, get_store(), notifier)
        data = to_json(result)
        data["message"] = result.message
        data["notices"] = to_json(notices)
        return jsonify(data)

    # -------------------------------------------------------------------------
    # Service history
    # -------------------------------------------------------------------------

    @app.route("/api/vehicles/<vehicle_id>/services", methods=["GET"])
    def list_services(vehicle_id: str):
        return jsonify(to_json(get_store().get_service_history(vehicle_id)))

    @app.route("/api/vehicles/<vehicle_id>/services", methods=["POST"])
    def add_service(vehicle_id: str):
        fields = rename_fields(json_body(), SERVICE_FIELDS)
        record = get_store().add_service_history(vehicle_id, fields)
        return jsonify(to_json(record)), 201

    @app.route("/api/services/<record_id>", methods=["PUT"])
    def update_service(record_id: str):
        fields = rename_fields(json_body(), SERVICE_FIELDS)
        return jsonify(to_json(get_store().update_service_history(record_id, fields)))

    @app.route("/api/services/<record_id>", methods=["DELETE"])
    def delete_service(record_id: str):
        get_store().delete_service_history(record_id)
        return "", 204

    # -------------------------------------------------------------------------
    # Profile and alerts
    # -------------------------------------------------------------------------

    @app.route("/api/default-vehicle", methods=["GET"])
    def get_default_vehicle():
        return jsonify({"vehicleId": get_store().get_default_vehicle() or None})

    @app.route("/api/default-vehicle", methods=["PUT"])
    def set_default_vehicle():
        vehicle_id = json_body().get("vehicleId")
        if not vehicle_id:
            raise ValidationError("vehicleId is required")
        get_store().set_default_vehicle(vehicle_id)
        return jsonify({"vehicleId": vehicle_id})

    @app.route("/api/alerts")
    def alerts():
        """Document expiry and service due alerts, most urgent first."""
        settings = current_app.config["SETTINGS"]
        return jsonify(to_json(collect_alerts(get_store(), window_days=settings.alert_window_days)))


def csv_response(text: str, filename: str) -> Response:
    return Response(
        text,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


app = create_app()


if __name__ == "__main__":
    app.run(debug=True, port=5000)
