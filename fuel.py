#!/usr/bin/env python3
"""
Unified CLI for personal fuel tracking.

Commands:
  vehicles        - List vehicles
  add-vehicle     - Add a car or bike
  update-vehicle  - Set make/model/year and document expiry dates
  remove-vehicle  - Delete a vehicle with its entries and services
  default         - Show or set the default vehicle
  log             - Record a fill-up (distance derived from the odometer)
  entries         - List fill-ups
  edit-entry      - Correct a fill-up
  delete-entry    - Remove a fill-up
  stats           - Dashboard totals, insights, refuel prediction, alerts
  analytics       - Monthly/price/weekday/distance/seasonal/yearly tables
  export          - Write entries as CSV
  import          - Read entries from CSV
  service         - Service history (list, add, delete)
  alerts          - Document expiry and service due alerts
  sync            - Replay fill-ups logged with --offline
  sample          - Create a sample car with weekly fill-ups
"""

import argparse
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional

from fueltrack import (
    CsvImportError,
    FuelTrackError,
    NotFoundError,
    Notifier,
    OfflineQueue,
    YamlQueueBackend,
    YamlStore,
    load_settings,
    record_fill_up,
    store_executor,
)
from fueltrack.alerts import collect_alerts
from fueltrack.analytics import (
    DayOfWeekAnalytics,
    DistanceBucket,
    MonthlyAnalytics,
    PricePoint,
    SeasonalPattern,
    YearlyComparison,
    build_report,
)
from fueltrack.csv_io import export_all_vehicles_csv, export_vehicle_csv, import_csv
from fueltrack.fuel_entry import FuelEntry
from fueltrack.sample_data import generate_sample_data
from fueltrack.service_record import ServiceRecord

CURRENCY = "₹"

# =============================================================================
# Formatting helpers
# =============================================================================


def format_km(km: Optional[float]) -> str:
    """Format distance for display."""
    return f"{km:,.0f}" if km is not None else "-"


def format_cost(cost: Optional[float]) -> str:
    """Format money for display."""
    return f"{CURRENCY}{cost:,.2f}" if cost is not None else "-"


def format_number(value: Optional[float], digits: int = 2) -> str:
    return f"{value:,.{digits}f}" if value is not None else "-"


def format_percent(value: Optional[float]) -> str:
    """Signed percentage, e.g. '+12.5%'."""
    return f"{value:+.1f}%" if value is not None else "-"


def format_date(value) -> str:
    if value is None:
        return "-"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    return value.isoformat()


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


# =============================================================================
# Table builders
# =============================================================================


def make_entries_table(entries: List[FuelEntry]) -> List[List[str]]:
    """Convert fuel entries to table rows."""
    return [
        [
            format_date(e.created_at),
            format_km(e.odometer),
            format_cost(e.amount_paid),
            format_number(e.price_per_liter),
            format_number(e.distance, 1),
            format_number(e.fuel_used),
            format_number(e.efficiency),
            e.id,
        ]
        for e in entries
    ]


def make_monthly_table(rows: List[MonthlyAnalytics]) -> List[List[str]]:
    return [
        [
            m.month,
            m.entries,
            format_cost(m.total_cost),
            format_km(m.total_distance),
            format_number(m.total_fuel),
            format_number(m.avg_efficiency),
            format_number(m.avg_price_per_liter),
            format_number(m.cost_per_km),
        ]
        for m in rows
    ]


def make_price_table(rows: List[PricePoint]) -> List[List[str]]:
    return [
        [format_date(p.date), format_number(p.price), format_number(p.moving_avg)]
        for p in rows
    ]


def make_weekday_table(rows: List[DayOfWeekAnalytics]) -> List[List[str]]:
    return [
        [
            d.day,
            d.entries,
            format_cost(d.total_cost),
            format_cost(d.avg_cost),
            format_number(d.avg_distance, 1),
            format_number(d.avg_efficiency),
        ]
        for d in rows
    ]


def make_distance_table(rows: List[DistanceBucket]) -> List[List[str]]:
    return [[b.label, b.count, format_number(b.avg_efficiency)] for b in rows]


def make_seasonal_table(rows: List[SeasonalPattern]) -> List[List[str]]:
    return [
        [
            s.month_name,
            s.years,
            s.entries,
            format_cost(s.total_cost),
            format_cost(s.avg_cost_per_fill),
            format_number(s.avg_efficiency),
            format_number(s.avg_price_per_liter),
        ]
        for s in rows
    ]


def make_yearly_table(rows: List[YearlyComparison]) -> List[List[str]]:
    return [
        [
            y.year,
            y.entries,
            format_cost(y.total_cost),
            format_km(y.total_distance),
            format_number(y.avg_efficiency),
            format_number(y.cost_per_km),
            format_percent(y.cost_change),
        ]
        for y in rows
    ]


def make_service_table(records: List[ServiceRecord]) -> List[List[str]]:
    return [
        [
            format_date(r.service_date),
            r.service_type,
            format_km(r.mileage),
            format_cost(r.cost),
            r.service_provider or "-",
            format_date(r.next_service_due),
            truncate(r.description or r.notes),
            r.id,
        ]
        for r in records
    ]


ANALYTICS_VIEWS = {
    "monthly": (
        lambda r: make_monthly_table(r.monthly),
        ["Month", "Fills", "Cost", "Distance", "Fuel (L)", "km/l", "Price/L", "Cost/km"],
    ),
    "prices": (
        lambda r: make_price_table(r.prices),
        ["Date", "Price/L", "Moving avg"],
    ),
    "weekdays": (
        lambda r: make_weekday_table(r.weekdays),
        ["Day", "Fills", "Cost", "Avg cost", "Avg km", "km/l"],
    ),
    "distances": (
        lambda r: make_distance_table(r.distances),
        ["Distance", "Fills", "km/l"],
    ),
    "seasonal": (
        lambda r: make_seasonal_table(r.seasonal),
        ["Month", "Years", "Fills", "Cost", "Avg fill", "km/l", "Price/L"],
    ),
    "yearly": (
        lambda r: make_yearly_table(r.yearly),
        ["Year", "Fills", "Cost", "Distance", "km/l", "Cost/km", "vs prev"],
    ),
}


# =============================================================================
# Shared plumbing
# =============================================================================


def resolve_vehicle(store, ref: Optional[str]):
    """Find a vehicle by id or case-insensitive name, or use the default."""
    if not ref:
        default_id = store.get_default_vehicle()
        if not default_id:
            raise NotFoundError("No vehicle given and no default vehicle set")
        return store.get_vehicle(default_id)
    for vehicle in store.get_vehicles():
        if vehicle.id == ref or vehicle.name.lower() == ref.lower():
            return vehicle
    raise NotFoundError(f"Vehicle '{ref}' not found")


def print_notice(notice) -> None:
    print(f"[{notice.level}] {notice.message}")


# =============================================================================
# Vehicle commands
# =============================================================================


def cmd_vehicles(args, store, settings, notifier):
    """List vehicles."""
    vehicles = store.get_vehicles()
    if not vehicles:
        print("No vehicles yet. Add one with: add-vehicle NAME")
        return 0
    default_id = store.get_default_vehicle()
    rows = [
        [
            v.name + (" *" if v.id == default_id else ""),
            v.type,
            v.description if v.make else "-",
            format_date(v.insurance_expiry),
            format_date(v.registration_expiry),
            format_date(v.puc_expiry),
            v.id,
        ]
        for v in vehicles
    ]
    headers = ["Name", "Type", "Make/Model", "Insurance", "Registration", "PUC", "ID"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    if default_id:
        print("\n* default vehicle")
    return 0


def cmd_add_vehicle(args, store, settings, notifier):
    """Add a car or bike."""
    vehicle = store.add_vehicle(args.name, args.type)
    notifier.success(f"Added {vehicle.type} '{vehicle.name}' ({vehicle.id})")
    return 0


def cmd_update_vehicle(args, store, settings, notifier):
    """Update vehicle details."""
    vehicle = resolve_vehicle(store, args.vehicle)
    fields = {
        "name": args.name,
        "type": args.type,
        "make": args.make,
        "model": args.model,
        "year": args.year,
        "insurance_expiry": args.insurance,
        "registration_expiry": args.registration,
        "puc_expiry": args.puc,
    }
    fields = {k: v for k, v in fields.items() if v is not None}
    if not fields:
        print("Error: nothing to update")
        return 1
    store.update_vehicle_details(vehicle.id, fields)
    notifier.success(f"Updated {vehicle.name}: {', '.join(sorted(fields))}")
    return 0


def cmd_remove_vehicle(args, store, settings, notifier):
    """Delete a vehicle."""
    vehicle = resolve_vehicle(store, args.vehicle)
    entries = store.get_fuel_entries(vehicle.id, limit=None)
    print(f"Removing {vehicle.name} with {len(entries)} fuel entries")
    if args.dry_run:
        print("(dry run - no changes made)")
        return 0
    store.delete_vehicle(vehicle.id)
    notifier.success(f"Removed {vehicle.name}")
    return 0


def cmd_default(args, store, settings, notifier):
    """Show or set the default vehicle."""
    if args.vehicle:
        vehicle = resolve_vehicle(store, args.vehicle)
        store.set_default_vehicle(vehicle.id)
        notifier.success(f"Default vehicle: {vehicle.name}")
        return 0
    default_id = store.get_default_vehicle()
    if not default_id:
        print("No default vehicle set")
        return 0
    print(f"Default vehicle: {store.get_vehicle(default_id).name}")
    return 0


# =============================================================================
# Entry commands
# =============================================================================


def cmd_log(args, store, settings, notifier):
    """Record a fill-up."""
    vehicle = resolve_vehicle(store, args.vehicle)

    if args.offline:
        queue = OfflineQueue(
            YamlQueueBackend(settings.queue_file), settings.queue_max_retries
        )
        action = queue.append(
            "recordFillUp",
            {
                "vehicle_id": vehicle.id,
                "odometer": args.odometer,
                "price_per_liter": args.price,
                "amount_paid": args.amount,
                "distance": args.distance,
                "allow_rollback": settings.allow_odometer_rollback,
            },
        )
        notifier.info(f"Queued fill-up {action.id}; run 'sync' when online")
        return 0

    print(f"Vehicle:  {vehicle.name}")
    print(f"Odometer: {format_km(args.odometer)}")
    print(f"Price/L:  {format_number(args.price)}")
    print(f"Amount:   {format_cost(args.amount)}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    entry = record_fill_up(
        store,
        vehicle.id,
        args.odometer,
        args.price,
        args.amount,
        distance=args.distance,
        allow_rollback=settings.allow_odometer_rollback,
    )
    notifier.success(
        f"Logged {format_number(entry.distance, 1)} km, "
        f"{format_number(entry.fuel_used)} L, {format_number(entry.efficiency)} km/l"
    )
    return 0


def cmd_entries(args, store, settings, notifier):
    """List fill-ups."""
    vehicle = resolve_vehicle(store, args.vehicle)
    entries = store.get_fuel_entries(vehicle.id, limit=args.limit or settings.entry_limit)
    print(f"Vehicle: {vehicle.name}")
    print(f"Entries: {len(entries)}")
    print()
    if not entries:
        print("No fuel entries found.")
        return 0
    headers = ["Date", "Odometer", "Amount", "Price/L", "Distance", "Fuel (L)", "km/l", "ID"]
    print(tabulate(make_entries_table(entries), headers=headers, tablefmt="simple"))
    return 0


def cmd_edit_entry(args, store, settings, notifier):
    """Correct a fill-up."""
    entry = store.update_fuel_entry(
        args.entry_id, args.odometer, args.price, args.amount, args.distance
    )
    notifier.success(
        f"Updated entry {entry.id}: {format_number(entry.efficiency)} km/l"
    )
    return 0


def cmd_delete_entry(args, store, settings, notifier):
    """Remove a fill-up."""
    store.delete_fuel_entry(args.entry_id)
    notifier.success(f"Deleted entry {args.entry_id}")
    return 0


# =============================================================================
# Analytics commands
# =============================================================================


def cmd_stats(args, store, settings, notifier):
    """Dashboard totals, insights, refuel prediction and spending alerts."""
    vehicle = resolve_vehicle(store, args.vehicle)
    entries = store.get_fuel_entries(vehicle.id, limit=settings.analytics_entry_limit)
    report = build_report(entries)
    stats, insights = report.stats, report.insights

    print(f"Vehicle: {vehicle.name}")
    print()
    if not entries:
        print("No fuel entries yet. Log a fill-up to see statistics.")
        return 0

    rows = [
        ["Total cost", format_cost(stats.total_fuel_cost), format_percent(stats.cost_change)],
        ["Total distance", f"{format_km(stats.total_distance)} km", format_percent(stats.distance_change)],
        ["Avg efficiency", f"{format_number(stats.average_efficiency, 1)} km/l", format_percent(stats.efficiency_change)],
        ["Total fuel", f"{format_number(stats.total_fuel_used)} L", format_percent(stats.fuel_change)],
        ["Cost per km", format_cost(stats.cost_per_km), format_percent(stats.cost_per_km_change)],
        ["Entries", stats.entries_count, "-"],
    ]
    print(tabulate(rows, headers=["", "Value", "vs last month"], tablefmt="simple"))
    print()

    print("INSIGHTS:")
    print(f"  Best efficiency:     {format_number(insights.best_efficiency)} km/l")
    print(f"  Worst efficiency:    {format_number(insights.worst_efficiency)} km/l")
    print(f"  Avg cost/km:         {format_cost(insights.avg_cost_per_km)}")
    print(f"  Efficiency trend:    {format_percent(insights.efficiency_trend)}")
    print(f"  Cost trend:          {format_percent(insights.cost_trend)}")
    print(f"  Savings potential:   {format_number(insights.fuel_savings_opportunity)}%")
    print(f"  Last 30 days:        {format_cost(insights.projected_monthly_cost)}, "
          f"{format_km(insights.projected_monthly_distance)} km")
    print()

    prediction = report.prediction
    if prediction:
        print("NEXT REFUEL:")
        print(f"  Every {prediction.avg_days_between_refuels:.1f} days on average "
              f"({prediction.confidence.value} confidence)")
        print(f"  Last fill-up {prediction.days_since_last:.1f} days ago; "
              f"next in ~{prediction.estimated_days_to_refuel:.0f} days "
              f"({prediction.predicted_date.date().isoformat()})")
        print(f"  Driving {prediction.avg_distance_per_day:.1f} km/day")
        print()

    if report.alerts:
        print("ALERTS:")
        for alert in report.alerts:
            print(f"  [{alert.severity.name}] {alert.message}")
        print()
    return 0


def cmd_analytics(args, store, settings, notifier):
    """Print one analytics table."""
    vehicle = resolve_vehicle(store, args.vehicle)
    entries = store.get_fuel_entries(vehicle.id, limit=settings.analytics_entry_limit)
    report = build_report(entries)
    make_rows, headers = ANALYTICS_VIEWS[args.view]
    rows = make_rows(report)
    print(f"Vehicle: {vehicle.name} ({args.view})")
    print()
    if not rows:
        print("No data.")
        return 0
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# CSV commands
# =============================================================================


def cmd_export(args, store, settings, notifier):
    """Write entries as CSV."""
    if args.all:
        groups = [
            (v, store.get_fuel_entries(v.id, limit=None)) for v in store.get_vehicles()
        ]
        text = export_all_vehicles_csv(groups)
    else:
        vehicle = resolve_vehicle(store, args.vehicle)
        text = export_vehicle_csv(vehicle, store.get_fuel_entries(vehicle.id, limit=None))

    if args.output is None:
        print(text)
        return 0
    args.output.write_text(text + "\n")
    notifier.success(f"Exported to {args.output}")
    return 0


def cmd_import(args, store, settings, notifier):
    """Read entries from CSV."""
    if not args.csv_file.exists():
        print(f"Error: File not found: {args.csv_file}")
        return 1
    try:
        text = args.csv_file.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise CsvImportError(f"CSV file is not valid UTF-8: {e}") from e
    result = import_csv(text, store, notifier)
    if result.rows_skipped:
        notifier.warning(f"Skipped {result.rows_skipped} malformed row(s)")
    return 0


# =============================================================================
# Service history commands
# =============================================================================


def cmd_service(args, store, settings, notifier):
    """List, add or delete service records."""
    vehicle = resolve_vehicle(store, args.vehicle)

    if args.service_command == "add":
        fields = {
            "service_date": args.date or date.today().isoformat(),
            "service_type": args.type,
            "description": args.description,
            "cost": args.cost,
            "mileage": args.mileage,
            "next_service_due": args.next_due,
            "next_service_mileage": args.next_mileage,
            "service_provider": args.provider,
            "notes": args.notes,
        }
        record = store.add_service_history(
            vehicle.id, {k: v for k, v in fields.items() if v is not None}
        )
        notifier.success(f"Logged {record.service_type} for {vehicle.name}")
        return 0

    if args.service_command == "delete":
        store.delete_service_history(args.record_id)
        notifier.success(f"Deleted service record {args.record_id}")
        return 0

    records = store.get_service_history(vehicle.id)
    total_cost = sum(r.cost for r in records if r.cost is not None)
    print(f"Vehicle: {vehicle.name}")
    print(f"Services: {len(records)}")
    if total_cost > 0:
        print(f"Total cost: {format_cost(total_cost)}")
    print()
    if not records:
        print("No service history found.")
        return 0
    headers = ["Date", "Type", "Mileage", "Cost", "Provider", "Next due", "Notes", "ID"]
    print(tabulate(make_service_table(records), headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Alerts, sync, sample
# =============================================================================


def cmd_alerts(args, store, settings, notifier):
    """Document expiry and service due alerts."""
    alerts = collect_alerts(store, window_days=settings.alert_window_days)
    if not alerts:
        print("No alerts.")
        return 0
    rows = [[a.severity.name, a.vehicle_name or "-", a.message] for a in alerts]
    print(tabulate(rows, headers=["Severity", "Vehicle", "Alert"], tablefmt="simple"))
    return 0


def cmd_sync(args, store, settings, notifier):
    """Replay queued offline actions against the store."""
    queue = OfflineQueue(YamlQueueBackend(settings.queue_file), settings.queue_max_retries)
    pending = len(queue)
    if not pending:
        print("Nothing to sync.")
        return 0
    result = queue.drain(store_executor(store))
    notifier.info(
        f"Synced {len(result.succeeded)}/{pending} action(s); "
        f"{len(result.retried)} will retry, {len(result.dropped)} dropped"
    )
    return 0 if not result.dropped else 1


def cmd_sample(args, store, settings, notifier):
    """Create sample data."""
    vehicle = generate_sample_data(store, weeks=args.weeks, seed=args.seed)
    notifier.success(f"Created '{vehicle.name}' with {args.weeks} weekly fill-ups")
    return 0


# =============================================================================
# Main
# =============================================================================

COMMANDS = {
    "vehicles": cmd_vehicles,
    "add-vehicle": cmd_add_vehicle,
    "update-vehicle": cmd_update_vehicle,
    "remove-vehicle": cmd_remove_vehicle,
    "default": cmd_default,
    "log": cmd_log,
    "entries": cmd_entries,
    "edit-entry": cmd_edit_entry,
    "delete-entry": cmd_delete_entry,
    "stats": cmd_stats,
    "analytics": cmd_analytics,
    "export": cmd_export,
    "import": cmd_import,
    "service": cmd_service,
    "alerts": cmd_alerts,
    "sync": cmd_sync,
    "sample": cmd_sample,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Personal fuel tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --user me add-vehicle "City Car" --type car
  %(prog)s --user me log "City Car" 1250 105 840
  %(prog)s --user me stats "City Car"
  %(prog)s --user me analytics "City Car" monthly
  %(prog)s --user me export --all -o fuel.csv
  %(prog)s --user me import fuel.csv
  %(prog)s --user me service "City Car" add --type "Oil change" --cost 1200
""",
    )
    parser.add_argument("--config", type=Path, help="Path to settings YAML file")
    parser.add_argument("--data", type=Path, help="Path to data YAML file")
    parser.add_argument("--user", type=str, help="User id (default: $FUELTRACK_USER)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("vehicles", help="List vehicles")

    add_vehicle = subparsers.add_parser("add-vehicle", help="Add a car or bike")
    add_vehicle.add_argument("name", type=str, help="Vehicle name")
    add_vehicle.add_argument("--type", choices=["car", "bike"], default="car")

    update_vehicle = subparsers.add_parser("update-vehicle", help="Update vehicle details")
    update_vehicle.add_argument("vehicle", type=str, help="Vehicle name or id")
    update_vehicle.add_argument("--name", type=str)
    update_vehicle.add_argument("--type", choices=["car", "bike"])
    update_vehicle.add_argument("--make", type=str)
    update_vehicle.add_argument("--model", type=str)
    update_vehicle.add_argument("--year", type=int)
    update_vehicle.add_argument("--insurance", type=str, help="Insurance expiry (YYYY-MM-DD)")
    update_vehicle.add_argument("--registration", type=str, help="Registration expiry (YYYY-MM-DD)")
    update_vehicle.add_argument("--puc", type=str, help="PUC certificate expiry (YYYY-MM-DD)")

    remove_vehicle = subparsers.add_parser("remove-vehicle", help="Delete a vehicle")
    remove_vehicle.add_argument("vehicle", type=str, help="Vehicle name or id")
    remove_vehicle.add_argument("--dry-run", action="store_true")

    default = subparsers.add_parser("default", help="Show or set the default vehicle")
    default.add_argument("vehicle", nargs="?", help="Vehicle name or id to make default")

    log = subparsers.add_parser("log", help="Record a fill-up")
    log.add_argument("vehicle", type=str, help="Vehicle name or id")
    log.add_argument("odometer", type=float, help="Odometer reading (km)")
    log.add_argument("price", type=float, help="Fuel price per litre")
    log.add_argument("amount", type=float, help="Amount paid")
    log.add_argument(
        "--distance",
        type=float,
        help="Distance since last fill-up (only used for a vehicle's first entry)",
    )
    log.add_argument("--offline", action="store_true", help="Queue for a later 'sync'")
    log.add_argument("--dry-run", action="store_true", help="Show without saving")

    entries = subparsers.add_parser("entries", help="List fill-ups")
    entries.add_argument("vehicle", nargs="?", help="Vehicle name or id (default vehicle if omitted)")
    entries.add_argument("--limit", type=int)

    edit_entry = subparsers.add_parser("edit-entry", help="Correct a fill-up")
    edit_entry.add_argument("entry_id", type=str)
    edit_entry.add_argument("odometer", type=float)
    edit_entry.add_argument("price", type=float)
    edit_entry.add_argument("amount", type=float)
    edit_entry.add_argument("distance", type=float)

    delete_entry = subparsers.add_parser("delete-entry", help="Remove a fill-up")
    delete_entry.add_argument("entry_id", type=str)

    stats = subparsers.add_parser("stats", help="Dashboard and insights")
    stats.add_argument("vehicle", nargs="?", help="Vehicle name or id")

    analytics = subparsers.add_parser("analytics", help="Analytics tables")
    analytics.add_argument("vehicle", nargs="?", help="Vehicle name or id")
    analytics.add_argument("view", choices=sorted(ANALYTICS_VIEWS), nargs="?", default="monthly")

    export = subparsers.add_parser("export", help="Write entries as CSV")
    export.add_argument("vehicle", nargs="?", help="Vehicle name or id")
    export.add_argument("--all", action="store_true", help="Export every vehicle")
    export.add_argument("-o", "--output", type=Path, help="Output file (default: stdout)")

    import_parser = subparsers.add_parser("import", help="Read entries from CSV")
    import_parser.add_argument("csv_file", type=Path)

    service = subparsers.add_parser("service", help="Service history")
    service.add_argument("vehicle", type=str, help="Vehicle name or id")
    service_sub = service.add_subparsers(dest="service_command")
    service_sub.add_parser("list", help="List service records")
    service_add = service_sub.add_parser("add", help="Log a service")
    service_add.add_argument("--type", type=str, required=True, help="e.g. 'Oil change'")
    service_add.add_argument("--date", type=str, help="Service date (default: today)")
    service_add.add_argument("--description", type=str)
    service_add.add_argument("--cost", type=float)
    service_add.add_argument("--mileage", type=float)
    service_add.add_argument("--next-due", type=str, help="Next service date (YYYY-MM-DD)")
    service_add.add_argument("--next-mileage", type=float)
    service_add.add_argument("--provider", type=str)
    service_add.add_argument("--notes", type=str)
    service_delete = service_sub.add_parser("delete", help="Delete a service record")
    service_delete.add_argument("record_id", type=str)

    subparsers.add_parser("alerts", help="Expiry and service due alerts")
    subparsers.add_parser("sync", help="Replay queued offline fill-ups")

    sample = subparsers.add_parser("sample", help="Create sample data")
    sample.add_argument("--weeks", type=int, default=8)
    sample.add_argument("--seed", type=int)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(args.config)
        if args.data:
            settings.data_file = args.data
        if args.user:
            settings.user_id = args.user

        store = YamlStore(settings.data_file, settings.user_id)
        notifier = Notifier()
        notifier.subscribe(print_notice)
        return COMMANDS[args.command](args, store, settings, notifier)
    except FuelTrackError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
