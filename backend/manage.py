#!/usr/bin/env python3
"""
Management utility for the Oyster card system.

Usage:
    python manage.py init         - Initialize datastore with reference stations and fares
    python manage.py show         - Show all stations and fares
    python manage.py add_station  - Add a new station
    python manage.py update_fare  - Update a fare table entry
    python manage.py reset        - Reset datastore to reference data
    python manage.py demo         - Replay the reference journeys on fresh cards
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from oyster.config import configure_logging, settings
from oyster.database import DatabaseManager, FARE_DESCRIPTIONS, reset_db_manager
from oyster.exceptions import CardError
from oyster.models import TransportType
from oyster.services.card_session import CardSession


def init_database():
    """Initialize datastore with reference stations and fares."""
    print("Initializing database...")
    db = DatabaseManager()
    db.init_default_reference_data()
    print("Database initialized successfully!")
    show_data()


def show_data():
    """Display all stations and the fare table."""
    db = DatabaseManager()
    stations = db.get_all_stations()
    fares = db.get_fare_table()

    print("\n" + "="*50)
    print("STATIONS")
    print("="*50)
    print(f"{'Station':<20} {'Zones':<10}")
    print("-"*30)
    for station in stations:
        zones = ", ".join(str(z) for z in sorted(station.zones))
        print(f"{station.name:<20} {zones:<10}")
    print("-"*30)
    print(f"Total stations: {len(stations)}")

    print("\n" + "="*50)
    print("FARES")
    print("="*50)
    for key, value in fares.model_dump().items():
        print(f"{key:<28} £{value:.2f}")
    print("="*50)


def add_station():
    """Add a new station interactively."""
    print("\nADD NEW STATION")
    print("-"*30)

    try:
        db = DatabaseManager()
        name = input("Enter station name: ").strip()
        zones = [int(z) for z in input("Enter zones (comma separated): ").split(",")]

        station = db.add_station(name, zones)
        print(f"✓ Added {station.name} in zones {sorted(station.zones)}")

    except ValueError as e:
        print(f"Error adding station: {e}")


def update_fare():
    """Interactive fare table update."""
    print("\nUPDATE FARE")
    print("-"*30)

    try:
        db = DatabaseManager()
        for key, description in FARE_DESCRIPTIONS.items():
            print(f"  {key:<28} {description}")

        key = input("Enter fare key: ").strip()
        current = db.get_config_value(key)
        if current:
            print(f"Current fare: £{current}")

        new_fare = input("Enter new fare (£): ")
        db.update_fare(key, new_fare)
        print(f"✓ Updated {key} to £{new_fare}")

    except (ValueError, CardError) as e:
        print(f"Error updating fare: {e}")


def reset_database():
    """Reset datastore to reference data."""
    confirm = input("Are you sure you want to reset all stations and fares to defaults? (yes/no): ")

    if confirm.lower() == 'yes':
        db_url = settings.database_url()
        db_path = db_url.replace("sqlite:///", "", 1) if db_url.startswith("sqlite:///") else None
        reset_db_manager()
        settings.reload_reference_data()
        if db_path and os.path.exists(db_path):
            os.remove(db_path)
            print("Database deleted.")

        init_database()
        print("Database reset to defaults!")
    else:
        print("Reset cancelled.")


def _balance(label: str, card: CardSession):
    print(f"{label}: £{card.get_balance():.2f}")


def _expect_failure(label: str, action, *args):
    try:
        action(*args)
        print(f"Unexpected success: {label}")
    except CardError as e:
        print(f"Prevented {label}: {e}")


def run_demo():
    """Replay the reference journeys and failure scenarios."""
    card = CardSession(30)
    _balance("Initial Balance", card)

    card.tap_in("Holburn", TransportType.TUBE)
    card.tap_out("Earl's Court")
    _balance("Balance after Holburn to Earl's Court", card)

    card.tap_in("Earl's Court", TransportType.BUS)
    _balance("Balance after 328 bus to Chelsea", card)

    card.tap_in("Chelsea", TransportType.TUBE)
    card.tap_out("Wimbledon")
    _balance("Final Balance", card)

    print("\nTesting insufficient balance scenarios:")
    low_balance_card = CardSession(2)
    _balance("Initial Balance", low_balance_card)
    _expect_failure("tap in with insufficient balance",
                    low_balance_card.tap_in, "Holburn", TransportType.TUBE)
    _balance("Balance", low_balance_card)

    print("\nTesting incomplete journey scenarios:")
    incomplete_card = CardSession(30)
    _balance("Initial Balance", incomplete_card)
    incomplete_card.tap_in("Holburn", TransportType.TUBE)
    _expect_failure("new journey without tapping out",
                    incomplete_card.tap_in, "Earl's Court", TransportType.TUBE)
    _balance("Balance", incomplete_card)

    print("\nTesting maximum fare scenarios:")
    max_fare_card = CardSession(30)
    _balance("Initial Balance", max_fare_card)
    max_fare_card.tap_in("Wimbledon", TransportType.TUBE)
    max_fare_card.tap_out("Holburn")
    _balance("Balance after longest possible journey", max_fare_card)

    print("\nTesting same zone journey:")
    same_zone_card = CardSession(30)
    _balance("Initial Balance", same_zone_card)
    same_zone_card.tap_in("Wimbledon", TransportType.TUBE)
    same_zone_card.tap_out("Southfields")
    _balance("Balance after same zone journey", same_zone_card)

    print("\nTesting multiple bus journeys:")
    bus_card = CardSession(30)
    _balance("Initial Balance", bus_card)
    for station in ("Any Station", "Another Station", "Final Station"):
        bus_card.tap_in(station, TransportType.BUS)
    _balance("Balance after multiple bus journeys", bus_card)


def main():
    """Main entry point."""
    configure_logging("WARNING")

    if len(sys.argv) < 2:
        print(__doc__)
        return

    command = sys.argv[1].lower()

    commands = {
        'init': init_database,
        'show': show_data,
        'add_station': add_station,
        'update_fare': update_fare,
        'reset': reset_database,
        'demo': run_demo
    }

    if command in commands:
        commands[command]()
    else:
        print(f"Unknown command: {command}")
        print(__doc__)


if __name__ == "__main__":
    main()
