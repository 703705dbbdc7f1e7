"""Seed script to populate the reading history with sample bills."""

from datetime import date, timedelta
from decimal import Decimal

from bill_calculator.core.database import Base, SessionLocal, engine
from bill_calculator.models.enums import SplitPolicy
from bill_calculator.models.reading import ReadingRecord
from bill_calculator.schemas.bill import ReadingInput
from bill_calculator.services import storage
from bill_calculator.services.calculator import calculate_bill, create_reading_history_entry
from bill_calculator.services.validation import validate_reading_set


def _format_date(value: date) -> str:
    return value.strftime("%d-%m-%Y")


def seed_database() -> None:
    """Seed the database with six months of quarterly-style bills."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        # Check if data already exists
        if db.query(ReadingRecord).first():
            print("Database already has data. Skipping seed.")
            return

        print("Seeding database...")

        storage.save_setting(db, "property_name", "Test Building")
        storage.save_setting(db, "property_address", "123 Main Street\nLondon")

        start = date.today() - timedelta(days=180)
        main = Decimal("10000.0")
        subs = [Decimal("4000.0"), Decimal("3000.0")]

        for month in range(6):
            prev_date = start + timedelta(days=30 * month)
            curr_date = prev_date + timedelta(days=30)

            # Simulate monthly consumption
            sub_usage = [Decimal("180") + 10 * (month % 3), Decimal("135") + 5 * (month % 2)]
            main_usage = sum(sub_usage, Decimal("0")) + Decimal("150") + 20 * month

            data = ReadingInput(
                prev_date=_format_date(prev_date),
                curr_date=_format_date(curr_date),
                prev_main=main,
                curr_main=main + main_usage,
                prev_sub=subs,
                curr_sub=[s + u for s, u in zip(subs, sub_usage)],
                sub_meter_labels=["Flat A", "Flat B"],
                rate_per_kwh="28.5",
                standing_charge="53.2",
                standing_charge_split=SplitPolicy.USAGE,
            )

            validation = validate_reading_set(data)
            if not validation.is_valid:
                raise RuntimeError(f"Sample readings are invalid: {validation.errors}")

            entry = storage.save_reading(db, create_reading_history_entry(calculate_bill(data)))
            print(f"Created reading {entry.id}: {entry.prev_date} to {entry.date}, total {entry.costs.total:.2f}")

            main = main + main_usage
            subs = [s + u for s, u in zip(subs, sub_usage)]

        print("\nSeed data created successfully!")
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
