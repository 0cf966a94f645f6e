import asyncio
import os
import sys
from decimal import Decimal

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from clinic.core.db import SessionLocal, init_models
from clinic.modules.auth.service import AuthService
from clinic.modules.procedures.repository import ProcedureRepository
from clinic.modules.reminders.repository import ReminderRepository

PROCEDURES = [
    # name, default cost, minutes
    ("Consultation", "500.00", 30),
    ("Oral Prophylaxis (Cleaning)", "1500.00", 45),
    ("Tooth Filling (Composite)", "1500.00", 45),
    ("Simple Extraction", "1000.00", 30),
    ("Surgical Extraction", "5000.00", 90),
    ("Root Canal Treatment", "8000.00", 120),
    ("Dental X-Ray (Periapical)", "500.00", 15),
    ("Teeth Whitening", "10000.00", 90),
    ("Porcelain Crown", "12000.00", 60),
    ("Complete Denture", "15000.00", 60),
]

REMINDERS = [
    {
        "reminder_type": "24_hour",
        "hours_before": 24,
        "email_template_subject": "Reminder: your appointment tomorrow at {{appointment_time}}",
        "email_template_body": (
            "Dear {{patient_name}},\n\n"
            "This is a reminder of your appointment on {{appointment_date}} at {{appointment_time}} "
            "({{duration}} minutes) for {{reason}}.\n\n"
            "Patient ID: {{patient_id}}\n\n"
            "Please arrive 10 minutes early."
        ),
    },
    {
        "reminder_type": "day_of",
        "hours_before": 2,
        "email_template_subject": "Your appointment today at {{appointment_time}}",
        "email_template_body": (
            "Dear {{patient_name}},\n\n"
            "We look forward to seeing you today at {{appointment_time}}.\n\n"
            "Patient ID: {{patient_id}}"
        ),
    },
]

async def main():
    """
    Create the default admin, the procedure catalog and the reminder templates.
    Safe to run more than once.
    """
    print("Starting database seed...")
    await init_models()

    async with SessionLocal() as db:
        user, created = await AuthService(db).setup_default_admin()
        print(f"  - Admin '{user.username}' {'created' if created else 'already exists'}")

        procedures = ProcedureRepository(db)
        for name, cost, minutes in PROCEDURES:
            if await procedures.find_by_name(name):
                continue
            await procedures.create(name=name, default_cost=Decimal(cost), estimated_duration=minutes, is_active=True)
            print(f"  - Added procedure {name}")

        reminders = ReminderRepository(db)
        for config in REMINDERS:
            if await reminders.config_by_type(config["reminder_type"]):
                continue
            await reminders.create_config(is_enabled=True, **config)
            print(f"  - Added {config['reminder_type']} reminder template")

        await db.commit()

    print("Database seed completed successfully!")

if __name__ == "__main__":
    asyncio.run(main())
