from __future__ import annotations

import argparse
import os
import random
from datetime import date, timedelta

from .auth_service import seed_admin
from .config import configure_logging, load_settings
from .models import AppointmentStatus
from .storage import AppointmentStorage, build_storage

SERVICES = [
    "musculoskeletal",
    "neurological",
    "sports-injury",
    "post-surgery",
    "pediatric",
    "geriatric",
]

DEMO_NAMES = [
    "Aarav Shah", "Priya Patel", "Rohan Mehta", "Ananya Iyer", "Kabir Singh",
    "Meera Joshi", "Vikram Rao", "Isha Kulkarni", "Arjun Desai", "Neha Gupta",
]

# clinic hours, 30 minute slots
DEMO_TIMES = [f"{h:02d}:{m:02d}" for h in range(9, 19) for m in (0, 30)]


def cmd_init(args: argparse.Namespace, storage: AppointmentStorage) -> None:
    storage.init_schema()
    created = seed_admin(storage, args.settings)
    print("DB initialized." + (" Admin created." if created else " Admin already present."))


def cmd_list(args: argparse.Namespace, storage: AppointmentStorage) -> None:
    rows = storage.list_appointments()
    if args.status:
        rows = [r for r in rows if r["status"] == args.status]
    if not rows:
        print("No appointments.")
        return
    for a in rows:
        print(f"{a['id']} | {a['date']} {a['time']} | {a['status']:<9} | {a['patient_name']} | {a['service']}")


def cmd_set_status(args: argparse.Namespace, storage: AppointmentStorage) -> None:
    if storage.update_status(args.appointment_id, args.status) == 0:
        print("Not found.")
        raise SystemExit(1)
    print(f"Appointment {args.appointment_id} set to {args.status}.")


def cmd_delete(args: argparse.Namespace, storage: AppointmentStorage) -> None:
    if storage.delete_appointment(args.appointment_id) == 0:
        print("Not found.")
        raise SystemExit(1)
    print(f"Appointment {args.appointment_id} deleted.")


def cmd_demo_data(args: argparse.Namespace, storage: AppointmentStorage) -> None:
    """Insert random bookings over the next weeks (Sundays closed)."""
    rnd = random.Random(args.seed)
    today = date.today()

    open_days = [today + timedelta(days=n) for n in range(max(args.days, 0) + 1)]
    open_days = [d for d in open_days if d.weekday() != 6]
    if not open_days:
        print("No open days in the window, widen --days.")
        raise SystemExit(1)

    created = 0
    while created < args.count:
        day = rnd.choice(open_days)
        name = rnd.choice(DEMO_NAMES)
        a = storage.create_appointment(
            {
                "patient_name": name,
                "email": name.lower().replace(" ", ".") + "@example.com",
                "phone": "9" + "".join(rnd.choice("0123456789") for _ in range(9)),
                "date": day.isoformat(),
                "time": rnd.choice(DEMO_TIMES),
                "service": rnd.choice(SERVICES),
                "notes": "",
            }
        )
        # some bookings already handled by the front desk
        if rnd.random() < 0.3:
            storage.update_status(a["id"], AppointmentStatus.CONFIRMED.value)
        created += 1

    print(f"Inserted {created} demo appointments.")


def cmd_show_db(args: argparse.Namespace, storage: AppointmentStorage) -> None:
    print("BACKEND:", storage.name)
    print("STORE  :", storage.describe())


def cmd_serve(args: argparse.Namespace, storage: AppointmentStorage) -> None:
    import uvicorn

    from .api_main import create_app

    app = create_app(settings=args.settings, storage=storage)
    uvicorn.run(app, host=args.host, port=args.port)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="clinic-admin", description="Clinic booking operator CLI")
    sub = p.add_subparsers(required=True)

    p_init = sub.add_parser("init", help="Create tables and seed the admin user")
    p_init.set_defaults(func=cmd_init)

    p_list = sub.add_parser("list", help="List appointments (newest date first)")
    p_list.add_argument("--status", choices=AppointmentStatus.values(), default=None)
    p_list.set_defaults(func=cmd_list)

    p_status = sub.add_parser("set-status", help="Change appointment status")
    p_status.add_argument("appointment_id", type=int)
    p_status.add_argument("status", choices=AppointmentStatus.values())
    p_status.set_defaults(func=cmd_set_status)

    p_del = sub.add_parser("delete", help="Delete an appointment")
    p_del.add_argument("appointment_id", type=int)
    p_del.set_defaults(func=cmd_delete)

    p_demo = sub.add_parser("demo-data", help="Insert random demo appointments")
    p_demo.add_argument("--count", type=int, default=20)
    p_demo.add_argument("--days", type=int, default=30, help="Spread bookings over the next N days")
    p_demo.add_argument("--seed", type=int, default=42)
    p_demo.set_defaults(func=cmd_demo_data)

    p_show = sub.add_parser("show-db", help="Show the configured storage backend")
    p_show.set_defaults(func=cmd_show_db)

    p_serve = sub.add_parser("serve", help="Run the REST API with uvicorn")
    p_serve.add_argument("--host", default="127.0.0.1")
    p_serve.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))
    p_serve.set_defaults(func=cmd_serve)

    return p


def main(argv: list[str] | None = None, storage: AppointmentStorage | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.settings = load_settings()
    configure_logging(args.settings.log_level)

    storage = storage or build_storage(args.settings)
    storage.init_schema()  # make sure the tables exist
    args.func(args, storage)


if __name__ == "__main__":
    main()
