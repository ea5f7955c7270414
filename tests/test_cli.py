"""Operator CLI, run against an injected in-memory store."""
from datetime import date

import pytest

from clinic_backend import cli
from clinic_backend.cli import main


@pytest.fixture(autouse=True)
def env(monkeypatch):
    for name in ("DB_BACKEND", "DATABASE_URL", "APP_ENV"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("JWT_SECRET", "cli-secret")
    monkeypatch.setenv("ADMIN_PASSWORD", "cli-password")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")


def test_init_seeds_admin_once(storage, capsys):
    main(["init"], storage=storage)
    assert "Admin created." in capsys.readouterr().out

    main(["init"], storage=storage)
    assert "Admin already present." in capsys.readouterr().out
    assert storage.get_admin_by_username("admin") is not None


def test_list_and_filter(storage, make_appointment, capsys):
    make_appointment(patient_name="Alice", date="2026-03-01")
    b = make_appointment(patient_name="Bob", date="2026-03-02")
    storage.update_status(b["id"], "confirmed")

    main(["list"], storage=storage)
    out = capsys.readouterr().out.splitlines()
    assert "Bob" in out[0]
    assert "Alice" in out[1]

    main(["list", "--status", "confirmed"], storage=storage)
    out = capsys.readouterr().out
    assert "Bob" in out
    assert "Alice" not in out


def test_list_empty(storage, capsys):
    main(["list"], storage=storage)
    assert capsys.readouterr().out.strip() == "No appointments."


def test_set_status_and_delete(storage, make_appointment):
    a = make_appointment()

    main(["set-status", str(a["id"]), "completed"], storage=storage)
    assert storage.get_appointment(a["id"])["status"] == "completed"

    main(["delete", str(a["id"])], storage=storage)
    assert storage.get_appointment(a["id"]) is None


def test_unknown_id_exits_nonzero(storage):
    with pytest.raises(SystemExit) as exc:
        main(["set-status", "404", "confirmed"], storage=storage)
    assert exc.value.code == 1

    with pytest.raises(SystemExit):
        main(["delete", "404"], storage=storage)


def test_invalid_status_rejected_by_parser(storage):
    with pytest.raises(SystemExit) as exc:
        main(["set-status", "1", "archived"], storage=storage)
    assert exc.value.code == 2


def test_demo_data(storage, capsys):
    main(["demo-data", "--count", "8", "--seed", "1"], storage=storage)

    rows = storage.list_appointments()
    assert len(rows) == 8
    assert {r["status"] for r in rows} <= {"pending", "confirmed"}
    assert "Inserted 8" in capsys.readouterr().out


class FrozenSunday(date):
    @classmethod
    def today(cls):
        return cls(2026, 10, 18)


def test_demo_data_with_only_a_sunday_stops(storage, monkeypatch, capsys):
    monkeypatch.setattr(cli, "date", FrozenSunday)

    with pytest.raises(SystemExit) as exc:
        main(["demo-data", "--count", "3", "--days", "0"], storage=storage)

    assert exc.value.code == 1
    assert "No open days" in capsys.readouterr().out
    assert storage.list_appointments() == []


def test_demo_data_skips_sundays(storage, monkeypatch):
    monkeypatch.setattr(cli, "date", FrozenSunday)

    main(["demo-data", "--count", "5", "--days", "1"], storage=storage)

    rows = storage.list_appointments()
    assert len(rows) == 5
    assert {r["date"] for r in rows} == {"2026-10-19"}


def test_show_db(storage, capsys):
    main(["show-db"], storage=storage)
    assert "BACKEND: sqlite" in capsys.readouterr().out
