from __future__ import annotations

import base64
import json
import os
from datetime import date, datetime, timezone

import requests
import streamlit as st

st.set_page_config(page_title="Clinic Booking", layout="wide")

API_BASE = os.getenv("API_BASE", "http://127.0.0.1:8000")

SERVICES = {
    "musculoskeletal": "Musculoskeletal Physiotherapy",
    "neurological": "Neurological Rehabilitation",
    "sports-injury": "Sports Injury Rehabilitation",
    "post-surgery": "Post-Surgery Rehabilitation",
    "pediatric": "Pediatric Physiotherapy",
    "geriatric": "Geriatric Care",
}

STATUSES = ["pending", "confirmed", "completed", "cancelled"]



# JWT helpers (UI only, no signature check)

def _b64url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def jwt_payload(token: str) -> dict:
    try:
        parts = token.split(".")
        if len(parts) != 3:
            return {}
        payload = json.loads(_b64url_decode(parts[1]).decode("utf-8"))
        return payload if isinstance(payload, dict) else {}
    except (ValueError, UnicodeDecodeError):
        return {}


def jwt_is_expired(token: str) -> bool:
    exp = jwt_payload(token).get("exp")
    try:
        exp_int = int(exp)
    except (TypeError, ValueError):
        return False

    now = int(datetime.now(tz=timezone.utc).timestamp())
    return now >= (exp_int - 5)



# HTTP client (with JWT)

class SessionExpired(Exception):
    pass


def _headers(token: str | None) -> dict:
    return {"Authorization": f"Bearer {token}"} if token else {}


def _check(r: requests.Response) -> requests.Response:
    if r.status_code in (401, 403):
        raise SessionExpired("Session invalid or expired, please log in again.")
    if r.status_code >= 400:
        try:
            message = r.json().get("message")
        except ValueError:
            message = None
        raise RuntimeError(message or f"HTTP {r.status_code}")
    return r


def api_login(username: str, password: str) -> str:
    r = requests.post(
        f"{API_BASE}/api/auth/login",
        json={"username": username, "password": password},
        timeout=10,
    )
    if r.status_code == 401:
        raise PermissionError("Invalid credentials")
    return _check(r).json()["token"]


def api_book(payload: dict) -> dict:
    r = requests.post(f"{API_BASE}/api/appointments", json=payload, timeout=15)
    return _check(r).json()


def api_list(token: str) -> list[dict]:
    r = requests.get(f"{API_BASE}/api/appointments", headers=_headers(token), timeout=10)
    return _check(r).json()


def api_set_status(token: str, appointment_id: int, status: str) -> dict:
    r = requests.put(
        f"{API_BASE}/api/appointments/{appointment_id}",
        headers=_headers(token),
        json={"status": status},
        timeout=15,
    )
    return _check(r).json()


def api_delete(token: str, appointment_id: int) -> dict:
    r = requests.delete(f"{API_BASE}/api/appointments/{appointment_id}", headers=_headers(token), timeout=10)
    return _check(r).json()


def current_token() -> str | None:
    token = st.session_state.get("token")
    if not token or jwt_is_expired(token):
        return None
    return token


def do_logout() -> None:
    st.session_state.pop("token", None)
    st.rerun()



# Sidebar login

with st.sidebar:
    st.header("Admin")

    if not current_token():
        u = st.text_input("Username", key="login_user")
        p = st.text_input("Password", type="password", key="login_pass")

        if st.button("Login", key="login_btn"):
            try:
                st.session_state["token"] = api_login(u.strip(), p)
                st.rerun()
            except PermissionError as e:
                st.error(str(e))
            except (requests.RequestException, RuntimeError) as e:
                st.error(f"Login failed: {e}")
    else:
        st.write(f"Logged in as **{jwt_payload(st.session_state['token']).get('username', 'admin')}**")
        if st.button("Logout", key="logout_btn"):
            do_logout()

    st.divider()
    st.caption(f"API: {API_BASE}")



# UI

st.title("Clinic Appointments")

tab_book, tab_admin = st.tabs(["Book an appointment", "Dashboard"])

with tab_book:
    with st.form("booking_form", clear_on_submit=True):
        c1, c2 = st.columns(2)
        name = c1.text_input("Full name")
        email = c2.text_input("Email")
        phone = c1.text_input("Phone")
        service = c2.selectbox("Service", options=list(SERVICES), format_func=lambda k: SERVICES[k])
        day = c1.date_input("Date", value=date.today(), min_value=date.today())
        slot = c2.time_input("Time", value=datetime.now().time().replace(second=0, microsecond=0))
        notes = st.text_area("Notes (optional)", height=80)

        submitted = st.form_submit_button("Book appointment")

    if submitted:
        try:
            res = api_book(
                {
                    "name": name,
                    "email": email,
                    "phone": phone,
                    "date": day.isoformat(),
                    "time": slot.strftime("%H:%M"),
                    "service": service,
                    "notes": notes,
                }
            )
            st.success(f"{res['message']} (ID: {res['appointment']['id']}). A confirmation email will follow.")
        except (requests.RequestException, RuntimeError) as e:
            st.error(f"Booking failed: {e}")

with tab_admin:
    token = current_token()
    if not token:
        st.warning("Restricted area. Log in from the sidebar.")
    else:
        try:
            appointments = api_list(token)
        except SessionExpired as e:
            st.session_state.pop("token", None)
            st.error(str(e))
            appointments = []
        except (requests.RequestException, RuntimeError) as e:
            st.error(f"Could not load appointments: {e}")
            appointments = []

        cols = st.columns(len(STATUSES) + 1)
        cols[0].metric("Total", len(appointments))
        for col, s in zip(cols[1:], STATUSES):
            col.metric(s.capitalize(), sum(1 for a in appointments if a["status"] == s))

        status_filter = st.selectbox("Filter by status", options=["all"] + STATUSES, key="adm_filter")
        shown = [a for a in appointments if status_filter == "all" or a["status"] == status_filter]

        if not shown:
            st.info("No appointments.")

        for a in shown:
            with st.expander(f"#{a['id']} | {a['date']} {a['time']} | {a['patient_name']} | {a['status']}"):
                st.write(f"Service: {SERVICES.get(a['service'], a['service'])}")
                st.write(f"Email: {a['email']} | Phone: {a['phone']}")
                st.write(f"Notes: {a.get('notes') or '-'}")

                c1, c2, c3 = st.columns([2, 1, 1])
                new_status = c1.selectbox(
                    "Status",
                    options=STATUSES,
                    index=STATUSES.index(a["status"]) if a["status"] in STATUSES else 0,
                    key=f"status_{a['id']}",
                )
                if c2.button("Update", key=f"upd_{a['id']}"):
                    try:
                        st.success(api_set_status(token, a["id"], new_status)["message"])
                        st.rerun()
                    except (SessionExpired, requests.RequestException, RuntimeError) as e:
                        st.error(str(e))
                if c3.button("Delete", key=f"del_{a['id']}"):
                    try:
                        st.success(api_delete(token, a["id"])["message"])
                        st.rerun()
                    except (SessionExpired, requests.RequestException, RuntimeError) as e:
                        st.error(str(e))
