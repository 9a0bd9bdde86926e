import streamlit as st
import requests
import json
from datetime import datetime, date, time as dt_time, timedelta
from typing import Optional, List
import traceback

st.set_page_config(layout="wide", page_title="TimeToMeet")

with st.sidebar:
    st.subheader("API Configuration")
    if "api_base_url" not in st.session_state:
        st.session_state.api_base_url = "http://127.0.0.1:8000/api"
    st.text_input("API Base URL", key="api_base_url")

FREQUENCIES = ["weekly", "biweekly", "monthly"]

def api_base():
    return st.session_state.get("api_base_url", "http://127.0.0.1:8000/api")

def show_api_error(e: requests.exceptions.RequestException, prefix: str):
    if getattr(e, 'response', None) is not None:
        try:
            st.error(f"{prefix}: {e.response.json().get('detail', 'Unknown error')}")
            return
        except json.JSONDecodeError:
            st.error(f"{prefix}: Status {e.response.status_code} - {e.response.text[:200]}...")
            return
    st.error(f"{prefix}: {e}")

def login(email, password):
    try:
        response = requests.post(f"{api_base()}/accounts/sign-in/", json={"email": email, "password": password}, timeout=30)
        response.raise_for_status()
        session = response.json()
        st.session_state.access_token = session["access"]
        st.session_state.refresh_token = session["refresh"]
        st.session_state.token_expiry = datetime.now() + timedelta(minutes=55)
        st.session_state.logged_in = True
        st.session_state.profile = session.get("profile") or {}
        st.session_state.username = st.session_state.profile.get("full_name") or email
        st.success("Login successful!")
        st.rerun()
        return True
    except requests.exceptions.RequestException as e:
        show_api_error(e, "Login failed")
        logout(silent=True)
        return False

def sign_up(email, password, full_name):
    try:
        response = requests.post(f"{api_base()}/accounts/sign-up/",
                                 json={"email": email, "password": password, "full_name": full_name}, timeout=30)
        response.raise_for_status()
        st.success(response.json().get("detail", "Account created."))
        return True
    except requests.exceptions.RequestException as e:
        show_api_error(e, "Sign up failed")
        return False

def request_password_reset(email):
    try:
        response = requests.post(f"{api_base()}/accounts/password-reset/", json={"email": email}, timeout=30)
        response.raise_for_status()
        st.info(response.json().get("detail"))
    except requests.exceptions.RequestException as e:
        show_api_error(e, "Password reset failed")

def refresh_token():
    if 'refresh_token' not in st.session_state:
        logout(silent=True)
        return False
    try:
        response = requests.post(f"{api_base()}/token/refresh", json={"refresh": st.session_state.refresh_token}, timeout=30)
        response.raise_for_status()
        token_data = response.json()
        st.session_state.access_token = token_data["access"]
        st.session_state.token_expiry = datetime.now() + timedelta(minutes=55)
        st.session_state.logged_in = True
        return True
    except requests.exceptions.RequestException as e:
        st.warning("Session expired or refresh failed.")
        if getattr(e, 'response', None) is not None and e.response.status_code in [401, 400]:
            st.error("Reason: Refresh token may be invalid or expired.")
        else:
            st.error(f"Refresh failed: {e}")
        logout()
        return False

def logout(silent=False):
    if not silent:
        st.info("Logging out...")
        if 'refresh_token' in st.session_state and 'access_token' in st.session_state:
            try:
                requests.post(f"{api_base()}/accounts/sign-out/", json={"refresh": st.session_state.refresh_token},
                              headers={"Authorization": f"Bearer {st.session_state.access_token}"}, timeout=10)
            except requests.exceptions.RequestException as e:
                st.warning(f"Sign out request failed: {e}")
    keys_to_remove = [k for k in st.session_state if k != "api_base_url"]
    for key in keys_to_remove:
        try:
            del st.session_state[key]
        except KeyError:
            pass
    if not silent:
        st.success("Logged out.")
        st.rerun()

def ensure_authenticated():
    if not st.session_state.get('logged_in', False) or 'access_token' not in st.session_state:
        return False
    buffer_seconds = 60
    if 'token_expiry' not in st.session_state or datetime.now() >= (st.session_state.token_expiry - timedelta(seconds=buffer_seconds)):
        if not refresh_token():
            return False
    return True

def get_headers(include_content_type=True):
    if 'access_token' not in st.session_state:
        st.error("Authentication token missing. Please log in.")
        return None

    headers = {"Authorization": f"Bearer {st.session_state.access_token}"}
    if include_content_type:
        headers["Content-Type"] = "application/json"
    headers["Accept"] = "application/json"
    return headers

def make_request(method, endpoint, json_data=None, params=None, timeout=30, suppress_errors=False):
    if not st.session_state.get('logged_in', False):
        if not suppress_errors:
            st.warning("Not logged in. Please log in first.")
        return None
    if not ensure_authenticated():
        if not suppress_errors:
            st.warning("Authentication failed or expired. Please log in.")
        return None
    headers = get_headers(include_content_type=json_data is not None)
    if headers is None: return None
    url = f"{api_base()}{endpoint}"

    try:
        response = requests.request(method, url, headers=headers, json=json_data, params=params or {}, timeout=timeout)

        if response.status_code == 401:
            if refresh_token():
                headers = get_headers(include_content_type=json_data is not None)
                response = requests.request(method, url, headers=headers, json=json_data, params=params or {}, timeout=timeout)
                if response.status_code == 401:
                    if not suppress_errors: st.error("Authentication failed even after token refresh.")
                    logout()
                    return None
            else:
                return None
        response.raise_for_status()

        if response.status_code == 204: return True
        if response.text:
            try:
                return response.json()
            except json.JSONDecodeError:
                if not suppress_errors: st.warning(f"API returned non-JSON response (Status: {response.status_code}).")
                return response.text
        return True

    except requests.exceptions.HTTPError as e:
        if not suppress_errors:
            status_code = e.response.status_code
            try:
                detail = e.response.json().get('detail', '')
                if isinstance(detail, list): detail = "; ".join(str(d.get('msg', d)) if isinstance(d, dict) else str(d) for d in detail)
            except json.JSONDecodeError:
                detail = e.response.text[:500]
            if status_code == 403:
                st.error(f"Permission Denied: {detail}")
            elif status_code == 404:
                st.error(f"Not Found: {detail}")
            else:
                st.error(f"Error (Status: {status_code}): {detail}")
        return None
    except requests.exceptions.ConnectionError as e:
        if not suppress_errors: st.error(f"Connection Error: Could not connect to API at {api_base()}. Details: {e}")
        return None
    except requests.exceptions.Timeout as e:
        if not suppress_errors: st.error(f"Request Timeout: The API did not respond within {timeout} seconds. Details: {e}")
        return None
    except requests.exceptions.RequestException as e:
        if not suppress_errors: st.error(f"Request Failed: An unexpected request error occurred. Details: {e}")
        return None
    except Exception as e:
        if not suppress_errors:
            st.error(f"An unexpected error occurred in make_request: {type(e).__name__} - {e}")
            st.error(traceback.format_exc())
        return None

def get_capabilities():
    if 'capabilities' not in st.session_state:
        try:
            response = requests.get(f"{api_base()}/capabilities", timeout=10)
            response.raise_for_status()
            st.session_state.capabilities = response.json()
        except requests.exceptions.RequestException:
            st.session_state.capabilities = {"todo_ordering": False, "email": False}
    return st.session_state.capabilities

def format_meeting_when(m):
    try:
        d = datetime.strptime(m.get('scheduled_date', ''), "%Y-%m-%d").strftime("%a, %b %d, %Y")
        t = datetime.strptime(m.get('scheduled_time', '')[:5], "%H:%M").strftime("%I:%M %p").lstrip("0")
        return f"{d} at {t}"
    except ValueError:
        return f"{m.get('scheduled_date', 'TBD')} {m.get('scheduled_time', '')}"

def move_buttons(key_prefix: str, index: int, count: int, on_move, disabled: bool = False):
    up_col, down_col = st.columns(2)
    with up_col:
        if st.button("↑", key=f"{key_prefix}_up", disabled=disabled or index == 0, help="Move up"):
            on_move(index, index - 1)
    with down_col:
        if st.button("↓", key=f"{key_prefix}_down", disabled=disabled or index == count - 1, help="Move down"):
            on_move(index, index + 1)

def display_reset_password_page(uid: str, token: str):
    st.header("Choose a New Password")
    with st.form("reset_password_form"):
        password = st.text_input("New Password", type="password")
        confirm = st.text_input("Confirm Password", type="password")
        if st.form_submit_button("Update Password"):
            try:
                response = requests.post(f"{api_base()}/accounts/password-reset/confirm/", timeout=30,
                                         json={"uid": uid, "token": token, "password": password, "confirm_password": confirm})
                response.raise_for_status()
                st.success(response.json().get("detail"))
                st.query_params.clear()
            except requests.exceptions.RequestException as e:
                show_api_error(e, "Password update failed")

def display_participants(meeting, is_owner: bool):
    meeting_id = meeting['id']
    participants = make_request("GET", f"/meetings/{meeting_id}/participants/")
    if not isinstance(participants, list):
        return
    for p in participants:
        col_info, col_action = st.columns([5, 1])
        with col_info:
            name = p.get('full_name') or p['email']
            st.markdown(f"**{name}** ({p['email']}) · {p['role']} · _{p['status']}_")
        with col_action:
            if is_owner and p['role'] != 'organizer':
                if st.button("Remove", key=f"remove_participant_{p['id']}"):
                    if make_request("DELETE", f"/meetings/{meeting_id}/participants/{p['id']}/"):
                        st.rerun()

    my_email = (st.session_state.get('profile') or {}).get('email')
    mine = next((p for p in participants if p['email'] == my_email and p['role'] != 'organizer'), None)
    if mine:
        st.caption(f"Your response: {mine['status']}")
        col_accept, col_decline = st.columns(2)
        for col, choice, label in ((col_accept, "accepted", "Accept"), (col_decline, "declined", "Decline")):
            with col:
                if st.button(label, key=f"respond_{choice}_{meeting_id}",
                             disabled=mine['status'] == choice):
                    if make_request("POST", f"/meetings/{meeting_id}/respond/", json_data={"status": choice}):
                        st.rerun()

    if is_owner:
        with st.form(f"invite_form_{meeting_id}", clear_on_submit=True):
            email = st.text_input("Invite by email")
            if st.form_submit_button("Send Invitation") and email:
                result = make_request("POST", f"/meetings/{meeting_id}/participants/", json_data={"email": email})
                if isinstance(result, dict):
                    (st.success if result.get('invitation_sent') else st.warning)(result.get('message'))

def display_discussion(meeting):
    meeting_id = meeting['id']
    status = st.radio("Show", ["pending", "done"], horizontal=True, key=f"discussion_status_{meeting_id}")
    items = make_request("GET", f"/discussions/meeting/{meeting_id}/", params={"status": status})
    if not isinstance(items, list):
        return

    def move(source, destination):
        if make_request("POST", f"/discussions/meeting/{meeting_id}/reorder/",
                        json_data={"ids": [i['id'] for i in items], "source_index": source,
                                   "destination_index": destination, "status": status}):
            st.rerun()

    if not items:
        st.info("No pending discussion items." if status == "pending" else "Nothing has been discussed yet.")
    for index, item in enumerate(items):
        col_move, col_text, col_actions = st.columns([1, 6, 2])
        with col_move:
            move_buttons(f"discussion_{item['id']}", index, len(items), move)
        with col_text:
            st.markdown(f"**{item['title']}**")
            if item.get('description'):
                st.caption(item['description'])
        with col_actions:
            if status == "pending":
                if st.button("Done", key=f"discussion_done_{item['id']}"):
                    if make_request("POST", f"/discussions/{item['id']}/done/"):
                        st.rerun()
            elif st.button("Reopen", key=f"discussion_reopen_{item['id']}"):
                if make_request("POST", f"/discussions/{item['id']}/reopen/"):
                    st.rerun()
            if st.button("Delete", key=f"discussion_delete_{item['id']}"):
                if make_request("DELETE", f"/discussions/{item['id']}/"):
                    st.rerun()

    with st.form(f"discussion_form_{meeting_id}", clear_on_submit=True):
        title = st.text_input("New discussion item")
        description = st.text_area("Details (optional)")
        if st.form_submit_button("Add") and title.strip():
            if make_request("POST", f"/discussions/meeting/{meeting_id}/", json_data={"title": title, "description": description}):
                st.rerun()

def display_todo_list(todos: List[dict], key_prefix: str, reorder_meeting_id: Optional[int] = None, allow_reorder: bool = True):
    ordering_enabled = bool(get_capabilities().get("todo_ordering"))

    def move(source, destination):
        payload = {"ids": [t['id'] for t in todos], "source_index": source, "destination_index": destination,
                   "meeting_id": reorder_meeting_id}
        if make_request("POST", "/todos/reorder/", json_data=payload):
            st.rerun()

    for index, todo in enumerate(todos):
        col_move, col_check, col_text, col_delete = st.columns([1, 1, 7, 1])
        with col_move:
            if allow_reorder:
                move_buttons(f"{key_prefix}_{todo['id']}", index, len(todos), move, disabled=not ordering_enabled)
        with col_check:
            done = st.checkbox("Done", value=todo['status'] == 'done', key=f"{key_prefix}_check_{todo['id']}",
                               label_visibility="collapsed")
            if done != (todo['status'] == 'done'):
                if make_request("POST", f"/todos/{todo['id']}/toggle/"):
                    st.rerun()
        with col_text:
            text = f"~~{todo['title']}~~" if todo['status'] == 'done' else f"**{todo['title']}**"
            details = []
            if todo.get('assigned_email'):
                details.append(f"👤 {todo['assigned_email']}")
            if todo.get('due_date'):
                details.append(f"📅 {todo['due_date']}")
            if todo.get('meeting_title'):
                details.append(f"🗓️ {todo['meeting_title']}")
            st.markdown(text)
            if details:
                st.caption(" · ".join(details))
        with col_delete:
            if st.button("🗑️", key=f"{key_prefix}_delete_{todo['id']}"):
                if make_request("DELETE", f"/todos/{todo['id']}/"):
                    st.rerun()
    if allow_reorder and not ordering_enabled and len(todos) > 1:
        st.caption("Reordering tasks is not available on this server.")

def display_meeting_todos(meeting, participants: List[dict]):
    meeting_id = meeting['id']
    todos = make_request("GET", f"/todos/meeting/{meeting_id}/", params={"status": "pending"})
    if isinstance(todos, list):
        if todos:
            display_todo_list(todos, f"meeting_todo_{meeting_id}", reorder_meeting_id=meeting_id)
        else:
            st.info("No open action items.")

    with st.form(f"todo_form_{meeting_id}", clear_on_submit=True):
        title = st.text_input("New action item")
        emails = ["-- Unassigned --"] + [p['email'] for p in participants]
        assignee = st.selectbox("Assign to", emails)
        has_due = st.checkbox("Set due date")
        due = st.date_input("Due date", value=date.today() + timedelta(days=7))
        if st.form_submit_button("Add Action Item") and title.strip():
            payload = {"title": title, "due_date": due.isoformat() if has_due else None,
                       "assigned_email": None if assignee == emails[0] else assignee}
            if make_request("POST", f"/todos/meeting/{meeting_id}/", json_data=payload):
                st.rerun()

def display_summary(meeting):
    summary = make_request("GET", f"/meetings/{meeting['id']}/summary/")
    if not isinstance(summary, dict):
        return
    col_items, col_todos = st.columns(2)
    with col_items:
        st.subheader("Discussion Items Covered")
        if summary['completed_discussion_items']:
            for item in summary['completed_discussion_items']:
                st.markdown(f"- **{item['title']}**" + (f": {item['description']}" if item.get('description') else ""))
        else:
            st.markdown("_No discussion items were completed in this meeting._")
    with col_todos:
        st.subheader("Action Items")
        st.caption(f"{summary['pending_todo_count']} pending · {summary['completed_todo_count']} completed")
        if summary['todos']:
            for todo in summary['todos']:
                mark = "✅" if todo['status'] == 'done' else "⬜"
                st.markdown(f"{mark} {todo['title']}" + (f" ({todo['assigned_email']})" if todo.get('assigned_email') else ""))
        else:
            st.markdown("_No action items were created in this meeting._")

def display_meeting_settings(meeting):
    meeting_id = meeting['id']
    with st.form(f"meeting_settings_{meeting_id}"):
        title = st.text_input("Title", value=meeting['title'])
        description = st.text_area("Description", value=meeting.get('description') or "")
        col_date, col_time, col_duration = st.columns(3)
        with col_date:
            scheduled_date = st.date_input("Date", value=datetime.strptime(meeting['scheduled_date'], "%Y-%m-%d").date())
        with col_time:
            scheduled_time = st.time_input("Time", value=datetime.strptime(meeting['scheduled_time'][:5], "%H:%M").time())
        with col_duration:
            duration = st.number_input("Duration (minutes)", min_value=5, max_value=1440, step=5, value=meeting['duration_minutes'])
        location = st.text_input("Location", value=meeting.get('location') or "")
        is_recurring = st.checkbox("Recurring meeting", value=meeting['is_recurring'])
        frequency = st.selectbox("Frequency", FREQUENCIES,
                                 index=FREQUENCIES.index(meeting['frequency']) if meeting.get('frequency') in FREQUENCIES else 0)
        if st.form_submit_button("Save Settings"):
            payload = {"title": title, "description": description, "scheduled_date": scheduled_date.isoformat(),
                       "scheduled_time": scheduled_time.strftime("%H:%M"), "duration_minutes": int(duration),
                       "location": location, "is_recurring": is_recurring, "frequency": frequency if is_recurring else None}
            if make_request("PUT", f"/meetings/{meeting_id}/", json_data=payload):
                st.success("Meeting updated.")
                st.rerun()

    col_end, col_close, col_delete = st.columns(3)
    with col_end:
        if st.button("End Meeting", key=f"end_meeting_{meeting_id}", type="primary", disabled=meeting['status'] == 'closed'):
            result = make_request("POST", f"/meetings/{meeting_id}/end/")
            if isinstance(result, dict):
                if result.get('notification_sent'):
                    st.success("Meeting ended. Summary emailed to all participants.")
                else:
                    st.warning(f"Meeting ended, but the summary email was not sent: {result.get('notification_error')}")
    with col_close:
        if st.button("Close Meeting", key=f"close_meeting_{meeting_id}", disabled=meeting['status'] == 'closed'):
            if make_request("POST", f"/meetings/{meeting_id}/close/"):
                st.rerun()
    with col_delete:
        if st.session_state.get('confirm_delete_meeting') == meeting_id:
            st.warning("Delete this meeting and everything in it?")
            if st.button("Yes, delete", key=f"confirm_delete_{meeting_id}"):
                if make_request("DELETE", f"/meetings/{meeting_id}/"):
                    st.session_state.confirm_delete_meeting = None
                    st.session_state.selected_meeting_id = None
                    st.rerun()
        elif st.button("Delete Meeting", key=f"delete_meeting_{meeting_id}"):
            st.session_state.confirm_delete_meeting = meeting_id
            st.rerun()

def display_meeting_detail(meeting_id: int):
    meeting = make_request("GET", f"/meetings/{meeting_id}/")
    if not isinstance(meeting, dict):
        return
    is_owner = meeting['created_by_id'] == (st.session_state.get('profile') or {}).get('user_id')
    badge = {"scheduled": "🟢", "ended": "🟠", "closed": "⚫"}.get(meeting['status'], "")
    st.subheader(f"{badge} {meeting['title']}")
    st.caption(f"{format_meeting_when(meeting)} · {meeting['duration_minutes']} min"
               + (f" · {meeting['location']}" if meeting.get('location') else "")
               + (f" · repeats {meeting['frequency']}" if meeting.get('is_recurring') and meeting.get('frequency') else ""))
    if meeting.get('description'):
        st.markdown(meeting['description'])

    participants = make_request("GET", f"/meetings/{meeting_id}/participants/", suppress_errors=True) or []
    tab_names = ["👥 Participants", "💬 Discussion", "✅ Action Items", "📋 Summary"]
    if is_owner:
        tab_names.append("⚙️ Settings")
    tabs = st.tabs(tab_names)
    with tabs[0]:
        display_participants(meeting, is_owner)
    with tabs[1]:
        display_discussion(meeting)
    with tabs[2]:
        display_meeting_todos(meeting, participants if isinstance(participants, list) else [])
    with tabs[3]:
        display_summary(meeting)
    if is_owner:
        with tabs[4]:
            display_meeting_settings(meeting)

def display_create_meeting():
    with st.form("create_meeting_form", clear_on_submit=True):
        title = st.text_input("Title")
        description = st.text_area("Description / agenda")
        col_date, col_time, col_duration = st.columns(3)
        with col_date:
            scheduled_date = st.date_input("Date", value=date.today() + timedelta(days=1))
        with col_time:
            scheduled_time = st.time_input("Time", value=dt_time(10, 0))
        with col_duration:
            duration = st.number_input("Duration (minutes)", min_value=5, max_value=1440, step=5, value=60)
        location = st.text_input("Location")
        is_recurring = st.checkbox("Recurring meeting")
        frequency = st.selectbox("Frequency", FREQUENCIES)
        if st.form_submit_button("Create Meeting"):
            if not title.strip():
                st.warning("Please enter a meeting title.")
            else:
                payload = {"title": title, "description": description, "scheduled_date": scheduled_date.isoformat(),
                           "scheduled_time": scheduled_time.strftime("%H:%M"), "duration_minutes": int(duration),
                           "location": location, "is_recurring": is_recurring, "frequency": frequency if is_recurring else None}
                created = make_request("POST", "/meetings/", json_data=payload)
                if isinstance(created, dict):
                    st.session_state.selected_meeting_id = created['id']
                    st.success(f"Meeting '{created['title']}' created.")
                    st.rerun()

st.title("🗓️ TimeToMeet")
query = st.query_params
if query.get("page") == "reset-password" and query.get("uid") and query.get("token"):
    display_reset_password_page(query.get("uid"), query.get("token"))
    st.stop()

with st.sidebar:
    st.subheader("Account")
    if st.session_state.get('logged_in', False):
        st.success(f"Logged in as: **{st.session_state.get('username', 'User')}**")
        if st.button("Logout", key="logout_button", type="primary"):
            logout()
    else:
        mode = st.radio("Account action", ["Sign In", "Sign Up", "Forgot Password"], label_visibility="collapsed")
        if mode == "Sign In":
            with st.form("login_form"):
                email = st.text_input("Email", key="login_email")
                password = st.text_input("Password", type="password", key="login_password")
                if st.form_submit_button("Sign In"):
                    login(email, password)
        elif mode == "Sign Up":
            with st.form("sign_up_form"):
                full_name = st.text_input("Full Name")
                email = st.text_input("Email", key="sign_up_email")
                password = st.text_input("Password", type="password", key="sign_up_password")
                if st.form_submit_button("Create Account"):
                    sign_up(email, password, full_name)
        else:
            with st.form("forgot_password_form"):
                email = st.text_input("Email", key="reset_email")
                if st.form_submit_button("Send Reset Link"):
                    request_password_reset(email)

if st.session_state.get('logged_in', False):
    if 'selected_meeting_id' not in st.session_state:
        st.session_state.selected_meeting_id = None
    if query.get("meeting"):
        try:
            st.session_state.selected_meeting_id = int(query.get("meeting"))
        except ValueError:
            pass
        st.query_params.clear()

    tab_dashboard, tab_meetings, tab_tasks = st.tabs(["🏠 Dashboard", "🗓️ Meetings", "✅ My Tasks"])
    with tab_dashboard:
        st.header("Upcoming Meetings")
        upcoming = make_request("GET", "/meetings/upcoming/")
        if isinstance(upcoming, list) and upcoming:
            for m in upcoming:
                col_title, col_open = st.columns([5, 1])
                with col_title:
                    st.markdown(f"**{m['title']}** · {format_meeting_when(m)}" + (f" · 🔁 {m['frequency']}" if m.get('is_recurring') else ""))
                with col_open:
                    if st.button("Open", key=f"open_upcoming_{m['id']}"):
                        st.session_state.selected_meeting_id = m['id']
                        st.info("Open the Meetings tab to see the details.")
        elif isinstance(upcoming, list):
            st.info("No upcoming meetings. Create one from the Meetings tab.")

        st.header("My Open Tasks")
        pending = make_request("GET", "/todos/mine/", params={"scope": "assigned", "status": "pending"})
        if isinstance(pending, list) and pending:
            display_todo_list(pending[:5], "dashboard_todo", allow_reorder=False)
        elif isinstance(pending, list):
            st.info("Nothing assigned to you. 🎉")

    with tab_meetings:
        col_list, col_detail = st.columns([1, 3])
        with col_list:
            with st.expander("➕ New Meeting", expanded=False):
                display_create_meeting()
            title_filter = st.text_input("Search by title", key="meeting_title_filter")
            status_filter = st.selectbox("Status", ["all", "scheduled", "ended", "closed"], key="meeting_status_filter")
            params = {"title": title_filter or None, "status": None if status_filter == "all" else status_filter}
            meetings = make_request("GET", "/meetings/", params={k: v for k, v in params.items() if v})
            if isinstance(meetings, list):
                for m in meetings:
                    label = f"{m['title']} ({m['scheduled_date']})"
                    if st.button(label, key=f"select_meeting_{m['id']}", use_container_width=True,
                                 type="primary" if m['id'] == st.session_state.selected_meeting_id else "secondary"):
                        st.session_state.selected_meeting_id = m['id']
                        st.rerun()
        with col_detail:
            if st.session_state.selected_meeting_id:
                display_meeting_detail(st.session_state.selected_meeting_id)
            else:
                st.info("Select a meeting or create a new one.")

    with tab_tasks:
        st.header("My Tasks")
        col_scope, col_status = st.columns(2)
        with col_scope:
            scope = st.radio("Scope", ["all", "assigned", "created"], horizontal=True, key="my_tasks_scope")
        with col_status:
            status = st.radio("Status", ["pending", "done"], horizontal=True, key="my_tasks_status")
        todos = make_request("GET", "/todos/mine/", params={"scope": scope, "status": status})
        if isinstance(todos, list):
            if todos:
                # Only standalone tasks can be reordered from here.
                standalone = [t for t in todos if t.get('meeting_id') is None]
                linked = [t for t in todos if t.get('meeting_id') is not None]
                if standalone:
                    st.subheader("Personal Tasks")
                    display_todo_list(standalone, "personal_todo", allow_reorder=status == "pending" and scope == "all")
                if linked:
                    st.subheader("From Meetings")
                    display_todo_list(linked, "meeting_linked_todo", allow_reorder=False)
            else:
                st.info("No tasks here.")

        with st.form("personal_task_form", clear_on_submit=True):
            title = st.text_input("New personal task")
            has_due = st.checkbox("Set due date", key="personal_has_due")
            due = st.date_input("Due date", value=date.today() + timedelta(days=7), key="personal_due")
            if st.form_submit_button("Add Task") and title.strip():
                if make_request("POST", "/todos/", json_data={"title": title, "due_date": due.isoformat() if has_due else None}):
                    st.rerun()
else:
    st.info("Sign in or create an account from the sidebar to manage your meetings.")
