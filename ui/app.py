import requests
import streamlit as st

from low_energy_ai.config import settings

# -------------------------------------------------------------------
# Config
# -------------------------------------------------------------------
API_URL = settings.UI_API_URL
API_KEY = settings.API_KEY
TIMEOUT = 120

BACKGROUND_ALPHA = "14"  # ~8% opacity as a hex alpha byte


# -------------------------------------------------------------------
# REST helpers
# -------------------------------------------------------------------
def _headers() -> dict:
    headers = {"Content-Type": "application/json"}
    if API_KEY:
        headers["Authorization"] = f"Bearer {API_KEY}"
    return headers


def _call(method: str, path: str, payload: dict | None = None) -> dict:
    resp = requests.request(method, f"{API_URL}{path}", json=payload, headers=_headers(), timeout=TIMEOUT)
    resp.raise_for_status()
    return resp.json() if resp.content else {}


def create_session() -> dict:
    return _call("POST", "/api/sessions")


def set_preferences(session_id: str, efficiency: int, speed: int, complexity: int) -> dict:
    payload = {"efficiency": efficiency, "speed": speed, "complexity": complexity}
    return _call("PUT", f"/api/sessions/{session_id}/preferences", payload)


def pick_model(session_id: str, model_id: str) -> dict:
    return _call("PUT", f"/api/sessions/{session_id}/model", {"model_id": model_id})


def send_message(session_id: str, message: str) -> dict:
    return _call("POST", f"/api/sessions/{session_id}/chat", {"message": message})


def clear_chat(session_id: str) -> dict:
    return _call("DELETE", f"/api/sessions/{session_id}/messages")


def reset_session(session_id: str) -> dict:
    return _call("POST", f"/api/sessions/{session_id}/reset")


def get_models() -> list:
    try:
        return _call("GET", "/api/models").get("models", [])
    except requests.RequestException:
        return []


def _error_detail(err: requests.RequestException) -> str:
    response = getattr(err, "response", None)
    if response is not None:
        try:
            return response.json().get("detail", str(err))
        except ValueError:
            return response.text or str(err)
    return str(err)


def _sync_sliders(snapshot: dict) -> None:
    prefs = snapshot["preferences"]
    st.session_state.efficiency = prefs["efficiency"]
    st.session_state.speed = prefs["speed"]
    st.session_state.complexity = prefs["complexity"]
    st.session_state.snapshot = snapshot


# -------------------------------------------------------------------
# Widget callbacks
# -------------------------------------------------------------------
def on_slider_change():
    snapshot = set_preferences(
        st.session_state.session_id,
        st.session_state.efficiency,
        st.session_state.speed,
        st.session_state.complexity,
    )
    st.session_state.snapshot = snapshot


def on_model_pick():
    _sync_sliders(pick_model(st.session_state.session_id, st.session_state.picked_model))


def on_reset():
    _sync_sliders(reset_session(st.session_state.session_id))
    st.session_state.chat_error = None


def on_clear_chat():
    st.session_state.snapshot = clear_chat(st.session_state.session_id)


# -------------------------------------------------------------------
# Streamlit UI
# -------------------------------------------------------------------
st.set_page_config(page_title="Low Energy AI Interface", layout="wide")

if "session_id" not in st.session_state:
    try:
        snapshot = create_session()
    except requests.RequestException as e:
        st.error(f"Could not reach the API at {API_URL}: {e}")
        st.stop()
    st.session_state.session_id = snapshot["session_id"]
    st.session_state.show_guide = True
    st.session_state.chat_error = None
    _sync_sliders(snapshot)

snapshot = st.session_state.snapshot
model = snapshot["routing"]["selected_tier"]
account = snapshot["account"]

st.markdown(
    f"<style>.stApp {{ background-color: {model['color_hint']}{BACKGROUND_ALPHA}; }}</style>",
    unsafe_allow_html=True,
)

st.title("Low Energy AI Interface")
st.caption("Route queries to the right model based on your needs")

if st.session_state.show_guide:
    with st.container(border=True):
        st.subheader("How It Works")
        st.markdown(
            """
1. **Set your preferences** using the three sliders, or pick a model directly from the dropdown.
2. **Efficiency**: How much do you want to save energy/cost? Higher = greener, cheaper models.
3. **Speed**: Need fast responses? Higher = prioritizes low-latency models.
4. **Complexity**: How hard is your task? Higher = more powerful reasoning models.
5. **Chat** with the selected model and see your estimated savings in real-time.

The background colour reflects your current model: green = efficient, red = maximum power.
            """
        )
        if st.button("Close guide"):
            st.session_state.show_guide = False
            st.rerun()
elif st.button("Show Guide"):
    st.session_state.show_guide = True
    st.rerun()

prefs_col, chat_col = st.columns([1, 2])

with prefs_col:
    st.subheader("Your Preferences")
    st.slider("🌱 Efficiency", 1, 5, key="efficiency", on_change=on_slider_change,
              help="How much do you prioritize energy/cost savings?")
    st.slider("⚡ Speed", 1, 5, key="speed", on_change=on_slider_change,
              help="How important is response speed?")
    st.slider("🧠 Complexity", 1, 5, key="complexity", on_change=on_slider_change,
              help="How complex are your queries?")

    models = get_models()
    if models:
        ids = [m["id"] for m in models]
        labels = {m["id"]: f"{m['display_name']} - {m['description']}" for m in models}
        st.session_state.picked_model = model["id"]
        st.selectbox(
            "Or pick a model directly:",
            ids,
            key="picked_model",
            format_func=lambda model_id: labels[model_id],
            on_change=on_model_pick,
        )

    with st.container(border=True):
        st.markdown(f"<span style='color:{model['color_hint']}'>{model['energy_rating']}</span>",
                    unsafe_allow_html=True)
        st.markdown(f"### <span style='color:{model['color_hint']}'>{model['display_name']}</span>",
                    unsafe_allow_html=True)
        st.write(model["description"])
        st.markdown(f"Preference Code: `{snapshot['routing']['diagnostic_code']}`")

    with st.container(border=True):
        st.markdown("#### Cost Estimates")
        st.write(f"Cost per query: **${snapshot['query_cost']:.6f}**")
        st.write(f"Queries this session: **{account['query_count']}**")
        st.write(f"Session savings: **${account['total_savings']:.4f}**")
        st.markdown(f"<span style='color:{model['color_hint']}'>{model['efficiency_message']}</span>",
                    unsafe_allow_html=True)

with chat_col:
    header_col, clear_col = st.columns([4, 1])
    header_col.subheader(f"Chat with {model['display_name']}")
    header_col.caption(f"`{model['id']}`")
    if snapshot["messages"]:
        clear_col.button("Clear", on_click=on_clear_chat)

    if not snapshot["messages"]:
        st.info(f"Send a message to test the {model['display_name']} model")
    for message in snapshot["messages"]:
        with st.chat_message(message["role"]):
            st.write(message["content"])

    if st.session_state.chat_error:
        st.error(f"Error: {st.session_state.chat_error}")

    prompt = st.chat_input("Type your message...")
    if prompt and prompt.strip():
        with st.spinner("Thinking..."):
            try:
                result = send_message(st.session_state.session_id, prompt.strip())
                st.session_state.snapshot = result["session"]
                st.session_state.chat_error = None
            except requests.RequestException as e:
                st.session_state.chat_error = _error_detail(e)
        st.rerun()

st.divider()
st.button("Reset All", on_click=on_reset)
st.markdown(
    """
    <div style='text-align: center; color: gray; font-size: 0.8em;'>
        Demo prototype showing energy-conscious AI model selection.
        Actual energy/cost savings would vary in production.
    </div>
    """,
    unsafe_allow_html=True
)
