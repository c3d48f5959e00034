"""Appointment Booking Assistant - suggest and book recurring appointments."""

import logging
from datetime import datetime

import streamlit as st

from models.errors import BookingEngineError
from services.booking_service import BookingService
from services.config import configure_logging, load_settings
from services.response_formatter import ResponseFormatter
from services.suggestion_engine import build_collaborators, build_engine
from services.time_arithmetic import local_now

# ============================================================================
# CONFIGURATION
# ============================================================================

settings = load_settings()
configure_logging(settings.log_level)
logger = logging.getLogger("streamlit_booking")

st.set_page_config(
    page_title="Booking Assistant",
    page_icon="🗓️",
    layout="wide"
)

# ============================================================================
# SERVICE INITIALIZATION
# ============================================================================

@st.cache_resource
def get_services(_cache_version="v1.0"):
    """Initialize and cache collaborators, the suggestion engines and the booking service."""
    profiles, store = build_collaborators(settings)
    engines = {
        True: build_engine(settings, profiles, store, use_ai=True),
        False: build_engine(settings, profiles, store, use_ai=False),
    }
    booking_service = BookingService(
        profiles,
        store,
        timezone=settings.booking_timezone,
        cancellation_notice_hours=settings.cancellation_notice_hours,
    )
    logger.info("Booking services ready (AI available: %s)", bool(settings.openai_api_key))
    return profiles, engines, booking_service

profiles, engines, booking_service = get_services()

# ============================================================================
# SESSION STATE INITIALIZATION
# ============================================================================

if "suggestions" not in st.session_state:
    st.session_state.suggestions = None
    st.session_state.last_message = None

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def current_time() -> datetime:
    return local_now(None, settings.booking_timezone)


def service_names() -> dict[str, str]:
    if hasattr(profiles, "list_services"):
        return {s.service_id: s.name for s in profiles.list_services()}
    return {}


def handle_generate(consumer_id: str, service_id: str, target_count: int, use_ai: bool) -> None:
    """Request suggestions and keep them for confirmation."""
    try:
        result = engines[use_ai].generate_suggestions(consumer_id, service_id, target_count, now=current_time())
    except BookingEngineError as e:
        st.session_state.suggestions = None
        st.session_state.last_message = ResponseFormatter.format_booking_error(e)
        return
    st.session_state.suggestions = result
    st.session_state.last_message = None


def handle_confirm(consumer_id: str, service_id: str, index: int) -> None:
    """Book one suggested candidate."""
    candidate = st.session_state.suggestions.candidates[index]
    try:
        commitment = booking_service.validate_and_create_commitment(
            consumer_id, service_id, candidate.date, candidate.start_time, now=current_time()
        )
    except BookingEngineError as e:
        st.session_state.last_message = ResponseFormatter.format_booking_error(e)
        return

    st.session_state.last_message = ResponseFormatter.format_success(
        "Appointment booked!",
        ResponseFormatter.format_commitment(commitment, service_names().get(service_id)),
        details=[f"Reference: {commitment.commitment_id}", "Status: pending provider confirmation"]
    )
    st.session_state.suggestions = None


def handle_auto_book(consumer_id: str, service_id: str) -> None:
    """Book every suggested candidate."""
    results = booking_service.auto_book(
        consumer_id, service_id, st.session_state.suggestions.candidates, now=current_time()
    )
    st.session_state.last_message = ResponseFormatter.format_booking_results(results)
    st.session_state.suggestions = None


def handle_cancel(commitment_id: str) -> None:
    try:
        booking_service.update_status(commitment_id, "cancelled", now=current_time(), reason="Cancelled by client")
    except BookingEngineError as e:
        st.session_state.last_message = ResponseFormatter.format_booking_error(e)
        return
    st.session_state.last_message = ResponseFormatter.format_success("Appointment cancelled", commitment_id)

# ============================================================================
# SIDEBAR
# ============================================================================

with st.sidebar:
    st.header("⚙️ Booking Setup")

    if hasattr(profiles, "list_consumers"):
        consumers = {c.consumer_id: c.full_name for c in profiles.list_consumers()}
        consumer_id = st.selectbox("Client", list(consumers), format_func=lambda cid: consumers[cid])
    else:
        consumer_id = st.text_input("Client ID")

    names = service_names()
    if names:
        service_id = st.selectbox("Service", list(names), format_func=lambda sid: names[sid])
    else:
        service_id = st.text_input("Service ID")

    target_count = st.slider("Appointments per month", min_value=1, max_value=12, value=4)
    use_ai = st.checkbox(
        "Use AI suggestions",
        value=settings.use_ai_suggestions,
        disabled=not settings.openai_api_key,
        help="Requires OPENAI_API_KEY; falls back to the basic scheduler on any failure."
    )

    st.markdown("---")
    st.caption(f"Timezone: {settings.booking_timezone}")

# ============================================================================
# MAIN CONTENT
# ============================================================================

st.title("🗓️ Appointment Booking Assistant")
st.caption("Find times that work for you and your provider, then book them.")

if st.button("🔍 Suggest Times", key="generate_button", disabled=not (consumer_id and service_id)):
    with st.spinner("Finding available times..."):
        handle_generate(consumer_id, service_id, target_count, use_ai)

if st.session_state.last_message:
    st.markdown(st.session_state.last_message)

result = st.session_state.suggestions
if result is not None:
    service = profiles.get_service_descriptor(service_id)
    text, buttons = ResponseFormatter.format_suggestions(result, service)
    st.markdown(text)

    if buttons:
        columns = st.columns(min(len(buttons), 4))
        for info in buttons:
            with columns[info["index"] % len(columns)]:
                if st.button(f"Book {info['label']}", key=f"book_{info['index']}", use_container_width=True):
                    handle_confirm(consumer_id, service_id, info["index"])
                    st.rerun()

        if st.button("📦 Book All", key="auto_book_button"):
            handle_auto_book(consumer_id, service_id)
            st.rerun()

st.markdown("---")
if consumer_id:
    upcoming = booking_service.upcoming_for_consumer(consumer_id, now=current_time())
    st.markdown(ResponseFormatter.format_commitments(upcoming, service_names()))
    for commitment in upcoming:
        if st.button(f"Cancel {commitment.date.isoformat()} {commitment.start_time}", key=f"cancel_{commitment.commitment_id}"):
            handle_cancel(commitment.commitment_id)
            st.rerun()
