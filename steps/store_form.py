"""
===============================================================================
STORE FORM (STREAMLIT) — ADD STORE / EDIT STORE PAGES
===============================================================================

Purpose:
    Renders the store form for both flows:
      - Add Store : empty draft at the fallback location, initial stock inputs
      - Edit Store: draft loaded from the backend, photo preview from server

    Sections:
      1) Store name + phone number
      2) Address
      3) Location (map picker, "Use current location", manual coordinates)
      4) Store photo (with preview)
      5) Initial stock (Add Store only)
      + Save / Cancel

Key behaviors:
    - All state lives in one StoreFormController kept in
      st.session_state['store_form']. Widgets only forward changes to it.
    - Widget keys carry the session token, so opening another store (or
      adding a new one) starts from fresh widgets.
    - Edit fetch failure is a blocking error (st.stop()); there is nothing to
      edit without the record.
    - Inputs and the save button are disabled while saving.
    - After a successful update the success notice stays up for the
      configured delay before returning to the store list.

===============================================================================
"""

import time

import streamlit as st

from api.store_api import StoreApiError
from init_session import get_api_client, get_submitter
from steps.navigation import follow_redirect, go_to, show_notice
from util.coord_util import Coordinate
from util.form_state import CREATE, LOADING, UPDATE, StoreFormController
from util.geolocation_util import GeolocationProvider
from util.input_util import to_uploaded_image, widget_key
from util.map_util import MapConfig, StoreMapBinding
from util.read_only_util import ro
from util.submission import run_submission


IMAGE_TYPES = ["png", "jpg", "jpeg", "webp"]


# =============================================================================
# SESSION HELPERS
# =============================================================================
def get_store_form(mode: str, store_id=None) -> StoreFormController:
    """Return the open controller for (mode, store_id), starting a new one if needed."""
    ctrl = st.session_state.get("store_form")
    if ctrl is not None and not ctrl.closed and ctrl.mode == mode and ctrl.store_id == store_id:
        return ctrl

    if ctrl is not None:
        ctrl.close()

    lat, lng = st.session_state.get("default_location")
    ctrl = StoreFormController(
        mode,
        store_id=store_id,
        fallback=Coordinate(lat, lng),
        zoom=st.session_state.get("map_zoom", 13),
    )
    st.session_state["store_form"] = ctrl
    return ctrl


def _sync_field(ctrl: StoreFormController, field: str, key: str):
    # Widget on_change callback: forward the new value to the controller
    ctrl.on_field_change(field, st.session_state[key])


def _sync_image(ctrl: StoreFormController, key: str):
    ctrl.on_field_change("image", to_uploaded_image(st.session_state[key]))


def _show_notice(ctrl: StoreFormController):
    show_notice(ctrl.take_notice())


def _field_error(ctrl: StoreFormController, field: str):
    if ctrl.errors.get(field):
        st.caption(f":red[{ctrl.errors[field]}]")


# =============================================================================
# FORM SECTIONS
# =============================================================================
def _text_input(ctrl, field, label, textarea=False):
    key = widget_key(field, ctrl.token, ctrl.mode)
    st.session_state.setdefault(key, getattr(ctrl.draft, field))
    widget = st.text_area if textarea else st.text_input
    widget(
        label,
        key=key,
        disabled=not ctrl.is_editable,
        on_change=_sync_field,
        args=(ctrl, field, key),
    )
    _field_error(ctrl, field)


def _stock_input(ctrl, field, label):
    key = widget_key(field, ctrl.token, ctrl.mode)
    st.session_state.setdefault(key, int(getattr(ctrl.draft, field) or 0))
    st.number_input(
        label,
        key=key,
        min_value=0,
        step=1,
        disabled=not ctrl.is_editable,
        on_change=_sync_field,
        args=(ctrl, field, key),
    )
    _field_error(ctrl, field)


def _location_section(ctrl: StoreFormController):
    st.markdown("<h5>3. STORE LOCATION</h5>", unsafe_allow_html=True)
    st.write(
        "Click on the map to place the store marker, or press **Use current location** "
        "to take the position from this device's GPS."
    )

    # ---- Map picker ----
    binding = StoreMapBinding(
        MapConfig(zoom=ctrl.view.zoom),
        st.session_state,
        key=f"store_map_{ctrl.token}",
    )
    clicked = binding.render(ctrl.view)
    if clicked is not None and ctrl.map_clicked(clicked):
        st.rerun()

    ro("Coordinates", ctrl.draft.loc, mono=True)
    _field_error(ctrl, "loc")

    # ---- Device location ----
    provider = GeolocationProvider(st.session_state, prefix=f"geo_{ctrl.token}")
    if st.button(
        "📍 Use current location",
        use_container_width=True,
        disabled=not ctrl.is_editable or provider.in_flight,
        key=f"geo_button_{ctrl.token}",
    ):
        provider.request_current_position()

    if provider.in_flight:
        with st.spinner("Requesting your location from the browser..."):
            result = provider.poll()
        if result.is_terminal:
            ctrl.apply_geolocation(result, token=ctrl.token)
            st.rerun()

    # ---- Manual entry ----
    with st.expander("Enter coordinates manually"):
        key = widget_key("loc", ctrl.token, ctrl.mode)
        if "loc" not in ctrl.errors:
            # Keep the text box in step with the marker
            st.session_state[key] = ctrl.draft.loc
        st.text_input(
            "Coordinates (lat, lng)",
            key=key,
            disabled=not ctrl.is_editable,
            on_change=_sync_field,
            args=(ctrl, "loc", key),
        )


def _photo_section(ctrl: StoreFormController):
    st.markdown("<h5>4. STORE PHOTO</h5>", unsafe_allow_html=True)
    if ctrl.preview:
        st.image(ctrl.preview, width=240)

    key = widget_key("image", ctrl.token, ctrl.mode)
    st.file_uploader(
        "Store photo",
        type=IMAGE_TYPES,
        key=key,
        disabled=not ctrl.is_editable,
        on_change=_sync_image,
        args=(ctrl, key),
    )
    if ctrl.mode == UPDATE:
        st.caption("Leave empty to keep the current photo.")


def _stock_section(ctrl: StoreFormController):
    st.markdown("<h5>5. INITIAL STOCK</h5>", unsafe_allow_html=True)
    col1, col2, col3 = st.columns(3)
    with col1:
        _stock_input(ctrl, "stock_30ml", "Stock 30ml")
    with col2:
        _stock_input(ctrl, "stock_roll_on", "Stock Roll On")
    with col3:
        _stock_input(ctrl, "stock_20ml", "Stock 20ml")


# =============================================================================
# SAVE
# =============================================================================
def _save(ctrl: StoreFormController):
    submitter = get_submitter()
    with st.spinner("Saving store..."):
        redirect = run_submission(ctrl, submitter)

    if redirect is None:
        # Errors / notice are on the controller; rerun to show them
        st.rerun()

    notice = ctrl.take_notice()
    if redirect.delay > 0:
        show_notice(notice)
        time.sleep(redirect.delay)

    follow_redirect(redirect, notice)
    st.rerun()


def render_store_form(ctrl: StoreFormController):
    """Render all sections for an open controller."""
    _show_notice(ctrl)

    st.markdown("<h5>1. STORE DETAILS</h5>", unsafe_allow_html=True)
    col1, col2 = st.columns(2)
    with col1:
        _text_input(ctrl, "name", "Store name")
    with col2:
        _text_input(ctrl, "num", "Phone number")

    st.markdown("<h5>2. ADDRESS</h5>", unsafe_allow_html=True)
    _text_input(ctrl, "address", "Address", textarea=True)

    st.write("")
    _location_section(ctrl)

    st.write("")
    _photo_section(ctrl)

    if ctrl.mode == CREATE:
        st.write("")
        _stock_section(ctrl)

    st.write("")
    col_save, col_cancel, _ = st.columns([2, 1.5, 4])
    with col_save:
        label = "Saving..." if ctrl.is_submitting else (
            "Save store" if ctrl.mode == CREATE else "Save changes"
        )
        if st.button(label, type="primary", disabled=not ctrl.is_editable, key=f"save_{ctrl.token}"):
            _save(ctrl)
    with col_cancel:
        st.button("Cancel", on_click=go_to, args=("stores",), key=f"cancel_{ctrl.token}")


# =============================================================================
# PAGES
# =============================================================================
def add_store_page():
    st.markdown("### ADD NEW STORE 🏪")
    st.write("Fill in the store details, set its location, and record the initial stock.")
    ctrl = get_store_form(CREATE)
    render_store_form(ctrl)


def edit_store_page(store_id):
    st.markdown("### EDIT STORE ✏️")

    if store_id is None:
        st.error("No store selected.")
        st.button("⬅️ Back to stores", on_click=go_to, args=("stores",))
        st.stop()

    ctrl = get_store_form(UPDATE, store_id)

    # ---- Hydrate from the backend (first visit of this session only) ----
    if ctrl.phase == LOADING and not ctrl.fetch_failed:
        token = ctrl.token
        with st.spinner("Loading store data..."):
            try:
                record = get_api_client().get_store(store_id)
            except StoreApiError as e:
                ctrl.hydrate_failed(f"Failed to load store data: {e.message}", token=token)
            else:
                ctrl.hydrate(record, token=token, image_base_url=st.session_state.get("image_url"))

    if ctrl.fetch_failed:
        _show_notice(ctrl)
        st.button("⬅️ Back to stores", on_click=go_to, args=("stores",))
        st.stop()

    render_store_form(ctrl)
