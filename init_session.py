"""
===============================================================================
SESSION INITIALIZATION (STREAMLIT) — DEFAULTS, SETTINGS, API CLIENT
===============================================================================

Purpose:
    Defines and initializes Streamlit session_state keys used across the app.
    This module centralizes:
      - Page routing defaults
      - Backend settings (API URL, image URL, bearer token)
      - Store form settings (fallback location, map zoom, redirect delay)
      - Factories for the API client and the store submitter

Key behaviors:
    - Idempotent initialization:
        * Uses setdefault() so reruns never overwrite active user state.
    - Settings sourcing:
        * If a .env file exists, loads it via python-dotenv and reads env vars
        * Otherwise tries Streamlit secrets
        * Built-in defaults apply for anything still missing

Settings:
    STORE_API_URL          backend API root
    STORE_IMAGE_URL        root that stored image paths are relative to
    STORE_API_TOKEN        bearer token of the signed-in user
    STORE_REDIRECT_DELAY   seconds to show the "store updated" notice
    STORE_DEFAULT_LAT/LNG  fallback map location

===============================================================================
"""

import os

import streamlit as st

from api.store_api import StoreApiClient
from util.coord_util import DEFAULT_LAT, DEFAULT_LNG
from util.submission import DEFAULT_REDIRECT_DELAY, StoreSubmitter


# Looked up in the launch directory, where the existence check runs
ENV_FILE = ".env"

SETTING_DEFAULTS = {
    "STORE_API_URL": "http://localhost:5000/api",
    "STORE_IMAGE_URL": "http://localhost:5000",
    "STORE_API_TOKEN": None,
    "STORE_REDIRECT_DELAY": DEFAULT_REDIRECT_DELAY,
    "STORE_DEFAULT_LAT": DEFAULT_LAT,
    "STORE_DEFAULT_LNG": DEFAULT_LNG,
    "STORE_MAP_ZOOM": 13,
}


# =============================================================================
# SETTINGS LOOKUP
# =============================================================================
def _secret(name):
    # st.secrets raises when no secrets.toml exists at all
    try:
        return st.secrets.get(name)
    except FileNotFoundError:
        return None


def read_setting(name: str):
    """Resolve one setting: .env / environment, then st.secrets, then default."""
    if os.path.exists(ENV_FILE):
        from dotenv import load_dotenv
        load_dotenv(ENV_FILE)

    value = os.getenv(name)
    if value is None:
        value = _secret(name)
    if value is None:
        value = SETTING_DEFAULTS.get(name)
    return value


def _as_float(value, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


# =============================================================================
# ENTRYPOINT: SESSION STATE INITIALIZATION
# =============================================================================
def init_session_state():
    """Initialize all session state values."""

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------
    defaults = {
        "page": "stores",
        "edit_store_id": None,
        "scroll_to_top": False,
        "store_form": None,
        "flash_notice": None,
    }
    for key, value in defaults.items():
        st.session_state.setdefault(key, value)

    # -------------------------------------------------------------------------
    # Backend settings
    # -------------------------------------------------------------------------
    st.session_state.setdefault("api_url", read_setting("STORE_API_URL"))
    st.session_state.setdefault("image_url", read_setting("STORE_IMAGE_URL"))
    st.session_state.setdefault("api_token", read_setting("STORE_API_TOKEN"))

    # -------------------------------------------------------------------------
    # Store form settings
    # -------------------------------------------------------------------------
    st.session_state.setdefault(
        "redirect_delay",
        _as_float(read_setting("STORE_REDIRECT_DELAY"), DEFAULT_REDIRECT_DELAY),
    )
    st.session_state.setdefault(
        "default_location",
        (
            _as_float(read_setting("STORE_DEFAULT_LAT"), DEFAULT_LAT),
            _as_float(read_setting("STORE_DEFAULT_LNG"), DEFAULT_LNG),
        ),
    )
    st.session_state.setdefault("map_zoom", int(_as_float(read_setting("STORE_MAP_ZOOM"), 13)))


# =============================================================================
# FACTORIES
# =============================================================================
def get_api_client() -> StoreApiClient:
    return StoreApiClient(
        base_url=st.session_state["api_url"],
        token=st.session_state.get("api_token"),
    )


def get_submitter() -> StoreSubmitter:
    return StoreSubmitter(
        get_api_client(),
        redirect_delay=st.session_state.get("redirect_delay", DEFAULT_REDIRECT_DELAY),
    )
