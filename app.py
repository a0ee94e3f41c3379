# =============================================================================
# Field Sales Dashboard - Store Manager (Streamlit App)
# =============================================================================
# PURPOSE:
#   Streamlit application for the field-sales team to register and maintain
#   stores. Users:
#     1) Browse registered stores (list + overview map)
#     2) Add a store (details, map location / GPS, photo, initial stock)
#     3) Edit a store (details, location, replace photo)
#     4) Review product returns across the sales force
#
# IMPORTANT NOTES:
#   - Session state drives navigation (st.session_state.page).
#   - Each add/edit visit owns one StoreFormController; leaving the page
#     closes it so late results never land on another store.
#   - The API token is kept in session state and sent with every request.
# =============================================================================

import streamlit as st
from streamlit_scroll_to_top import scroll_to_here

# -----------------------------------------------------------------------------
# Local modules:
#   init_session_state(): Initializes all required Streamlit session state keys
#   go_to(): page switch (closes the open store form session)
#   store_list_page(): store listing + overview map
#   add_store_page() / edit_store_page(): store form flows
#   returns_page(): return management view
# -----------------------------------------------------------------------------
from init_session import init_session_state
from steps.navigation import PAGES, go_to
from steps.returns import returns_page
from steps.store_form import add_store_page, edit_store_page
from steps.store_list import store_list_page


# -----------------------------------------------------------------------------
# Streamlit page configuration
# -----------------------------------------------------------------------------
st.set_page_config(page_title="Field Sales Dashboard - Stores", page_icon="🏪", layout="centered")


# -----------------------------------------------------------------------------
# Initialize Session State:
#   - Ensures all expected keys exist (prevents KeyErrors).
#   - Should be called early before reading or writing session values.
# -----------------------------------------------------------------------------
init_session_state()

# Deep link: ?store_id=<id> opens the edit page for that store
if st.query_params.get("store_id") and st.session_state.get("edit_store_id") is None:
    go_to("edit_store", st.query_params.get("store_id"))
    st.query_params.clear()

# --- Handle scroll action ---
# Page switches set scroll_to_top=True; scroll once, then reset the flag.
if st.session_state.scroll_to_top:
    scroll_to_here(0, key="top")  # 0 = instant scroll
    st.session_state.scroll_to_top = False


# -----------------------------------------------------------------------------
# Sidebar: navigation + session token
# -----------------------------------------------------------------------------
with st.sidebar:
    st.markdown("## 🏪 Field Sales")
    for page in ("stores", "add_store", "returns"):
        st.button(
            PAGES[page],
            on_click=go_to,
            args=(page,),
            use_container_width=True,
            type="primary" if st.session_state.page == page else "secondary",
            key=f"nav_{page}",
        )

    st.write("")
    st.session_state["api_token"] = st.text_input(
        "API token",
        value=st.session_state.get("api_token") or "",
        type="password",
        help="Bearer token of your dashboard account.",
    ) or None


# -----------------------------------------------------------------------------
# Page content
# -----------------------------------------------------------------------------
page = st.session_state.page

if page == "stores":
    store_list_page()

elif page == "add_store":
    add_store_page()

elif page == "edit_store":
    edit_store_page(st.session_state.get("edit_store_id"))

elif page == "returns":
    returns_page()

else:
    go_to("stores")
    st.rerun()
