"""
Page routing helpers shared by the store pages.

Routing lives in st.session_state:
    'page'          : "stores" | "add_store" | "edit_store" | "returns"
    'edit_store_id' : id of the store open on the edit page
    'store_form'    : the StoreFormController of the open create/edit session
    'flash_notice'  : Notice to show once on the next page rendered

The helpers take an optional `state` mapping; the app passes nothing and
gets st.session_state.
"""

import streamlit as st

from util.form_state import Notice


PAGES = {
    "stores": "Stores",
    "add_store": "Add Store",
    "edit_store": "Edit Store",
    "returns": "Returns",
}


def _state(state):
    return st.session_state if state is None else state


def close_store_form(state=None):
    """End the open create/edit session so late results are dropped."""
    state = _state(state)
    ctrl = state.get("store_form")
    if ctrl is not None:
        ctrl.close()
    state["store_form"] = None


def go_to(page: str, store_id=None, state=None):
    """Switch page (used as a button callback or before st.rerun())."""
    state = _state(state)
    if page not in PAGES:
        raise ValueError(f"Unknown page: {page}")
    if page != state.get("page") or store_id != state.get("edit_store_id"):
        close_store_form(state)
    state["page"] = page
    state["edit_store_id"] = store_id
    state["scroll_to_top"] = True


# =============================================================================
# NOTICES THAT SURVIVE A PAGE SWITCH
# =============================================================================
def flash(notice: Notice, state=None):
    _state(state)["flash_notice"] = notice


def take_flash(state=None):
    """Return the pending flash notice (once), or None."""
    return _state(state).pop("flash_notice", None)


def follow_redirect(redirect, notice=None, state=None):
    """
    Go to redirect.target after a successful save.

    An immediate redirect (delay 0) has had no chance to show its notice on
    the form page, so it is carried over to the target page.
    """
    if redirect.delay <= 0 and notice is not None:
        flash(notice, state)
    go_to(redirect.target, state=state)


def show_notice(notice):
    """Render a Notice: auto-closing ones as a toast, the rest inline."""
    if notice is None:
        return
    if notice.auto_close:
        st.toast(notice.message, icon="✅" if notice.kind == "success" else "⚠️")
    elif notice.kind == "success":
        st.success(notice.message)
    elif notice.kind == "warning":
        st.warning(notice.message)
    else:
        st.error(notice.message)
