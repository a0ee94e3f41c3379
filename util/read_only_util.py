import html

import streamlit as st


# =============================================================================
# READ-ONLY DISPLAY LAYER (CSS)
# =============================================================================
# Boxed, non-editable values used for:
#   - the store coordinate under the location picker ("mono")
#   - the summary cards on the returns page ("stat")
# =============================================================================
_STORE_RO_CSS = """
<style>
.store-ro { margin: 0 0 0.75rem 0; }
.store-ro-label {
  font-size: 0.8rem;
  text-transform: uppercase;
  letter-spacing: 0.03em;
  color: #64748b;
  margin-bottom: 0.2rem;
}
.store-ro-value {
  border-left: 3px solid #0ea5e9;
  background: #f1f5f9;
  border-radius: 0.25rem;
  padding: 0.45rem 0.7rem;
  color: #0f172a;
}
.store-ro-value.mono { font-family: ui-monospace, SFMono-Regular, Menlo, monospace; }
.store-ro-value.stat { font-size: 1.8rem; font-weight: 700; text-align: center; }
.store-ro-value .empty { color: #94a3b8; font-style: italic; }
</style>
"""


def _value_html(value) -> str:
    if value is None or value == "":
        return '<span class="empty">not set</span>'
    return html.escape(str(value))


# =============================================================================
# READ-ONLY FIELD RENDERERS
# =============================================================================
def ro(label, value, mono=False, big=False):
    """Render one labelled, non-editable value."""
    st.html(_STORE_RO_CSS)

    css = ["store-ro-value"]
    if mono:
        css.append("mono")
    if big:
        css.append("stat")

    st.markdown(
        f'<div class="store-ro">'
        f'<div class="store-ro-label">{html.escape(label)}</div>'
        f'<div class="{" ".join(css)}">{_value_html(value)}</div>'
        f'</div>',
        unsafe_allow_html=True,
    )


def ro_cols(specs):
    # specs = [(col, label, value, stat), ...]; stat values get the big card style
    for col, label, value, stat in specs:
        with col:
            ro(label, value, big=stat)
