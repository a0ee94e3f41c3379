import mimetypes

from util.form_state import UploadedImage

# =============================================================================
# FORMATTERS (DISPLAY / INPUT NORMALIZATION)
# =============================================================================
# These helpers sanitize or format values coming from:
#   - Backend records (strings, ints, None)
#   - User inputs (Streamlit widgets)
# =============================================================================
def fmt_string(value):
    # Normalizes string display values:
    # - None => ""
    # - "none"/"" => ""
    # - otherwise stripped string
    if value is None:
        return ""
    if isinstance(value, str):
        cleaned = value.strip()
        if cleaned == "" or cleaned.lower() == "none":
            return ""
        return cleaned
    return value


def fmt_int(val):
    """Return an integer formatted with commas, or return the original value."""
    # Reject bool because bool is subclass of int.
    if isinstance(val, int) and not isinstance(val, bool):
        return f"{val:,}"
    return val


def to_uploaded_image(file):
    """
    Convert a Streamlit UploadedFile (or None) into an UploadedImage.

    The bytes are read once here so the draft holds plain data and can be
    sent again after a failed submit.
    """
    if file is None:
        return None
    mime_type = getattr(file, "type", None) or mimetypes.guess_type(file.name)[0]
    return UploadedImage(
        filename=file.name,
        content=file.getvalue(),
        mime_type=mime_type or "application/octet-stream",
    )


# =============================================================================
# WIDGET KEY MANAGEMENT (PREVENTS SESSION BLEED)
# =============================================================================
# Streamlit retains widget values by key. Every create/edit session gets its
# own token, and widget keys include it so a new session starts with clean
# widgets instead of the values typed into the previous store.
# =============================================================================
def widget_key(name: str, token: str, mode: str) -> str:
    """
    Build a per-mode, per-session widget key.

    Result format:
      - Add Store : create_widget_key_<name>_<token>
      - Edit Store: update_widget_key_<name>_<token>
    """
    return f"{mode}_widget_key_{name}_{token}"
