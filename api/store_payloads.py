"""
===============================================================================
PAYLOAD BUILDERS — MULTIPART STORE CREATE / UPDATE BODIES
===============================================================================

Purpose:
    Turns a StoreDraft into the (data, files) pair that requests sends as a
    multipart/form-data body.

Wire fields:
    name, address, num        text
    loc                       "(lat, lng)" text (see coord_util)
    stock_roll_on,
    stock_20ml, stock_30ml    integers, create only
    image                     binary file part

Key behaviors:
    - Update: the image key is left out entirely when no new photo was picked,
      so the backend keeps the stored photo.
    - Create without a photo: "image" is sent as an empty text field.
    - Text values are sent as typed; the backend trims.

===============================================================================
"""

from util.form_state import CREATE, STOCK_FIELDS, TEXT_FIELDS, UPDATE, UploadedImage, as_count


def build_store_payload(draft, mode: str):
    """
    Build the multipart body for a create or update call.

    Returns:
        (data, files): dict of text fields, dict of file parts
    """
    if mode not in (CREATE, UPDATE):
        raise ValueError(f"Unknown form mode: {mode}")

    data = {field: getattr(draft, field) for field in TEXT_FIELDS}
    data["loc"] = draft.loc
    files = {}

    if mode == CREATE:
        for field in STOCK_FIELDS:
            count = as_count(getattr(draft, field))
            data[field] = str(count if count is not None else 0)

    if isinstance(draft.image, UploadedImage):
        files["image"] = (draft.image.filename, draft.image.content, draft.image.mime_type)
    elif mode == CREATE:
        data["image"] = ""

    return data, files
