"""Tests for the store form controller (draft, validation, session phases)."""

import pytest

from util.coord_util import Coordinate, DEFAULT_COORDINATE
from util.form_state import (
    CHECK_FORM_MESSAGE,
    CREATE,
    LOADING,
    NO_CHANGE,
    READY,
    SUBMITTING,
    SUCCEEDED,
    UPDATE,
    StoreFormController,
    UploadedImage,
    as_count,
)
from util.geolocation_util import DENIED, FIXED, PENDING, UNAVAILABLE, GeoResult
from util.submission import Success, TransportFailure, ValidationRejected


RECORD = {
    "id": 7,
    "name": "Toko Sinar",
    "address": "Jl. Merdeka 1",
    "num": "081234567890",
    "loc": "(-6.9, 107.6)",
    "image": "uploads/toko.jpg",
}


def filled_create_form():
    form = StoreFormController(CREATE)
    form.on_field_change("name", "Toko Sinar")
    form.on_field_change("address", "Jl. Merdeka 1")
    form.on_field_change("num", "0812")
    return form


def hydrated_edit_form():
    form = StoreFormController(UPDATE, store_id=7)
    form.hydrate(RECORD, token=form.token, image_base_url="http://img.example")
    return form


class TestInitialState:
    def test_create_starts_ready_at_fallback(self):
        form = StoreFormController(CREATE)
        assert form.phase == READY
        assert form.draft.coordinate == DEFAULT_COORDINATE
        assert form.view.center == form.view.marker == DEFAULT_COORDINATE
        assert form.draft.image is None
        assert form.draft.stock_roll_on == 0

    def test_update_starts_loading_with_no_change_image(self):
        form = StoreFormController(UPDATE, store_id=7)
        assert form.phase == LOADING
        assert form.draft.image is NO_CHANGE
        assert not form.is_editable

    def test_unknown_mode_raises(self):
        with pytest.raises(ValueError):
            StoreFormController("delete")

    def test_each_session_gets_its_own_token(self):
        assert StoreFormController(CREATE).token != StoreFormController(CREATE).token


class TestFieldChanges:
    def test_change_writes_field_and_clears_its_error(self):
        form = StoreFormController(CREATE)
        form.errors = {"name": "Store name is required", "address": "Address is required"}

        assert form.on_field_change("name", "Toko") is True

        assert form.draft.name == "Toko"
        assert "name" not in form.errors
        assert form.errors["address"] == "Address is required"

    def test_unknown_field_raises(self):
        with pytest.raises(KeyError):
            StoreFormController(CREATE).on_field_change("owner", "x")

    def test_stock_is_create_only(self):
        form = hydrated_edit_form()
        with pytest.raises(ValueError):
            form.on_field_change("stock_20ml", 3)

    def test_loc_text_moves_marker_and_center(self):
        form = StoreFormController(CREATE)

        assert form.on_field_change("loc", "(1.5, 2.5)") is True

        assert form.draft.coordinate == (1.5, 2.5)
        assert form.view.marker == (1.5, 2.5)
        assert form.view.center == (1.5, 2.5)
        assert form.draft.loc == "(1.5, 2.5)"

    def test_bad_loc_text_records_error_and_keeps_coordinate(self):
        form = StoreFormController(CREATE)

        assert form.on_field_change("loc", "garbage") is False

        assert form.draft.coordinate == DEFAULT_COORDINATE
        assert "loc" in form.errors

    def test_changes_ignored_while_submitting(self):
        form = filled_create_form()
        form.begin_submit()

        assert form.on_field_change("name", "Other") is False
        assert form.draft.name == "Toko Sinar"


class TestImage:
    def test_new_image_sets_preview(self):
        form = StoreFormController(CREATE)
        image = UploadedImage("a.png", b"\x89PNG", "image/png")

        form.on_field_change("image", image)

        assert form.draft.image == image
        assert form.preview.startswith("data:image/png;base64,")

    def test_clearing_edit_image_restores_stored_photo(self):
        form = hydrated_edit_form()
        form.on_field_change("image", UploadedImage("b.jpg", b"jpg", "image/jpeg"))

        form.on_field_change("image", None)

        assert form.draft.image is NO_CHANGE
        assert form.preview == "http://img.example/uploads/toko.jpg"


class TestLocation:
    def test_map_click_moves_marker_not_center(self):
        form = StoreFormController(CREATE)

        form.map_clicked(Coordinate(-7.0, 110.0))

        assert form.draft.coordinate == (-7.0, 110.0)
        assert form.view.marker == (-7.0, 110.0)
        assert form.view.center == DEFAULT_COORDINATE

    def test_latest_click_wins(self):
        form = StoreFormController(CREATE)
        form.map_clicked(Coordinate(1.0, 1.0))
        form.map_clicked(Coordinate(2.0, 2.0))
        assert form.draft.loc == "(2, 2)"

    def test_gps_fix_recenters(self):
        form = StoreFormController(CREATE)

        applied = form.apply_geolocation(GeoResult(FIXED, Coordinate(-6.175, 106.827)))

        assert applied is True
        assert form.view.center == form.view.marker == form.draft.coordinate == (-6.175, 106.827)

    @pytest.mark.parametrize("status", [DENIED, UNAVAILABLE])
    def test_gps_failure_notifies_and_keeps_draft(self, status):
        form = StoreFormController(CREATE)
        before = form.draft

        form.apply_geolocation(GeoResult(status, message="no fix"))

        assert form.draft == before
        assert form.notice.kind == "error"
        assert form.notice.message == "no fix"
        assert form.notice.auto_close is False

    def test_pending_result_is_ignored(self):
        form = StoreFormController(CREATE)
        assert form.apply_geolocation(GeoResult(PENDING)) is False
        assert form.notice is None

    def test_gps_fix_for_closed_session_is_dropped(self):
        form = StoreFormController(CREATE)
        token = form.token
        form.close()

        assert form.apply_geolocation(GeoResult(FIXED, Coordinate(1.0, 1.0)), token=token) is False
        assert form.draft.coordinate == DEFAULT_COORDINATE


class TestValidate:
    def test_empty_name_is_the_only_error(self):
        form = StoreFormController(CREATE)
        form.on_field_change("address", "Jl. Merdeka 1")
        form.on_field_change("num", "0812")

        assert form.validate() == {"name": "Store name is required"}

    def test_reports_all_errors_at_once(self):
        errors = StoreFormController(CREATE).validate()
        assert set(errors) == {"name", "address", "num"}

    def test_whitespace_only_is_empty(self):
        form = filled_create_form()
        form.on_field_change("address", "   ")
        assert set(form.validate()) == {"address"}

    def test_validate_does_not_mutate(self):
        form = StoreFormController(CREATE)
        form.validate()
        assert form.errors == {}
        assert form.phase == READY

    def test_create_accepts_any_non_empty_phone(self):
        assert filled_create_form().validate() == {}

    def test_short_phone_is_the_only_error(self):
        form = hydrated_edit_form()
        form.on_field_change("num", "12345")
        assert form.validate() == {"num": "Phone number is invalid (10-13 digits)"}

    def test_thirteen_digit_phone_is_valid(self):
        form = hydrated_edit_form()
        form.on_field_change("num", "0812345678901")
        assert form.validate() == {}

    @pytest.mark.parametrize("num,ok", [
        ("081234567890", True),
        ("0812345678", True),
        ("0812345678901", True),
        ("081234567", False),
        ("08123456789012", False),
        ("0812-3456-789", False),
        ("0812345678\n", False),
        (" 0812345678", False),
    ])
    def test_update_phone_pattern(self, num, ok):
        form = hydrated_edit_form()
        form.on_field_change("num", num)
        assert ("num" not in form.validate()) is ok

    @pytest.mark.parametrize("value", [-1, 1.5, "abc", None])
    def test_create_stock_must_be_whole_and_non_negative(self, value):
        form = filled_create_form()
        form.on_field_change("stock_30ml", value)
        assert "stock_30ml" in form.validate()


class TestHydrate:
    def test_fills_draft_and_view(self):
        form = hydrated_edit_form()

        assert form.phase == READY
        assert form.draft.name == "Toko Sinar"
        assert form.draft.num == "081234567890"
        assert form.draft.coordinate == (-6.9, 107.6)
        assert form.view.center == (-6.9, 107.6)
        assert form.draft.image is NO_CHANGE
        assert form.preview == "http://img.example/uploads/toko.jpg"

    def test_unparseable_loc_keeps_fallback(self):
        form = StoreFormController(UPDATE, store_id=7)
        form.hydrate(dict(RECORD, loc="somewhere"))
        assert form.draft.coordinate == DEFAULT_COORDINATE
        assert form.phase == READY

    def test_stale_record_is_dropped(self):
        form = StoreFormController(UPDATE, store_id=7)
        form.close()

        assert form.hydrate(RECORD, token=form.token) is False
        assert form.draft.name == ""

    def test_fetch_failure_blocks_editing(self):
        form = StoreFormController(UPDATE, store_id=7)

        form.hydrate_failed("Failed to load store data", token=form.token)

        assert form.fetch_failed
        assert not form.is_editable
        assert form.notice.blocking
        assert form.take_notice() is form.take_notice()
        assert form.begin_submit() is False


class TestSubmitLifecycle:
    def test_invalid_draft_stays_ready_with_errors(self):
        form = StoreFormController(CREATE)

        assert form.begin_submit() is False

        assert form.phase == READY
        assert set(form.errors) == {"name", "address", "num"}
        assert form.notice.message == CHECK_FORM_MESSAGE

    def test_valid_draft_enters_submitting(self):
        form = filled_create_form()
        assert form.begin_submit() is True
        assert form.phase == SUBMITTING
        assert form.is_submitting

    def test_second_submit_is_refused(self):
        form = filled_create_form()
        form.begin_submit()
        assert form.begin_submit() is False
        assert form.phase == SUBMITTING

    def test_success(self):
        form = filled_create_form()
        form.begin_submit()

        form.finish_submit(Success({"id": 1}), token=form.token, success_message="Saved")

        assert form.phase == SUCCEEDED
        assert form.notice.kind == "success"
        assert form.notice.auto_close is True

    def test_failure_keeps_draft_and_returns_to_ready(self):
        form = filled_create_form()
        form.begin_submit()
        before = form.draft

        form.finish_submit(TransportFailure("Error: boom"), token=form.token)

        assert form.draft == before
        assert form.phase == READY
        assert form.is_editable
        assert form.notice.message == "Error: boom"

    def test_backend_field_errors_are_shown(self):
        form = filled_create_form()
        form.begin_submit()

        form.finish_submit(ValidationRejected("Error: invalid", {"num": "taken"}), token=form.token)

        assert form.errors == {"num": "taken"}

    def test_outcome_for_old_session_is_dropped(self):
        form = filled_create_form()
        form.begin_submit()
        token = form.token
        form.close()

        assert form.finish_submit(Success(), token=token) is False
        assert form.phase == SUBMITTING

    def test_non_blocking_notice_is_taken_once(self):
        form = StoreFormController(CREATE)
        form.begin_submit()
        assert form.take_notice().message == CHECK_FORM_MESSAGE
        assert form.take_notice() is None


@pytest.mark.parametrize("value,expected", [
    (0, 0),
    (12, 12),
    (3.0, 3),
    ("5", 5),
    (" 7 ", 7),
    (-1, None),
    (2.5, None),
    ("x", None),
    (True, None),
    (None, None),
])
def test_as_count(value, expected):
    assert as_count(value) == expected
