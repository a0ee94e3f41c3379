"""Tests for the save pipeline: outcomes, redirects and the submit handler."""

from unittest.mock import MagicMock

import pytest

from api.store_api import StoreApiError
from util.form_state import CREATE, READY, SUCCEEDED, UPDATE, StoreFormController
from util.submission import (
    CREATE_SUCCESS_MESSAGE,
    STORE_LIST_PAGE,
    UPDATE_SUCCESS_MESSAGE,
    StoreSubmitter,
    Success,
    TransportFailure,
    ValidationRejected,
    run_submission,
)


RECORD = {"id": 7, "name": "Toko Sinar", "address": "Jl. Merdeka 1", "num": "081234567890", "loc": "(1, 2)"}


def create_form():
    form = StoreFormController(CREATE)
    form.on_field_change("name", "Toko Sinar")
    form.on_field_change("address", "Jl. Merdeka 1")
    form.on_field_change("num", "0812")
    return form


def edit_form():
    form = StoreFormController(UPDATE, store_id=7)
    form.hydrate(RECORD, token=form.token)
    return form


class TestStoreSubmitter:
    def test_create_success(self):
        client = MagicMock()
        client.create_store.return_value = {"id": 1}

        outcome = StoreSubmitter(client).submit(create_form().draft, CREATE)

        assert outcome == Success({"id": 1})
        data, files = client.create_store.call_args.args
        assert data["name"] == "Toko Sinar"
        assert files == {}

    def test_update_calls_put_with_id(self):
        client = MagicMock()
        StoreSubmitter(client).submit(edit_form().draft, UPDATE, 7)
        assert client.update_store.call_args.args[0] == 7

    def test_update_requires_id(self):
        with pytest.raises(ValueError):
            StoreSubmitter(MagicMock()).submit(edit_form().draft, UPDATE)

    def test_validation_rejection(self):
        client = MagicMock()
        client.create_store.side_effect = StoreApiError(422, "Invalid data", {"num": "taken"})

        outcome = StoreSubmitter(client).submit(create_form().draft, CREATE)

        assert outcome == ValidationRejected("Error: Invalid data", {"num": "taken"})

    @pytest.mark.parametrize("status", [None, 401, 500])
    def test_other_failures_are_transport(self, status):
        client = MagicMock()
        client.create_store.side_effect = StoreApiError(status, "boom")

        outcome = StoreSubmitter(client).submit(create_form().draft, CREATE)

        assert outcome == TransportFailure("Error: boom")

    def test_create_redirects_immediately(self):
        redirect = StoreSubmitter(MagicMock()).after_success(CREATE)
        assert redirect.target == STORE_LIST_PAGE
        assert redirect.delay == 0
        assert redirect.notice == CREATE_SUCCESS_MESSAGE

    def test_update_redirects_after_delay(self):
        redirect = StoreSubmitter(MagicMock(), redirect_delay=5).after_success(UPDATE)
        assert redirect.delay == 5.0
        assert redirect.notice == UPDATE_SUCCESS_MESSAGE

    def test_default_update_delay_is_three_seconds(self):
        assert StoreSubmitter(MagicMock()).after_success(UPDATE).delay == 3.0


class TestRunSubmission:
    def test_invalid_draft_never_reaches_network(self):
        form = StoreFormController(CREATE)
        form.on_field_change("address", "Jl. Merdeka 1")
        form.on_field_change("num", "0812")
        client = MagicMock()

        assert run_submission(form, StoreSubmitter(client)) is None

        client.create_store.assert_not_called()
        assert form.errors == {"name": "Store name is required"}

    def test_create_success_redirects(self):
        form = create_form()
        client = MagicMock()
        client.create_store.return_value = {"id": 1}

        redirect = run_submission(form, StoreSubmitter(client))

        assert redirect.target == STORE_LIST_PAGE
        assert form.phase == SUCCEEDED
        assert form.notice.message == CREATE_SUCCESS_MESSAGE

    def test_transport_failure_keeps_draft_editable(self):
        form = create_form()
        before = form.draft
        client = MagicMock()
        client.create_store.side_effect = StoreApiError(None, "Failed to connect to the server: refused")

        assert run_submission(form, StoreSubmitter(client)) is None

        assert form.draft == before
        assert form.phase == READY
        assert form.is_editable
        assert form.notice.kind == "error"

    def test_retry_after_failure_sends_same_draft(self):
        form = create_form()
        client = MagicMock()
        client.create_store.side_effect = [StoreApiError(500, "down"), {"id": 1}]
        submitter = StoreSubmitter(client)

        run_submission(form, submitter)
        redirect = run_submission(form, submitter)

        assert redirect is not None
        first, second = client.create_store.call_args_list
        assert first.args == second.args

    def test_backend_field_errors_reach_form(self):
        form = edit_form()
        client = MagicMock()
        client.update_store.side_effect = StoreApiError(400, "Invalid", {"num": "Phone already used"})

        run_submission(form, StoreSubmitter(client))

        assert form.errors == {"num": "Phone already used"}
        assert form.notice.message == "Error: Invalid"

    def test_submit_while_submitting_is_refused(self):
        form = create_form()
        form.begin_submit()
        client = MagicMock()

        assert run_submission(form, StoreSubmitter(client)) is None
        client.create_store.assert_not_called()

    def test_outcome_for_closed_session_does_not_redirect(self):
        form = create_form()
        client = MagicMock()

        def close_then_save(data, files):
            form.close()
            return {"id": 1}

        client.create_store.side_effect = close_then_save

        assert run_submission(form, StoreSubmitter(client)) is None
        assert form.phase != SUCCEEDED
