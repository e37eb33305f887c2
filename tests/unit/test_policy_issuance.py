"""Unit tests for the new corporate policy flow control."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

import policy_issuance
from errors import PageClosed
from form_filler import FieldOutcome, FieldResult
from policy_issuance import NewCorporatePolicy
from quote_poller import PollResult, QuoteOutcome

CREDS = {"username": "agent", "password": "secret"}


def _page(closed: bool = False) -> MagicMock:
    page = MagicMock()
    page.is_closed = MagicMock(return_value=closed)
    page.url = "https://portal.example/createPolicy"
    return page


def _login(login_ok: bool = True, nav_ok: bool = True) -> MagicMock:
    login = MagicMock()
    login.login = AsyncMock(return_value=login_ok)
    login.open_policy_issuance = AsyncMock(return_value=nav_ok)
    return login


def _stub_steps(flow: NewCorporatePolicy, poll_result: PollResult) -> None:
    flow.start_new_policy = AsyncMock(return_value=True)
    flow.refresh_session_if_needed = AsyncMock(return_value=True)
    flow.fill_quote_sections = AsyncMock()
    flow.get_quotes_and_wait = AsyncMock(return_value=poll_result)
    flow.fill_proposal_sections = AsyncMock()
    flow.fill_payment_details_with_retry = AsyncMock(return_value=[])
    flow.click_proposal_review = AsyncMock(return_value=True)
    flow._screenshot = AsyncMock()


class TestRunFlow:
    """Tests for run_flow outcomes."""

    @pytest.mark.asyncio
    async def test_login_failure_aborts(self) -> None:
        flow = NewCorporatePolicy(_page())
        _stub_steps(flow, PollResult(QuoteOutcome.READY, 1))
        with patch("policy_issuance.PolicyLogin", return_value=_login(login_ok=False)):
            result = await flow.run_flow({}, CREDS)

        assert result["success"] is False
        assert result["message"] == "Login failed"
        flow.fill_quote_sections.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_navigation_failure_aborts(self) -> None:
        flow = NewCorporatePolicy(_page())
        _stub_steps(flow, PollResult(QuoteOutcome.READY, 1))
        with patch("policy_issuance.PolicyLogin", return_value=_login(nav_ok=False)):
            result = await flow.run_flow({}, CREDS)

        assert result["success"] is False
        flow.start_new_policy.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ready_and_purchased(self) -> None:
        flow = NewCorporatePolicy(_page())
        _stub_steps(flow, PollResult(QuoteOutcome.READY, 1200, purchase_clicked=True))
        with patch("policy_issuance.PolicyLogin", return_value=_login()), \
                patch("policy_issuance.ensure_vehicle_identifiers", return_value={"vin": "V", "engineNo": "E"}):
            result = await flow.run_flow({"vehicleDetails": {}}, CREDS)

        assert result["success"] is True
        assert result["quote_outcome"] == "ready"
        assert result["purchase_clicked"] is True
        assert result["page_url"] == "https://portal.example/createPolicy"
        sections_data = flow.fill_quote_sections.await_args.args[0]
        assert sections_data["vehicleDetails"] == {"vin": "V", "engineNo": "E"}

    @pytest.mark.asyncio
    async def test_timed_out_quotes_continue_best_effort(self) -> None:
        flow = NewCorporatePolicy(_page())
        _stub_steps(flow, PollResult(QuoteOutcome.TIMED_OUT, 180000, "Timed out waiting for quotes"))
        with patch("policy_issuance.PolicyLogin", return_value=_login()), \
                patch("policy_issuance.ensure_vehicle_identifiers", return_value={}):
            result = await flow.run_flow({}, CREDS)

        assert result["success"] is False
        assert result["quote_outcome"] == "timed_out"
        flow.fill_proposal_sections.assert_awaited_once()
        flow.click_proposal_review.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_quotes_click_failure_aborts(self) -> None:
        flow = NewCorporatePolicy(_page())
        _stub_steps(flow, PollResult(QuoteOutcome.READY, 1))
        flow.get_quotes_and_wait = AsyncMock(side_effect=Exception("Get Quotes button not found"))
        with patch("policy_issuance.PolicyLogin", return_value=_login()), \
                patch("policy_issuance.ensure_vehicle_identifiers", return_value={}):
            result = await flow.run_flow({}, CREDS)

        assert result["success"] is False
        assert result["message"].startswith("Error:")
        flow.fill_proposal_sections.assert_not_awaited()
        flow._screenshot.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_field_results_are_reported(self) -> None:
        flow = NewCorporatePolicy(_page())
        _stub_steps(flow, PollResult(QuoteOutcome.READY, 1, purchase_clicked=True))

        async def fill_sections(data):
            flow.field_results.append(FieldResult("Make", FieldOutcome.FAILED, "Option not found", None, "Vehicle"))

        flow.fill_quote_sections = AsyncMock(side_effect=fill_sections)
        with patch("policy_issuance.PolicyLogin", return_value=_login()), \
                patch("policy_issuance.ensure_vehicle_identifiers", return_value={}):
            result = await flow.run_flow({}, CREDS)

        assert result["success"] is True
        assert "1 field(s) failed" in result["message"]
        assert result["fields"][0]["outcome"] == "failed"


class TestPaymentRetry:
    """Tests for fill_payment_details_with_retry."""

    @pytest.mark.asyncio
    async def test_retries_until_filled(self) -> None:
        flow = NewCorporatePolicy(_page())
        flow._scroll_to_heading = AsyncMock()
        failed = [FieldResult("Payment Mode", FieldOutcome.FAILED)]
        filled = [FieldResult("Payment Mode", FieldOutcome.FILLED)]
        flow.filler.fill = AsyncMock(side_effect=[failed, failed, filled])

        with patch.object(policy_issuance, "WAIT_PAYMENT_RETRY", 0):
            results = await flow.fill_payment_details_with_retry({"paymentMode": "Cheque"})

        assert results == filled
        assert flow.filler.fill.await_count == 3
        assert flow.field_results == filled

    @pytest.mark.asyncio
    async def test_gives_up_after_retries(self) -> None:
        flow = NewCorporatePolicy(_page(), payment_retries=2)
        flow._scroll_to_heading = AsyncMock()
        failed = [FieldResult("DP Name", FieldOutcome.FAILED)]
        flow.filler.fill = AsyncMock(return_value=failed)

        with patch.object(policy_issuance, "WAIT_PAYMENT_RETRY", 0):
            results = await flow.fill_payment_details_with_retry({"dpName": "TMIBASL"})

        assert results == failed
        assert flow.filler.fill.await_count == 2

    @pytest.mark.asyncio
    async def test_closed_page_raises(self) -> None:
        flow = NewCorporatePolicy(_page(closed=True), payment_retries=2)
        with patch.object(policy_issuance, "WAIT_PAYMENT_RETRY", 0):
            with pytest.raises(PageClosed):
                await flow.fill_payment_details_with_retry({})
