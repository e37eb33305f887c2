"""Unit tests for QuotePoller timing and state handling."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from errors import PageClosed
from quote_poller import MINIMUM_RE, PageHandle, PollResult, QuoteOutcome, QuotePoller


def _page(closed: bool = False) -> MagicMock:
    page = MagicMock()
    page.is_closed = MagicMock(return_value=closed)
    page.url = "https://portal.example/quotes"
    return page


def _poller(timeout_ms: int = 1000, interval_ms: int = 100) -> QuotePoller:
    return QuotePoller(PageHandle(_page()), timeout_ms=timeout_ms, poll_interval_ms=interval_ms)


class TestPageHandle:
    """Tests for PageHandle."""

    def test_switch_to_replaces_current_page(self) -> None:
        first, popup = _page(), _page()
        handle = PageHandle(first)

        handle.switch_to(popup)

        assert handle.page is popup
        assert handle.history == [first, popup]

    def test_is_closed_follows_current_page(self) -> None:
        handle = PageHandle(_page())
        handle.switch_to(_page(closed=True))
        assert handle.is_closed() is True


class TestWaitForQuotes:
    """Tests for the polling loop."""

    @pytest.mark.asyncio
    async def test_ready(self) -> None:
        poller = _poller()
        with patch.object(poller, "_quotes_visible", AsyncMock(return_value=True)):
            result = await poller.wait_for_quotes()
        assert result.outcome is QuoteOutcome.READY

    @pytest.mark.asyncio
    async def test_failed_after_a_few_polls(self) -> None:
        poller = _poller(timeout_ms=2000, interval_ms=50)
        alerts = AsyncMock(side_effect=[None, None, "Unable to fetch quotes"])
        with patch.object(poller, "_quotes_visible", AsyncMock(return_value=False)), \
                patch.object(poller, "_error_alert_text", alerts):
            result = await poller.wait_for_quotes()

        assert result.outcome is QuoteOutcome.FAILED
        assert result.message == "Unable to fetch quotes"
        assert alerts.await_count == 3

    @pytest.mark.asyncio
    async def test_timeout_is_bounded(self) -> None:
        """Returns after the ceiling but no later than one interval past it."""
        poller = _poller(timeout_ms=300, interval_ms=100)
        loop = asyncio.get_event_loop()
        with patch.object(poller, "_quotes_visible", AsyncMock(return_value=False)), \
                patch.object(poller, "_error_alert_text", AsyncMock(return_value=None)):
            start = loop.time()
            result = await poller.wait_for_quotes()
            elapsed = loop.time() - start

        assert result.outcome is QuoteOutcome.TIMED_OUT
        assert 0.29 <= elapsed <= 0.3 + 0.1 + 0.15
        assert result.elapsed_ms >= 290

    @pytest.mark.asyncio
    async def test_interval_longer_than_ceiling(self) -> None:
        poller = _poller(timeout_ms=100, interval_ms=5000)
        loop = asyncio.get_event_loop()
        with patch.object(poller, "_quotes_visible", AsyncMock(return_value=False)), \
                patch.object(poller, "_error_alert_text", AsyncMock(return_value=None)):
            start = loop.time()
            result = await poller.wait_for_quotes()

        assert result.outcome is QuoteOutcome.TIMED_OUT
        assert loop.time() - start < 1.0


class TestTimeoutDefault:
    """The ceiling comes from the environment when not given."""

    def test_env_ceiling(self, monkeypatch) -> None:
        monkeypatch.setenv("PLAYWRIGHT_QUOTE_LOAD_TIMEOUT_MS", "1234")
        assert QuotePoller(PageHandle(_page())).timeout_ms == 1234

    def test_explicit_ceiling(self, monkeypatch) -> None:
        monkeypatch.setenv("PLAYWRIGHT_QUOTE_LOAD_TIMEOUT_MS", "1234")
        assert QuotePoller(PageHandle(_page()), timeout_ms=50).timeout_ms == 50


class TestRun:
    """Tests for run()."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("outcome", [QuoteOutcome.FAILED, QuoteOutcome.TIMED_OUT])
    async def test_no_purchase_unless_ready(self, outcome) -> None:
        poller = _poller()
        acquire = AsyncMock(return_value=True)
        with patch.object(poller, "wait_for_quotes", AsyncMock(return_value=PollResult(outcome, 10))), \
                patch.object(poller, "check_validation_alerts", AsyncMock(return_value=None)), \
                patch.object(poller, "acquire_purchase_action", acquire):
            result = await poller.run()

        assert result.outcome is outcome
        assert result.purchase_clicked is False
        acquire.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ready_clicks_through(self) -> None:
        poller = _poller()
        proposal = AsyncMock(return_value=True)
        with patch.object(poller, "wait_for_quotes", AsyncMock(return_value=PollResult(QuoteOutcome.READY, 10))), \
                patch.object(poller, "check_validation_alerts", AsyncMock(return_value=None)), \
                patch.object(poller, "acquire_purchase_action", AsyncMock(return_value=True)), \
                patch.object(poller, "wait_for_proposal_page", proposal):
            result = await poller.run(proposal_timeout=10)

        assert result.purchase_clicked is True
        proposal.assert_awaited_once_with(10)

    @pytest.mark.asyncio
    async def test_closed_page_is_reported_not_raised(self) -> None:
        poller = QuotePoller(PageHandle(_page(closed=True)), timeout_ms=100)
        with patch.object(poller, "wait_for_quotes", AsyncMock(return_value=PollResult(QuoteOutcome.READY, 10))), \
                patch.object(poller, "check_validation_alerts", AsyncMock(return_value=None)):
            result = await poller.run()

        assert result.purchase_clicked is False
        assert "closed" in result.message


@pytest.mark.asyncio
async def test_acquire_on_closed_page_raises() -> None:
    poller = QuotePoller(PageHandle(_page(closed=True)), timeout_ms=100)
    with pytest.raises(PageClosed):
        await poller.acquire_purchase_action()


class TestAcquirePurchaseAction:
    """Tests for the BUY NOW tier ladder."""

    @pytest.mark.asyncio
    async def test_blocked_first_tier_falls_through(self) -> None:
        poller = _poller()
        covered, card_button, forced_button = MagicMock(), MagicMock(), MagicMock()
        tiers = [
            ("buy_now_button", AsyncMock(return_value=covered), False),
            ("fingerprint", AsyncMock(return_value=None), False),
            ("common_selectors", AsyncMock(side_effect=Exception("selector engine error")), False),
            ("first_card", AsyncMock(return_value=card_button), False),
            ("forced", AsyncMock(return_value=forced_button), True),
        ]
        activate = AsyncMock(side_effect=[Exception("<div class=overlay> intercepts pointer events"), None])

        with patch.object(poller, "_purchase_tiers", MagicMock(return_value=tiers)), \
                patch.object(poller, "_activate", activate):
            clicked = await poller.acquire_purchase_action()

        assert clicked is True
        assert [c.args for c in activate.await_args_list] == [(covered, False), (card_button, False)]
        tiers[4][1].assert_not_awaited()

    @pytest.mark.asyncio
    async def test_forced_tier_is_clicked_with_force(self) -> None:
        poller = _poller()
        forced_button = MagicMock()
        tiers = [
            ("buy_now_button", AsyncMock(return_value=None), False),
            ("forced", AsyncMock(return_value=forced_button), True),
        ]
        activate = AsyncMock()

        with patch.object(poller, "_purchase_tiers", MagicMock(return_value=tiers)), \
                patch.object(poller, "_activate", activate):
            assert await poller.acquire_purchase_action() is True

        activate.assert_awaited_once_with(forced_button, True)

    @pytest.mark.asyncio
    async def test_every_tier_failing(self) -> None:
        poller = _poller()
        tiers = [(name, AsyncMock(return_value=None), False) for name in ("buy_now_button", "first_row")]

        with patch.object(poller, "_purchase_tiers", MagicMock(return_value=tiers)):
            assert await poller.acquire_purchase_action() is False


class TestMinimumPattern:
    """The validation alert pattern matches whole words only."""

    @pytest.mark.parametrize("text", ["Minimum premium not met", "IDV below min value", "MIN 2 vehicles"])
    def test_matches(self, text) -> None:
        assert MINIMUM_RE.search(text)

    @pytest.mark.parametrize("text", ["Admin", "Logged in as admin user", "Administration fee", "minute"])
    def test_ignores(self, text) -> None:
        assert MINIMUM_RE.search(text) is None
