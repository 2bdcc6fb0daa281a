"""Unit tests for LotTracker - FIFO matching logic."""

from decimal import Decimal

from cryptofolio.services.portfolio.lot_tracker import LotTracker


class TestBuys:
    """Test lot creation."""

    def test_empty_tracker(self) -> None:
        tracker = LotTracker()

        assert tracker.open_quantity == Decimal("0")
        assert tracker.cost_basis == Decimal("0")
        assert tracker.average_cost == Decimal("0")
        assert tracker.get_lots() == []

    def test_buys_accumulate(self) -> None:
        tracker = LotTracker()
        tracker.add_buy(Decimal("2"), Decimal("10"))
        tracker.add_buy(Decimal("3"), Decimal("20"))

        assert tracker.open_quantity == Decimal("5")
        assert tracker.cost_basis == Decimal("80")
        assert tracker.average_cost == Decimal("16")
        assert [lot.quantity for lot in tracker.get_lots()] == [Decimal("2"), Decimal("3")]

    def test_zero_quantity_buy_adds_empty_lot(self) -> None:
        tracker = LotTracker()
        tracker.add_buy(Decimal("0"), Decimal("100"))

        assert len(tracker.get_lots()) == 1
        assert tracker.open_quantity == Decimal("0")
        assert tracker.cost_basis == Decimal("0")
        assert tracker.average_cost == Decimal("0")


class TestFIFOMatching:
    """Test FIFO matching of sells."""

    def test_full_close_single_lot(self) -> None:
        tracker = LotTracker()
        tracker.add_buy(Decimal("100"), Decimal("150"))

        matches = tracker.match_sell(Decimal("100"))

        assert len(matches) == 1
        assert matches[0][1] == Decimal("100")
        assert tracker.get_lots() == []
        assert tracker.open_quantity == Decimal("0")
        assert tracker.cost_basis == Decimal("0")

    def test_partial_close_reduces_front_lot(self) -> None:
        tracker = LotTracker()
        tracker.add_buy(Decimal("100"), Decimal("150"))

        matches = tracker.match_sell(Decimal("60"))

        assert matches[0][1] == Decimal("60")
        # Match snapshot keeps pre-sale quantity
        assert matches[0][0].quantity == Decimal("100")
        remaining = tracker.get_lots()
        assert len(remaining) == 1
        assert remaining[0].quantity == Decimal("40")
        assert remaining[0].unit_price == Decimal("150")
        assert tracker.cost_basis == Decimal("6000")

    def test_oldest_lot_consumed_first(self) -> None:
        tracker = LotTracker()
        tracker.add_buy(Decimal("2"), Decimal("10"))
        tracker.add_buy(Decimal("3"), Decimal("20"))

        tracker.match_sell(Decimal("2"))

        assert tracker.open_quantity == Decimal("3")
        assert tracker.cost_basis == Decimal("60")
        assert tracker.average_cost == Decimal("20")

    def test_sell_spans_multiple_lots(self) -> None:
        tracker = LotTracker()
        tracker.add_buy(Decimal("100"), Decimal("150"))
        tracker.add_buy(Decimal("50"), Decimal("155"))
        tracker.add_buy(Decimal("75"), Decimal("160"))

        matches = tracker.match_sell(Decimal("130"))

        assert [(lot.unit_price, qty) for lot, qty in matches] == [
            (Decimal("150"), Decimal("100")),
            (Decimal("155"), Decimal("30")),
        ]
        remaining = tracker.get_lots()
        assert [lot.quantity for lot in remaining] == [Decimal("20"), Decimal("75")]
        assert tracker.open_quantity == Decimal("95")
        assert tracker.cost_basis == Decimal("20") * Decimal("155") + Decimal("75") * Decimal("160")

    def test_many_partial_sells(self) -> None:
        tracker = LotTracker()
        tracker.add_buy(Decimal("1"), Decimal("100"))
        tracker.add_buy(Decimal("1"), Decimal("200"))

        for _ in range(3):
            tracker.match_sell(Decimal("0.5"))

        assert tracker.open_quantity == Decimal("0.5")
        assert tracker.cost_basis == Decimal("100.0")
        assert tracker.average_cost == Decimal("200")


class TestOversell:
    """Sells larger than the open quantity are clamped."""

    def test_oversell_drains_queue(self) -> None:
        tracker = LotTracker()
        tracker.add_buy(Decimal("1"), Decimal("50"))

        matches = tracker.match_sell(Decimal("5"))

        assert matches[0][1] == Decimal("1")
        assert tracker.get_lots() == []
        assert tracker.open_quantity == Decimal("0")
        assert tracker.cost_basis == Decimal("0")

    def test_sell_with_no_lots_is_noop(self) -> None:
        tracker = LotTracker()

        assert tracker.match_sell(Decimal("3")) == []
        assert tracker.open_quantity == Decimal("0")

    def test_buy_after_oversell_starts_fresh(self) -> None:
        tracker = LotTracker()
        tracker.add_buy(Decimal("1"), Decimal("50"))
        tracker.match_sell(Decimal("5"))
        tracker.add_buy(Decimal("2"), Decimal("70"))

        # No short carried over
        assert tracker.open_quantity == Decimal("2")
        assert tracker.cost_basis == Decimal("140")
