"""Tests for order models and composite attribute derivation."""

from collections.abc import Callable

from libs.orders.models import (
    Order,
    OrderStatus,
    attribute_value,
    composite_attributes,
    join_attributes,
)
from tests.conftest import FILLER, NOW, OFFERER


class TestOrderModel:
    def test_item_uses_camel_case_and_drops_missing(
        self, make_order: Callable[..., Order]
    ) -> None:
        item = make_order().to_item()

        assert item["orderHash"].startswith("0x")
        assert item["chainId"] == 1
        assert item["orderStatus"] == "open"
        assert item["input"]["amount"] == 10**18
        assert item["outputs"][0]["startAmount"] == 2 * 10**18
        assert "filler" not in item
        assert "createdAt" not in item

    def test_item_round_trips_with_composites(self, make_order: Callable[..., Order]) -> None:
        order = make_order(filler=FILLER, created_at=NOW)
        item = order.to_item()
        item.update(composite_attributes(item))

        assert Order.model_validate(item) == order

    def test_accepts_snake_case_names(self, make_order: Callable[..., Order]) -> None:
        order = make_order()

        assert Order.model_validate(order.model_dump()) == order

    def test_effective_start_time(self, make_order: Callable[..., Order]) -> None:
        assert make_order(start_time=NOW + 5).effective_start_time == NOW + 5
        assert make_order(start_time=None, decay_start_time=NOW).effective_start_time == NOW
        order = make_order(start_time=None, decay_start_time=None)
        assert order.effective_start_time is None


class TestCompositeAttributes:
    def test_all_composites_with_filler(self) -> None:
        item = {"offerer": "0xo", "filler": "0xf", "orderStatus": "open", "chainId": 1}

        assert composite_attributes(item) == {
            "offerer_orderStatus": "0xo_open",
            "filler_orderStatus": "0xf_open",
            "filler_offerer": "0xf_0xo",
            "chainId_filler": "1_0xf",
            "chainId_orderStatus": "1_open",
            "chainId_orderStatus_filler": "1_open_0xf",
            "filler_offerer_orderStatus": "0xf_0xo_open",
        }

    def test_filler_composites_omitted_without_filler(self) -> None:
        item = {"offerer": OFFERER, "orderStatus": "open", "chainId": 1}

        assert set(composite_attributes(item)) == {"offerer_orderStatus", "chainId_orderStatus"}

    def test_enum_status_rendered_by_value(self) -> None:
        item = {"offerer": "0xo", "orderStatus": OrderStatus.FILLED}

        assert composite_attributes(item)["offerer_orderStatus"] == "0xo_filled"

    def test_join_attributes(self) -> None:
        assert join_attributes({"a": 1, "b": "x"}, ("b", "a")) == "x_1"
        assert join_attributes({"a": 1}, ("a", "b")) is None

    def test_attribute_value(self) -> None:
        assert attribute_value(OrderStatus.OPEN) == "open"
        assert attribute_value(137) == "137"
