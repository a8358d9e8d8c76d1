"""
Tests for price tracking service.
"""
import math

import pytest

from stockshock.services.price_tracking import PriceTrackingService, is_known_price


@pytest.fixture
def price_tracking_service():
    return PriceTrackingService()


@pytest.mark.parametrize("value,expected", [
    (100.0, True), (0.5, True), (0, False), (0.0, False), (None, False),
    (math.nan, False), (math.inf, False), ("abc", False), ("12.5", True),
])
def test_is_known_price(value, expected):
    assert is_known_price(value) is expected


def test_detect_price_increase(price_tracking_service, make_item):
    change = price_tracking_service.detect_price_change(make_item(price=120.0), 100.0)

    assert change.previous_price == 100.0
    assert change.current_price == 120.0
    assert change.change_amount == pytest.approx(20.0)
    assert change.change_percentage == pytest.approx(20.0)
    assert change.currency == "EUR"
    assert change.is_increase


def test_detect_price_decrease(price_tracking_service, make_item):
    change = price_tracking_service.detect_price_change(make_item(price=75.0), 100.0)

    assert change.change_percentage == pytest.approx(-25.0)
    assert not change.is_increase


def test_no_change_for_same_price(price_tracking_service, make_item):
    assert price_tracking_service.detect_price_change(make_item(price=100.0), 100.0) is None


@pytest.mark.parametrize("last_known_price", [math.nan, None, 0])
def test_no_change_without_known_previous_price(price_tracking_service, make_item, last_known_price):
    assert price_tracking_service.detect_price_change(make_item(price=100.0), last_known_price) is None


def test_no_change_without_observed_price(price_tracking_service, make_item):
    assert price_tracking_service.detect_price_change(make_item(price=None), 100.0) is None


def test_should_store_first_price(price_tracking_service, make_item):
    assert price_tracking_service.should_store_price(make_item(price=100.0), math.nan) is True


def test_should_store_changed_price(price_tracking_service, make_item):
    assert price_tracking_service.should_store_price(make_item(price=120.0), 100.0) is True


def test_should_not_store_unchanged_or_unknown_price(price_tracking_service, make_item):
    assert price_tracking_service.should_store_price(make_item(price=100.0), 100.0) is False
    assert price_tracking_service.should_store_price(make_item(price=None), 100.0) is False
    assert price_tracking_service.should_store_price(make_item(price=0), math.nan) is False
