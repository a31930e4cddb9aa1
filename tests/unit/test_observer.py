"""
Tests for the observer module.
"""

import pytest

from pass_tracker.observer import Observer


class TestObserver:

    def test_valid_observer(self) -> None:
        observer = Observer(latitude=51.5, longitude=-0.1, altitude=20.0, name="London")
        assert observer.altitude == 20.0
        assert str(observer) == "London (51.5000°, -0.1000°)"

    @pytest.mark.parametrize("latitude, longitude", [(91, 0), (-90.5, 0), (0, 181), (0, -180.1)])
    def test_invalid_coordinates(self, latitude, longitude) -> None:
        with pytest.raises(ValueError):
            Observer(latitude=latitude, longitude=longitude)

    def test_observers_compare_by_value(self) -> None:
        assert Observer(10.0, 20.0) == Observer(10.0, 20.0)
        assert Observer(10.0, 20.0) != Observer(10.0, 20.0, altitude=100.0)

    def test_non_finite_values_rejected(self) -> None:
        with pytest.raises(ValueError):
            Observer(latitude=float("nan"), longitude=0.0)
        with pytest.raises(ValueError):
            Observer(latitude=0.0, longitude=0.0, altitude=float("inf"))
