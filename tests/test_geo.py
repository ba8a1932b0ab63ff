import pytest

from routing.geo import InvalidCoordinatesError, haversine_km, path_length_km, validate_point
from tests.conftest import equator_point


def test_haversine_known_distance():
    """
    One degree of longitude on the equator is 2*pi*6371/360 km.
    """
    assert haversine_km((0.0, 0.0), (0.0, 1.0)) == pytest.approx(111.19, abs=0.01)


def test_haversine_is_symmetric_and_zero_on_same_point(mock_airport_location):
    city = (-17.8292, 31.0522)

    assert haversine_km(mock_airport_location, city) == pytest.approx(haversine_km(city, mock_airport_location))
    assert haversine_km(city, city) == 0.0
    assert haversine_km(mock_airport_location, city) > 0


def test_path_length_sums_consecutive_legs():
    path = [equator_point(0), equator_point(10), equator_point(25)]

    assert path_length_km(path) == pytest.approx(25.0, rel=1e-9)


def test_path_length_of_short_paths_is_zero():
    assert path_length_km([]) == 0.0
    assert path_length_km([(1.0, 2.0)]) == 0.0


@pytest.mark.parametrize("point", [None, (1.0,), ("a", "b"), (91.0, 0.0), (0.0, 181.0), (float("nan"), 0.0)])
def test_validate_point_rejects_bad_input(point):
    with pytest.raises(InvalidCoordinatesError):
        validate_point(point)


def test_validate_point_normalises_to_float_tuple():
    assert validate_point(["10", 20]) == (10.0, 20.0)
