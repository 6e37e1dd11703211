from station_monitor.services.station_records import (
    normalize_station_record,
    suggestions_from_rows,
)


def test_canonical_station_name_preferred_over_generic_name():
    record = normalize_station_record({"name": "generic", "stationName": "해운대 관측소"})
    assert record.name == "해운대 관측소"


def test_code_aliases():
    assert normalize_station_record({"codeNumber": "2201640"}).code == "2201640"
    assert normalize_station_record({"stationCode": 42}).code == "42"
    assert normalize_station_record({"codeName": "  "}).code is None


def test_coordinate_pair_with_swapped_axes():
    record = normalize_station_record({"stationName": "A", "coords": [129.0756, 35.1796]})
    assert record.coords == (35.1796, 129.0756)


def test_scalar_coordinates_from_strings():
    record = normalize_station_record({"stationName": "A", "latitude": "35.1796", "longitude": "129.0756"})
    assert record.coords == (35.1796, 129.0756)


def test_place_search_document_shape():
    record = normalize_station_record({"place_name": "부산역", "x": "129.0415", "y": "35.1151", "id": "123"})
    assert record.name == "부산역"
    assert record.code == "123"
    assert record.coords == (35.1151, 129.0415)


def test_bad_pair_falls_back_to_scalars():
    record = normalize_station_record({"coords": ["a", "b"], "lat": 35.0, "lng": 129.0})
    assert record.coords == (35.0, 129.0)


def test_missing_coordinates():
    assert normalize_station_record({"stationName": "A"}).coords is None
    assert normalize_station_record({"stationName": "A", "latitude": 35.0}).coords is None


def test_non_dict_record_is_empty():
    record = normalize_station_record(["not", "a", "record"])
    assert record.name == ""
    assert record.coords is None


def test_suggestions_drop_rows_without_name_or_coordinates():
    rows = [
        {"stationName": "해운대 관측소", "codeNumber": "2201640", "coords": [35.1631, 129.1635]},
        {"stationName": "좌표없음"},
        {"latitude": 35.0, "longitude": 129.0},
        "garbage",
    ]
    assert suggestions_from_rows(rows) == [{
        "id": "2201640",
        "name": "해운대 관측소",
        "lat": 35.1631,
        "lng": 129.1635,
        "code_number": "2201640",
    }]
