import httpx
import pytest

from station_monitor.services.geocoding import PlaceSearchClient, ReverseGeocoder


async def test_place_search_sends_kakao_key():
    def handler(request):
        assert request.headers["Authorization"] == "KakaoAK test-key"
        assert request.url.params["query"] == "부산역"
        assert request.url.params["size"] == "5"
        return httpx.Response(200, json={"documents": [{"place_name": "부산역", "x": "129.04", "y": "35.11"}]})

    client = PlaceSearchClient(api_key="test-key", transport=httpx.MockTransport(handler))
    documents = await client.search("부산역", size=5)
    assert documents[0]["place_name"] == "부산역"


async def test_place_search_without_key_is_empty():
    client = PlaceSearchClient(api_key="")
    assert not client.configured
    assert await client.search("부산역") == []


async def test_place_search_raises_on_http_error():
    client = PlaceSearchClient(api_key="bad", transport=httpx.MockTransport(lambda request: httpx.Response(401)))
    with pytest.raises(httpx.HTTPStatusError):
        await client.search("부산역")


async def test_reverse_geocode_returns_road_address():
    def handler(request):
        assert request.url.params["point"] == "129.16,35.16"
        assert request.url.params["type"] == "ROAD"
        return httpx.Response(200, json={"response": {"status": "OK", "result": [{"text": " 부산광역시 해운대구 우동 "}]}})

    geocoder = ReverseGeocoder(api_key="key", transport=httpx.MockTransport(handler))
    assert await geocoder.reverse_geocode(35.16, 129.16) == "부산광역시 해운대구 우동"


async def test_reverse_geocode_failures_are_none():
    def not_found(request):
        return httpx.Response(200, json={"response": {"status": "NOT_FOUND"}})

    def broken(request):
        raise httpx.ConnectError("down", request=request)

    for handler in (not_found, broken):
        geocoder = ReverseGeocoder(api_key="key", transport=httpx.MockTransport(handler))
        assert await geocoder.reverse_geocode(35.16, 129.16) is None

    assert await ReverseGeocoder(api_key="").reverse_geocode(35.16, 129.16) is None
