import asyncio
import unittest

import httpx

from solar_service import (
    POWER_CLIMATOLOGY_URL,
    SOURCE_ESTIMATE,
    SOURCE_NASA_POWER,
    estimate_solar_irradiance,
    fetch_irradiance_with_source,
    fetch_solar_irradiance,
)


def _climatology(ann):
    return {"properties": {"parameter": {"ALLSKY_SFC_SW_DWN": {"JAN": 6.1, "ANN": ann}}}}


def _run(handler, coro_fn):
    async def main():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await coro_fn(client)
    return asyncio.run(main())


class TestFetchSolarIrradiance(unittest.TestCase):
    def test_climatology_annual_value(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            return httpx.Response(200, json=_climatology(5.4321))

        hsp, source = _run(handler, lambda c: fetch_irradiance_with_source(-23.55, -46.63, c))
        self.assertEqual(hsp, 5.432)
        self.assertEqual(source, SOURCE_NASA_POWER)
        self.assertTrue(seen["url"].startswith(POWER_CLIMATOLOGY_URL))
        self.assertIn("ALLSKY_SFC_SW_DWN", seen["url"])

    def test_http_error_falls_back_to_estimate(self):
        handler = lambda request: httpx.Response(500)
        hsp, source = _run(handler, lambda c: fetch_irradiance_with_source(-23.55, -46.63, c))
        self.assertEqual(hsp, 5.0)
        self.assertEqual(source, SOURCE_ESTIMATE)

    def test_fill_value_falls_back_to_estimate(self):
        handler = lambda request: httpx.Response(200, json=_climatology(-999))
        hsp = _run(handler, lambda c: fetch_solar_irradiance(-3.7, -38.5, c))
        self.assertEqual(hsp, 5.5)

    def test_malformed_payload_falls_back_to_estimate(self):
        handler = lambda request: httpx.Response(200, json={"messages": []})
        hsp = _run(handler, lambda c: fetch_solar_irradiance(50.0, 8.0, c))
        self.assertEqual(hsp, 2.5)


class TestEstimate(unittest.TestCase):
    def test_latitude_bands(self):
        self.assertEqual(estimate_solar_irradiance(0), 5.5)
        self.assertEqual(estimate_solar_irradiance(-23.5), 5.0)
        self.assertEqual(estimate_solar_irradiance(40), 4.0)
        self.assertEqual(estimate_solar_irradiance(-55), 2.5)
        self.assertEqual(estimate_solar_irradiance(70), 1.5)


if __name__ == "__main__":
    unittest.main()
