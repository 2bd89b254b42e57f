"""Tests for nethealth.transport -- error mapping and the aiohttp transport."""

import asyncio
import unittest

import aiohttp
from aiohttp import test_utils, web

from nethealth.config import SpeedTestConfig
from nethealth.errors import (
    BodyEncodingError,
    ClientHTTPError,
    InvalidURLError,
    NoConnectionError,
    ParsingError,
    RequestTimeoutError,
    ServerHTTPError,
    UnauthorizedError,
    UnknownNetworkError,
)
from nethealth.manager import SpeedTestManager
from nethealth.transport import AiohttpTransport, map_client_error, validate_url


class TestMapClientError(unittest.TestCase):
    def test_passthrough(self):
        err = ServerHTTPError(500)
        self.assertIs(map_client_error(err), err)

    def test_invalid_url(self):
        self.assertIsInstance(map_client_error(aiohttp.InvalidURL("nope")), InvalidURLError)

    def test_timeouts(self):
        self.assertIsInstance(map_client_error(asyncio.TimeoutError()), RequestTimeoutError)
        self.assertIsInstance(map_client_error(aiohttp.ServerTimeoutError()), RequestTimeoutError)

    def test_payload(self):
        self.assertIsInstance(map_client_error(aiohttp.ClientPayloadError("bad")), ParsingError)

    def test_no_connection(self):
        self.assertIsInstance(map_client_error(ConnectionRefusedError()), NoConnectionError)
        self.assertIsInstance(map_client_error(aiohttp.ServerDisconnectedError()), NoConnectionError)
        self.assertIsInstance(map_client_error(aiohttp.ClientOSError()), NoConnectionError)

    def test_unknown(self):
        cause = RuntimeError("boom")
        err = map_client_error(cause)
        self.assertIsInstance(err, UnknownNetworkError)
        self.assertIs(err.underlying, cause)


class TestValidateUrl(unittest.TestCase):
    def test_valid(self):
        self.assertEqual(validate_url("http://localhost:8080/ping").port, 8080)
        self.assertEqual(validate_url("https://speed.example.com").host, "speed.example.com")

    def test_invalid(self):
        for url in ("", "not a url", "ftp://host/file", "http://"):
            with self.subTest(url=url):
                with self.assertRaises(InvalidURLError):
                    validate_url(url)


class TestAiohttpTransportLocalChecks(unittest.IsolatedAsyncioTestCase):
    async def test_non_bytes_body(self):
        transport = AiohttpTransport()
        with self.assertRaises(BodyEncodingError):
            await transport.request("POST", "http://backend.test/upload", data="text")
        self.assertIsNone(transport._session)

    async def test_invalid_url(self):
        transport = AiohttpTransport()
        with self.assertRaises(InvalidURLError):
            await transport.request("GET", "backend.test/ping")
        self.assertIsNone(transport._session)


# ---------------------------------------------------------------------------
# Against a local aiohttp server
# ---------------------------------------------------------------------------

async def _ping(request):
    return web.Response(text="pong")


async def _download(request):
    size = int(request.query.get("size", "0"))
    return web.Response(body=b"\0" * size)


async def _upload(request):
    body = await request.read()
    return web.json_response({"received": len(body)})


async def _status(request):
    return web.Response(status=int(request.match_info["code"]))


async def _slow(request):
    await asyncio.sleep(2)
    return web.Response(text="late")


class TestAiohttpTransportServer(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        app = web.Application()
        app.router.add_get("/ping", _ping)
        app.router.add_get("/download", _download)
        app.router.add_post("/upload", _upload)
        app.router.add_get("/status/{code}", _status)
        app.router.add_get("/slow", _slow)
        self.server = test_utils.TestServer(app)
        await self.server.start_server()
        self.base_url = str(self.server.make_url("/")).rstrip("/")

    async def asyncTearDown(self):
        await self.server.close()

    async def test_get_body(self):
        async with AiohttpTransport() as transport:
            resp = await transport.request("GET", self.base_url + "/download", params={"size": "1000"})
        self.assertEqual(resp.status, 200)
        self.assertEqual(len(resp.body), 1000)
        self.assertGreater(resp.elapsed, 0)

    async def test_post_body(self):
        async with AiohttpTransport() as transport:
            resp = await transport.request("POST", self.base_url + "/upload", data=b"x" * 500)
        self.assertIn(b"500", resp.body)

    async def test_status_mapping(self):
        async with AiohttpTransport() as transport:
            with self.assertRaises(UnauthorizedError):
                await transport.request("GET", self.base_url + "/status/401")
            with self.assertRaises(ClientHTTPError) as cm:
                await transport.request("GET", self.base_url + "/status/404")
            self.assertEqual(cm.exception.status, 404)
            with self.assertRaises(ServerHTTPError):
                await transport.request("GET", self.base_url + "/status/503")

    async def test_timeout(self):
        async with AiohttpTransport(timeout=0.2) as transport:
            with self.assertRaises(RequestTimeoutError):
                await transport.request("GET", self.base_url + "/slow")

    async def test_full_run(self):
        config = SpeedTestConfig(
            base_url=self.base_url,
            ping_count=2,
            download_size=50_000,
            upload_size=20_000,
            phase_timeout=5.0,
        )
        async with SpeedTestManager(config) as manager:
            result = await manager.perform_full_test()
        self.assertTrue(result.is_successful)
        self.assertEqual(result.download.value.bytes_transferred, 50_000)
        self.assertEqual(result.upload.value.bytes_transferred, 20_000)
        self.assertEqual(len(result.ping.value.samples), 2)

    async def test_unreachable_backend(self):
        port = self.server.port
        await self.server.close()
        async with AiohttpTransport() as transport:
            with self.assertRaises(NoConnectionError):
                await transport.request("GET", f"http://127.0.0.1:{port}/ping")


if __name__ == "__main__":
    unittest.main()
