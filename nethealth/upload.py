"""
Upload phase.
Uses a single HTTP POST of pre-generated random data.
"""
import logging
import os
import time

from .config import SpeedTestConfig
from .download import SpeedTestResult
from .transport import Transport

LOGGER = logging.getLogger(__name__)


class UploadTester:
    """
    Upload speed tester.

    Random bytes defeat transparent compression on the path, so the payload
    is generated once per tester and reused for every run.
    """

    def __init__(self, transport: Transport, config: SpeedTestConfig):
        self.transport = transport
        self.config = config
        self._payload = os.urandom(config.upload_size)

    async def run(self) -> SpeedTestResult:
        """Perform upload speed test."""
        url = self.config.upload_url

        start = time.perf_counter()
        await self.transport.request("POST", url, data=self._payload)
        elapsed = time.perf_counter() - start

        sent = len(self._payload)
        result = SpeedTestResult.from_transfer(sent, elapsed)
        LOGGER.debug("Upload: %d bytes in %.3fs (%.2f Mbps)", sent, elapsed, result.speed_mbps)
        return result
