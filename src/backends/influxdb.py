import logging
from datetime import datetime, timezone
from typing import Optional

import httpx
from influxdb_client import Point
from influxdb_client.client.influxdb_client_async import InfluxDBClientAsync

from abstractions.database import Database
from contracts.records import ErrorInfo, RequestInfo
from contracts.settings import InfluxDbSettings

logger = logging.getLogger(__name__)

DATABASE_NAME = "InfluxDB"


class InfluxDb(Database):
    """
    InfluxDB v2 storage backend. Each probe URL is a measurement; successes
    and errors are written as points tagged with the probe id.
    """

    def __init__(self, settings: InfluxDbSettings):
        self.settings = settings
        self._client: Optional[InfluxDBClientAsync] = None

    def get_database_name(self) -> str:
        return DATABASE_NAME

    def is_empty(self) -> bool:
        s = self.settings
        return not (s.host and s.port and s.bucket and s.org and s.token)

    @property
    def url(self) -> str:
        return f"http://{self.settings.host}:{self.settings.port}"

    async def initialize(self):
        logger.info(f"InfluxDB: Trying to Connect to host {self.settings.host}")
        try:
            httpx.URL(self.url)
        except httpx.InvalidURL as e:
            raise ValueError(
                f"InfluxDB: Invalid Url {self.url!r}. Please check domain name given in config file! {e}"
            ) from e

        client = InfluxDBClientAsync(url=self.url, token=self.settings.token, org=self.settings.org)
        try:
            ready = await client.ping()
        except Exception:
            await client.close()
            raise
        if not ready:
            await client.close()
            raise ConnectionError(f"InfluxDB: Failed to connect to Database {self.url}")
        self._client = client
        logger.info(f"InfluxDB: Successfully connected to {self.url}")

    async def add_request_info(self, request_info: RequestInfo):
        point = (
            Point(request_info.url)
            .tag("requestId", str(request_info.id))
            .tag("requestType", request_info.request_type)
            .field("responseTimeMs", request_info.response_time_ms)
            .field("responseCode", request_info.response_code)
            .time(datetime.now(timezone.utc))
        )
        await self._write(point)

    async def add_error_info(self, error_info: ErrorInfo):
        point = (
            Point(error_info.url)
            .tag("requestId", str(error_info.id))
            .tag("requestType", error_info.request_type)
            .tag("reason", error_info.reason)
            .field("responseBody", error_info.response_body)
            .field("responseCode", error_info.response_code)
            .field("otherInfo", error_info.other_info)
            .time(datetime.now(timezone.utc))
        )
        await self._write(point)

    async def _write(self, point: Point):
        if self._client is None:
            raise RuntimeError("InfluxDB: client not initialized")
        await self._client.write_api().write(
            bucket=self.settings.bucket, org=self.settings.org, record=point
        )

    async def close(self):
        if self._client is not None:
            await self._client.close()
            self._client = None
