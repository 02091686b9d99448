"""Health checks for the database and the Ollama server."""

import asyncio
import time
from dataclasses import dataclass
from typing import Literal

import httpx
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

CHECK_TIMEOUT = 2.0


@dataclass
class ServiceHealth:
    """Health status for a service dependency."""

    status: Literal["connected", "unreachable", "error"]
    latency_ms: float | None = None
    error: str | None = None


async def check_database(target: AsyncEngine) -> ServiceHealth:
    """Run ``SELECT 1`` on the application engine.

    Args:
        target: Engine to probe

    Returns:
        ServiceHealth with connection status and latency
    """
    start = time.perf_counter()
    try:
        async with asyncio.timeout(CHECK_TIMEOUT):
            async with target.connect() as conn:
                await conn.execute(text("SELECT 1"))
            latency = (time.perf_counter() - start) * 1000
            return ServiceHealth(status="connected", latency_ms=round(latency, 2))
    except asyncio.TimeoutError:
        return ServiceHealth(status="unreachable", error="timeout")
    except Exception as e:
        return ServiceHealth(status="error", error=str(e))


async def check_ollama(
    base_url: str, transport: httpx.AsyncBaseTransport | None = None
) -> ServiceHealth:
    """Check Ollama API reachability via ``/api/tags``.

    Args:
        base_url: Ollama base URL (e.g., http://localhost:11434)
        transport: Optional httpx transport (used by tests)

    Returns:
        ServiceHealth with connection status and latency
    """
    start = time.perf_counter()
    try:
        async with asyncio.timeout(CHECK_TIMEOUT):
            async with httpx.AsyncClient(transport=transport) as client:
                response = await client.get(f"{base_url.rstrip('/')}/api/tags")
                if response.status_code == 200:
                    latency = (time.perf_counter() - start) * 1000
                    return ServiceHealth(
                        status="connected", latency_ms=round(latency, 2)
                    )
                return ServiceHealth(
                    status="error", error=f"HTTP {response.status_code}"
                )
    except asyncio.TimeoutError:
        return ServiceHealth(status="unreachable", error="timeout")
    except httpx.HTTPError as e:
        return ServiceHealth(status="unreachable", error=str(e))
