"""
Minimal reporter: polls HTTP health endpoints and pushes signed reports to
the ingest API.

    PROBE_TARGETS="api=http://api:8000/health" python -m status_hub.probe
"""
import asyncio
import json
from typing import List, Optional, Tuple

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from status_hub.config import settings
from status_hub.logger_config import setup_logger
from status_hub.signing import sign_request, now_ms


async def check_target(client: httpx.AsyncClient, name: str, url: str) -> dict:
    try:
        resp = await client.get(url)
    except httpx.HTTPError as e:
        return {"component": name, "severity": "alarm", "reason": str(e) or type(e).__name__}

    if resp.status_code == 200:
        return {"component": name, "severity": "ok"}
    return {"component": name, "severity": "warning", "reason": f"HTTP {resp.status_code}"}


async def push_report(client: httpx.AsyncClient, report: dict, ingest_url: str, secret: str):
    body = json.dumps(report).encode()
    headers = sign_request(secret, body)
    headers["Content-Type"] = "application/json"

    resp = await client.post(ingest_url, content=body, headers=headers)
    resp.raise_for_status()


async def run_probe_cycle(targets: Optional[List[Tuple[str, str]]] = None):
    """One pass over all targets. A failed push is logged and the pass goes on."""
    if targets is None:
        targets = settings.probe_targets_list

    async with httpx.AsyncClient(timeout=settings.PROBE_TIMEOUT) as client:
        for name, url in targets:
            report = await check_target(client, name, url)
            report["updatedAt"] = now_ms()
            try:
                await push_report(client, report, settings.INGEST_URL, settings.SHARED_SECRET)
                logger.debug(f"Reported {name}: {report['severity']}")
            except httpx.HTTPError as e:
                logger.error(f"Failed to report {name}: {e}")


async def main():
    setup_logger()
    if not settings.probe_targets_list:
        logger.warning("PROBE_TARGETS is empty, nothing to check")

    scheduler = AsyncIOScheduler()
    scheduler.add_job(run_probe_cycle, 'interval', seconds=settings.PROBE_INTERVAL)
    scheduler.start()
    logger.info(f"Probe started (every {settings.PROBE_INTERVAL}s -> {settings.INGEST_URL})")

    await run_probe_cycle()
    try:
        await asyncio.Future()
    finally:
        scheduler.shutdown()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
