"""Notification delivery for keyword alerts.

This module handles output for alert matches:
- Webhook POST notifications
- JSONL alerts file

All notification methods are async and fail gracefully (errors are logged
but don't affect other notifications or the pipeline).

Output Formats:
    Webhook: JSON payload for integration with external systems
    JSONL: One JSON object per line for log aggregation
"""

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import aiohttp

from config import Config
from models.trend import AlertMatch

logger = logging.getLogger(__name__)


def _alert_payload(match: AlertMatch) -> dict[str, Any]:
    return {
        "type": "keyword_alert",
        "timestamp": datetime.now().isoformat(),
        "keyword": match.keyword,
        "articles": [
            {
                "id": a.id,
                "title": a.title,
                "source": a.source.id,
                "link": a.link,
                "published": a.published.isoformat(),
            }
            for a in match.articles
        ],
    }


async def send_webhook(match: AlertMatch, url: str) -> bool:
    """Send notification via webhook POST."""
    if not url:
        return True

    try:
        async with aiohttp.ClientSession() as session:
            async with session.post(
                url, json=_alert_payload(match), timeout=aiohttp.ClientTimeout(total=10)
            ) as resp:
                if resp.status < 300:
                    logger.debug("Webhook sent | keyword=%s articles=%d", match.keyword, len(match.articles))
                    return True
                logger.warning("Webhook failed | status=%d keyword=%s", resp.status, match.keyword)
                return False
    except asyncio.TimeoutError:
        logger.warning("Webhook timeout | url=%s keyword=%s", url[:50], match.keyword)
        return False
    except Exception as e:
        logger.error("Webhook error: %s (%s)", e, type(e).__name__, exc_info=True)
        return False


async def append_alerts_file(match: AlertMatch, filepath: str) -> bool:
    """Append alert to JSONL file."""
    if not filepath:
        return True

    try:
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)

        # Warn if file is getting large (> 100MB)
        if path.exists():
            size_mb = path.stat().st_size / (1024 * 1024)
            if size_mb > 100:
                logger.warning("Alerts file large | size=%.1fMB path=%s", size_mb, filepath)

        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(_alert_payload(match), ensure_ascii=False) + "\n")
        return True
    except Exception as e:
        logger.error("Alerts file error: %s (%s)", e, type(e).__name__, exc_info=True)
        return False


async def notify(match: AlertMatch, config: Config) -> bool:
    """Send all configured notifications for one alert match."""
    webhook_ok = await send_webhook(match, config.webhook_url)
    alerts_ok = await append_alerts_file(match, config.alerts_file)
    return webhook_ok and alerts_ok


async def notify_matches(matches: list[AlertMatch], config: Config) -> tuple[int, int]:
    """Send notifications for multiple alert matches.

    Returns:
        (successful, failed) counts
    """
    tasks = [notify(match, config) for match in matches]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    ok = 0
    fail = 0
    for result in results:
        if isinstance(result, Exception) or not result:
            fail += 1
        else:
            ok += 1
    return ok, fail
