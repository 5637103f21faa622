from __future__ import annotations

import json
import logging
from typing import Any, Iterable, List, Optional, Union

import requests

from core.errors import FeedError
from core.models import Candle

logger = logging.getLogger(__name__)

REST_BASE = 'https://api.binance.com'
WS_BASE = 'wss://stream.binance.com:9443/ws'
KLINES_PATH = '/api/v3/klines'
MAX_KLINES_LIMIT = 1000

VALID_INTERVALS = frozenset(
    {'1s', '1m', '3m', '5m', '15m', '30m', '1h', '2h', '4h', '6h', '8h', '12h', '1d', '3d', '1w', '1M'}
)


def normalize_symbol(symbol: str) -> str:
    return symbol.upper().replace('/', '').replace('-', '').strip()


def stream_url(symbol: str, interval: str) -> str:
    return f"{WS_BASE}/{normalize_symbol(symbol).lower()}@kline_{interval}"


def fetch_klines(
    symbol: str,
    interval: str,
    limit: int = 500,
    session: Optional[requests.Session] = None,
    timeout: float = 10.0,
) -> List[Candle]:
    if interval not in VALID_INTERVALS:
        raise FeedError(f'Unsupported interval: {interval}')
    params = {
        'symbol': normalize_symbol(symbol),
        'interval': interval,
        'limit': max(1, min(int(limit), MAX_KLINES_LIMIT)),
    }
    http = session or requests
    try:
        resp = http.get(REST_BASE + KLINES_PATH, params=params, timeout=timeout)
        resp.raise_for_status()
        rows = resp.json()
    except requests.RequestException as exc:
        raise FeedError(f'Kline fetch failed for {params["symbol"]} {interval}: {exc}') from exc
    except ValueError as exc:
        raise FeedError(f'Kline response is not JSON: {exc}') from exc
    if not isinstance(rows, list):
        raise FeedError(f'Unexpected kline response: {str(rows)[:200]}')
    candles = parse_kline_rows(rows)
    logger.debug('fetched %d klines for %s %s', len(candles), params['symbol'], interval)
    return candles


def parse_kline_rows(rows: Iterable[Any]) -> List[Candle]:
    candles: List[Candle] = []
    skipped = 0
    for row in rows:
        try:
            candles.append(Candle.from_row(row))
        except (ValueError, TypeError):
            skipped += 1
    if skipped:
        logger.warning('skipped %d malformed kline rows', skipped)
    return candles


def parse_kline_message(message: Union[str, bytes, dict]) -> Optional[Candle]:
    """
    Turn one websocket payload into a Candle.

    Accepts the raw stream form ``{"e": "kline", "k": {...}}`` and the combined
    stream form ``{"stream": ..., "data": {"k": {...}}}``. Returns None for
    payloads that carry no kline (subscription acks, pings).
    """
    if isinstance(message, dict):
        payload = message
    else:
        try:
            payload = json.loads(message)
        except ValueError as exc:
            raise FeedError(f'Malformed stream message: {exc}') from exc
    if not isinstance(payload, dict):
        return None
    data = payload.get('data', payload)
    k = data.get('k') if isinstance(data, dict) else None
    if not isinstance(k, dict):
        return None
    try:
        return Candle(float(k['t']), float(k['o']), float(k['h']), float(k['l']), float(k['c']))
    except (KeyError, TypeError, ValueError) as exc:
        raise FeedError(f'Malformed kline payload: {exc}') from exc
