"""
Synthetic bar feed: random-walk OHLCV per symbol, published to subscribers.

Two ways to drive it:
    emit_once()      synchronous; one bar per symbol, dispatched in universe order
    start()/stop()   timer-driven producer thread + single dispatcher thread

Producer and dispatcher are joined by a bounded queue. When the queue is
full the producer blocks (no bar is dropped or coalesced), so per-symbol
FIFO order holds and the cadence stretches instead. Only the dispatcher
thread calls handlers, so handler invocations never overlap.
"""

from __future__ import annotations

import logging
import queue
import random
import threading
from datetime import datetime, timezone
from typing import Callable, Sequence

from sim_core.contracts import MarketBar

logger = logging.getLogger("sim.feed")

BarHandler = Callable[[MarketBar], object]

DEFAULT_INTERVAL_SECONDS = 2.0
_POLL_SECONDS = 0.1


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BarFeed:
    """Publish one synthetic bar per tracked symbol per tick."""

    def __init__(
        self,
        symbols: Sequence[str],
        *,
        base_price: float = 100.0,
        volatility: float = 0.002,
        seed: int | None = None,
        queue_size: int = 64,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not symbols:
            raise ValueError("BarFeed requires at least one symbol")
        if base_price <= 0:
            raise ValueError(f"base_price must be positive, got {base_price}")
        if volatility < 0:
            raise ValueError(f"volatility must be >= 0, got {volatility}")
        if queue_size <= 0:
            raise ValueError(f"queue_size must be positive, got {queue_size}")
        self._symbols = list(symbols)
        self._volatility = volatility
        self._rng = random.Random(seed)
        self._clock = clock or _utc_now
        self._last_close = {s: float(base_price) for s in self._symbols}
        self._handlers: list[BarHandler] = []
        self._queue: queue.Queue[MarketBar] = queue.Queue(maxsize=queue_size)
        self._stop_event = threading.Event()
        self._producer: threading.Thread | None = None
        self._dispatcher: threading.Thread | None = None
        self._ticks = 0

    @property
    def symbols(self) -> list[str]:
        return list(self._symbols)

    @property
    def ticks(self) -> int:
        """Number of ticks synthesized so far."""
        return self._ticks

    @property
    def is_running(self) -> bool:
        return self._producer is not None and self._producer.is_alive()

    def subscribe(self, handler: BarHandler) -> None:
        self._handlers.append(handler)

    def unsubscribe(self, handler: BarHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    # ------------------------------------------------------------------
    # Bar synthesis
    # ------------------------------------------------------------------

    def _next_bar(self, symbol: str, ts: datetime) -> MarketBar:
        open_ = self._last_close[symbol]
        close = open_ * (1 + self._rng.gauss(0.0, self._volatility))
        if close <= 0:
            close = open_
        wick = open_ * self._volatility
        high = max(open_, close) + self._rng.random() * wick
        low = min(open_, close) - self._rng.random() * wick
        self._last_close[symbol] = close
        return MarketBar(
            symbol=symbol,
            timestamp=ts,
            open=open_,
            high=high,
            low=max(low, 0.0),
            close=close,
            volume=self._rng.random() * 1000,
        )

    def _synthesize_tick(self) -> list[MarketBar]:
        ts = self._clock()
        self._ticks += 1
        return [self._next_bar(symbol, ts) for symbol in self._symbols]

    def _dispatch(self, bar: MarketBar) -> None:
        for handler in list(self._handlers):
            try:
                handler(bar)
            except Exception:
                logger.exception("Bar handler failed for %s @ %s", bar.symbol, bar.timestamp.isoformat())

    def emit_once(self) -> list[MarketBar]:
        """Synthesize one tick and dispatch it synchronously. Returns the bars."""
        bars = self._synthesize_tick()
        for bar in bars:
            self._dispatch(bar)
        return bars

    # ------------------------------------------------------------------
    # Threaded mode
    # ------------------------------------------------------------------

    def start(self, interval_seconds: float = DEFAULT_INTERVAL_SECONDS) -> None:
        """Start emitting every *interval_seconds*. Stops any previous run first."""
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.stop()
        self._stop_event = threading.Event()
        self._queue = queue.Queue(maxsize=self._queue.maxsize)
        self._dispatcher = threading.Thread(
            target=self._dispatch_loop, args=(self._stop_event, self._queue), name="bar-feed-dispatch", daemon=True
        )
        self._producer = threading.Thread(
            target=self._produce_loop,
            args=(self._stop_event, self._queue, interval_seconds),
            name="bar-feed-producer",
            daemon=True,
        )
        self._dispatcher.start()
        self._producer.start()
        logger.info("Bar feed started: %d symbol(s) every %.2fs", len(self._symbols), interval_seconds)

    def stop(self) -> None:
        """Halt emission. No-op when not running. Bars still queued are discarded."""
        if self._producer is None and self._dispatcher is None:
            return
        self._stop_event.set()
        for thread in (self._producer, self._dispatcher):
            if thread is not None and thread is not threading.current_thread():
                thread.join()
        self._producer = None
        self._dispatcher = None
        logger.info("Bar feed stopped after %d tick(s)", self._ticks)

    def _produce_loop(self, stop: threading.Event, q: queue.Queue, interval: float) -> None:
        while not stop.wait(interval):
            for bar in self._synthesize_tick():
                while not stop.is_set():
                    try:
                        q.put(bar, timeout=_POLL_SECONDS)
                        break
                    except queue.Full:
                        logger.warning("Bar queue full; producer waiting on dispatcher")
                if stop.is_set():
                    return

    def _dispatch_loop(self, stop: threading.Event, q: queue.Queue) -> None:
        while not stop.is_set():
            try:
                bar = q.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                continue
            if stop.is_set():
                return
            self._dispatch(bar)
