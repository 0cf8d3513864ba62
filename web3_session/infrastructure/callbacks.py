"""
Callback-to-future adaptation.

RPC transports report results through node-style callbacks, ``callback(error, result)``.
These helpers turn one such call into an asyncio future, optionally substituting a
fallback value for a failure. Nothing here retries.
"""
import asyncio
import logging
from dataclasses import dataclass
from types import SimpleNamespace
from typing import Any, Callable, Dict, Optional

from .errors import TransportError

logger = logging.getLogger(__name__)

NodeCallback = Callable[[Any, Any], None]
CallbackCall = Callable[[NodeCallback], Any]


@dataclass(frozen=True)
class Fallback:
    """Value substituted for a failed call. Passing one makes the call non-failing."""
    value: Any = None


@dataclass(frozen=True)
class CallOutcome:
    """Settled result of a callback call"""
    value: Any = None
    error: Optional[BaseException] = None
    used_fallback: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


def _as_exception(error: Any) -> BaseException:
    if isinstance(error, BaseException):
        return error
    return TransportError(str(error), original_error=error)


def callback_outcome(call: CallbackCall, fallback: Optional[Fallback] = None) -> "asyncio.Future[CallOutcome]":
    """
    Run ``call(callback)`` and settle a future with its CallOutcome.

    - success: ``CallOutcome(value=result)``
    - failure or synchronous raise, with a fallback: ``CallOutcome(fallback.value, error, used_fallback=True)``
    - failure or synchronous raise, without a fallback: the future fails with the error

    The callback may fire on any thread. Only the first invocation counts.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def settle(error: Any, result: Any):
        if future.done():
            return
        if error:
            exc = _as_exception(error)
            if fallback is None:
                future.set_exception(exc)
            else:
                future.set_result(CallOutcome(fallback.value, exc, used_fallback=True))
        else:
            future.set_result(CallOutcome(result))

    def callback(error: Any = None, result: Any = None):
        if loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(settle, error, result)
        except RuntimeError:
            # loop closed after the check; nobody is left to await the result
            return

    try:
        call(callback)
    except Exception as e:
        settle(e, None)

    return future


async def callback_future(call: CallbackCall, fallback: Optional[Fallback] = None) -> Any:
    """Await one callback call; returns its value, or the fallback value on failure."""
    outcome = await callback_outcome(call, fallback)
    if outcome.used_fallback:
        logger.debug(f"[Callbacks] Call failed, using fallback {outcome.value!r}: {outcome.error}")
    return outcome.value


def promisify_methods(transport, methods: Dict[str, str]) -> SimpleNamespace:
    """
    Build awaitable pass-throughs for raw RPC methods.

    ``methods`` maps attribute names to JSON-RPC method names; each attribute becomes
    a coroutine function taking the positional RPC params.
    """
    def make(rpc_method: str):
        async def method(*params):
            return await callback_future(
                lambda cb: transport.request(rpc_method, list(params), cb)
            )
        method.__name__ = rpc_method
        return method

    return SimpleNamespace(**{name: make(rpc) for name, rpc in methods.items()})
