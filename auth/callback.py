from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from auth.errors import InvalidState, SessionNotFound
from auth.models import PendingAuthorization
from auth.session_store import SessionStore

UNSPECIFIED_REASON = "unspecified"
_CALLBACK_PARAMS = ("code", "state", "error")


@dataclass(frozen=True)
class CallbackSuccess:
    code: str
    pending: PendingAuthorization


@dataclass(frozen=True)
class ProviderError:
    reason: str
    state: str | None = None


@dataclass(frozen=True)
class MalformedCallback:
    reason: str


CallbackResult = Union[CallbackSuccess, ProviderError, MalformedCallback]


def _single_values(query_params) -> tuple[dict[str, str], list[str]]:
    """Collapse the callback parameters to one value each, noting repeats.

    Accepts a plain mapping or anything with ``multi_items()`` (Starlette's
    ``QueryParams``).
    """
    if hasattr(query_params, "multi_items"):
        items = query_params.multi_items()
    else:
        items = query_params.items()
    values: dict[str, str] = {}
    repeated: list[str] = []
    for key, value in items:
        if key not in _CALLBACK_PARAMS:
            continue
        if key in values:
            repeated.append(key)
            continue
        values[key] = value
    return values, repeated


async def validate_callback(query_params, store: SessionStore) -> CallbackResult:
    values, repeated = _single_values(query_params)
    if repeated:
        names = ", ".join(sorted(set(repeated)))
        return MalformedCallback(f"Repeated callback parameter(s): {names}.")

    code = values.get("code")
    state = values.get("state") or None

    if code is None:
        return ProviderError(reason=values.get("error") or UNSPECIFIED_REASON, state=state)

    if not code.strip():
        return MalformedCallback("Empty authorization code.")

    # A code without state can never be matched to a login we started.
    if state is None or not state.strip():
        raise InvalidState(None, "Callback carried a code but no state.")

    try:
        pending = await store.take_pending(state)
    except SessionNotFound as error:
        raise InvalidState(state) from error

    return CallbackSuccess(code=code, pending=pending)
