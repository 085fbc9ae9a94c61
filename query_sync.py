"""
query_sync.py — keeps the search box, the address bar and the search log in step

Three values describe the one "current search term":

- typed_value      what the user sees in the box (every keystroke, raw)
- committed_value  sanitized, debounced; drives searches and the address bar
- url_value        what the address bar (?q=...) currently holds

States:

    Idle ──keystroke──> Typing ──debounce──> Committing ──url write──> Idle
      │                   ^  │                    │  │
      │                   └──┘ keystroke          │  └── address bar lags ──> Confirming
      │                                           └── keystroke ──> Typing        │
      │                                                        read back or guard ─┴─> Idle
      ├──url_changed──> AdoptingExternal ──> Idle
      └──clear (from any state)──> Clearing ──guard──> Idle

submit() and select_history() go straight to Committing and log the term
right away. Otherwise a committed term is logged only after it has stayed
unchanged for the stabilization delay.

Address-bar changes are adopted only in Idle. While the user is typing, a
history entry is being applied, or a clear is settling, the address bar may
still show an older value, and reading it then would undo the user's action.
Our own writes never come back as external changes. When the address bar
reads back the written term at once we go straight to Idle, where adoption
requires a difference from committed_value. When it lags, Confirming holds
until the term reads back or the guard interval passes, and only then is
the address bar reconciled once, like the end of a clear.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Protocol, Union

from search_history import SearchHistory
from search_params import MAX_TERM_LENGTH, sanitize_search_term
from timers import TimerHandle, TimerQueue


logger = logging.getLogger(__name__)

DEBOUNCE_DELAY = 0.6
URL_UPDATE_DELAY = 0.2
CLEAR_GUARD_INTERVAL = 0.3
HISTORY_SAVE_DELAY = 2.0

ORIGIN_DEBOUNCE = "debounce"
ORIGIN_SUBMIT = "submit"
ORIGIN_HISTORY = "history"


# ============================================================
# Address bar
# ============================================================

class AddressBar(Protocol):
    def read(self) -> str:
        """Raw value of the search parameter ('' when absent)."""

    def write(self, term: str) -> None:
        """Replace the search parameter in place; '' removes it."""


class MemoryAddressBar:
    """In-process address bar; `navigate` simulates back/forward or a deep link."""

    def __init__(self, value: str = "") -> None:
        self.value = value
        self.writes: List[str] = []

    def read(self) -> str:
        return self.value

    def write(self, term: str) -> None:
        self.value = term
        self.writes.append(term)

    def navigate(self, term: str) -> None:
        self.value = term


# ============================================================
# States
# ============================================================

class SyncPhase(str, Enum):
    IDLE = "idle"
    TYPING = "typing"
    COMMITTING = "committing"
    CONFIRMING = "confirming"
    CLEARING = "clearing"
    ADOPTING_EXTERNAL = "adopting_external"


@dataclass(frozen=True)
class Idle:
    phase = SyncPhase.IDLE


@dataclass(frozen=True)
class Typing:
    timer: TimerHandle
    phase = SyncPhase.TYPING


@dataclass(frozen=True)
class Committing:
    term: str
    origin: str
    url_timer: TimerHandle
    phase = SyncPhase.COMMITTING


@dataclass(frozen=True)
class Confirming:
    """Our own address-bar write is in flight until it reads back or the guard expires."""

    term: str
    guard_timer: TimerHandle
    phase = SyncPhase.CONFIRMING


@dataclass(frozen=True)
class Clearing:
    guard_timer: TimerHandle
    phase = SyncPhase.CLEARING


@dataclass(frozen=True)
class AdoptingExternal:
    term: str
    phase = SyncPhase.ADOPTING_EXTERNAL


SyncState = Union[Idle, Typing, Committing, Confirming, Clearing, AdoptingExternal]


# ============================================================
# State machine
# ============================================================

class QuerySync:
    def __init__(
        self,
        address_bar: AddressBar,
        timers: TimerQueue,
        history: Optional[SearchHistory] = None,
        on_commit: Optional[Callable[[str], None]] = None,
        debounce: float = DEBOUNCE_DELAY,
        url_delay: float = URL_UPDATE_DELAY,
        clear_guard: float = CLEAR_GUARD_INTERVAL,
        stabilization: float = HISTORY_SAVE_DELAY,
    ) -> None:
        self._address_bar = address_bar
        self._timers = timers
        self._history = history
        self._on_commit = on_commit
        self.debounce = debounce
        self.url_delay = url_delay
        self.clear_guard = clear_guard
        self.stabilization = stabilization

        # A deep link is settled input
        initial = sanitize_search_term(address_bar.read())
        self._typed = initial
        self._committed = initial
        self._state: SyncState = Idle()
        self._history_timer: Optional[TimerHandle] = None

    # --------------------------------------------------------
    # Read-only projections
    # --------------------------------------------------------

    @property
    def typed_value(self) -> str:
        return self._typed

    @property
    def committed_value(self) -> str:
        return self._committed

    @property
    def url_value(self) -> str:
        return sanitize_search_term(self._address_bar.read())

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def phase(self) -> SyncPhase:
        return self._state.phase

    def has_pending_timers(self) -> bool:
        if self._state_timer() is not None:
            return True
        return self._history_timer is not None and self._history_timer.active

    # --------------------------------------------------------
    # Internals
    # --------------------------------------------------------

    def _set_state(self, state: SyncState) -> None:
        if state.phase is not self._state.phase:
            logger.debug("query sync: %s -> %s", self._state.phase.value, state.phase.value)
        self._state = state

    def _state_timer(self) -> Optional[TimerHandle]:
        st = self._state
        if isinstance(st, Typing):
            handle = st.timer
        elif isinstance(st, Committing):
            handle = st.url_timer
        elif isinstance(st, (Confirming, Clearing)):
            handle = st.guard_timer
        else:
            return None
        return handle if handle.active else None

    def _cancel_state_timer(self) -> None:
        handle = self._state_timer()
        if handle is not None:
            handle.cancel()

    def _cancel_history_timer(self) -> None:
        if self._history_timer is not None:
            self._history_timer.cancel()
            self._history_timer = None

    def _schedule_history(self, term: str) -> None:
        self._cancel_history_timer()
        if term and self._history is not None:
            self._history_timer = self._timers.call_later(
                self.stabilization, lambda: self._on_history_due(term)
            )

    def _on_history_due(self, term: str) -> None:
        self._history_timer = None
        if term == self._committed and self._history is not None:
            self._history.add(term)

    def _log_now(self, term: str) -> None:
        self._cancel_history_timer()
        if term and self._history is not None:
            self._history.add(term)

    def _set_committed(self, term: str) -> bool:
        if term == self._committed:
            return False
        self._committed = term
        return True

    def _notify(self, term: str) -> None:
        if self._on_commit is not None:
            self._on_commit(term)

    def _commit(self, term: str, origin: str) -> None:
        changed = self._set_committed(term)
        url_timer = self._timers.call_later(self.url_delay, self._on_url_write)
        self._set_state(Committing(term=term, origin=origin, url_timer=url_timer))

        if origin == ORIGIN_DEBOUNCE:
            if changed:
                self._schedule_history(term)
        else:
            self._log_now(term)

        if changed:
            self._notify(term)

    # --------------------------------------------------------
    # Timer callbacks
    # --------------------------------------------------------

    def _on_debounce(self) -> None:
        if not isinstance(self._state, Typing):
            return
        self._commit(sanitize_search_term(self._typed), ORIGIN_DEBOUNCE)

    def _on_url_write(self) -> None:
        st = self._state
        if not isinstance(st, Committing):
            return
        if self.url_value == st.term:
            self._set_state(Idle())
            return

        self._address_bar.write(st.term)
        if self.url_value == st.term:
            self._set_state(Idle())
            return
        # The address bar has not caught up yet; its old value is not a navigation
        guard = self._timers.call_later(self.clear_guard, self._on_confirm_guard)
        self._set_state(Confirming(term=st.term, guard_timer=guard))

    def _on_confirm_guard(self) -> None:
        if not isinstance(self._state, Confirming):
            return
        self._set_state(Idle())
        self.url_changed()

    def _on_clear_guard(self) -> None:
        if not isinstance(self._state, Clearing):
            return
        self._set_state(Idle())
        # A navigation that landed during the guard is picked up now
        self.url_changed()

    # --------------------------------------------------------
    # Events
    # --------------------------------------------------------

    def keystroke(self, value: str) -> None:
        """Raw input from the search box. Never triggers a search directly."""
        if not isinstance(value, str):
            value = ""
        if len(value) > MAX_TERM_LENGTH:
            return

        self._cancel_state_timer()
        self._typed = value
        timer = self._timers.call_later(self.debounce, self._on_debounce)
        self._set_state(Typing(timer=timer))

    def submit(self) -> None:
        """Explicit submit (Enter): commit now and log without waiting."""
        self._cancel_state_timer()
        self._commit(sanitize_search_term(self._typed), ORIGIN_SUBMIT)

    def select_history(self, query: str) -> None:
        """Apply an entry picked from the recent-search list."""
        term = sanitize_search_term(query)
        self._cancel_state_timer()
        self._typed = term
        self._commit(term, ORIGIN_HISTORY)

    def clear(self) -> None:
        self._cancel_state_timer()
        self._cancel_history_timer()

        self._typed = ""
        changed = self._set_committed("")
        if self._address_bar.read():
            self._address_bar.write("")

        guard = self._timers.call_later(self.clear_guard, self._on_clear_guard)
        self._set_state(Clearing(guard_timer=guard))

        if changed:
            self._notify("")

    def url_changed(self) -> bool:
        """
        The address bar may have changed outside our control (back/forward,
        deep link). Adopt it when nothing else is in flight.

        Returns True when a new term was adopted.
        """
        st = self._state
        if isinstance(st, Confirming) and self.url_value == st.term:
            st.guard_timer.cancel()
            self._set_state(Idle())
            return False

        if not isinstance(self._state, Idle):
            logger.debug("query sync: ignoring address bar during %s", self.phase.value)
            return False

        term = self.url_value
        if term == self._committed:
            return False

        self._set_state(AdoptingExternal(term=term))
        self._typed = term
        self._set_committed(term)
        self._schedule_history(term)
        self._set_state(Idle())
        self._notify(term)
        return True
