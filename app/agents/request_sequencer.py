from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional
from app.utils.config import settings


@dataclass(frozen=True)
class Ticket:
    key: str
    sequence: int


class RequestSequencer:
    """Detects completions that finish after a newer submission for the same key.

    A key is one caller using one feature. Each submission takes a ticket;
    when its completion returns, ``is_current`` tells whether a later ticket
    has been issued meanwhile, in which case the result is stale and must not
    replace the newer one on screen.

    At most ``max_keys`` keys are tracked; the least recently used key is
    evicted first, and a ticket whose key was evicted counts as stale.
    """

    def __init__(self, max_keys: Optional[int] = None):
        self.max_keys = max_keys or settings.sequencer_max_keys
        self._latest: "OrderedDict[str, int]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._latest)

    def issue(self, key: str, sequence: Optional[int] = None) -> Ticket:
        """Take a ticket, using the client's own counter when it sends one"""
        latest = self._latest.get(key, -1)
        if sequence is None:
            sequence = latest + 1
        self._latest[key] = max(latest, sequence)
        self._latest.move_to_end(key)
        while len(self._latest) > self.max_keys:
            self._latest.popitem(last=False)
        return Ticket(key=key, sequence=sequence)

    def is_current(self, ticket: Ticket) -> bool:
        return self._latest.get(ticket.key) == ticket.sequence
