"""Interest filtering: does an inbound request address this node?"""

from __future__ import annotations

from udpnode.identity import Identity
from udpnode.protocol import Envelope


def is_of_interest(env: Envelope, me: Identity) -> bool:
    """Return ``True`` if this node should react to *env*.

    Rules, first match wins:

    1. Our own messages are never of interest.
    2. An empty or absent ``filter`` addresses everyone.
    3. A node without a role considers itself addressed by any filter.
    4. Otherwise the node's role must be listed in ``filter``.

    Used identically for ``ping`` and ``broadcast``.
    """
    if env.from_ == me.id:
        return False
    if not env.filter:
        return True
    if me.role is None:
        return True
    return me.role in env.filter
