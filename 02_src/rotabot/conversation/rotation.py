"""Rotation algorithm: whose turn is next."""

from typing import Iterable

from ..models import Person, Role


def next_actor(people: Iterable[Person], last_actor_name: str) -> str:
    """
    Determine who should act next.

    Followers rotate alphabetically. After the last follower one or two
    leads are suggested (``"Dad or Mom"``), and after any lead the cycle
    restarts at the first follower. With no history, or when the last
    actor is not a known person, the first follower is returned.

    Args:
        people: Registered people.
        last_actor_name: Actor of the most recent event, "" when none.

    Returns:
        The suggested name, or "" when there are no followers.
    """
    follows = sorted(p.name for p in people if p.role is Role.FOLLOWS)
    leads = sorted(p.name for p in people if p.role is Role.LEADS)

    if not follows:
        return ""

    if not last_actor_name or last_actor_name in leads:
        return follows[0]

    if last_actor_name not in follows:
        return follows[0]

    i = follows.index(last_actor_name)
    if i < len(follows) - 1:
        return follows[i + 1]

    if leads:
        return " or ".join(leads[:2])

    return follows[0]
