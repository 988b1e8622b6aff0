"""
Premium Leaderboard
===================

Ranks users by their running expense total. Only premium members may
see it.
"""

from typing import Optional

from aws_lambda_powertools import Logger

from utils.entitlement_store import EntitlementStore
from utils.errors import PermissionDeniedError

logger = Logger()


class Leaderboard:
    """Spending leaderboard backed by the users table."""

    def __init__(self, store: EntitlementStore):
        self.store = store

    def ensure_premium(self, user_id: str) -> None:
        user = self.store.get_user(user_id)
        if user is None or not user.is_premium:
            raise PermissionDeniedError(f"User {user_id} is not premium")

    def top_spenders(self, limit: Optional[int] = None) -> list[dict]:
        """Users by total_expenses, highest first, as {name, totalExpenses}."""
        users = self.store.list_users()
        users.sort(key=lambda u: u.total_expenses, reverse=True)
        if limit is not None:
            users = users[:limit]
        logger.info(f"Leaderboard built from {len(users)} users")
        return [u.to_leaderboard_entry() for u in users]
