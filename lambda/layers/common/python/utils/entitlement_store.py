"""
Premium Entitlement Store
=========================

Atomic premium upgrades on the DynamoDB users table.

Writes are staged on an explicit Transaction handle and committed with a
single TransactWriteItems call, guarded by optimistic locking on the
item's version number. Concurrent duplicate callbacks for the same user
therefore serialize: one commits, the other observes the flag already set.

Only one attribute flips today. The transaction boundary is kept so a
later receipt row or audit record can be committed in the same unit.
"""

import os
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterator, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from aws_lambda_powertools import Logger

from models.user import User
from .errors import StorageError

logger = Logger()

# DynamoDB table name (from environment)
USERS_TABLE = os.environ.get("USERS_TABLE", "premium-users-prod")

DYNAMODB_TIMEOUT_SECONDS = float(os.environ.get("DYNAMODB_TIMEOUT_SECONDS", "5"))

# Refuse to start a commit with less invocation time than this left
COMMIT_TIME_BUDGET_MS = int(os.environ.get("COMMIT_TIME_BUDGET_MS", "1000"))

# Retries are the caller's decision
_dynamodb_config = Config(
    connect_timeout=DYNAMODB_TIMEOUT_SECONDS,
    read_timeout=DYNAMODB_TIMEOUT_SECONDS,
    retries={"total_max_attempts": 1},
)

# Cached DynamoDB client
_dynamodb_client = None


def _get_dynamodb_client():
    """Get or create cached DynamoDB client."""
    global _dynamodb_client
    if _dynamodb_client is None:
        _dynamodb_client = boto3.client("dynamodb", config=_dynamodb_config)
    return _dynamodb_client


class GrantResult(str, Enum):
    """Outcome of a premium grant."""
    COMMITTED = "committed"
    ALREADY_PREMIUM = "already_premium"


class Transaction:
    """
    Handle for one atomic unit of writes.

    Created by EntitlementStore.transaction(); never reused once closed.
    """

    def __init__(self, client, deadline: Optional[Callable[[], int]] = None):
        self._client = client
        self._deadline = deadline
        self._items: list[dict] = []
        self.committed = False
        self.aborted = False
        self.closed = False

    def update(
        self,
        table_name: str,
        key: dict,
        update_expression: str,
        condition_expression: Optional[str] = None,
        names: Optional[dict] = None,
        values: Optional[dict] = None
    ) -> None:
        """Stage a conditional update."""
        self._ensure_open()
        update = {
            "TableName": table_name,
            "Key": key,
            "UpdateExpression": update_expression,
        }
        if condition_expression:
            update["ConditionExpression"] = condition_expression
        if names:
            update["ExpressionAttributeNames"] = names
        if values:
            update["ExpressionAttributeValues"] = values
        self._items.append({"Update": update})

    @property
    def pending(self) -> int:
        return len(self._items)

    def commit(self) -> None:
        """Send all staged writes as one TransactWriteItems call."""
        self._ensure_open()
        if self._deadline is not None:
            remaining = self._deadline()
            if remaining < COMMIT_TIME_BUDGET_MS:
                raise StorageError(f"Not enough time left to commit ({remaining} ms)")

        if self._items:
            self._client.transact_write_items(TransactItems=self._items)
        self.committed = True

    def abort(self) -> None:
        """Drop staged writes. Nothing has reached the table."""
        self._items.clear()
        self.aborted = True

    def close(self) -> None:
        self.closed = True

    def _ensure_open(self) -> None:
        if self.closed or self.committed or self.aborted:
            raise StorageError("Transaction is no longer open")


class EntitlementStore:
    """
    Reads users and commits entitlement changes.
    """

    def __init__(self, table_name: Optional[str] = None, client=None):
        self.table_name = table_name or USERS_TABLE
        self._client = client or _get_dynamodb_client()

    @contextmanager
    def transaction(self, deadline: Optional[Callable[[], int]] = None) -> Iterator[Transaction]:
        """
        Open a transaction; commit on clean exit, abort on any exception.

        The handle is closed on every exit path.
        """
        txn = Transaction(self._client, deadline=deadline)
        try:
            yield txn
            txn.commit()
        except BaseException:
            txn.abort()
            raise
        finally:
            txn.close()

    def get_user(self, user_id: str) -> Optional[User]:
        """Strongly consistent read of a user."""
        try:
            response = self._client.get_item(
                TableName=self.table_name,
                Key={"id": {"S": user_id}},
                ConsistentRead=True,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error reading user from DynamoDB: {e}")
            raise StorageError(f"Failed to read user {user_id}: {e}")

        item = response.get("Item")
        return User.from_item(item) if item else None

    def grant_premium(self, user_id: str, deadline: Optional[Callable[[], int]] = None) -> GrantResult:
        """
        Set is_premium for a user, atomically and idempotently.

        Args:
            user_id: Authenticated user id
            deadline: Callable returning the remaining invocation time in ms

        Returns:
            GrantResult.COMMITTED if the flag was flipped now,
            GrantResult.ALREADY_PREMIUM if it was already set

        Raises:
            StorageError: If the transaction could not be committed;
                the user record is left unchanged
        """
        user = self.get_user(user_id)
        if user is None:
            raise StorageError(f"User {user_id} not found")

        if user.is_premium:
            logger.info(f"User {user_id} already premium, nothing to commit")
            return GrantResult.ALREADY_PREMIUM

        try:
            with self.transaction(deadline=deadline) as txn:
                txn.update(
                    table_name=self.table_name,
                    key={"id": {"S": user_id}},
                    update_expression="SET is_premium = :premium, premium_since = :now, #v = :next",
                    condition_expression="attribute_exists(id) AND (attribute_not_exists(#v) OR #v = :current)",
                    names={"#v": "version"},
                    values={
                        ":premium": {"BOOL": True},
                        ":now": {"S": datetime.now(timezone.utc).isoformat()},
                        ":next": {"N": str(user.version + 1)},
                        ":current": {"N": str(user.version)},
                    },
                )

        except ClientError as e:
            if _is_condition_failure(e):
                # A concurrent grant committed first
                current = self.get_user(user_id)
                if current is not None and current.is_premium:
                    logger.info(f"Concurrent grant already committed for user {user_id}")
                    return GrantResult.ALREADY_PREMIUM
            logger.error(f"Premium grant transaction aborted for user {user_id}: {e}")
            raise StorageError(f"Premium grant failed: {e}")

        except BotoCoreError as e:
            logger.error(f"Premium grant transaction aborted for user {user_id}: {e}")
            raise StorageError(f"Premium grant failed: {e}")

        logger.info(f"Granted premium to user {user_id} (version {user.version + 1})")
        return GrantResult.COMMITTED

    def list_users(self) -> list[User]:
        """Scan all users (name, premium flag and running total only)."""
        users = []
        params = {
            "TableName": self.table_name,
            "ProjectionExpression": "id, #n, is_premium, total_expenses",
            "ExpressionAttributeNames": {"#n": "name"},
        }

        try:
            while True:
                response = self._client.scan(**params)
                users.extend(User.from_item(item) for item in response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                params["ExclusiveStartKey"] = last_key
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error scanning users: {e}")
            raise StorageError(f"Failed to list users: {e}")

        return users


def _is_condition_failure(error: ClientError) -> bool:
    """Whether a transaction was cancelled by a failed condition check."""
    code = error.response.get("Error", {}).get("Code", "")
    if code == "ConditionalCheckFailedException":
        return True
    if code == "TransactionCanceledException":
        reasons = error.response.get("CancellationReasons", [])
        return any(r.get("Code") == "ConditionalCheckFailed" for r in reasons)
    return False
