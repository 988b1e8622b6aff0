"""
Shared test fixtures: Powertools environment, a fake Lambda context,
handler loading, and in-memory stand-ins for DynamoDB and Supabase.
"""

import importlib.util
import json
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional
from unittest.mock import patch

os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "premium-tests")
os.environ.setdefault("POWERTOOLS_METRICS_NAMESPACE", "PremiumTests")
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")

import httpx
import pytest
from botocore.exceptions import ClientError

FUNCTIONS_DIR = Path(__file__).resolve().parent.parent / "functions"

SUPABASE_URL = "https://test.supabase.co"
TEST_SECRETS = {
    "RAZORPAY_KEY_ID": "rzp_test_key",
    "RAZORPAY_KEY_SECRET": "rzp_test_secret",
    "SUPABASE_URL": SUPABASE_URL,
    "SUPABASE_KEY": "service-role-key",
}


@dataclass
class FakeLambdaContext:
    function_name: str = "premium-test"
    memory_limit_in_mb: int = 128
    invoked_function_arn: str = "arn:aws:lambda:us-east-1:123456789012:function:premium-test"
    aws_request_id: str = "test-request-id"
    remaining_ms: int = 30000

    def get_remaining_time_in_millis(self) -> int:
        return self.remaining_ms


def api_event(
    method: str = "GET",
    body: Optional[dict] = None,
    query: Optional[dict] = None,
    user_id: Optional[str] = "user-1"
) -> dict:
    """Build a minimal API Gateway REST event."""
    authorizer = {"userId": user_id} if user_id else {}
    return {
        "httpMethod": method,
        "body": json.dumps(body) if body is not None else None,
        "queryStringParameters": query,
        "requestContext": {"authorizer": authorizer},
    }


# =============================================================================
# DYNAMODB
# =============================================================================


def client_error(code: str, operation: str, reasons: Optional[list] = None) -> ClientError:
    response = {"Error": {"Code": code, "Message": code}}
    if reasons is not None:
        response["CancellationReasons"] = reasons
    return ClientError(response, operation)


class FakeDynamoDB:
    """
    In-memory low-level DynamoDB client for the users table.

    Understands the SET updates and version conditions the entitlement
    store issues. Hooks let tests inject failures or a concurrent writer.
    """

    def __init__(self):
        self.items: dict[str, dict] = {}
        self.transact_calls: list[list] = []
        self.commit_error: Optional[ClientError] = None
        self.before_commit: Optional[Callable[[], None]] = None
        self.scan_page_size = 100

    def add_user(self, user_id: str, name: str = "", is_premium: bool = False, total_expenses: str = "0", version: Optional[int] = None):
        item = {
            "id": {"S": user_id},
            "name": {"S": name},
            "is_premium": {"BOOL": is_premium},
            "total_expenses": {"N": total_expenses},
        }
        if version is not None:
            item["version"] = {"N": str(version)}
        self.items[user_id] = item

    def is_premium(self, user_id: str) -> bool:
        return self.items[user_id]["is_premium"]["BOOL"]

    def get_item(self, TableName, Key, ConsistentRead=False):
        item = self.items.get(Key["id"]["S"])
        return {"Item": json.loads(json.dumps(item))} if item else {}

    def transact_write_items(self, TransactItems):
        self.transact_calls.append(TransactItems)
        if self.before_commit:
            hook, self.before_commit = self.before_commit, None
            hook()
        if self.commit_error:
            raise self.commit_error

        # Check every condition before applying anything
        reasons = []
        for entry in TransactItems:
            update = entry["Update"]
            reasons.append({"Code": "None" if self._condition_holds(update) else "ConditionalCheckFailed"})
        if any(r["Code"] != "None" for r in reasons):
            raise client_error("TransactionCanceledException", "TransactWriteItems", reasons)

        for entry in TransactItems:
            self._apply(entry["Update"])
        return {}

    def scan(self, TableName, ExclusiveStartKey=None, **kwargs):
        ids = sorted(self.items)
        start = ids.index(ExclusiveStartKey["id"]["S"]) + 1 if ExclusiveStartKey else 0
        page = ids[start:start + self.scan_page_size]
        response = {"Items": [self.items[i] for i in page]}
        if start + self.scan_page_size < len(ids):
            response["LastEvaluatedKey"] = {"id": {"S": page[-1]}}
        return response

    def _condition_holds(self, update: dict) -> bool:
        item = self.items.get(update["Key"]["id"]["S"])
        if item is None:
            return False
        values = update.get("ExpressionAttributeValues", {})
        if "version" not in item:
            return True
        return item["version"]["N"] == values[":current"]["N"]

    def _apply(self, update: dict) -> None:
        item = self.items[update["Key"]["id"]["S"]]
        names = update.get("ExpressionAttributeNames", {})
        values = update.get("ExpressionAttributeValues", {})
        assignments = update["UpdateExpression"].removeprefix("SET ").split(",")
        for assignment in assignments:
            attr, placeholder = (part.strip() for part in assignment.split("="))
            item[names.get(attr, attr)] = values[placeholder]


@pytest.fixture
def dynamodb():
    return FakeDynamoDB()


# =============================================================================
# SUPABASE
# =============================================================================


class FakeSupabase:
    """
    In-memory Supabase REST + Storage backend served through httpx.MockTransport.
    """

    def __init__(self):
        self.expenses: list[dict] = []
        self.downloads: list[dict] = []
        self.objects: dict[str, bytes] = {}
        self.requests: list[httpx.Request] = []
        self.fail_query = False
        self.fail_upload = False
        self.fail_insert = False
        self.transport = httpx.MockTransport(self.handle)

    def add_expense(self, user_id: str, amount: str, created_at: datetime, category: str = "Investments", description: str = "expense"):
        self.expenses.append({
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "amount": amount,
            "category": category,
            "description": description,
            "created_at": created_at.isoformat(),
        })

    def client(self):
        from utils.supabase_client import SupabaseClient
        return SupabaseClient(config={"url": SUPABASE_URL, "key": "service-role-key"}, transport=self.transport)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        params = request.url.params

        if path == "/rest/v1/expenses" and request.method == "GET":
            if self.fail_query:
                return httpx.Response(500, json={"message": "db down"})
            return httpx.Response(200, json=self._select_expenses(params))

        if path == "/rest/v1/downloads" and request.method == "POST":
            if self.fail_insert:
                return httpx.Response(503, json={"message": "unavailable"})
            row = json.loads(request.content)
            row["id"] = str(uuid.uuid4())
            row["created_at"] = datetime.now(timezone.utc).isoformat()
            self.downloads.append(row)
            return httpx.Response(201, json=[row])

        if path == "/rest/v1/downloads" and request.method == "GET":
            if self.fail_query:
                return httpx.Response(500, json={"message": "db down"})
            user_id = params["user_id"].removeprefix("eq.")
            rows = [d for d in self.downloads if d["user_id"] == user_id]
            rows.sort(key=lambda d: d["created_at"], reverse=True)
            return httpx.Response(200, json=rows)

        if path.startswith("/storage/v1/object/") and request.method == "POST":
            if self.fail_upload:
                return httpx.Response(500, json={"message": "storage down"})
            key = path.removeprefix("/storage/v1/object/")
            if key in self.objects:
                return httpx.Response(409, json={"message": "exists"})
            self.objects[key] = request.content
            return httpx.Response(200, json={"Key": key})

        return httpx.Response(404, json={"message": f"no route {request.method} {path}"})

    def _select_expenses(self, params) -> list[dict]:
        user_id = params["user_id"].removeprefix("eq.")
        bounds = {}
        for condition in params["and"].strip("()").split(","):
            column, op, value = condition.split(".", 2)
            bounds[op] = datetime.fromisoformat(value)

        rows = []
        for expense in self.expenses:
            created = datetime.fromisoformat(expense["created_at"])
            if expense["user_id"] == user_id and bounds["gte"] <= created <= bounds["lte"]:
                rows.append({k: expense[k] for k in params["select"].split(",")})
        rows.sort(key=lambda r: r["created_at"], reverse=True)
        return rows


@pytest.fixture
def supabase():
    return FakeSupabase()


# =============================================================================
# ENVIRONMENT
# =============================================================================


@pytest.fixture(autouse=True)
def test_secrets():
    """Serve secrets from memory and reset per-container caches."""
    import utils.razorpay_client as razorpay_client
    import utils.supabase_client as supabase_client

    razorpay_client._payment_gateway = None
    supabase_client._config = None
    with patch("utils.secrets.get_all_secrets", return_value=dict(TEST_SECRETS)):
        yield TEST_SECRETS
    razorpay_client._payment_gateway = None
    supabase_client._config = None


@pytest.fixture
def lambda_context():
    return FakeLambdaContext()


@pytest.fixture(scope="session")
def load_handler():
    """Import lambda/functions/<name>/handler.py under a unique module name."""
    loaded = {}

    def _load(name: str):
        if name not in loaded:
            path = FUNCTIONS_DIR / name / "handler.py"
            spec = importlib.util.spec_from_file_location(f"{name}_handler", path)
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
            loaded[name] = module
        return loaded[name]

    return _load
