from decimal import Decimal
from functools import reduce
from typing import Any, Dict, List, Optional
import logging

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings

logger = logging.getLogger(__name__)

# Initialize DynamoDB resource
dynamodb = boto3.resource("dynamodb", region_name=settings.DYNAMO_REGION)

# Get table references
users_table = dynamodb.Table(settings.DYNAMO_USERS_TABLE)
transactions_table = dynamodb.Table(settings.DYNAMO_TRANSACTIONS_TABLE)


class DataAccessError(Exception):
    """A data store call failed; the message is safe to show to users."""


def _error_message(e: Exception) -> str:
    if isinstance(e, ClientError):
        return e.response["Error"]["Message"]
    return str(e)


def get_user_by_email(email: str):
    """Query the Users table by email (assumes a GSI exists on email)."""
    try:
        response = users_table.query(
            IndexName="email-index",
            KeyConditionExpression=Key("email").eq(email),
        )
        return _from_dynamo(response["Items"][0]) if response["Items"] else None
    except (ClientError, BotoCoreError) as e:
        logger.error(f"get_user_by_email failed: {_error_message(e)}")
        raise DataAccessError("Could not load user account") from e


def get_user_by_id(user_id: str):
    """Get user by user_id from the Users table."""
    try:
        response = users_table.get_item(Key={"user_id": user_id})
        item = response.get("Item")
        return _from_dynamo(item) if item else None
    except (ClientError, BotoCoreError) as e:
        logger.error(f"get_user_by_id failed: {_error_message(e)}")
        raise DataAccessError("Could not load user account") from e


def put_user(user_item: dict):
    """Insert a new user into the Users table."""
    try:
        users_table.put_item(Item=_convert_for_dynamo(user_item))
        return True
    except (ClientError, BotoCoreError) as e:
        logger.error(f"put_user failed: {_error_message(e)}")
        return False


def put_transaction(transaction_item: dict):
    """Insert or replace a transaction for a user."""
    try:
        transactions_table.put_item(Item=_convert_for_dynamo(transaction_item))
        return True
    except (ClientError, BotoCoreError) as e:
        logger.error(f"put_transaction failed: {_error_message(e)}")
        return False


def get_transactions(
    user_id: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    category: Optional[str] = None,
    type: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Query all transactions owned by user_id, optionally restricted to an
    inclusive date range, a category and/or a type. Results are returned
    newest first (by date, then creation time).
    """
    filters = []
    if start_date:
        filters.append(Attr("date").gte(start_date))
    if end_date:
        filters.append(Attr("date").lte(end_date))
    if category:
        filters.append(Attr("category").eq(category))
    if type:
        filters.append(Attr("type").eq(type))

    query_kwargs: Dict[str, Any] = {"KeyConditionExpression": Key("user_id").eq(user_id)}
    if filters:
        query_kwargs["FilterExpression"] = reduce(lambda a, b: a & b, filters)

    items: List[Dict[str, Any]] = []
    try:
        while True:
            response = transactions_table.query(**query_kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            query_kwargs["ExclusiveStartKey"] = last_key
    except (ClientError, BotoCoreError) as e:
        logger.error(f"get_transactions failed: {_error_message(e)}")
        raise DataAccessError("Could not load transactions") from e

    transactions = [_from_dynamo(item) for item in items]
    transactions.sort(key=lambda t: (t.get("date", ""), t.get("created_at", "")), reverse=True)
    return transactions


def get_transaction(user_id: str, transaction_id: str):
    """Fetch a single transaction item."""
    try:
        response = transactions_table.get_item(Key={"user_id": user_id, "transaction_id": transaction_id})
        item = response.get("Item")
        return _from_dynamo(item) if item else None
    except (ClientError, BotoCoreError) as e:
        logger.error(f"get_transaction failed: {_error_message(e)}")
        raise DataAccessError("Could not load transaction") from e


def update_transaction(user_id: str, transaction_id: str, updates: dict):
    """
    Apply partial updates to an existing transaction. Returns the updated
    item, or None when it does not exist. Raises DataAccessError when the
    write itself fails.
    """
    if not updates:
        return None

    update_expression_parts = []
    expression_attribute_values = {}
    expression_attribute_names = {"#pk": "user_id"}

    for idx, (key, value) in enumerate(updates.items()):
        placeholder = f"#f{idx}"
        value_placeholder = f":v{idx}"
        update_expression_parts.append(f"{placeholder} = {value_placeholder}")
        expression_attribute_names[placeholder] = key
        expression_attribute_values[value_placeholder] = value

    update_expression = "SET " + ", ".join(update_expression_parts)

    try:
        response = transactions_table.update_item(
            Key={"user_id": user_id, "transaction_id": transaction_id},
            UpdateExpression=update_expression,
            ConditionExpression="attribute_exists(#pk)",
            ExpressionAttributeNames=expression_attribute_names,
            ExpressionAttributeValues=_convert_for_dynamo(expression_attribute_values),
            ReturnValues="ALL_NEW",
        )
        attributes = response.get("Attributes")
        return _from_dynamo(attributes) if attributes else None
    except ClientError as e:
        if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
            return None
        logger.error(f"update_transaction failed: {_error_message(e)}")
        raise DataAccessError("Could not update transaction") from e
    except BotoCoreError as e:
        logger.error(f"update_transaction failed: {_error_message(e)}")
        raise DataAccessError("Could not update transaction") from e


def delete_transaction(user_id: str, transaction_id: str):
    """Delete a specific transaction item. Returns False when it does not exist."""
    try:
        response = transactions_table.delete_item(
            Key={"user_id": user_id, "transaction_id": transaction_id},
            ReturnValues="ALL_OLD",
        )
        return "Attributes" in response
    except (ClientError, BotoCoreError) as e:
        logger.error(f"delete_transaction failed: {_error_message(e)}")
        raise DataAccessError("Could not delete transaction") from e


def _convert_for_dynamo(obj: Any):
    """
    Recursively convert floats to Decimal for DynamoDB compatibility.
    """
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, dict):
        return {k: _convert_for_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_convert_for_dynamo(v) for v in obj]
    return obj


def _from_dynamo(obj: Any):
    """
    Recursively convert Decimal instances back to native Python numeric types.
    """
    if isinstance(obj, list):
        return [_from_dynamo(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _from_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    return obj
