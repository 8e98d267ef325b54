"""DynamoDB implementation of AssetStore."""

import json
import logging
import time
from decimal import Decimal
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from vidpub_shared import AssetStatus, Category, PersistenceError, VideoAsset

logger = logging.getLogger(__name__)


def _asset_to_item(asset: VideoAsset) -> dict[str, Any]:
    """Convert VideoAsset to DynamoDB item (floats as Decimal for the resource API)."""
    d = json.loads(asset.model_dump_json(), parse_float=Decimal)
    return {k: v for k, v in d.items() if v is not None}


def _from_dynamo(value: Any) -> Any:
    # DynamoDB N type -> Decimal; the model expects int/float
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, list):
        return [_from_dynamo(v) for v in value]
    if isinstance(value, dict):
        return {k: _from_dynamo(v) for k, v in value.items()}
    return value


def _item_to_asset(item: dict[str, Any]) -> VideoAsset:
    """Convert DynamoDB item to VideoAsset."""
    return VideoAsset.model_validate(_from_dynamo(item))


def _persistence_error(action: str, asset_id: str, e: Exception) -> PersistenceError:
    if isinstance(e, ClientError):
        detail = e.response["Error"]["Code"]
    else:
        detail = str(e)
    return PersistenceError(f"{action} asset {asset_id}: {detail}")


class DynamoDBAssetStore:
    """AssetStore: DynamoDB Assets table keyed by asset_id."""

    def __init__(
        self,
        table_name: str,
        *,
        region_name: str | None = None,
        endpoint_url: str | None = None,
        resource: Any = None,
    ) -> None:
        self._table_name = table_name
        self._resource = resource or boto3.resource(
            "dynamodb",
            region_name=region_name,
            endpoint_url=endpoint_url,
        )
        self._table = self._resource.Table(table_name)

    def create(self, asset: VideoAsset) -> str:
        """
        Persist a ready asset with a single conditional put.

        The write fails (PersistenceError) if an asset with the same id already
        exists or if DynamoDB does not acknowledge the put. Timestamps set by the
        caller are stored as given; missing ones are filled with the current time.
        """
        if asset.status != AssetStatus.READY:
            raise ValueError(
                f"only ready assets may be persisted (asset_id={asset.asset_id} "
                f"status={asset.status.value})"
            )
        now = int(time.time())
        asset = asset.model_copy(
            update={
                "created_at": asset.created_at or now,
                "updated_at": asset.updated_at or now,
            }
        )
        try:
            self._table.put_item(
                Item=_asset_to_item(asset),
                ConditionExpression="attribute_not_exists(asset_id)",
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise PersistenceError(f"asset {asset.asset_id} already exists") from e
            raise _persistence_error("put", asset.asset_id, e) from e
        except BotoCoreError as e:
            raise _persistence_error("put", asset.asset_id, e) from e
        logger.info("assets: asset_id=%s created", asset.asset_id)
        return asset.asset_id

    def get(self, asset_id: str, *, consistent_read: bool = False) -> VideoAsset | None:
        """Return the asset if it exists, otherwise None."""
        try:
            resp = self._table.get_item(
                Key={"asset_id": asset_id},
                ConsistentRead=consistent_read,
            )
        except (ClientError, BotoCoreError) as e:
            raise _persistence_error("get", asset_id, e) from e
        item = resp.get("Item")
        if not item:
            return None
        return _item_to_asset(item)

    def update_metadata(
        self,
        asset_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
        categories: list[Category] | None = None,
        tags: list[str] | None = None,
        is_published: bool | None = None,
    ) -> VideoAsset | None:
        """Update selected metadata fields and updated_at. Returns None if the asset is missing."""
        updates: list[str] = ["#ua = :ua"]
        expr_names: dict[str, str] = {"#ua": "updated_at"}
        expr_values: dict[str, Any] = {":ua": int(time.time())}

        if title is not None:
            updates.append("#ti = :ti")
            expr_names["#ti"] = "title"
            expr_values[":ti"] = title
        if description is not None:
            updates.append("#de = :de")
            expr_names["#de"] = "description"
            expr_values[":de"] = description
        if categories is not None:
            updates.append("#ca = :ca")
            expr_names["#ca"] = "categories"
            expr_values[":ca"] = [Category(c).value for c in categories]
        if tags is not None:
            updates.append("#tg = :tg")
            expr_names["#tg"] = "tags"
            expr_values[":tg"] = list(tags)
        if is_published is not None:
            updates.append("#ip = :ip")
            expr_names["#ip"] = "is_published"
            expr_values[":ip"] = is_published

        try:
            resp = self._table.update_item(
                Key={"asset_id": asset_id},
                UpdateExpression="SET " + ", ".join(updates),
                ConditionExpression="attribute_exists(asset_id)",
                ExpressionAttributeNames=expr_names,
                ExpressionAttributeValues=expr_values,
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return None
            raise _persistence_error("update", asset_id, e) from e
        except BotoCoreError as e:
            raise _persistence_error("update", asset_id, e) from e
        return _item_to_asset(resp["Attributes"])

    def increment_views(self, asset_id: str) -> None:
        """Atomically add one to the view counter; no-op for missing assets."""
        try:
            self._table.update_item(
                Key={"asset_id": asset_id},
                UpdateExpression="ADD #v :one",
                ConditionExpression="attribute_exists(asset_id)",
                ExpressionAttributeNames={"#v": "views"},
                ExpressionAttributeValues={":one": 1},
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                logger.debug("assets: asset_id=%s increment_views on missing asset", asset_id)
                return
            raise _persistence_error("increment views of", asset_id, e) from e
        except BotoCoreError as e:
            raise _persistence_error("increment views of", asset_id, e) from e

    def delete(self, asset_id: str) -> None:
        """Delete the asset record."""
        try:
            self._table.delete_item(Key={"asset_id": asset_id})
        except (ClientError, BotoCoreError) as e:
            raise _persistence_error("delete", asset_id, e) from e
        logger.info("assets: asset_id=%s deleted", asset_id)
