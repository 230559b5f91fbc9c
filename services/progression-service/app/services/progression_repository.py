"""
Progression Repository - Data Access Layer

One DynamoDB item per player (PlayerState table), keyed by user_id.
The item holds the JSON dump of PlayerState; level is derived and never stored.
"""
from typing import Any, Dict, Optional
from datetime import datetime, timezone
from decimal import Decimal
import logging

import boto3
from pydantic import ValidationError

from app.config import get_settings
from app.schemas import PlayerState

settings = get_settings()
logger = logging.getLogger(__name__)


class ProgressionStorageError(Exception):
    """Stored progression exists but could not be read"""
    pass


class DynamoDBClient:
    """DynamoDB client with lazy initialization"""

    def __init__(self):
        self.settings = settings
        self._dynamodb = None
        self._player_state_table = None

    @property
    def dynamodb(self):
        """Lazy initialization of DynamoDB resource"""
        if self._dynamodb is None:
            kwargs = {
                'region_name': self.settings.AWS_REGION,
            }

            # Only use endpoint_url for LocalStack
            if self.settings.DYNAMODB_ENDPOINT:
                kwargs['endpoint_url'] = self.settings.DYNAMODB_ENDPOINT

            # In ECS boto3 picks up the IAM role on its own
            if self.settings.DYNAMODB_ENDPOINT and self.settings.AWS_ACCESS_KEY_ID:
                kwargs['aws_access_key_id'] = self.settings.AWS_ACCESS_KEY_ID
                kwargs['aws_secret_access_key'] = self.settings.AWS_SECRET_ACCESS_KEY
                logger.info("Using explicit AWS credentials (LocalStack mode)")
            else:
                logger.info("Using IAM role credentials (AWS/ECS mode)")

            self._dynamodb = boto3.resource('dynamodb', **kwargs)
        return self._dynamodb

    @property
    def player_state_table(self):
        if self._player_state_table is None:
            self._player_state_table = self.dynamodb.Table(self.settings.DYNAMODB_PLAYER_STATE_TABLE)
        return self._player_state_table


class ProgressionRepository:
    """Repository para el estado de progresión en DynamoDB."""

    def __init__(self, table=None):
        """
        Args:
            table: boto3 Table resource. Defaults to the PlayerState table,
                created lazily on first use.
        """
        self._table = table
        self._client = DynamoDBClient() if table is None else None

    @property
    def table(self):
        if self._table is None:
            self._table = self._client.player_state_table
        return self._table

    def get_state(self, user_id: str) -> Optional[PlayerState]:
        """
        Carga el estado del jugador.

        Returns:
            PlayerState, or None only if the player has no stored state

        Raises:
            ProgressionStorageError: the read failed or the item is invalid.
                Callers must not treat this as a new player.
        """
        try:
            response = self.table.get_item(Key={'user_id': user_id})

            if 'Item' not in response:
                logger.info(f"No stored progression for user {user_id}")
                return None

            item = python_dict(response['Item'])
            item.pop('user_id', None)
            return PlayerState.model_validate(item)

        except ValidationError as e:
            logger.error(f"Stored progression for user {user_id} is invalid: {e}")
            raise ProgressionStorageError(f"Invalid stored progression for user {user_id}") from e
        except Exception as e:
            logger.error(f"Error getting progression for user {user_id}: {e}")
            raise ProgressionStorageError(f"Could not read progression for user {user_id}") from e

    def save_state(self, user_id: str, state: PlayerState) -> bool:
        """
        Guarda el estado completo (put, last write wins).

        Returns:
            True on success, False on any storage error
        """
        try:
            item = dynamodb_dict(state.model_dump(mode='json', exclude={'level'}))
            item['user_id'] = user_id
            item['updated_at'] = datetime.now(timezone.utc).isoformat()

            self.table.put_item(Item=item)
            logger.debug(f"Saved progression for user {user_id}")
            return True

        except Exception as e:
            logger.error(f"Error saving progression for user {user_id}: {e}")
            return False

    def delete_state(self, user_id: str) -> bool:
        try:
            self.table.delete_item(Key={'user_id': user_id})
            logger.info(f"Deleted progression for user {user_id}")
            return True
        except Exception as e:
            logger.error(f"Error deleting progression for user {user_id}: {e}")
            return False


# ============= HELPER FUNCTIONS =============

def dynamodb_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Convert Python dict to DynamoDB compatible dict (handles Decimal)"""
    return {k: dynamodb_value(v) for k, v in data.items()}


def dynamodb_value(value: Any) -> Any:
    """Convert Python value to DynamoDB compatible value"""
    if isinstance(value, float):
        return Decimal(str(value))
    elif isinstance(value, dict):
        return {k: dynamodb_value(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [dynamodb_value(item) for item in value]
    return value


def python_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Convert DynamoDB dict to Python dict (handles Decimal)"""
    return {k: python_value(v) for k, v in data.items()}


def python_value(value: Any) -> Any:
    """Convert DynamoDB value to Python value"""
    if isinstance(value, Decimal):
        return int(value) if value % 1 == 0 else float(value)
    elif isinstance(value, dict):
        return {k: python_value(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [python_value(item) for item in value]
    return value
