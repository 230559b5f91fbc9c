#!/usr/bin/env python3
"""
Create the PlayerState DynamoDB table in LocalStack for local development
"""
import boto3
from botocore.exceptions import ClientError

from app.config import get_settings


def create_tables():
    """Create the DynamoDB tables used by progression-service"""
    settings = get_settings()

    # Connect to LocalStack
    dynamodb = boto3.client(
        'dynamodb',
        endpoint_url=settings.DYNAMODB_ENDPOINT or 'http://localhost:4566',
        region_name=settings.AWS_REGION,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or 'test',
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or 'test'
    )

    tables = [
        {
            'TableName': settings.DYNAMODB_PLAYER_STATE_TABLE,
            'KeySchema': [
                {'AttributeName': 'user_id', 'KeyType': 'HASH'}
            ],
            'AttributeDefinitions': [
                {'AttributeName': 'user_id', 'AttributeType': 'S'}
            ],
            'BillingMode': 'PAY_PER_REQUEST'
        }
    ]

    for table_config in tables:
        table_name = table_config['TableName']
        try:
            dynamodb.describe_table(TableName=table_name)
            print(f"✓ Table {table_name} already exists")
        except ClientError as e:
            if e.response['Error']['Code'] == 'ResourceNotFoundException':
                dynamodb.create_table(**table_config)
                print(f"✓ Created table {table_name}")
            else:
                raise

    print("\n✅ All tables ready!")


if __name__ == "__main__":
    create_tables()
