"""
Shared resource models for the code generation tests.
"""

import pytest

from lowcode_server.codegen.context import DsgContext, DsgResourceData
from lowcode_server.codegen.plugins import PluginRegistry
from lowcode_server.codegen.types import Entity


def system_fields():
    return [
        {"permanentId": "id", "name": "id", "displayName": "Id", "dataType": "Id"},
        {
            "permanentId": "createdAt",
            "name": "createdAt",
            "displayName": "Created At",
            "dataType": "CreatedAt",
        },
        {
            "permanentId": "updatedAt",
            "name": "updatedAt",
            "displayName": "Updated At",
            "dataType": "UpdatedAt",
        },
    ]


def customer_entity():
    return {
        "id": "customer-id",
        "name": "Customer",
        "displayName": "Customer",
        "pluralDisplayName": "Customers",
        "fields": system_fields()
        + [
            {
                "permanentId": "customer-name",
                "name": "name",
                "displayName": "Name",
                "dataType": "SingleLineText",
                "required": True,
                "searchable": True,
            },
            {
                "permanentId": "customer-orders",
                "name": "orders",
                "displayName": "Orders",
                "dataType": "Lookup",
                "properties": {
                    "relatedEntityId": "order-id",
                    "relatedFieldId": "order-customer",
                    "allowMultipleSelection": True,
                },
            },
        ],
    }


def order_entity():
    return {
        "id": "order-id",
        "name": "Order",
        "displayName": "Order",
        "pluralDisplayName": "Orders",
        "fields": system_fields()
        + [
            {
                "permanentId": "order-quantity",
                "name": "quantity",
                "displayName": "Quantity",
                "dataType": "WholeNumber",
            },
            {
                "permanentId": "order-customer",
                "name": "customer",
                "displayName": "Customer",
                "dataType": "Lookup",
                "properties": {
                    "relatedEntityId": "customer-id",
                    "relatedFieldId": "customer-orders",
                    "allowMultipleSelection": False,
                },
            },
        ],
    }


def user_entity():
    return {
        "id": "user-id",
        "name": "User",
        "displayName": "User",
        "pluralDisplayName": "Users",
        "fields": system_fields()
        + [
            {
                "permanentId": "user-username",
                "name": "username",
                "displayName": "Username",
                "dataType": "Username",
                "required": True,
            },
            {
                "permanentId": "user-password",
                "name": "password",
                "displayName": "Password",
                "dataType": "Password",
                "required": True,
            },
            {
                "permanentId": "user-roles",
                "name": "roles",
                "displayName": "Roles",
                "dataType": "Roles",
                "required": True,
            },
        ],
    }


@pytest.fixture
def resource_data_dict():
    """Raw camelCase resource data, as posted by the modeling client."""
    return {
        "resourceInfo": {
            "id": "resource-1",
            "name": "Sample Service",
            "description": "A sample service",
            "version": "1.0.0",
            "settings": {"generateRestApi": True, "generateGrpc": False},
        },
        "entities": [customer_entity(), order_entity()],
        "roles": [{"name": "admin", "displayName": "Admin"}],
    }


@pytest.fixture
def resource_data(resource_data_dict):
    return DsgResourceData.model_validate(resource_data_dict)


@pytest.fixture
def registry():
    return PluginRegistry()


@pytest.fixture
def context(resource_data, registry):
    return DsgContext(resource_data, registry)


@pytest.fixture
def customer_data():
    return customer_entity()


@pytest.fixture
def order_data():
    return order_entity()


@pytest.fixture
def user_data():
    return user_entity()


@pytest.fixture
def customer(customer_data):
    return Entity.model_validate(customer_data)


@pytest.fixture
def order(order_data):
    return Entity.model_validate(order_data)
