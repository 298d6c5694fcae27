"""
Static configuration for the users entity.

Users are suspended rather than deleted, so no delete endpoint override is set
and the session relies on the base/:id convention if a delete is ever issued.
"""

from entity_admin.schemas.entity import (
    ColumnDescriptor,
    EntityConfiguration,
    EntityEndpoints,
    FieldDescriptor,
    FieldOption,
    FieldType,
    FilterDescriptor,
    FilterOperator,
    ValidationRule,
)
from entity_admin.services.column_factory import create_date_column, create_status_column

ROLE_OPTIONS = [
    FieldOption(label="User", value="USER"),
    FieldOption(label="Host", value="HOST"),
    FieldOption(label="Admin", value="ADMIN"),
]

STATUS_OPTIONS = [
    FieldOption(label="Active", value="ACTIVE"),
    FieldOption(label="Suspended", value="SUSPENDED"),
    FieldOption(label="Pending", value="PENDING_VERIFICATION"),
]

USER_STATUS_COLORS = {
    "ACTIVE": "success",
    "SUSPENDED": "error",
    "PENDING_VERIFICATION": "warning",
    "DEACTIVATED": "default",
}


def build_users_config() -> EntityConfiguration:
    return EntityConfiguration(
        name="User",
        plural_name="Users",
        slug="users",
        description="Manage system users, roles, and verification status",
        endpoints=EntityEndpoints(
            base="/admin/users",
            list_endpoint="/admin/users",
            get_by_id=lambda record_id: f"/admin/users/{record_id}",
            update_by_id=lambda record_id: f"/admin/users/{record_id}",
        ),
        columns=[
            ColumnDescriptor(accessor_key="firstName", header="First Name"),
            ColumnDescriptor(
                accessor_key="lastName",
                header="Last Name",
                renderer=lambda value, record: value or "-",
            ),
            ColumnDescriptor(accessor_key="email", header="Email"),
            ColumnDescriptor(accessor_key="role", header="Role"),
            create_status_column(color_map=USER_STATUS_COLORS),
            create_date_column("createdAt", label="Joined"),
        ],
        fields=[
            FieldDescriptor(
                key="firstName",
                label="First Name",
                type=FieldType.TEXT,
                validation=ValidationRule(required=True),
            ),
            FieldDescriptor(key="lastName", label="Last Name", type=FieldType.TEXT),
            FieldDescriptor(
                key="email",
                label="Email",
                type=FieldType.EMAIL,
                validation=ValidationRule(required=True, email=True),
            ),
            FieldDescriptor(
                key="role",
                label="Role",
                type=FieldType.SELECT,
                options=ROLE_OPTIONS,
                validation=ValidationRule(required=True),
            ),
        ],
        filters=[
            FilterDescriptor(
                key="role", label="Role", type=FieldType.SELECT,
                operator=FilterOperator.EQ, options=ROLE_OPTIONS,
            ),
            FilterDescriptor(
                key="status", label="Status", type=FieldType.SELECT,
                operator=FilterOperator.EQ, options=STATUS_OPTIONS,
            ),
        ],
    )
