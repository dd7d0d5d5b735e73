from marshmallow import Schema, fields, validate, EXCLUDE


class RegisterSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True, error_messages={"invalid": "Invalid email format"})
    password = fields.String(
        required=True,
        load_only=True,
        validate=validate.Length(min=8, error="Password must be at least 8 characters long"),
    )


class LoginSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True, error_messages={"invalid": "Invalid email format"})
    password = fields.String(
        required=True,
        load_only=True,
        validate=validate.Length(min=1, error="Password is required"),
    )


class UserOutSchema(Schema):
    """Public view of a user. The password hash is never part of it."""
    id = fields.String(allow_none=False)
    email = fields.String(allow_none=False)
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")
