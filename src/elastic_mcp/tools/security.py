from __future__ import annotations

from typing import Any, Dict, List

from ..client import ElasticClient, Failure
from ..mcp import ToolSpec
from ..util.results import ToolResult, error_result, json_result, text_result

_EMPTY: Dict[str, Any] = {"type": "object", "properties": {}, "additionalProperties": False}

_STRINGS: Dict[str, Any] = {"type": "array", "items": {"type": "string"}}


def _named_entries(data: Any, key: str) -> List[Dict[str, Any]]:
    # {"alice": {...}, "bob": {...}} -> [{"username": "alice", ...}, ...]
    if not isinstance(data, dict):
        return []
    return [{key: name, **(body if isinstance(body, dict) else {})} for name, body in data.items()]


def _without(args: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    return {k: v for k, v in args.items() if k not in keys}


def build_tools(client: ElasticClient) -> List[ToolSpec]:
    # ---- users ----
    async def list_users(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.get("/_security/user")
        if isinstance(outcome, Failure):
            return error_result("Failed to list users", outcome)
        users = _named_entries(outcome.data, "username")
        return json_result({"count": len(users), "users": users})

    async def get_user(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.get(f"/_security/user/{args['username']}")
        if isinstance(outcome, Failure):
            return error_result("User not found", outcome)
        return json_result(outcome.data)

    async def create_user(args: Dict[str, Any]) -> ToolResult:
        username = args["username"]
        outcome = await client.post(f"/_security/user/{username}", _without(args, "username"))
        if isinstance(outcome, Failure):
            return error_result("Failed to create user", outcome)
        return text_result(f"User '{username}' created successfully with roles: {', '.join(args['roles'])}")

    async def delete_user(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.delete(f"/_security/user/{args['username']}")
        if isinstance(outcome, Failure):
            return error_result("Failed to delete user", outcome)
        return text_result(f"User '{args['username']}' deleted successfully")

    async def set_user_enabled(args: Dict[str, Any]) -> ToolResult:
        enabled = args["enabled"]
        action = "_enable" if enabled else "_disable"
        outcome = await client.put(f"/_security/user/{args['username']}/{action}")
        if isinstance(outcome, Failure):
            return error_result("Failed to update user", outcome)
        return text_result(f"User '{args['username']}' {'enabled' if enabled else 'disabled'} successfully")

    # ---- roles ----
    async def list_roles(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.get("/_security/role")
        if isinstance(outcome, Failure):
            return error_result("Failed to list roles", outcome)
        roles = _named_entries(outcome.data, "name")
        return json_result({"count": len(roles), "roles": roles})

    async def get_role(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.get(f"/_security/role/{args['name']}")
        if isinstance(outcome, Failure):
            return error_result("Role not found", outcome)
        return json_result(outcome.data)

    async def create_role(args: Dict[str, Any]) -> ToolResult:
        name = args["name"]
        outcome = await client.put(f"/_security/role/{name}", _without(args, "name"))
        if isinstance(outcome, Failure):
            return error_result("Failed to create role", outcome)
        return text_result(f"Role '{name}' created/updated successfully")

    async def delete_role(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.delete(f"/_security/role/{args['name']}")
        if isinstance(outcome, Failure):
            return error_result("Failed to delete role", outcome)
        return text_result(f"Role '{args['name']}' deleted successfully")

    # ---- api keys ----
    async def list_api_keys(args: Dict[str, Any]) -> ToolResult:
        params: Dict[str, Any] = {}
        if "owner" in args:
            params["owner"] = args["owner"]
        if args.get("name"):
            params["name"] = args["name"]
        if args.get("realm_name"):
            params["realm_name"] = args["realm_name"]
        outcome = await client.get("/_security/api_key", params)
        if isinstance(outcome, Failure):
            return error_result("Failed to list API keys", outcome)
        return json_result(outcome.data)

    async def create_api_key(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.post("/_security/api_key", args)
        if isinstance(outcome, Failure):
            return error_result("Failed to create API key", outcome)
        data = outcome.data if isinstance(outcome.data, dict) else {}
        # the raw api_key is withheld; callers get the encoded form only
        return json_result({
            "message": "API key created successfully. IMPORTANT: Save the encoded value - it cannot be retrieved again!",
            "id": data.get("id"),
            "name": data.get("name"),
            "encoded": data.get("encoded"),
            "expiration": data.get("expiration"),
        })

    async def invalidate_api_key(args: Dict[str, Any]) -> ToolResult:
        body: Dict[str, Any] = {}
        if args.get("ids"):
            body["ids"] = args["ids"]
        if args.get("name"):
            body["name"] = args["name"]
        if "owner" in args:
            body["owner"] = args["owner"]
        outcome = await client.delete("/_security/api_key", body)
        if isinstance(outcome, Failure):
            return error_result("Failed to invalidate API keys", outcome)
        return json_result(outcome.data)

    # ---- privileges ----
    async def get_privileges(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.get("/_security/user/_privileges")
        if isinstance(outcome, Failure):
            return error_result("Failed to get privileges", outcome)
        return json_result(outcome.data)

    async def has_privileges(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.post("/_security/user/_has_privileges", args)
        if isinstance(outcome, Failure):
            return error_result("Failed to check privileges", outcome)
        return json_result(outcome.data)

    async def authenticate(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.get("/_security/_authenticate")
        if isinstance(outcome, Failure):
            return error_result("Authentication check failed", outcome)
        return json_result(outcome.data)

    return [
        ToolSpec("list_users", "List Users", "List all users in the Elasticsearch security realm.", _EMPTY, list_users),
        ToolSpec("get_user", "Get User", "Get detailed information about a specific user.", GET_USER_SCHEMA, get_user),
        ToolSpec("create_user", "Create User", "Create a new user with specified roles and permissions.", CREATE_USER_SCHEMA, create_user),
        ToolSpec("delete_user", "Delete User", "Delete a user from Elasticsearch. This action cannot be undone.", DELETE_USER_SCHEMA, delete_user),
        ToolSpec("set_user_enabled", "Enable/Disable User", "Enable or disable a user account.", SET_USER_ENABLED_SCHEMA, set_user_enabled),
        ToolSpec("list_roles", "List Roles", "List all roles defined in Elasticsearch.", _EMPTY, list_roles),
        ToolSpec("get_role", "Get Role", "Get detailed information about a specific role.", GET_ROLE_SCHEMA, get_role),
        ToolSpec("create_role", "Create Role", "Create or update a role with specified cluster and index privileges.", CREATE_ROLE_SCHEMA, create_role),
        ToolSpec("delete_role", "Delete Role", "Delete a role from Elasticsearch.", DELETE_ROLE_SCHEMA, delete_role),
        ToolSpec("list_api_keys", "List API Keys", "List API keys. Can filter by owner, name, or realm.", LIST_API_KEYS_SCHEMA, list_api_keys),
        ToolSpec("create_api_key", "Create API Key", "Create a new API key for authentication.", CREATE_API_KEY_SCHEMA, create_api_key),
        ToolSpec("invalidate_api_key", "Invalidate API Keys", "Invalidate one or more API keys.", INVALIDATE_API_KEY_SCHEMA, invalidate_api_key),
        ToolSpec("get_privileges", "Get Privileges", "Get the privileges for the current authenticated user.", _EMPTY, get_privileges),
        ToolSpec("has_privileges", "Has Privileges", "Check if the current user has specific cluster or index privileges.", HAS_PRIVILEGES_SCHEMA, has_privileges),
        ToolSpec("authenticate", "Authenticate", "Get information about the currently authenticated user.", _EMPTY, authenticate),
    ]


GET_USER_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["username"],
    "properties": {"username": {"type": "string", "description": "Username to retrieve"}},
    "additionalProperties": False,
}

DELETE_USER_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["username"],
    "properties": {"username": {"type": "string", "description": "Username to delete"}},
    "additionalProperties": False,
}

CREATE_USER_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["username", "roles"],
    "properties": {
        "username": {"type": "string", "description": "Username"},
        "password": {"type": "string", "description": "Password (optional if using external auth)"},
        "roles": {**_STRINGS, "description": "List of role names"},
        "full_name": {"type": "string", "description": "Full name"},
        "email": {"type": "string", "format": "email", "description": "Email address"},
        "enabled": {"type": "boolean", "default": True, "description": "Whether the user is enabled"},
        "metadata": {"type": "object", "description": "Custom metadata"},
    },
    "additionalProperties": False,
}

SET_USER_ENABLED_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["username", "enabled"],
    "properties": {
        "username": {"type": "string", "description": "Username"},
        "enabled": {"type": "boolean", "description": "Whether to enable (true) or disable (false) the user"},
    },
    "additionalProperties": False,
}

GET_ROLE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["name"],
    "properties": {"name": {"type": "string", "description": "Role name"}},
    "additionalProperties": False,
}

DELETE_ROLE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["name"],
    "properties": {"name": {"type": "string", "description": "Role name to delete"}},
    "additionalProperties": False,
}

_INDEX_PRIVILEGE: Dict[str, Any] = {
    "type": "object",
    "required": ["names", "privileges"],
    "properties": {
        "names": {**_STRINGS, "description": "Index patterns"},
        "privileges": {**_STRINGS, "description": "Index privileges"},
        "field_security": {
            "type": "object",
            "properties": {"grant": _STRINGS, "except": _STRINGS},
            "additionalProperties": False,
        },
        "query": {"type": "string", "description": "Document-level security query"},
    },
    "additionalProperties": False,
}

CREATE_ROLE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["name"],
    "properties": {
        "name": {"type": "string", "description": "Role name"},
        "cluster": {**_STRINGS, "description": "Cluster privileges"},
        "indices": {"type": "array", "items": _INDEX_PRIVILEGE, "description": "Index privileges"},
        "applications": {
            "type": "array",
            "description": "Application privileges",
            "items": {
                "type": "object",
                "required": ["application", "privileges", "resources"],
                "properties": {
                    "application": {"type": "string"},
                    "privileges": _STRINGS,
                    "resources": _STRINGS,
                },
                "additionalProperties": False,
            },
        },
        "run_as": {**_STRINGS, "description": "Users this role can impersonate"},
        "metadata": {"type": "object"},
    },
    "additionalProperties": False,
}

LIST_API_KEYS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "owner": {"type": "boolean", "description": "If true, only return keys owned by the current user"},
        "name": {"type": "string", "description": "Filter by API key name (supports wildcards)"},
        "realm_name": {"type": "string", "description": "Filter by authentication realm"},
    },
    "additionalProperties": False,
}

CREATE_API_KEY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["name"],
    "properties": {
        "name": {"type": "string", "description": "API key name"},
        "expiration": {"type": "string", "description": 'Expiration time (e.g., "1d", "30d")'},
        "role_descriptors": {
            "type": "object",
            "description": "Custom role descriptors",
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "cluster": _STRINGS,
                    "indices": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["names", "privileges"],
                            "properties": {"names": _STRINGS, "privileges": _STRINGS},
                        },
                    },
                },
            },
        },
        "metadata": {"type": "object"},
    },
    "additionalProperties": False,
}

INVALIDATE_API_KEY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "ids": {**_STRINGS, "description": "Array of API key IDs to invalidate"},
        "name": {"type": "string", "description": "API key name to invalidate (supports wildcards)"},
        "owner": {"type": "boolean", "description": "If true, only invalidate keys owned by current user"},
    },
    "additionalProperties": False,
}

HAS_PRIVILEGES_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "cluster": {**_STRINGS, "description": "Cluster privileges to check"},
        "index": {
            "type": "array",
            "description": "Index privileges to check",
            "items": {
                "type": "object",
                "required": ["names", "privileges"],
                "properties": {
                    "names": {**_STRINGS, "description": "Index patterns"},
                    "privileges": {**_STRINGS, "description": "Privileges to check"},
                },
                "additionalProperties": False,
            },
        },
    },
    "additionalProperties": False,
}
