"""
Starter schemas written by ``envguard init``.
"""

from typing import Any

BASIC_TEMPLATE: dict[str, dict[str, Any]] = {
    "NODE_ENV": {
        "type": "enum",
        "description": "Application environment",
        "allowedValues": ["development", "production", "test"],
        "default": "development",
        "required": True,
    },
    "PORT": {
        "type": "number",
        "description": "Server port number",
        "default": 3000,
        "required": False,
    },
    "DATABASE_URL": {
        "type": "string",
        "description": "Database connection URL",
        "isSensitive": True,
        "required": True,
    },
}

COMPREHENSIVE_TEMPLATE: dict[str, dict[str, Any]] = {
    "NODE_ENV": BASIC_TEMPLATE["NODE_ENV"],
    "PORT": {
        "type": "number",
        "description": "Server port number",
        "min": 1,
        "max": 65535,
        "default": 3000,
        "required": False,
    },
    "DATABASE_URL": {
        "type": "url",
        "description": "Database connection URL",
        "isSensitive": True,
        "required": True,
    },
    "JWT_SECRET": {
        "type": "string",
        "description": "Secret key for JWT token signing",
        "min": 32,
        "isSensitive": True,
        "required": True,
    },
    "API_KEY": {
        "type": "string",
        "description": "External API key",
        "pattern": "^[a-zA-Z0-9]{32}$",
        "isSensitive": True,
        "required": True,
    },
    "DEBUG": {
        "type": "boolean",
        "description": "Enable debug mode",
        "default": False,
        "required": False,
    },
    "REDIS_CONFIG": {
        "type": "json",
        "description": "Redis configuration object",
        "required": False,
    },
    "ADMIN_EMAIL": {
        "type": "email",
        "description": "Administrator email address",
        "required": True,
    },
    "MAX_CONNECTIONS": {
        "type": "number",
        "description": "Maximum number of database connections",
        "min": 1,
        "max": 100,
        "default": 10,
        "required": False,
    },
    "LOG_LEVEL": {
        "type": "enum",
        "description": "Logging level",
        "allowedValues": ["error", "warn", "info", "debug"],
        "default": "info",
        "required": False,
    },
}

TEMPLATES = {
    "basic": BASIC_TEMPLATE,
    "comprehensive": COMPREHENSIVE_TEMPLATE,
}
