#!/usr/bin/env python3
"""
Generate the OpenAPI JSON document for the Lab Software Requests API.

The document is produced from the FastAPI app itself, then:
- internal documentation endpoints are removed
- a bearer token security scheme is declared for the /api routes
- server entries are added for the chosen environment

Usage:
    python scripts/generate_openapi.py
    python scripts/generate_openapi.py --output custom_path.json
    python scripts/generate_openapi.py --env prod --pretty
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

# Add src to path for imports
script_dir = Path(__file__).parent.absolute()
project_root = script_dir.parent
src_path = project_root / "src"
sys.path.insert(0, str(src_path))

from labsoft_api.main import create_app  # noqa: E402
from labsoft_api.settings import Settings  # noqa: E402

HTTP_METHODS = ["get", "post", "put", "patch", "delete"]


def get_environment_servers(env: str = "dev") -> list[dict[str, str]]:
    """Get server configurations for different environments."""
    servers = {
        "dev": [{"url": "http://localhost:8000", "description": "Local development server"}],
        "prod": [{"url": "/", "description": "Same origin as the documentation"}],
    }
    return servers.get(env, servers["dev"])


def add_bearer_security(openapi_spec: dict[str, Any]) -> dict[str, Any]:
    """Declare the bearer token scheme and require it on every /api operation."""
    openapi_spec.setdefault("components", {}).setdefault("securitySchemes", {}).update(
        {
            "bearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Token from the identity provider carrying the caller identity and roles",
            },
        }
    )

    for path, methods in openapi_spec.get("paths", {}).items():
        for method, operation in methods.items():
            if method.lower() in HTTP_METHODS and path.startswith("/api/"):
                operation["security"] = [{"bearerAuth": []}]

    return openapi_spec


def filter_internal_endpoints(openapi_spec: dict[str, Any]) -> dict[str, Any]:
    """Remove documentation endpoints from the published document."""
    for path in ["/docs", "/redoc", "/openapi.json"]:
        openapi_spec.get("paths", {}).pop(path, None)
    return openapi_spec


def generate_openapi_spec(env: str = "dev") -> dict[str, Any]:
    """Generate the complete OpenAPI specification."""
    print(f"Generating OpenAPI document for environment: {env}")

    # The document does not depend on storage or keys; force the in-memory store
    settings = Settings(database_connection_string=None)
    app = create_app(settings)

    openapi_spec = app.openapi()
    openapi_spec = filter_internal_endpoints(openapi_spec)
    openapi_spec = add_bearer_security(openapi_spec)
    openapi_spec["servers"] = get_environment_servers(env)

    print(f"Generated OpenAPI document with {len(openapi_spec.get('paths', {}))} paths")
    return openapi_spec


def main() -> None:
    """Main script entry point."""
    parser = argparse.ArgumentParser(description="Generate OpenAPI JSON for the Lab Software Requests API")
    parser.add_argument(
        "--output",
        "-o",
        default="openapi/openapi.json",
        help="Output file path (default: openapi/openapi.json)",
    )
    parser.add_argument(
        "--env",
        "-e",
        choices=["dev", "prod"],
        default="dev",
        help="Environment to generate the document for (default: dev)",
    )
    parser.add_argument("--pretty", "-p", action="store_true", help="Pretty print JSON output")

    args = parser.parse_args()

    openapi_spec = generate_openapi_spec(args.env)

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        if args.pretty:
            json.dump(openapi_spec, f, indent=2, ensure_ascii=False)
        else:
            json.dump(openapi_spec, f, ensure_ascii=False)

    paths = openapi_spec.get("paths", {})
    method_count = sum(len([m for m in methods if m.lower() in HTTP_METHODS]) for methods in paths.values())
    print(f"OpenAPI document written to: {output_path.absolute()}")
    print(f"Total operations: {method_count}")


if __name__ == "__main__":
    main()
