#!/usr/bin/env python3
"""
Manual check for the msGraphConnector endpoint.

Signs in through the browser (authorization code flow), then calls the
running connector with the obtained token and prints the response.

Prerequisites:
1. The connector must be running locally (python -m graph_connector.main)
2. An Entra ID app registration with Files.Read.All and Sites.Read.All
3. AZURE_CLIENT_ID and AZURE_TENANT_ID set in the environment

Usage:
    python manual_connector_check.py [searchTerm]
"""

import asyncio
import json
import sys
import threading
import webbrowser
from http.server import BaseHTTPRequestHandler, HTTPServer
from urllib.parse import parse_qs, urlencode, urlparse

import httpx
import jwt
from pydantic_settings import BaseSettings, SettingsConfigDict

CALLBACK_PORT = 3000
CALLBACK_PATH = "/auth/callback"
SCOPES = [
    "https://graph.microsoft.com/Files.Read.All",
    "https://graph.microsoft.com/Sites.Read.All",
]


class HarnessSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    AZURE_CLIENT_ID: str | None = None
    AZURE_TENANT_ID: str | None = None
    AZURE_CLIENT_SECRET: str | None = None
    FUNCTION_URL: str = "http://localhost:7071/api/msGraphConnector"

    @property
    def redirect_uri(self) -> str:
        return f"http://localhost:{CALLBACK_PORT}{CALLBACK_PATH}"

    @property
    def authority(self) -> str:
        return f"https://login.microsoftonline.com/{self.AZURE_TENANT_ID}/oauth2/v2.0"


class CallbackHandler(BaseHTTPRequestHandler):
    result: dict[str, str] = {}
    done = threading.Event()

    def do_GET(self) -> None:
        parsed = urlparse(self.path)
        if parsed.path != CALLBACK_PATH:
            self._reply(404, "text/plain", "Not Found")
            return

        query = {k: v[0] for k, v in parse_qs(parsed.query).items()}
        if "error" in query:
            self._reply(
                400,
                "text/html",
                f"<h1>Authentication Error</h1><p>{query['error']}: "
                f"{query.get('error_description', '')}</p>",
            )
            CallbackHandler.result = {"error": query["error"]}
        elif "code" in query:
            self._reply(
                200,
                "text/html",
                "<h1>Authentication Successful!</h1>"
                "<p>You can close this window and return to the terminal.</p>",
            )
            CallbackHandler.result = {"code": query["code"]}
        else:
            self._reply(
                400,
                "text/html",
                "<h1>Authentication Error</h1><p>No authorization code received</p>",
            )
            CallbackHandler.result = {"error": "No authorization code received"}
        CallbackHandler.done.set()

    def _reply(self, status_code: int, content_type: str, body: str) -> None:
        self.send_response(status_code)
        self.send_header("Content-Type", content_type)
        self.end_headers()
        self.wfile.write(body.encode())

    def log_message(self, format: str, *args) -> None:
        pass


def wait_for_auth_code(config: HarnessSettings) -> str:
    """Open the browser for sign-in and block until the callback delivers a code."""
    server = HTTPServer(("localhost", CALLBACK_PORT), CallbackHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    print(f"📡 Callback server started on http://localhost:{CALLBACK_PORT}")

    auth_url = f"{config.authority}/authorize?" + urlencode(
        {
            "client_id": config.AZURE_CLIENT_ID,
            "response_type": "code",
            "redirect_uri": config.redirect_uri,
            "scope": " ".join(SCOPES),
            "response_mode": "query",
            "prompt": "select_account",
        }
    )
    print("🌐 Opening browser for authentication...")
    print(f"📋 Auth URL: {auth_url}")
    if not webbrowser.open(auth_url):
        print("⚠️  Could not open browser automatically. Please open the URL above manually.")

    print("⏳ Waiting for authentication...")
    CallbackHandler.done.wait()
    server.shutdown()

    if "error" in CallbackHandler.result:
        raise RuntimeError(f"Authentication error: {CallbackHandler.result['error']}")
    return CallbackHandler.result["code"]


async def get_access_token(config: HarnessSettings, auth_code: str) -> str:
    """Exchange the authorization code for an access token."""
    data = {
        "client_id": config.AZURE_CLIENT_ID,
        "scope": " ".join(SCOPES),
        "code": auth_code,
        "redirect_uri": config.redirect_uri,
        "grant_type": "authorization_code",
    }
    if config.AZURE_CLIENT_SECRET:
        data["client_secret"] = config.AZURE_CLIENT_SECRET

    print("🔑 Exchanging authorization code for access token...")
    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.post(f"{config.authority}/token", data=data)
    if response.status_code != 200:
        print(f"❌ Error getting access token: {response.text}")
        response.raise_for_status()
    return response.json()["access_token"]


def describe_token(access_token: str) -> None:
    """Print the claims that matter for the on-behalf-of exchange."""
    try:
        claims = jwt.decode(access_token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        print(f"⚠️  Token is not a readable JWT: {e}")
        return
    print(f"Audience: {claims.get('aud')}")
    print(f"Scopes: {claims.get('scp')}")
    print(f"User: {claims.get('upn') or claims.get('preferred_username')}")
    print(f"Expires: {claims.get('exp')}")


async def test_function(config: HarnessSettings, access_token: str, search_term: str):
    print(f'🔍 Testing function with search term: "{search_term}"')
    print(f"📡 Function URL: {config.FUNCTION_URL}")

    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            response = await client.post(
                config.FUNCTION_URL,
                json={"searchTerm": search_term},
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.ConnectError:
            print("❌ Function test failed: connection refused")
            print("\n💡 Tip: Make sure the connector is running locally")
            return

    if response.is_success:
        print("✅ Function Response:")
    else:
        print("❌ Function test failed:")
    print(f"Status: {response.status_code}")
    try:
        print(f"Data: {json.dumps(response.json(), indent=2)}")
    except ValueError:
        print(f"Data: {response.text}")


async def main():
    config = HarnessSettings()
    print("🚀 msGraphConnector Test Script")
    print("=" * 30)

    if not config.AZURE_CLIENT_ID or not config.AZURE_TENANT_ID:
        print("❌ Error: Please set AZURE_CLIENT_ID and AZURE_TENANT_ID environment variables")
        print("\nExample:")
        print("export AZURE_CLIENT_ID=12345678-1234-1234-1234-123456789abc")
        print("export AZURE_TENANT_ID=87654321-4321-4321-4321-cba987654321")
        sys.exit(1)

    search_term = sys.argv[1] if len(sys.argv) > 1 else "test"
    try:
        auth_code = await asyncio.to_thread(wait_for_auth_code, config)
        access_token = await get_access_token(config, auth_code)
        print("✅ Access token obtained successfully")
        describe_token(access_token)
        await test_function(config, access_token, search_term)
        print("\n🎉 Test completed!")
    except Exception as e:
        print(f"❌ Test failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
