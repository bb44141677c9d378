"""
Example usage of the apiwire transports.

This example demonstrates:
1. Calling an API with the non-blocking backend
2. Making the same calls with the blocking backend
3. Reacting to InvalidAuthError separately from other failures
4. Picking the backend once at startup from configuration

Requests go to httpbin.org, which echoes what it receives.
"""

import asyncio
import json

import apiwire
from apiwire.common.config import Config, HTTPConfig, LoggingConfig, TransportBackend
from apiwire.common.logging_config import get_logger
from apiwire.http import AsyncTransport, SyncTransport
from apiwire.http.exceptions import ClientError, InvalidAuthError
from apiwire.http.headers import AUTHORIZATION, basic_auth, bearer_auth

logger = get_logger(__name__)

BASE_URL = "https://httpbin.org"


async def example_async_transport():
    """Example: non-blocking calls inside an event loop."""
    print("\n" + "=" * 60)
    print("Example 1: Async Transport")
    print("=" * 60)

    async with AsyncTransport(HTTPConfig(backend=TransportBackend.ASYNC)) as transport:
        body = await transport.get(f"{BASE_URL}/get", params={"q": "teen spirit", "limit": 2})
        print(f"GET args: {json.loads(body)['args']}")

        body = await transport.post(f"{BASE_URL}/post", payload={"name": "Road Trip"})
        print(f"POST json: {json.loads(body)['json']}")

        body = await transport.post_form(
            f"{BASE_URL}/post",
            headers={AUTHORIZATION: basic_auth("client-id", "client-secret")},
            payload={"grant_type": "client_credentials"},
        )
        print(f"POST form: {json.loads(body)['form']}")

        # Several calls share the loop while each waits on the network
        bodies = await asyncio.gather(
            *(transport.get(f"{BASE_URL}/get", params={"n": n}) for n in range(3))
        )
        print(f"Concurrent GETs: {[json.loads(b)['args'] for b in bodies]}")


def example_sync_transport():
    """Example: the same calls, blocking the calling thread."""
    print("\n" + "=" * 60)
    print("Example 2: Sync Transport")
    print("=" * 60)

    with SyncTransport(HTTPConfig(backend=TransportBackend.SYNC)) as transport:
        body = transport.put(f"{BASE_URL}/put", payload={"volume": 50})
        print(f"PUT json: {json.loads(body)['json']}")

        body = transport.delete(f"{BASE_URL}/delete", payload={"ids": ["a", "b"]})
        print(f"DELETE json: {json.loads(body)['json']}")


def example_error_handling():
    """Example: telling authentication failures apart."""
    print("\n" + "=" * 60)
    print("Example 3: Error Handling")
    print("=" * 60)

    with SyncTransport(HTTPConfig(backend=TransportBackend.SYNC)) as transport:
        for url in (f"{BASE_URL}/status/401", f"{BASE_URL}/status/503"):
            try:
                transport.get(url, headers={AUTHORIZATION: bearer_auth("expired")})
            except InvalidAuthError as e:
                print(f"Re-authenticate: {e} ({e.status_code})")
            except ClientError as e:
                print(f"Request failed: {type(e).__name__}: {e}")


def example_startup_selection():
    """Example: choose the backend once, then write callers against it."""
    print("\n" + "=" * 60)
    print("Example 4: Backend Selected at Startup")
    print("=" * 60)

    transport = apiwire.configure(
        config=Config(
            http=HTTPConfig(backend=TransportBackend.SYNC),
            logging=LoggingConfig(level="INFO", format="text"),
        )
    )
    logger.info("transport_ready", backend=type(transport).__name__)
    print(f"Active transport: {type(transport).__name__}")


def main():
    asyncio.run(example_async_transport())
    example_sync_transport()
    example_error_handling()
    example_startup_selection()


if __name__ == "__main__":
    main()
