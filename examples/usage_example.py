"""
Example usage of the Relay SDK.

This example declares a small API client (connector + requests), adds a
plugin and middleware, and sends requests against a mock client so it runs
without network access.
"""

import asyncio
import logging

from pydantic import BaseModel

from relay_sdk import Connector
from relay_sdk import MockClient
from relay_sdk import MockResponse
from relay_sdk import Request
from relay_sdk import SendsJsonBody
from relay_sdk import TokenAuthenticator
from relay_sdk.plugins.builtin import AcceptsJson
from relay_sdk.plugins.builtin import HeadersPlugin
from relay_sdk.plugins.builtin import LogsTraffic

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class Offer(BaseModel):
    id: str
    price: int
    items_in_stock: int


class OffersApi(AcceptsJson, LogsTraffic, Connector):
    base_url = "https://api.example.com/api/v1"

    def __init__(self, token: str):
        self.token = token

    def default_auth(self):
        return TokenAuthenticator(self.token)

    def default_plugins(self):
        return [HeadersPlugin({"User-Agent": "relay-sdk-example"})]


class GetOffers(Request):
    method = "GET"

    def __init__(self, product_id: str):
        self.product_id = product_id

    def resolve_endpoint(self):
        return f"/products/{self.product_id}/offers"


class RegisterProduct(SendsJsonBody, Request):
    method = "POST"
    endpoint = "/products/register"

    def __init__(self, product_id: str, name: str):
        self.product_id = product_id
        self.name = name

    def default_data(self):
        return {"id": self.product_id, "name": self.name}


def main():
    mock = MockClient(
        {
            RegisterProduct: MockResponse({"id": "p-1"}, status=201),
            "https://api.example.com/api/v1/products/*/offers": MockResponse(
                [{"id": "o-1", "price": 1999, "items_in_stock": 4}]
            ),
        }
    )

    with OffersApi("your-access-token").with_mock_client(mock) as api:
        registered = api.send(RegisterProduct("p-1", "Widget"))
        logger.info(f"Registered product {registered.json('id')} ({registered.status})")

        offers = [Offer.model_validate(item) for item in api.send(GetOffers("p-1")).json()]
        logger.info(f"Offers: {offers}")

    mock.assert_sent(RegisterProduct)
    mock.assert_sent_count(2)


async def main_async():
    api = OffersApi("your-access-token")
    mock = MockClient([MockResponse([], status=200)])
    async with api:
        response = await api.send_async(GetOffers("p-2"), mock_client=mock)
        logger.info(f"Async offers: {response.json()}")


if __name__ == "__main__":
    main()
    asyncio.run(main_async())
