"""
Tests for the Response object.
"""

import pytest
from pydantic import BaseModel
from pydantic import ValidationError

from relay_sdk.exceptions import ClientException
from relay_sdk.exceptions import ServerException
from relay_sdk.mock import MockResponse
from relay_sdk.pending_request import build_pending_request
from tests.fakes import ApiConnector
from tests.fakes import GetUser


class Profile(BaseModel):
    id: int
    email: str


class GetProfile(GetUser):
    dto_model = Profile


def make_response(body=None, status=200, headers=None, request=None):
    pending = build_pending_request(ApiConnector(), request or GetUser(1))
    return pending.create_response(MockResponse(body, status=status, headers=headers).to_unified())


@pytest.mark.parametrize(
    "status, successful, redirect, client_error, server_error",
    [
        (200, True, False, False, False),
        (204, True, False, False, False),
        (301, False, True, False, False),
        (404, False, False, True, False),
        (503, False, False, False, True),
    ],
)
def test_status_helpers(status, successful, redirect, client_error, server_error):
    response = make_response(status=status)

    assert response.successful() is successful
    assert response.redirect() is redirect
    assert response.client_error() is client_error
    assert response.server_error() is server_error
    assert response.failed() is (client_error or server_error)


def test_json_access():
    response = make_response({"id": 1, "tags": ["a"]})

    assert response.json() == {"id": 1, "tags": ["a"]}
    assert response.json("tags") == ["a"]
    assert response.json("missing", default="x") == "x"


def test_empty_body():
    response = make_response(status=204)

    assert response.body() == b""
    assert response.text == ""
    assert response.json() is None


def test_headers_are_case_insensitive():
    response = make_response("ok", headers={"X-Request-Id": "abc"})

    assert response.header("x-request-id") == "abc"
    assert response.headers.get("X-REQUEST-ID") == "abc"
    assert response.header("missing", "none") == "none"


def test_dto():
    """
    Test DTO conversion through the request's pydantic model.

    Expected behavior:
    - A valid body is converted into the model
    - Requests without a model return None
    - Invalid bodies raise pydantic's ValidationError
    """
    response = make_response({"id": 3, "email": "ada@example.com"}, request=GetProfile(3))

    assert response.dto() == Profile(id=3, email="ada@example.com")
    assert make_response({"id": 3}).dto() is None
    with pytest.raises(ValidationError):
        make_response({"id": "x"}, request=GetProfile(3)).dto()


def test_throw():
    assert make_response(status=200).throw().ok()

    with pytest.raises(ClientException) as exc_info:
        make_response("bad request", status=400).throw()
    assert exc_info.value.details == "bad request"
    assert exc_info.value.response.status == 400

    with pytest.raises(ServerException):
        make_response(status=500).throw()


def test_to_exception_for_successful_response():
    assert make_response(status=201).to_exception() is None


def test_repr():
    assert repr(make_response(status=200)) == "<Response 200 GET https://api.test/users/1>"
