"""Tests for the boto3 ECR adapter."""

import base64
from datetime import datetime, timedelta, timezone

import boto3
import pytest
from botocore.exceptions import ClientError
from botocore.stub import Stubber

from ecr_login import (
    AuthEntry,
    AuthorizationData,
    AuthorizationTokenResponse,
    CredentialResolver,
    EcrTokenAPI,
    MemoryCredentialsCache,
    RegistryTokenAPI,
    ecr_client_factory,
)

EXPIRES = datetime(2024, 1, 2, 0, 0, tzinfo=timezone.utc)
ENDPOINT = "https://123456789012.dkr.ecr.us-east-1.amazonaws.com"
TOKEN = base64.b64encode(b"AWS:secretpass").decode()


@pytest.fixture
def ecr_client():
    return boto3.client(
        "ecr",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


def test_adapter_satisfies_port(ecr_client):
    assert isinstance(EcrTokenAPI(ecr_client), RegistryTokenAPI)


def test_get_authorization_token(ecr_client):
    """Response items are mapped onto AuthorizationData."""
    with Stubber(ecr_client) as stubber:
        stubber.add_response(
            "get_authorization_token",
            {"authorizationData": [{
                "authorizationToken": TOKEN,
                "expiresAt": EXPIRES,
                "proxyEndpoint": ENDPOINT,
            }]},
            expected_params={"registryIds": ["123456789012"]},
        )
        response = EcrTokenAPI(ecr_client).get_authorization_token(["123456789012"])

    assert response == AuthorizationTokenResponse(authorization_data=(
        AuthorizationData(proxy_endpoint=ENDPOINT, authorization_token=TOKEN, expires_at=EXPIRES),
    ))


def test_get_authorization_token_empty(ecr_client):
    with Stubber(ecr_client) as stubber:
        stubber.add_response("get_authorization_token", {"authorizationData": []})
        response = EcrTokenAPI(ecr_client).get_authorization_token(["123456789012"])

    assert response.authorization_data == ()


def test_client_error_is_reraised(ecr_client):
    """Service errors propagate unchanged."""
    with Stubber(ecr_client) as stubber:
        stubber.add_client_error(
            "get_authorization_token",
            service_error_code="AccessDeniedException",
            service_message="not authorized",
        )
        with pytest.raises(ClientError) as excinfo:
            EcrTokenAPI(ecr_client).get_authorization_token(["123456789012"])

    assert excinfo.value.response["Error"]["Code"] == "AccessDeniedException"


def test_resolver_with_stubbed_client(ecr_client):
    """Resolver and adapter together produce decoded credentials."""
    now = EXPIRES - timedelta(hours=12)

    class Clock:
        def now(self):
            return now

    cache = MemoryCredentialsCache()
    with Stubber(ecr_client) as stubber:
        stubber.add_response(
            "get_authorization_token",
            {"authorizationData": [{
                "authorizationToken": TOKEN,
                "expiresAt": EXPIRES,
                "proxyEndpoint": ENDPOINT,
            }]},
            expected_params={"registryIds": ["123456789012"]},
        )
        resolver = CredentialResolver(EcrTokenAPI(ecr_client), cache, Clock())
        creds = resolver.get_credentials(
            "123456789012", "123456789012.dkr.ecr.us-east-1.amazonaws.com/myrepo:tag"
        )
        stubber.assert_no_pending_responses()

    assert creds == ("AWS", "secretpass")
    assert cache.get("123456789012").expires_at == EXPIRES


def test_resolver_falls_back_on_client_error(ecr_client):
    """A service error with a stale cached token returns the stale token."""
    cache = MemoryCredentialsCache()
    cache.set("123456789012", AuthEntry(
        authorization_token=base64.b64encode(b"AWS:stale").decode(),
        requested_at=EXPIRES - timedelta(hours=24),
        expires_at=EXPIRES - timedelta(hours=12),
        proxy_endpoint=ENDPOINT,
    ))

    with Stubber(ecr_client) as stubber:
        stubber.add_client_error("get_authorization_token", service_error_code="ServerException",
                                 http_status_code=500)
        resolver = CredentialResolver(EcrTokenAPI(ecr_client), cache)
        creds = resolver.get_credentials("123456789012", "123456789012.dkr.ecr.us-east-1.amazonaws.com")

    assert creds == ("AWS", "stale")


def test_client_factory_region():
    client = ecr_client_factory("eu-west-1", session=boto3.Session(
        aws_access_key_id="testing", aws_secret_access_key="testing",
    ))
    assert client.meta.region_name == "eu-west-1"
    assert "fips" not in client.meta.endpoint_url


def test_client_factory_fips():
    client = ecr_client_factory("us-gov-west-1", fips=True, session=boto3.Session(
        aws_access_key_id="testing", aws_secret_access_key="testing",
    ))
    assert client.meta.endpoint_url == "https://ecr-fips.us-gov-west-1.amazonaws.com"
