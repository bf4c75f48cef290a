import httpx
import pytest

from expense_tracker.core.directory import DirectoryError, DirectoryProfile, IdentityDirectory


def _directory(handler) -> IdentityDirectory:
    return IdentityDirectory(
        base_url="https://directory.example.com/v1/",
        api_key="sk_test",
        transport=httpx.MockTransport(handler),
    )


def test_get_profile_parses_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(
            200,
            json={
                "id": "user_abc",
                "email_addresses": [{"id": "idn_1", "email_address": "ada@example.org"}],
                "primary_email_address_id": "idn_1",
                "first_name": None,
                "last_name": "Lovelace",
                "image_url": "https://img.example.org/ada.png",
                "unrelated_field": True,
            },
        )

    profile = _directory(handler).get_profile("user_abc")

    assert seen["url"] == "https://directory.example.com/v1/users/user_abc"
    assert seen["auth"] == "Bearer sk_test"
    assert profile.primary_email() == "ada@example.org"
    assert profile.display_name() == "Lovelace"
    assert profile.image_url == "https://img.example.org/ada.png"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(404, json={"errors": []}),
        httpx.Response(500, text="boom"),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json=["not", "an", "object"]),
        httpx.Response(200, json={"email_addresses": "not-a-list"}),
    ],
)
def test_get_profile_failures_raise_directory_error(response):
    with pytest.raises(DirectoryError):
        _directory(lambda request: response).get_profile("user_abc")


def test_transport_error_raises_directory_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DirectoryError):
        _directory(handler).get_profile("user_abc")


def test_unconfigured_directory_raises():
    with pytest.raises(DirectoryError):
        IdentityDirectory(base_url=None).get_profile("user_abc")


def test_primary_email_falls_back_to_first_address():
    profile = DirectoryProfile(
        email_addresses=[
            {"id": "idn_1", "email_address": "first@example.org"},
            {"id": "idn_2", "email_address": "second@example.org"},
        ],
        primary_email_address_id="idn_missing",
    )
    assert profile.primary_email() == "first@example.org"

    profile.primary_email_address_id = None
    assert profile.primary_email() == "first@example.org"


def test_profile_without_addresses_has_no_primary_email():
    assert DirectoryProfile().primary_email() is None


def test_display_name_prefers_first_then_last_then_full():
    assert DirectoryProfile(first_name="Ada", last_name="L", full_name="Ada L").display_name() == "Ada"
    assert DirectoryProfile(last_name="L", full_name="Ada L").display_name() == "L"
    assert DirectoryProfile(full_name="Ada L").display_name() == "Ada L"
    assert DirectoryProfile().display_name() is None


def test_address_without_id_keeps_profile():
    profile = DirectoryProfile(
        email_addresses=[{"email_address": "first@example.org"}],
        first_name="Ada",
        image_url="https://img.example.org/ada.png",
    )

    assert profile.primary_email() == "first@example.org"
    assert profile.display_name() == "Ada"
    assert profile.image_url == "https://img.example.org/ada.png"
