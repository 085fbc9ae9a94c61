import pytest
import requests

from error_messages import ERROR_MESSAGES, describe_error
from met_api import ArtworkNotFound, PermanentProviderError, TransientProviderError
from search_params import SearchValidationError


def _transient_from(cause):
    try:
        raise TransientProviderError("request failed") from cause
    except TransientProviderError as exc:
        return exc


@pytest.mark.parametrize(
    "error, key, retryable",
    [
        (SearchValidationError("date_begin must be an integer"), "validation", False),
        (ArtworkNotFound("object 404 not found", 404), "not_found", False),
        (PermanentProviderError("nope", 401), "unauthorized", False),
        (PermanentProviderError("nope", 403), "forbidden", False),
        (PermanentProviderError("nope", 400), "bad_request", False),
        (TransientProviderError("upstream 503", 503), "server_error", True),
        (KeyError("objectID"), "generic", True),
    ],
)
def test_error_categories(error, key, retryable):
    info = describe_error(error)
    assert info.message == ERROR_MESSAGES[key]
    assert info.retryable is retryable


def test_timeout_and_network_causes():
    assert describe_error(_transient_from(requests.Timeout())).message == ERROR_MESSAGES["timeout"]
    assert (
        describe_error(_transient_from(requests.ConnectionError())).message
        == ERROR_MESSAGES["network"]
    )


def test_raw_details_are_not_shown():
    info = describe_error(SearchValidationError("https://secret.example/api?key=abc"))
    assert "secret" not in info.message and "secret" not in info.title
