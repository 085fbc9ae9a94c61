"""
error_messages.py — generic, non-leaking messages for the UI

Raw exception text (URLs, status bodies, validation details) stays in the
logs. The UI only ever shows one of the messages below.
"""

from __future__ import annotations

from dataclasses import dataclass

import requests

from met_api import ArtworkNotFound, PermanentProviderError, TransientProviderError
from search_params import SearchValidationError


ERROR_MESSAGES = {
    "generic": "Something went wrong. Please try again.",
    "network": "Unable to connect. Please check your internet connection and try again.",
    "timeout": "The request took too long. Please try again.",
    "not_found": "The requested resource was not found.",
    "server_error": "The server encountered an error. Please try again later.",
    "unauthorized": "You are not authorized to access this resource.",
    "forbidden": "Access to this resource is forbidden.",
    "bad_request": "Invalid request. Please check your input and try again.",
    "validation": "Invalid input provided. Please check your data and try again.",
}


@dataclass(frozen=True)
class ErrorInfo:
    title: str
    message: str
    retryable: bool


def describe_error(error: BaseException) -> ErrorInfo:
    if isinstance(error, SearchValidationError):
        return ErrorInfo("Invalid Search", ERROR_MESSAGES["validation"], False)

    if isinstance(error, ArtworkNotFound):
        return ErrorInfo("Not Found", ERROR_MESSAGES["not_found"], False)

    if isinstance(error, PermanentProviderError):
        if error.status == 401:
            return ErrorInfo("Unauthorized", ERROR_MESSAGES["unauthorized"], False)
        if error.status == 403:
            return ErrorInfo("Forbidden", ERROR_MESSAGES["forbidden"], False)
        return ErrorInfo("Invalid Request", ERROR_MESSAGES["bad_request"], False)

    if isinstance(error, TransientProviderError):
        cause = error.__cause__
        if isinstance(cause, requests.Timeout):
            return ErrorInfo("Request Timeout", ERROR_MESSAGES["timeout"], True)
        if isinstance(cause, requests.RequestException):
            return ErrorInfo("Connection Error", ERROR_MESSAGES["network"], True)
        return ErrorInfo("Server Error", ERROR_MESSAGES["server_error"], True)

    return ErrorInfo("Something went wrong", ERROR_MESSAGES["generic"], True)
