from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError

STORE_FAILURE_MESSAGE = 'Unable to save changes. Please try again later.'


def error_response(message, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={'error': message})


def validation_error_response(exc: ValidationError) -> JSONResponse:
    # Submitted values are left out so passwords never echo back.
    errors = exc.errors(include_url=False, include_context=False, include_input=False)
    return error_response(jsonable_encoder(errors))


def store_failure_response(status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> JSONResponse:
    return error_response(STORE_FAILURE_MESSAGE, status_code=status_code)


def parse_id(value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        return None


def request_validation_error_response(errors) -> JSONResponse:
    # Only the error kind and location go back, never the submitted input.
    cleaned = [{key: error[key] for key in ('type', 'loc', 'msg') if key in error} for error in errors]
    return error_response(jsonable_encoder(cleaned))
