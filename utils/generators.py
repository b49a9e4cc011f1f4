"""Identifier generators for rows and tokens"""
import uuid

from cuid2 import cuid_wrapper

_cuid = cuid_wrapper()


def generate_cuid() -> str:
    """Primary key for every table: collision resistant and URL safe"""
    result = _cuid()
    assert isinstance(result, str)
    return result


def generate_token_id() -> str:
    """Unique `jti` claim so two refresh tokens never encode the same bytes"""
    return uuid.uuid4().hex
