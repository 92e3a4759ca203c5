"""Unit tests for request id handling"""

import uuid
import pytest
from safespend.api.middleware import resolve_request_id


@pytest.mark.parametrize("incoming", ["trace-abc", "req_42.retry:1", "a" * 128])
def test_well_formed_request_id_is_reused(incoming):
    assert resolve_request_id(incoming) == incoming


@pytest.mark.parametrize("incoming", [None, "", "has space", "a" * 129, "semi;colon"])
def test_malformed_request_id_gets_a_fresh_uuid(incoming):
    request_id = resolve_request_id(incoming)

    assert str(uuid.UUID(request_id)) == request_id
