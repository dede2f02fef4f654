import pytest

from contoso.web.exceptions import ValidationError
from contoso.web.utils import decode_token, encode_token

# standard base64 would render these bytes as "+//++//+"
AWKWARD = b"\xfb\xff\xfe\xfb\xff\xfe"


def test_token_is_safe_in_a_query_string():
    encoded = encode_token(AWKWARD)
    assert encoded == "-__--__-"
    assert decode_token(encoded) == AWKWARD


@pytest.mark.parametrize("value", [None, "", "not base64!", "AAA"])
def test_bad_tokens_are_rejected(value):
    with pytest.raises(ValidationError) as exc:
        decode_token(value)
    assert exc.value.status_code == 400
