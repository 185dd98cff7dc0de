import pytest

from ai_sidecar.auth import authorize


def test_exact_match_is_authorized() -> None:
    assert authorize("s3cret", "s3cret") is True


@pytest.mark.parametrize(
    "header_value",
    [None, "", "s3cre", "s3cret ", "S3CRET", "s3crét", "s3cret\x00"],
)
def test_missing_malformed_or_wrong_secret_is_rejected(header_value) -> None:
    assert authorize(header_value, "s3cret") is False
