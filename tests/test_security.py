from analysis_service.security import compute_hmac_sha256_hex, verify_signature


def test_verify_signature_accepts_prefixed_and_bare_digest():
    body = b'{"submissionId": "sub-1"}'
    digest = compute_hmac_sha256_hex("secret", body)
    assert verify_signature("secret", body, f"sha256={digest}")
    assert verify_signature("secret", body, digest)


def test_verify_signature_rejects_mismatch_and_missing_header():
    body = b"{}"
    assert not verify_signature("secret", body, None)
    assert not verify_signature("secret", body, "sha256=deadbeef")
    assert not verify_signature("other", body, compute_hmac_sha256_hex("secret", body))
