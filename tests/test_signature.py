import hashlib
import hmac

from rplus.signature import sign, verify_signature

BODY = b"hi thar!"


def test_accepts_body_signed_with_secret():
    assert verify_signature("secret", BODY, sign("secret", BODY))


def test_accepts_uppercase_hex_and_sha256():
    digest = hmac.new(b"secret", BODY, hashlib.sha1).hexdigest().upper()
    assert verify_signature("secret", BODY, f"sha1={digest}")
    assert verify_signature("secret", BODY, sign("secret", BODY, "sha256"))


def test_rejects_flipped_byte():
    header = sign("secret", BODY)
    tampered = bytes([BODY[0] ^ 0x01]) + BODY[1:]
    assert not verify_signature("secret", tampered, header)


def test_rejects_other_secret():
    assert not verify_signature("secret", BODY, sign("not-the-secret", BODY))


def test_rejects_missing_short_and_garbage_headers():
    assert not verify_signature("secret", BODY, None)
    assert not verify_signature("secret", BODY, "")
    assert not verify_signature("secret", BODY, "sha1")
    assert not verify_signature("secret", BODY, "sha1=not-hex-at-all")
    assert not verify_signature("secret", BODY, "md5=" + "00" * 16)


def test_rejects_when_secret_empty():
    assert not verify_signature("", BODY, sign("", BODY))
