import hashlib
import hmac
from typing import Optional

# X-Hub-Signature carries sha1, X-Hub-Signature-256 carries sha256.
ALGORITHMS = {"sha1": hashlib.sha1, "sha256": hashlib.sha256}
MIN_HEADER_LEN = len("sha1=")


def sign(secret: str, body: bytes, algorithm: str = "sha1") -> str:
    """Header value GitHub would send for `body`, e.g. 'sha1=0a1b...'."""
    digest = hmac.new(secret.encode("utf-8"), body, ALGORITHMS[algorithm]).hexdigest()
    return f"{algorithm}={digest}"


def verify_signature(secret: str, body: bytes, header: Optional[str]) -> bool:
    """
    Check a webhook signature header of the form '<algorithm>=<hex-digest>'
    against an HMAC of the raw body. Constant-time comparison.
    """
    if not secret or not header or len(header) < MIN_HEADER_LEN:
        return False
    algorithm, sep, hexdigest = header.partition("=")
    digestmod = ALGORITHMS.get(algorithm.strip().lower())
    if not sep or digestmod is None:
        return False
    try:
        provided = bytes.fromhex(hexdigest.strip())
    except ValueError:
        return False
    expected = hmac.new(secret.encode("utf-8"), body, digestmod).digest()
    return hmac.compare_digest(provided, expected)
