import hmac, hashlib
from typing import Optional

def compute_hmac_sha256_hex(secret: str, body: bytes) -> str:
    mac = hmac.new(secret.encode('utf-8'), body, hashlib.sha256)
    return mac.hexdigest()

def verify_signature(secret: str, body: bytes, header: Optional[str]) -> bool:
    if not header:
        return False
    received = header.split("=", 1)[1] if header.startswith("sha256=") else header
    return hmac.compare_digest(compute_hmac_sha256_hex(secret, body), received.strip())
