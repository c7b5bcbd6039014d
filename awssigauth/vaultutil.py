"""
HMAC constructions shared by request checkers, identity backends and the
client-side signer.
"""
from base64 import b64encode
from hashlib import sha1, sha256
import hmac

from .constants import AWS4_REQUEST

_digests = {
    "sha1": sha1,
    "sha256": sha256,
}

def hash_signature(string_to_sign, secret_key, algorithm):
    """
    hash_signature(string_to_sign, secret_key, algorithm) -> str

    The V2 signature of string_to_sign: base64(HMAC-<algorithm>(secret,
    string_to_sign)). algorithm is "sha1" or "sha256" (case insensitive).
    """
    digest = _digests[algorithm.lower()]
    if not isinstance(string_to_sign, bytes):
        string_to_sign = string_to_sign.encode("utf-8")

    mac = hmac.new(secret_key.encode("utf-8"), string_to_sign, digest)
    return b64encode(mac.digest()).decode("ascii")

def calculate_signing_key(secret_key, region, scope_date, service="s3"):
    """
    calculate_signing_key(secret_key, region, scope_date, service) -> bytes

    Derive the V4 signing key:
        HMAC(HMAC(HMAC(HMAC("AWS4" + secret, date), region), service),
             "aws4_request")
    """
    k_secret = b"AWS4" + secret_key.encode("utf-8")
    k_date = hmac.new(k_secret, scope_date.encode("utf-8"), sha256).digest()
    k_region = hmac.new(k_date, region.encode("utf-8"), sha256).digest()
    k_service = hmac.new(k_region, service.encode("utf-8"), sha256).digest()
    return hmac.new(k_service, AWS4_REQUEST.encode("utf-8"), sha256).digest()

def sign_v4(signing_key, string_to_sign):
    """
    Hex HMAC-SHA256 of string_to_sign under a derived signing key.
    """
    return hmac.new(signing_key, string_to_sign.encode("utf-8"),
                    sha256).hexdigest()
