"""
Literals shared by the V2 and V4 checkers and the identity backends.
"""
from re import compile as re_compile

# Security tokens are opaque base64url strings of a fixed size.
IAM_SECURITY_TOKEN_SIZE_MIN = 128
IAM_SECURITY_TOKEN_SIZE_MAX = 128
iam_security_token_pattern = re_compile(
    r"^[A-Za-z0-9_\-]{%d,%d}$" % (
        IAM_SECURITY_TOKEN_SIZE_MIN, IAM_SECURITY_TOKEN_SIZE_MAX))

# Canonical ID of requests carrying no authentication at all.
PUBLIC_ID = "http://acs.amazonaws.com/groups/global/AllUsers"

# Canonical ID prefix of internal service accounts.
SERVICE_ACCOUNT_PREFIX = "http://acs.zenko.io/accounts/service"

# Live-request clock skew tolerance, in seconds.
DEFAULT_SKEW_WINDOW = 15 * 60

# Maximum lifetime of a V2 pre-signed URL, in seconds.
DEFAULT_PRESIGNED_URL_EXPIRY = 7 * 24 * 60 * 60

# Maximum X-Amz-Expires of a V4 pre-signed URL, in seconds.
MAX_V4_QUERY_EXPIRY = 604800

# SHA-256 digest of an empty string
EMPTY_STRING_HASH = (
    "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855")

AWS4_HMAC_SHA256 = "AWS4-HMAC-SHA256"
AWS4_HMAC_SHA256_PAYLOAD = "AWS4-HMAC-SHA256-PAYLOAD"
AWS4_REQUEST = "aws4_request"
STREAMING_AWS4_HMAC_SHA256_PAYLOAD = "STREAMING-AWS4-HMAC-SHA256-PAYLOAD"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"

# Services a V4 credential scope may name.
V4_SERVICES = frozenset(["s3", "iam", "ring", "sts"])

# Services whose POST requests carry their parameters in the body.
FORM_POST_SERVICES = frozenset(["iam", "ring", "sts"])

# Header prefixes that must be signed when present on a V4 request.
V4_SIGNED_HEADER_PREFIXES = ("x-amz-", "x-scal-")

AWS_CLIENT = "AWS"
GCP_CLIENT = "GCP"

# Metadata header prefix per V2 client type
V2_HEADER_PREFIXES = {
    AWS_CLIENT: "x-amz-",
    GCP_CLIENT: "x-goog-",
}

# Query parameters that are part of the V2 canonicalized resource.
AWS_SUBRESOURCES = frozenset([
    "acl", "cors", "delete", "legal-hold", "lifecycle", "location",
    "logging", "notification", "object-lock", "partNumber", "policy",
    "replication", "requestPayment", "response-cache-control",
    "response-content-disposition", "response-content-encoding",
    "response-content-language", "response-content-type",
    "response-expires", "restore", "retention", "tagging", "torrent",
    "uploadId", "uploads", "versionId", "versioning", "versions",
    "website",
])

GCP_SUBRESOURCES = frozenset([
    "acl", "billing", "compose", "cors", "encryption", "lifecycle",
    "location", "logging", "storageClass", "tagging", "upload_id",
    "versioning", "versions", "websiteConfig",
])

V2_SUBRESOURCES = {
    AWS_CLIENT: AWS_SUBRESOURCES,
    GCP_CLIENT: GCP_SUBRESOURCES,
}

# Batch lookup sentinels returned by identity backends
NOT_FOUND = "NotFound"
WRONG_FORMAT = "WrongFormat"
