"""
AWS signature version 2 canonicalization and request checks.

The checkers never verify the signature themselves: they validate the shape
and freshness of the request and produce the string to sign that an identity
backend signs with its own copy of the secret key.
"""
from logging import getLogger
from re import compile as re_compile
from urllib.parse import unquote

from . import constants, timeutils
from .exc import errors

# Leading integer of a query parameter, the way HTTP clients write Expires
_leading_int = re_compile(r"^\s*([+-]?[0-9]+)")

# Signature length (base64) to HMAC algorithm
_algorithms = {
    44: "sha256",
    28: "sha1",
}

log = getLogger("awssigauth.v2")

def get_canonicalized_amz_headers(headers, client_type=constants.AWS_CLIENT):
    """
    get_canonicalized_amz_headers(headers, client_type) -> str

    The CanonicalizedAmzHeaders element: every header whose name starts with
    the client's metadata prefix (x-amz- or x-goog-), trimmed, sorted by
    name and written as "name:value\\n". Values folded by the transport
    layer are kept as they are.
    """
    prefix = constants.V2_HEADER_PREFIXES.get(
        client_type, constants.V2_HEADER_PREFIXES[constants.AWS_CLIENT])

    amz_headers = [
        (key.strip(), str(value).strip())
        for key, value in headers.items()
        if key.startswith(prefix) and value is not None]

    if not amz_headers:
        return ""

    amz_headers.sort(key=lambda item: item[0])
    return "".join(["%s:%s\n" % item for item in amz_headers])

def get_canonicalized_resource(request, client_type=constants.AWS_CLIENT):
    """
    get_canonicalized_resource(request, client_type) -> str

    The CanonicalizedResource element: /bucket/key rebuilt from virtual
    hosted or path style addressing, followed by the recognized
    sub-resources of the query string in lexicographical order.
    """
    subresources = constants.V2_SUBRESOURCES.get(
        client_type, constants.AWS_SUBRESOURCES)

    resource = ""
    if request.got_bucket_name_from_host and request.bucket_name:
        resource = "/" + request.bucket_name

    resource += request.path

    query = request.query
    signed_queries = sorted([key for key in query if key in subresources])
    if signed_queries:
        query_strings = []
        for key in signed_queries:
            value = query[key]
            if value:
                query_strings.append("%s=%s" % (key, value))
            else:
                query_strings.append(key)

        resource += "?" + "&".join(query_strings)

    return resource

def construct_string_to_sign(request, data, client_type=constants.AWS_CLIENT):
    """
    construct_string_to_sign(request, data, client_type) -> str

    The V2 string to sign:
        method + '\\n' +
        content_md5 + '\\n' +
        content_type + '\\n' +
        (expires or date) + '\\n' +
        canonicalized_amz_headers +
        canonicalized_resource

    x-amz-date does not take the place of the Date line; it is carried by
    the canonicalized amz headers instead. Query parameters are merged into
    the headers before canonicalization so pre-signed URLs can carry
    x-amz-* values. The result is signed as UTF-8.
    """
    headers = request.headers
    query = data or {}

    content_md5 = headers.get("content-md5") or query.get("Content-MD5")
    content_type = headers.get("content-type") or query.get("Content-Type")
    date = query.get("Expires") or headers.get("date")

    combined = dict(headers)
    combined.update(query)

    return (request.method + "\n" +
            (content_md5 or "") + "\n" +
            (content_type or "") + "\n" +
            (str(date) if date else "") + "\n" +
            get_canonicalized_amz_headers(combined, client_type) +
            get_canonicalized_resource(request, client_type))

def algo_check(signature_length):
    """
    The HMAC algorithm implied by the length of a base64 signature, or None.
    """
    return _algorithms.get(signature_length)

def is_valid_security_token(token):
    return bool(constants.iam_security_token_pattern.match(token))

def header_check(request, data, client_type=constants.AWS_CLIENT,
                 skew_window=constants.DEFAULT_SKEW_WINDOW):
    """
    header_check(request, data, client_type, skew_window) -> (err, params)

    Check a request authenticated with an "Authorization: AWS key:signature"
    header.
    """
    log.debug("running v2 header auth check")
    headers = request.headers

    token = headers.get("x-amz-security-token")
    if token and not is_valid_security_token(token):
        log.debug("invalid security token")
        return errors.InvalidToken, None

    timestamp_header = headers.get("x-amz-date") or headers.get("date")
    timestamp = timeutils.parse_header_date_ms(timestamp_header)
    if timestamp is None:
        log.debug("missing or invalid date header: %r", timestamp_header)
        return errors.AccessDenied.customize_description(
            "Authentication requires a valid Date or x-amz-date header"), None

    err = timeutils.check_request_expiry(timestamp, skew_window)
    if err:
        return err, None

    # Authorization header should be in the format of
    # 'AWS AccessKey:Signature'
    auth_info = headers.get("authorization")
    if not auth_info:
        log.debug("missing authorization security header")
        return errors.MissingSecurityHeader, None

    colon = auth_info.find(":")
    if colon < 0:
        log.debug("invalid authorization header: %r", auth_info)
        return errors.InvalidArgument, None

    access_key = auth_info[4:colon].strip() if colon > 4 else ""
    if not access_key:
        log.debug("empty access key in authorization header")
        return errors.MissingSecurityHeader, None

    signature_from_request = auth_info[colon + 1:].strip()
    string_to_sign = construct_string_to_sign(request, data, client_type)
    log.debug("constructed string to sign: %r", string_to_sign)

    algo = algo_check(len(signature_from_request))
    if algo is None:
        log.debug("cannot infer algorithm from signature of length %d",
                  len(signature_from_request))
        return errors.InvalidArgument, None

    return None, {
        "version": 2,
        "data": {
            "access_key": access_key,
            "signature_from_request": signature_from_request,
            "string_to_sign": string_to_sign,
            "algo": algo,
            "auth_type": "REST-HEADER",
            "signature_version": "AWS",
            "signature_age": timeutils.now_ms() - timestamp,
            "security_token": token,
        },
    }

def query_check(request, data, client_type=constants.AWS_CLIENT,
                presigned_url_expiry=None):
    """
    query_check(request, data, client_type, presigned_url_expiry)
        -> (err, params)

    Check a pre-signed URL (AWSAccessKeyId, Expires and Signature query
    parameters). presigned_url_expiry is the longest allowed lifetime in
    milliseconds; by default it comes from the environment.
    """
    log.debug("running v2 query auth check")
    if request.method == "POST":
        log.debug("query string auth not supported for post requests")
        return errors.NotImplemented, None

    token = data.get("SecurityToken")
    if token and not is_valid_security_token(token):
        log.debug("invalid security token")
        return errors.InvalidToken, None

    # Expires is given in seconds.
    expires = data.get("Expires")
    m = _leading_int.match(str(expires)) if expires is not None else None
    if not m:
        log.debug("invalid expires parameter: %r", expires)
        return errors.MissingSecurityHeader, None

    expiration_time = int(m.group(1)) * 1000
    current_time = timeutils.now_ms()

    if presigned_url_expiry is None:
        presigned_url_expiry = timeutils.presigned_url_expiry_ms()

    if expiration_time > current_time + presigned_url_expiry:
        log.debug("expires parameter too far in future: %r", expires)
        return errors.AccessDenied, None

    if current_time > expiration_time:
        log.debug("current time exceeds expires time: %r", expires)
        return errors.RequestTimeTooSkewed, None

    access_key = data.get("AWSAccessKeyId")
    signature_from_request = unquote(data.get("Signature") or "")
    if not access_key or not signature_from_request:
        log.debug("invalid access key/signature parameters")
        return errors.MissingSecurityHeader, None

    string_to_sign = construct_string_to_sign(request, data, client_type)
    log.debug("constructed string to sign: %r", string_to_sign)

    algo = algo_check(len(signature_from_request))
    if algo is None:
        log.debug("cannot infer algorithm from signature of length %d",
                  len(signature_from_request))
        return errors.InvalidArgument, None

    return None, {
        "version": 2,
        "data": {
            "access_key": access_key,
            "signature_from_request": signature_from_request,
            "string_to_sign": string_to_sign,
            "algo": algo,
            "auth_type": "REST-QUERY-STRING",
            "signature_version": "AWS",
            "security_token": token,
        },
    }
