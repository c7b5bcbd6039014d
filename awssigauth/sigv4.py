#!/usr/bin/env python
"""
SigV4 canonicalization and request checks.

Three transports carry V4 credentials: the Authorization header, the
X-Amz-* query parameters of a pre-signed URL, and the fields of a browser
form POST. Each checker validates the credential and timestamp, builds the
string to sign and returns the parameters an identity backend needs to
recompute the signature.
"""
from base64 import b64decode
import binascii
from hashlib import sha256
from io import BytesIO
import json
from logging import getLogger
from re import compile as re_compile
from string import ascii_letters, digits
from urllib.parse import unquote

from pytz import UTC

from . import constants, timeutils
from .constants import AWS4_HMAC_SHA256
from .dateutil import parse_iso8601
from .exc import errors

# Unreserved bytes from RFC 3986.
_rfc3986_unreserved = set((ascii_letters + digits + "-._~").encode("utf-8"))

# ASCII code for '/'
_ascii_slash = ord(b"/")

# ASCII code for '*'
_ascii_star = ord(b"*")

# Header and query string keys
_authorization = "authorization"
_credential = "Credential="
_signature = "Signature="
_signedheaders = "SignedHeaders="
_x_amz_algorithm = "X-Amz-Algorithm"
_x_amz_content_sha256 = "x-amz-content-sha256"
_x_amz_credential = "X-Amz-Credential"
_x_amz_date = "X-Amz-Date"
_x_amz_date_lower = "x-amz-date"
_x_amz_decoded_content_length = "x-amz-decoded-content-length"
_x_amz_expires = "X-Amz-Expires"
_x_amz_security_token = "X-Amz-Security-Token"
_x_amz_security_token_lower = "x-amz-security-token"
_x_amz_signature = "X-Amz-Signature"
_x_amz_signedheaders = "X-Amz-SignedHeaders"

# Placeholder signed headers list for form POSTs, which sign no headers
_form_signed_headers = "content-type;host;x-amz-date;x-amz-security-token"

# The AWS SDK for Java leaves '*' unencoded in form payloads.
_java_sdk_agent = re_compile(r"aws-sdk-java/[0-9.]+")

# Match for runs of whitespace in header values
_multispace = re_compile(r"\s+")

log = getLogger("awssigauth.sigv4")

def aws_uri_encode(value, encode_slash=True, no_encode_star=False):
    """
    aws_uri_encode(value, encode_slash=True, no_encode_star=False) -> str

    Percent-encode value the way AWS SigV4 requires:
    * Alpha, digit, and the symbols '-', '.', '_', and '~' (unreserved
      characters) are left alone.
    * Every other byte of the UTF-8 encoding is written as %XX with
      upper-case hex digits; a space is therefore %20, never '+'.
    * '/' is left alone when encode_slash is False (object key names).
    * '*' is left alone when no_encode_star is True.

    Non-string values encode to the empty string.
    """
    if not isinstance(value, str):
        return ""

    result = BytesIO()
    for c in value.encode("utf-8"):
        if c in _rfc3986_unreserved:
            result.write(bytes([c]))
        elif c == _ascii_slash and not encode_slash:
            result.write(b"/")
        elif c == _ascii_star and no_encode_star:
            result.write(b"*")
        else:
            result.write(("%%%02X" % c).encode("ascii"))

    return result.getvalue().decode("ascii")

def _form_payload_checksum(query, headers):
    no_encode_star = bool(
        _java_sdk_agent.search(headers.get("user-agent", "")))

    payload = "&".join([
        "%s=%s" % (aws_uri_encode(key, True, no_encode_star),
                   aws_uri_encode(str(value), True, no_encode_star))
        for key, value in query.items()])
    payload = payload.replace("%20", "+")
    return sha256(payload.encode("utf-8")).hexdigest().lower()

def create_canonical_request(http_verb, resource, query, headers,
                             signed_headers, payload_checksum, service=None):
    """
    create_canonical_request(http_verb, resource, query, headers,
                             signed_headers, payload_checksum, service)
        -> str

    The AWS SigV4 canonical request. This process is outlined here:
    http://docs.aws.amazon.com/AmazonS3/latest/API/sig-v4-header-based-auth.html

    The canonical request is:
        http_verb + '\\n' +
        canonical_uri + '\\n' +
        canonical_query_string + '\\n' +
        canonical_headers + '\\n' +
        signed_headers + '\\n' +
        payload_checksum

    When payload_checksum is empty it is derived: the empty-string hash for
    GET, the hash of the urlencoded form parameters for POST.
    """
    query = query or {}

    if not payload_checksum:
        if http_verb == "GET":
            payload_checksum = constants.EMPTY_STRING_HASH
        elif http_verb == "POST":
            payload_checksum = _form_payload_checksum(query, headers)
        else:
            payload_checksum = ""

    canonical_uri = aws_uri_encode(resource, False) if resource else "/"

    canonical_query = ""
    if query and not (service in constants.FORM_POST_SERVICES and
                      http_verb == "POST"):
        canonical_query = "&".join([
            "%s=%s" % (aws_uri_encode(key),
                       aws_uri_encode(query[key]) if query[key] else "")
            for key in sorted(query)])

    signed_headers_list = sorted(signed_headers.split(";"))

    header_lines = []
    for header in signed_headers_list:
        if header in headers:
            value = _multispace.sub(" ", headers[header].strip())
        elif header == "expect":
            # Stripped by some load balancers; the client signed its value.
            value = "100-continue"
        else:
            value = query.get(header, "")
        header_lines.append("%s:%s\n" % (header, value))

    return (http_verb + "\n" +
            canonical_uri + "\n" +
            canonical_query + "\n" +
            "".join(header_lines) + "\n" +
            ";".join(signed_headers_list) + "\n" +
            payload_checksum)

def construct_string_to_sign(request, signed_headers, payload_checksum,
                             credential_scope, timestamp, query, service,
                             proxy_path=None):
    """
    The AWS SigV4 string being signed:
        AWS4-HMAC-SHA256 + '\\n' +
        timestamp + '\\n' +
        credential_scope + '\\n' +
        hex(sha256(canonical_request))
    """
    canonical_request = create_canonical_request(
        http_verb=request.method,
        resource=proxy_path or unquote(request.path),
        query=query,
        headers=request.headers,
        signed_headers=signed_headers,
        payload_checksum=payload_checksum,
        service=service)
    log.debug("constructed canonical request: %r", canonical_request)

    canonical_hex = sha256(canonical_request.encode("utf-8")).hexdigest()
    return "%s\n%s\n%s\n%s" % (
        AWS4_HMAC_SHA256, timestamp, credential_scope, canonical_hex)

def validate_credentials(credentials, timestamp):
    """
    validate_credentials(credentials, timestamp) -> AuthError or None

    credentials is [access_key, scope_date, region, service, request_type];
    timestamp is the request time as YYYYMMDDTHHMMSSZ. The region is not
    checked: an unknown region must not be an error for some clients.
    """
    if not isinstance(credentials, (list, tuple)) or len(credentials) != 5:
        log.warning("credentials in improper format: %r", credentials)
        return errors.InvalidArgument

    access_key, scope_date, _, service, request_type = credentials
    if not access_key:
        log.warning("access key provided is in wrong format: %r", access_key)
        return errors.InvalidArgument

    # The scope date (YYYYMMDD) must be the date of the request timestamp.
    timestamp_date = timestamp.split("T")[0]
    if len(scope_date) != 8 or scope_date != timestamp_date:
        log.warning("scope date %r must be the same date as the timestamp "
                    "date %r", scope_date, timestamp_date)
        return errors.RequestTimeTooSkewed

    if service not in constants.V4_SERVICES:
        log.warning("service in credentials is not one of %s: %r",
                    "/".join(sorted(constants.V4_SERVICES)), service)
        return errors.InvalidArgument

    if request_type != constants.AWS4_REQUEST:
        log.warning("request type in credentials is not aws4_request: %r",
                    request_type)
        return errors.InvalidArgument

    return None

def extract_auth_items(auth_header):
    """
    extract_auth_items(auth_header) -> dict

    Split an "AWS4-HMAC-SHA256 Credential=..., SignedHeaders=...,
    Signature=..." header into its credentials list, signed headers and
    signature. Items that are missing or malformed are left out.
    """
    auth_items = {}
    auth_array = auth_header.replace(AWS4_HMAC_SHA256 + " ", "", 1).split(",")
    if len(auth_array) < 3:
        return auth_items

    credential_str = auth_array[0].strip()
    signed_headers_str = auth_array[1].strip()
    signature_str = auth_array[2].strip()

    if credential_str.startswith(_credential) and "/" in credential_str:
        auth_items["credentials"] = (
            credential_str[len(_credential):].split("/"))
    else:
        log.warning("missing credentials")

    if signed_headers_str.startswith(_signedheaders):
        auth_items["signed_headers"] = signed_headers_str[len(_signedheaders):]
    else:
        log.warning("missing signed headers")

    if signature_str.startswith(_signature):
        auth_items["signature_from_request"] = signature_str[len(_signature):]
    else:
        log.warning("missing signature")

    return auth_items

def _extract_credential(value):
    if value and len(value) > 28 and "/" in value:
        return value.split("/")
    return None

def extract_query_params(query):
    """
    extract_query_params(query) -> dict

    Extract and validate the V4 query authentication parameters. Extraction
    stops at the first missing or invalid parameter, so a complete result
    has exactly five entries.
    """
    auth_params = {}

    if query.get(_x_amz_algorithm) != AWS4_HMAC_SHA256:
        log.warning("algorithm param incorrect: %r",
                    query.get(_x_amz_algorithm))
        return auth_params

    # At least "host" must be included in signed headers
    signed_headers = query.get(_x_amz_signedheaders)
    if signed_headers and len(signed_headers) > 3:
        auth_params["signed_headers"] = signed_headers
    else:
        log.warning("missing signed headers")
        return auth_params

    signature = query.get(_x_amz_signature)
    if signature and len(signature) == 64:
        auth_params["signature_from_request"] = signature
    else:
        log.warning("missing signature")
        return auth_params

    timestamp = query.get(_x_amz_date)
    if timestamp and len(timestamp) == 16:
        auth_params["timestamp"] = timestamp
    else:
        log.warning("missing or invalid timestamp: %r", timestamp)
        return auth_params

    try:
        expiry = int(query.get(_x_amz_expires))
    except (TypeError, ValueError):
        expiry = None
    if expiry is not None and 0 < expiry <= constants.MAX_V4_QUERY_EXPIRY:
        auth_params["expiry"] = expiry
    else:
        log.warning("invalid expiry: %r", query.get(_x_amz_expires))
        return auth_params

    credential = _extract_credential(query.get(_x_amz_credential))
    if credential:
        auth_params["credential"] = credential
    else:
        log.warning("invalid credential param: %r",
                    query.get(_x_amz_credential))
        return auth_params

    return auth_params

def extract_form_params(form):
    """
    extract_form_params(form) -> dict

    Extract and validate the V4 fields of a form POST. Field names are
    matched case-insensitively. A complete result has five entries: the
    placeholder signed headers, the signature, the timestamp, the
    credential and the policy.
    """
    form = dict((key.lower(), value) for key, value in form.items())
    auth_params = {}

    if form.get("x-amz-algorithm") != AWS4_HMAC_SHA256:
        log.warning("algorithm field incorrect: %r",
                    form.get("x-amz-algorithm"))
        return auth_params

    auth_params["signed_headers"] = _form_signed_headers

    signature = form.get("x-amz-signature")
    if signature and len(signature) == 64:
        auth_params["signature_from_request"] = signature
    else:
        log.warning("missing signature")
        return auth_params

    timestamp = form.get("x-amz-date")
    if timestamp and len(timestamp) == 16:
        auth_params["timestamp"] = timestamp
    else:
        log.warning("missing or invalid timestamp: %r", timestamp)
        return auth_params

    credential = _extract_credential(form.get("x-amz-credential"))
    if credential:
        auth_params["credential"] = credential
    else:
        log.warning("invalid credential field: %r",
                    form.get("x-amz-credential"))
        return auth_params

    policy = form.get("policy")
    if policy:
        auth_params["policy"] = policy
    else:
        log.warning("missing policy field")

    return auth_params

def are_signed_headers_complete(signed_headers, all_headers):
    """
    Whether the signed headers include host and every x-amz-/x-scal- header
    present on the request.
    """
    signed_headers_list = signed_headers.split(";")
    if "host" not in signed_headers_list:
        return False

    for header in all_headers:
        if (header.startswith(constants.V4_SIGNED_HEADER_PREFIXES)
                and header not in signed_headers_list):
            return False

    return True

def is_valid_security_token(token):
    return bool(constants.iam_security_token_pattern.match(token))

def _get_proxy_path(request):
    proxy_path = request.headers.get("proxy_path")
    if not proxy_path:
        return None, None

    try:
        return None, unquote(proxy_path, errors="strict")
    except UnicodeDecodeError:
        log.debug("invalid proxy_path header: %r", proxy_path)
        return errors.InvalidArgument.customize_description(
            "invalid proxy_path header"), None

def header_check(request, data, service="s3",
                 skew_window=constants.DEFAULT_SKEW_WINDOW):
    """
    header_check(request, data, service, skew_window) -> (err, params)

    Check a request authenticated with an "Authorization: AWS4-HMAC-SHA256"
    header. service is the service answering the request; the payload
    checksum header is optional for iam only.
    """
    log.debug("running v4 header auth check")
    headers = request.headers

    token = headers.get(_x_amz_security_token_lower)
    if token and not is_valid_security_token(token):
        log.debug("invalid security token")
        return errors.InvalidToken, None

    auth_header = headers.get(_authorization)
    if not auth_header:
        log.debug("missing authorization header")
        return errors.MissingSecurityHeader, None

    auth_items = extract_auth_items(auth_header)
    if len(auth_items) < 3:
        log.debug("invalid authorization header: %r", auth_header)
        return errors.InvalidArgument, None

    payload_checksum = headers.get(_x_amz_content_sha256)
    if not payload_checksum and service != "iam":
        log.debug("missing payload checksum")
        return errors.MissingSecurityHeader, None

    if payload_checksum == constants.STREAMING_AWS4_HMAC_SHA256_PAYLOAD:
        log.debug("requesting streaming v4 auth")
        if request.method != "PUT":
            log.debug("streaming v4 auth for put only")
            return errors.InvalidArgument, None
        if not headers.get(_x_amz_decoded_content_length):
            return errors.MissingSecurityHeader, None

    signature_from_request = auth_items["signature_from_request"]
    credentials = auth_items["credentials"]
    signed_headers = auth_items["signed_headers"]

    if not are_signed_headers_complete(signed_headers, headers):
        log.debug("signed headers are incomplete: %r", signed_headers)
        return errors.AccessDenied, None

    timestamp = None
    x_amz_date = headers.get(_x_amz_date_lower)
    if x_amz_date:
        if timeutils.is_valid_amz_timestamp(x_amz_date):
            timestamp = x_amz_date
    elif headers.get("date"):
        timestamp = timeutils.convert_utc_to_iso8601(headers["date"])

    if not timestamp:
        log.debug("missing or invalid date header")
        return errors.AccessDenied.customize_description(
            "Authentication requires a valid Date or x-amz-date header"), None

    err = validate_credentials(credentials, timestamp)
    if err:
        log.debug("credentials in improper format: %r (%s)", credentials,
                  err.code)
        return err, None

    access_key, scope_date, region, credential_service, _ = credentials
    credential_scope = "/".join(credentials[1:])

    # A signature is valid for up to seven days in AWS; without bucket
    # policies to shorten it we apply the live request window.
    if timeutils.check_time_skew(timestamp, skew_window, skew_window):
        return errors.RequestTimeTooSkewed, None

    err, proxy_path = _get_proxy_path(request)
    if err:
        return err, None

    string_to_sign = construct_string_to_sign(
        request,
        signed_headers=signed_headers,
        payload_checksum=payload_checksum,
        credential_scope=credential_scope,
        timestamp=timestamp,
        query=data,
        service=credential_service,
        proxy_path=proxy_path)
    log.debug("constructed string to sign: %r", string_to_sign)

    return None, {
        "version": 4,
        "data": {
            "access_key": access_key,
            "signature_from_request": signature_from_request,
            "region": region,
            "service": credential_service,
            "scope_date": scope_date,
            "string_to_sign": string_to_sign,
            "auth_type": "REST-HEADER",
            "signature_version": AWS4_HMAC_SHA256,
            "signature_age": (timeutils.now_ms() -
                              timeutils.convert_amz_time_to_ms(timestamp)),
            # Needed to verify the chunks of a streaming upload
            "credential_scope": credential_scope,
            "timestamp": timestamp,
            "security_token": token,
        },
    }

def query_check(request, data):
    """
    query_check(request, data) -> (err, params)

    Check a V4 pre-signed URL. The canonical request covers every query
    parameter except the signature and uses UNSIGNED-PAYLOAD in place of the
    payload hash.
    """
    log.debug("running v4 query auth check")
    auth_params = extract_query_params(data)
    if len(auth_params) != 5:
        return errors.InvalidArgument, None

    # Query parameters are case-sensitive, unlike headers.
    token = data.get(_x_amz_security_token)
    if token and not is_valid_security_token(token):
        log.debug("invalid security token")
        return errors.InvalidToken, None

    signed_headers = auth_params["signed_headers"]
    timestamp = auth_params["timestamp"]
    credential = auth_params["credential"]

    if not are_signed_headers_complete(signed_headers, request.headers):
        log.debug("signed headers are incomplete: %r", signed_headers)
        return errors.AccessDenied, None

    if not timeutils.is_valid_amz_timestamp(timestamp):
        log.debug("invalid X-Amz-Date: %r", timestamp)
        return errors.InvalidArgument, None

    err = validate_credentials(credential, timestamp)
    if err:
        log.debug("credentials in improper format: %r (%s)", credential,
                  err.code)
        return err, None

    access_key, scope_date, region, service, request_type = credential

    if timeutils.check_time_skew(timestamp, auth_params["expiry"]):
        return errors.RequestTimeTooSkewed, None

    err, proxy_path = _get_proxy_path(request)
    if err:
        return err, None

    query_without_signature = dict(data)
    query_without_signature.pop(_x_amz_signature, None)

    credential_scope = "%s/%s/%s/%s" % (
        scope_date, region, service, request_type)
    string_to_sign = construct_string_to_sign(
        request,
        signed_headers=signed_headers,
        payload_checksum=constants.UNSIGNED_PAYLOAD,
        credential_scope=credential_scope,
        timestamp=timestamp,
        query=query_without_signature,
        service=service,
        proxy_path=proxy_path)
    log.debug("constructed string to sign: %r", string_to_sign)

    return None, {
        "version": 4,
        "data": {
            "access_key": access_key,
            "signature_from_request": auth_params["signature_from_request"],
            "region": region,
            "service": service,
            "scope_date": scope_date,
            "string_to_sign": string_to_sign,
            "auth_type": "REST-QUERY-STRING",
            "signature_version": AWS4_HMAC_SHA256,
            "signature_age": (timeutils.now_ms() -
                              timeutils.convert_amz_time_to_ms(timestamp)),
            "credential_scope": credential_scope,
            "timestamp": timestamp,
            "security_token": token,
        },
    }

def _policy_expiration_ms(policy):
    try:
        document = json.loads(b64decode(policy, validate=True).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None

    if not isinstance(document, dict):
        return None

    expiration = document.get("expiration")
    if not isinstance(expiration, str):
        return None

    parsed = parse_iso8601(expiration)
    if parsed is None:
        return None

    return timeutils.datetime_to_ms(parsed.astimezone(UTC))

def form_check(request, data):
    """
    form_check(request, data) -> (err, params)

    Check a browser-based POST upload. The string to sign is the base64
    policy document itself, and the request lives as long as the policy's
    own expiration.
    """
    log.debug("running v4 form auth check")
    auth_params = extract_form_params(data)
    if len(auth_params) != 5:
        return errors.InvalidArgument, None

    form = dict((key.lower(), value) for key, value in data.items())
    token = form.get(_x_amz_security_token_lower)
    if token and not is_valid_security_token(token):
        log.debug("invalid security token")
        return errors.InvalidToken, None

    timestamp = auth_params["timestamp"]
    credential = auth_params["credential"]
    policy = auth_params["policy"]

    if not timeutils.is_valid_amz_timestamp(timestamp):
        log.debug("invalid x-amz-date: %r", timestamp)
        return errors.InvalidArgument, None

    err = validate_credentials(credential, timestamp)
    if err:
        log.debug("credentials in improper format: %r (%s)", credential,
                  err.code)
        return err, None

    expiration = _policy_expiration_ms(policy)
    if expiration is None:
        log.debug("policy document has no valid expiration")
        return errors.InvalidArgument.customize_description(
            "Invalid Policy: expiration must be an ISO 8601 timestamp"), None

    if timeutils.now_ms() > expiration:
        log.debug("policy document has expired")
        return errors.RequestExpired, None

    access_key, scope_date, region, service, request_type = credential

    return None, {
        "version": 4,
        "data": {
            "access_key": access_key,
            "signature_from_request": auth_params["signature_from_request"],
            "region": region,
            "service": service,
            "scope_date": scope_date,
            "string_to_sign": policy,
            "auth_type": "POST-OBJECT",
            "signature_version": AWS4_HMAC_SHA256,
            "signature_age": (timeutils.now_ms() -
                              timeutils.convert_amz_time_to_ms(timestamp)),
            "credential_scope": "%s/%s/%s/%s" % (
                scope_date, region, service, request_type),
            "timestamp": timestamp,
            "security_token": token,
        },
    }

# Local variables:
# mode: Python
# tab-width: 8
# indent-tabs-mode: nil
# End:
# vi: set expandtab tabstop=8
