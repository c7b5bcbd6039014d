"""
Request authentication entry points.

Authenticator identifies how a request carries its credentials (V2 or V4;
Authorization header, query string or form fields), runs the matching
checker and hands the result to the identity backend for verification.
generate_v4_headers() is the client side: it signs an outgoing request.
"""
from hashlib import sha256
from logging import getLogger
from urllib.parse import quote, urlencode

from . import constants, sigv4, timeutils, v2, vaultutil
from .authinfo import AuthInfo
from .exc import errors
from .vault import Vault

# Auth version x transport => checker. Each checker is called as
# checker(authenticator, request, data).
_check_functions = {
    ("v2", "headers"): lambda auth, request, data: v2.header_check(
        request, data, auth.client_type, auth.skew_window),
    ("v2", "query"): lambda auth, request, data: v2.query_check(
        request, data, auth.client_type, auth.presigned_url_expiry),
    ("v4", "headers"): lambda auth, request, data: sigv4.header_check(
        request, data, auth.service, auth.skew_window),
    ("v4", "query"): lambda auth, request, data: sigv4.query_check(
        request, data),
    ("v4", "form"): lambda auth, request, data: sigv4.form_check(
        request, data),
}

# If no auth information is provided in the request, the user is part of the
# 'All Users' group.
public_user_info = AuthInfo(canonical_id=constants.PUBLIC_ID)

# encodeURIComponent() leaves these unescaped in form payloads
_form_safe = "!'()*"

log = getLogger("awssigauth.auth")

class Authenticator(object):
    """
    Authenticates inbound requests against an identity backend.
    """

    def __init__(self, vault, service="s3", client_type=constants.AWS_CLIENT,
                 skew_window=constants.DEFAULT_SKEW_WINDOW,
                 presigned_url_expiry=None):
        """
        Authenticator(vault, service="s3", client_type="AWS",
                      skew_window=900, presigned_url_expiry=None)

        vault: The Vault that verifies signatures.
        service: The service answering requests (s3, iam, ...).
        client_type: "AWS" or "GCP"; selects the V2 metadata header prefix
            and sub-resource list.
        skew_window: Tolerated clock skew of live requests, in seconds.
        presigned_url_expiry: Longest lifetime of a V2 pre-signed URL, in
            milliseconds. None reads PRE_SIGN_URL_EXPIRY from the
            environment at each check.
        """
        super(Authenticator, self).__init__()
        self.vault = vault
        self.service = service
        self.client_type = client_type
        self.skew_window = skew_window
        self.presigned_url_expiry = presigned_url_expiry
        return

    @property
    def vault(self):
        """
        The Vault used to verify signatures.
        """
        return self._vault

    @vault.setter
    def vault(self, value):
        if not isinstance(value, Vault):
            raise TypeError("Expected vault to be a Vault.")

        self._vault = value
        return

    @property
    def service(self):
        """
        The service answering requests.
        """
        return self._service

    @service.setter
    def service(self, value):
        if not isinstance(value, str):
            raise TypeError("Expected service to be a string.")

        self._service = value
        return

    @property
    def client_type(self):
        return self._client_type

    @client_type.setter
    def client_type(self, value):
        if value not in constants.V2_HEADER_PREFIXES:
            raise ValueError("Unknown client type %r" % (value,))

        self._client_type = value
        return

    @property
    def skew_window(self):
        """
        The tolerated clock skew, in seconds.
        """
        return self._skew_window

    @skew_window.setter
    def skew_window(self, value):
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError("Expected skew_window to be an int.")

        if value < 0:
            raise ValueError("skew_window must be non-negative.")

        self._skew_window = value
        return

    @property
    def presigned_url_expiry(self):
        return self._presigned_url_expiry

    @presigned_url_expiry.setter
    def presigned_url_expiry(self, value):
        if value is not None and (
                not isinstance(value, int) or isinstance(value, bool)):
            raise TypeError("Expected presigned_url_expiry to be an int "
                            "or None.")

        self._presigned_url_expiry = value
        return

    def extract_params(self, request, data=None):
        """
        extract_params(request, data=None) -> (err, params)

        Check the request's credentials without contacting the backend.
        data is the parsed query string (request.query by default). params
        is either the checker output ({"version": 2|4, "data": {...}}) or,
        when the request carries no credentials at all, the public user's
        AuthInfo.
        """
        if data is None:
            data = request.query

        auth_header = request.headers.get("authorization")
        form = dict((key.lower(), value)
                    for key, value in (request.form_data or {}).items())
        version = method = None

        if auth_header:
            method = "headers"
            if auth_header.startswith("AWS "):
                version = "v2"
            elif auth_header.startswith("AWS4"):
                version = "v4"
            else:
                log.debug("invalid authorization security header: %r",
                          auth_header)
                return errors.AccessDenied, None
        elif data.get("Signature"):
            method = "query"
            version = "v2"
        elif data.get("X-Amz-Algorithm"):
            method = "query"
            version = "v4"
        elif form.get("x-amz-algorithm"):
            method = "form"
            version = "v4"
        elif form.get("signature"):
            method = "form"
            version = "v2"

        if version is None:
            log.debug("assuming public user")
            return None, public_user_info

        checker = _check_functions.get((version, method))
        if checker is None:
            log.debug("invalid auth version or method: %s/%s", version, method)
            return errors.NotImplemented, None

        log.debug("identified auth method: %s/%s", version, method)
        if method == "form":
            data = request.form_data

        return checker(self, request, data)

    async def do_auth(self, request, request_contexts=None):
        """
        do_auth(request, request_contexts=None)
            -> (err, auth_info, authorization_results, streaming_v4_params)

        Authenticate a request end to end. request_contexts, if given, are
        the RequestContexts of the operation; each is annotated with how the
        request was authenticated before being forwarded to the backend.
        """
        err, params = self.extract_params(request)
        if err:
            return err, None, None, None

        if isinstance(params, AuthInfo):
            return None, params, None, None

        data = params["data"]
        for request_context in request_contexts or []:
            request_context.auth_type = data["auth_type"]
            request_context.signature_version = data["signature_version"]
            request_context.security_token = data.get("security_token")
            if "signature_age" in data:
                request_context.signature_age = data["signature_age"]

        if params["version"] == 2:
            return await self.vault.authenticate_v2_request(
                params, request_contexts)

        if params["version"] == 4:
            return await self.vault.authenticate_v4_request(
                params, request_contexts)

        log.error("authentication method not found: %r", params["version"])
        return errors.InternalError, None, None, None

def generate_v4_headers(request, data, access_key, secret_key, service=None,
                        proxy_path=None, session_token=None, now=None):
    """
    generate_v4_headers(request, data, access_key, secret_key, service=None,
                        proxy_path=None, session_token=None, now=None)

    Sign an outgoing request in place with SigV4 headers: x-amz-date,
    x-amz-content-sha256, x-amz-security-token (if session_token is given)
    and Authorization. The request must already carry its host header.

    data is the query string, or for POST requests the form payload.
    service defaults to iam; the region is always us-east-1. now is the
    signing time in epoch milliseconds and defaults to the current time.
    """
    if "host" not in request.headers:
        raise ValueError("request must have a host header")

    amz_date = timeutils.convert_utc_to_iso8601(
        timeutils.now_ms() if now is None else now)
    scope_date = amz_date.split("T")[0]
    region = "us-east-1"
    service = service or "iam"
    credential_scope = "%s/%s/%s/%s" % (
        scope_date, region, service, constants.AWS4_REQUEST)

    payload = ""
    if request.method == "POST":
        payload = urlencode(data or {}, quote_via=quote, safe=_form_safe)
    payload_checksum = sha256(payload.encode("utf-8")).hexdigest()

    request.set_header("x-amz-date", amz_date)
    request.set_header("x-amz-content-sha256", payload_checksum)
    if session_token:
        request.set_header("x-amz-security-token", session_token)

    signed_headers = ";".join(sorted([
        name for name in request.headers
        if name.startswith(constants.V4_SIGNED_HEADER_PREFIXES) or
        name == "host"]))

    string_to_sign = sigv4.construct_string_to_sign(
        request,
        signed_headers=signed_headers,
        payload_checksum=payload_checksum,
        credential_scope=credential_scope,
        timestamp=amz_date,
        query=data or {},
        service=service,
        proxy_path=proxy_path)

    signing_key = vaultutil.calculate_signing_key(
        secret_key, region, scope_date, service)
    signature = vaultutil.sign_v4(signing_key, string_to_sign)

    request.set_header(
        "authorization",
        "%s Credential=%s/%s, SignedHeaders=%s, Signature=%s" % (
            constants.AWS4_HMAC_SHA256, access_key, credential_scope,
            signed_headers, signature))
    return
