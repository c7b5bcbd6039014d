"""
Adapter between the authenticator and an identity backend.
"""
from logging import getLogger

from .authinfo import AuthInfo
from .constants import NOT_FOUND, WRONG_FORMAT
from .exc import errors

_sentinels = (NOT_FOUND, WRONG_FORMAT)

log = getLogger("awssigauth.vault")

def _serialize_contexts(request_contexts):
    if request_contexts is None:
        return None
    return [context.serialize() for context in request_contexts]

def _signature_reply(err, body, streaming_v4_params=None):
    if err:
        log.debug("received error message from auth provider: %s", err.code)
        return err, None, None, None

    user_info = AuthInfo.from_dict(body["user_info"])
    log.debug("authenticated as %r", user_info)
    return (None, user_info, body.get("authorization_results"),
            streaming_v4_params)

class Vault(object):
    """
    Vault(client, impl_name)

    Wraps an identity backend (client) and turns its replies into AuthInfo
    objects and plain result maps.
    """

    def __init__(self, client, impl_name):
        super(Vault, self).__init__()
        self.client = client
        self.impl_name = impl_name
        return

    async def authenticate_v2_request(self, params, request_contexts):
        """
        authenticate_v2_request(params, request_contexts)
            -> (err, auth_info, authorization_results, None)

        params is the output of a V2 checker.
        """
        log.debug("authenticating V2 request")
        data = params["data"]
        err, body = await self.client.verify_signature_v2(
            data["string_to_sign"],
            data["signature_from_request"],
            data["access_key"],
            {
                "algo": data.get("algo"),
                "security_token": data.get("security_token"),
                "request_context": _serialize_contexts(request_contexts),
            })
        return _signature_reply(err, body)

    async def authenticate_v4_request(self, params, request_contexts):
        """
        authenticate_v4_request(params, request_contexts)
            -> (err, auth_info, authorization_results, streaming_v4_params)

        The streaming parameters are what a V4Transform needs to verify an
        aws-chunked body of the same request.
        """
        log.debug("authenticating V4 request")
        data = params["data"]
        streaming_v4_params = {
            "access_key": data["access_key"],
            "signature_from_request": data["signature_from_request"],
            "region": data["region"],
            "scope_date": data["scope_date"],
            "timestamp": data.get("timestamp"),
            "credential_scope": data.get("credential_scope"),
        }
        err, body = await self.client.verify_signature_v4(
            data["string_to_sign"],
            data["signature_from_request"],
            data["access_key"],
            data["region"],
            data["scope_date"],
            {
                "service": data.get("service", "s3"),
                "security_token": data.get("security_token"),
                "request_context": _serialize_contexts(request_contexts),
            })
        return _signature_reply(err, body, streaming_v4_params)

    async def get_canonical_ids(self, emails):
        """
        get_canonical_ids(emails) -> (err, [{"email", "canonical_id"}])

        Any email the backend cannot resolve fails the whole call with
        UnresolvableGrantByEmailAddress.
        """
        log.debug("getting canonical ids for %d email addresses", len(emails))
        err, body = await self.client.get_canonical_ids(emails)
        if err:
            log.debug("received error message from auth provider: %s",
                      err.code)
            return err, None

        found = []
        for email, canonical_id in body.items():
            if canonical_id in _sentinels:
                return errors.UnresolvableGrantByEmailAddress, None
            found.append({"email": email, "canonical_id": canonical_id})

        return None, found

    async def _lookup(self, method, canonical_ids):
        err, body = await getattr(self.client, method)(canonical_ids)
        if err:
            log.debug("received error message from auth provider: %s",
                      err.code)
            return err, None

        # Unresolved ids are left out rather than reported.
        return None, dict([(key, value) for key, value in body.items()
                           if value not in _sentinels])

    async def get_email_addresses(self, canonical_ids):
        return await self._lookup("get_email_addresses", canonical_ids)

    async def get_account_ids(self, canonical_ids):
        return await self._lookup("get_account_ids", canonical_ids)

    async def check_policies(self, request_context_params, user_arn):
        err, body = await self.client.check_policies(
            request_context_params, user_arn)
        if err:
            log.debug("received error message from auth provider: %s",
                      err.code)
            return err, None

        return None, body

    async def check_health(self):
        """
        check_health() -> (None, {impl_name: status})

        Never fails: a backend error is reported in the status.
        """
        healthcheck = getattr(self.client, "healthcheck", None)
        if healthcheck is None:
            return None, {self.impl_name: {"code": 200, "message": "OK"}}

        err, body = await healthcheck()
        if err:
            log.debug("error from %s: %s", self.impl_name, err.code)
            return None, {self.impl_name: {"error": err, "body": body}}

        return None, {
            self.impl_name: {"code": 200, "message": "OK", "body": body}}
