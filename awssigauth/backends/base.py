"""
The identity backend contract.

Every operation is a coroutine returning (err, body). Backends that cannot
perform an operation answer AuthMethodNotImplemented.
"""
from ..exc import errors

class BaseBackend(object):
    """
    An identity backend: holds secret keys and resolves accounts.
    """

    def __init__(self, service):
        super(BaseBackend, self).__init__()
        self.service = service
        return

    async def verify_signature_v2(self, string_to_sign, signature_from_request,
                                  access_key, options):
        """
        verify_signature_v2(string_to_sign, signature_from_request,
                            access_key, options) -> (err, body)

        options carries algo ("sha1" or "sha256"), security_token and
        request_context (serialized RequestContexts). On success, body is
        {"user_info": {...}}.
        """
        return errors.AuthMethodNotImplemented, None

    async def verify_signature_v4(self, string_to_sign, signature_from_request,
                                  access_key, region, scope_date, options):
        """
        verify_signature_v4(string_to_sign, signature_from_request,
                            access_key, region, scope_date, options)
            -> (err, body)
        """
        return errors.AuthMethodNotImplemented, None

    async def get_canonical_ids(self, emails, options=None):
        return errors.AuthMethodNotImplemented, None

    async def get_email_addresses(self, canonical_ids, options=None):
        return errors.AuthMethodNotImplemented, None

    async def get_account_ids(self, canonical_ids, options=None):
        return errors.AuthMethodNotImplemented, None

    async def check_policies(self, request_context_params, user_arn,
                             options=None):
        return None, []

    async def healthcheck(self, req_uid=None):
        return None, {"code": 200, "message": "OK"}
