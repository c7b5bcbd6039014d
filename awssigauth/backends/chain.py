"""
A backend that fans out to several others.

Signature verification tries each backend in turn and answers with the
first success. Lookups ask every backend and merge the replies; policy
results are merged so an allow from any backend wins.
"""
import asyncio
from logging import getLogger

from ..exc import errors
from .base import BaseBackend

_required_methods = (
    "verify_signature_v2", "verify_signature_v4", "get_canonical_ids",
    "get_email_addresses", "check_policies", "healthcheck",
)

log = getLogger("awssigauth.backends.chain")

class ChainBackend(BaseBackend):
    """
    ChainBackend(service, clients)
    """

    def __init__(self, service, clients):
        super(ChainBackend, self).__init__(service)

        if not isinstance(clients, (list, tuple)) or not clients:
            raise ValueError("invalid client list")

        for client in clients:
            for method in _required_methods:
                if not callable(getattr(client, method, None)):
                    raise ValueError(
                        "invalid client: missing required auth backend "
                        "method %s" % method)

        self.clients = list(clients)
        return

    async def _try_each_client(self, method, *args):
        err = None
        for client in self.clients:
            err, result = await getattr(client, method)(*args)
            if err is None:
                return None, result
            log.debug("%s failed on %s: %s", method,
                      type(client).__name__, err.code)

        return err, None

    async def _for_each_client(self, method, *args):
        replies = await asyncio.gather(*[
            getattr(client, method)(*args) for client in self.clients])

        for err, _ in replies:
            if err is not None:
                return err, None

        return None, [result for _, result in replies]

    async def verify_signature_v2(self, string_to_sign, signature_from_request,
                                  access_key, options):
        return await self._try_each_client(
            "verify_signature_v2", string_to_sign, signature_from_request,
            access_key, options)

    async def verify_signature_v4(self, string_to_sign, signature_from_request,
                                  access_key, region, scope_date, options):
        return await self._try_each_client(
            "verify_signature_v4", string_to_sign, signature_from_request,
            access_key, region, scope_date, options)

    @staticmethod
    def merge_objects(replies):
        """
        Merge dictionary replies; later backends win on conflicting keys.
        """
        merged = {}
        for reply in replies:
            merged.update(reply)
        return merged

    async def get_canonical_ids(self, emails, options=None):
        err, replies = await self._for_each_client(
            "get_canonical_ids", emails, options)
        if err:
            return err, None

        return None, self.merge_objects(replies)

    async def get_email_addresses(self, canonical_ids, options=None):
        err, replies = await self._for_each_client(
            "get_email_addresses", canonical_ids, options)
        if err:
            return err, None

        return None, self.merge_objects(replies)

    async def get_account_ids(self, canonical_ids, options=None):
        err, replies = await self._for_each_client(
            "get_account_ids", canonical_ids, options)
        if err:
            return err, None

        return None, self.merge_objects(replies)

    @staticmethod
    def merge_policies(replies):
        """
        Merge policy results keyed by arn and version id. When two backends
        disagree on the same key, the allowing result is kept.
        """
        policies = {}
        for reply in replies:
            if not isinstance(reply, list):
                continue

            for policy in reply:
                key = (policy.get("arn") or "") + (policy.get("version_id") or "")
                if key not in policies or not policies[key]["is_allowed"]:
                    policies[key] = policy

        results = []
        for policy in policies.values():
            result = {"is_allowed": policy["is_allowed"]}
            if policy.get("arn"):
                result["arn"] = policy["arn"]
            if policy.get("version_id"):
                result["version_id"] = policy["version_id"]
            results.append(result)

        return results

    async def check_policies(self, request_context_params, user_arn,
                             options=None):
        err, replies = await self._for_each_client(
            "check_policies", request_context_params, user_arn, options)
        if err:
            return err, None

        return None, self.merge_policies(replies)

    async def healthcheck(self, req_uid=None):
        """
        Check every backend. The reply lists {"error", "status"} per backend;
        if any backend failed, the error is InternalError and the list is
        still returned.
        """
        replies = await asyncio.gather(*[
            client.healthcheck(req_uid) for client in self.clients])

        results = [{"error": err, "status": status}
                   for err, status in replies]

        if any(result["error"] is not None for result in results):
            return errors.InternalError, results

        return None, results
