"""
An identity backend that keeps its accounts in memory.

Accounts are given in the authdata format:
    {
        "accounts": [
            {
                "name": "Bart",
                "email": "sampleaccount1@sampling.com",
                "arn": "arn:aws:iam::123456789012:root",
                "canonicalID": "79a59df9...",
                "shortid": "123456789012",
                "keys": [{"access": "accessKey1", "secret": "verySecretKey1"}]
            }
        ]
    }
"""
import hmac
from logging import getLogger

from ..constants import NOT_FOUND
from ..exc import errors
from ..vaultutil import calculate_signing_key, hash_signature, sign_v4
from .base import BaseBackend

# Key id handed out for server-side encryption
ENCRYPTION_KEY_ID = "account-level-master-encryption-key"

log = getLogger("awssigauth.backends.memory")

class Indexer(object):
    """
    Lookup tables over an account list: by canonical ID, by access key and
    by (lower-cased) email address.
    """

    def __init__(self, auth_data=None):
        super(Indexer, self).__init__()
        self.by_canonical_id = {}
        self.by_access_key = {}
        self.by_email = {}

        if auth_data:
            for account in auth_data.get("accounts", []):
                self._index_account(account)
        return

    def _index_account(self, account):
        entity = {
            "arn": account["arn"],
            "canonical_id": account["canonicalID"],
            "shortid": account.get("shortid"),
            "account_display_name": account["name"],
            "email": account["email"].lower(),
            "keys": {},
        }

        self.by_canonical_id[entity["canonical_id"]] = entity
        self.by_email[entity["email"]] = entity
        for key in account.get("keys") or []:
            entity["keys"][key["access"]] = key["secret"]
            self.by_access_key[key["access"]] = entity
        return

    def get_entity_by_canonical_id(self, canonical_id):
        return self.by_canonical_id.get(canonical_id)

    def get_entity_by_key(self, access_key):
        return self.by_access_key.get(access_key)

    def get_entity_by_email(self, email):
        return self.by_email.get(email.lower())

    @staticmethod
    def get_secret_key(entity, access_key):
        return entity["keys"][access_key]


def _signatures_match(expected, signature_from_request):
    return hmac.compare_digest(
        expected.encode("utf-8"), signature_from_request.encode("utf-8"))

def _user_info(entity):
    return {
        "user_info": {
            "account_display_name": entity["account_display_name"],
            "canonical_id": entity["canonical_id"],
            "arn": entity["arn"],
            "shortid": entity["shortid"],
            "email": entity["email"],
        }
    }


class InMemoryBackend(BaseBackend):
    """
    Verifies signatures against the secret keys of a static account list.
    """

    def __init__(self, auth_data, service="s3"):
        super(InMemoryBackend, self).__init__(service)
        self.indexer = Indexer(auth_data)
        return

    def refresh_auth_data(self, auth_data):
        """
        Replace the account list. Lookups in flight keep using the index
        they started with.
        """
        self.indexer = Indexer(auth_data)
        return

    async def verify_signature_v2(self, string_to_sign, signature_from_request,
                                  access_key, options):
        indexer = self.indexer
        entity = indexer.get_entity_by_key(access_key)
        if entity is None:
            log.debug("unknown access key: %r", access_key)
            return errors.InvalidAccessKeyId, None

        secret_key = indexer.get_secret_key(entity, access_key)
        expected = hash_signature(
            string_to_sign, secret_key, options.get("algo", "sha256"))
        if not _signatures_match(expected, signature_from_request):
            log.debug("signature mismatch for access key %r", access_key)
            return errors.SignatureDoesNotMatch, None

        return None, _user_info(entity)

    async def verify_signature_v4(self, string_to_sign, signature_from_request,
                                  access_key, region, scope_date, options):
        indexer = self.indexer
        entity = indexer.get_entity_by_key(access_key)
        if entity is None:
            log.debug("unknown access key: %r", access_key)
            return errors.InvalidAccessKeyId, None

        secret_key = indexer.get_secret_key(entity, access_key)
        signing_key = calculate_signing_key(
            secret_key, region, scope_date, options.get("service", "s3"))
        expected = sign_v4(signing_key, string_to_sign)
        if not _signatures_match(expected, signature_from_request):
            log.debug("signature mismatch for access key %r", access_key)
            return errors.SignatureDoesNotMatch, None

        return None, _user_info(entity)

    async def get_canonical_ids(self, emails, options=None):
        indexer = self.indexer
        results = {}
        for email in emails:
            entity = indexer.get_entity_by_email(email)
            results[email] = entity["canonical_id"] if entity else NOT_FOUND

        return None, results

    async def get_email_addresses(self, canonical_ids, options=None):
        indexer = self.indexer
        results = {}
        for canonical_id in canonical_ids:
            entity = indexer.get_entity_by_canonical_id(canonical_id)
            if entity is None or not entity["email"]:
                results[canonical_id] = NOT_FOUND
            else:
                results[canonical_id] = entity["email"]

        return None, results

    async def get_account_ids(self, canonical_ids, options=None):
        indexer = self.indexer
        results = {}
        for canonical_id in canonical_ids:
            entity = indexer.get_entity_by_canonical_id(canonical_id)
            if entity is None or not entity["shortid"]:
                results[canonical_id] = NOT_FOUND
            else:
                results[canonical_id] = entity["shortid"]

        return None, results

    async def check_policies(self, request_context_params, user_arn,
                             options=None):
        """
        Allow everything. Policies are not evaluated by this backend.
        """
        results = []
        for params in request_context_params or []:
            resource = None
            if isinstance(params, dict):
                resource = params.get("specific_resource")
            results.append({"is_allowed": True, "arn": resource})

        return None, results

    async def get_or_create_encryption_key_id(self, account_canonical_id,
                                              options=None):
        return None, {
            "is_new_key": False,
            "key_id": ENCRYPTION_KEY_ID,
            "action": "retrieved",
        }
