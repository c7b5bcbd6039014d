"""
Fixtures shared by the test modules.
"""
from copy import deepcopy

from awssigauth.backends import InMemoryBackend
from awssigauth.vault import Vault

dummy_auth_data = {
    "accounts": [
        {
            "name": "Bart",
            "email": "sampleaccount1@sampling.com",
            "arn": "arn:aws:iam::123456789012:root",
            "canonicalID": (
                "79a59df900b949e55d96a1e698fbacedfd6e09d98eacf8f8d5218e7cd47ef2be"),
            "shortid": "123456789012",
            "keys": [{"access": "accessKey1", "secret": "verySecretKey1"}],
        },
        {
            "name": "Lisa",
            "email": "sampleaccount2@sampling.com",
            "arn": "arn:aws:iam::123456789013:root",
            "canonicalID": (
                "79a59df900b949e55d96a1e698fbacedfd6e09d98eacf8f8d5218e7cd47ef2bf"),
            "shortid": "123456789013",
            "keys": [{"access": "accessKey2", "secret": "verySecretKey2"}],
        },
    ],
}

bart_canonical_id = dummy_auth_data["accounts"][0]["canonicalID"]
lisa_canonical_id = dummy_auth_data["accounts"][1]["canonicalID"]

def auth_data():
    return deepcopy(dummy_auth_data)

def memory_vault():
    return Vault(InMemoryBackend(auth_data()), "vaultMem")

async def async_iter(items):
    for item in items:
        yield item
