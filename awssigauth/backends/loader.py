"""
Loading and validation of in-memory backend account files.
"""
from glob import glob
import json
from logging import getLogger
from re import compile as re_compile

# ARN of an IAM account (not a user or role)
_account_arn = re_compile(r"^arn:aws:iam::[0-9]{12}:root$")

_shortid = re_compile(r"^[0-9]{12}$")

_required_account_fields = ("name", "email", "arn", "canonicalID", "shortid")

# Validation states
_waiting = "waiting-for-validation"
_valid = "valid"
_invalid = "invalid"

log = getLogger("awssigauth.backends.loader")

class AuthLoader(object):
    """
    Accumulates accounts from one or more sources and validates them as a
    whole: duplicate access keys, canonical IDs, emails or ARNs across
    files are only detectable once everything is loaded.
    """

    def __init__(self):
        super(AuthLoader, self).__init__()
        self._accounts = []
        self._state = _waiting
        return

    def add_accounts(self, auth_data, file_path=None):
        """
        Add the accounts of an authdata dictionary. Invalid data is logged
        and marks the whole loader invalid.
        """
        if self._is_auth_data_valid(auth_data, file_path):
            self._accounts.extend(auth_data["accounts"])
            if self._state == _valid:
                self._state = _waiting
        else:
            self._state = _invalid
        return

    def add_file(self, file_path):
        """
        Add the accounts of a JSON authdata file. OSError and ValueError
        propagate if the file cannot be read or parsed.
        """
        with open(file_path, "r") as fd:
            auth_data = json.load(fd)

        self.add_accounts(auth_data, file_path)
        return

    def add_files_by_glob(self, patterns):
        if isinstance(patterns, str):
            patterns = [patterns]

        for pattern in patterns:
            for file_path in sorted(glob(pattern)):
                self.add_file(file_path)
        return

    def validate(self):
        if self._state == _waiting:
            valid = self._is_auth_data_valid(
                {"accounts": self._accounts}, None)
            self._state = _valid if valid else _invalid

        return self._state == _valid

    @property
    def data(self):
        """
        The validated authdata, or None if anything loaded is invalid.
        """
        if not self.validate():
            return None
        return {"accounts": list(self._accounts)}

    def _is_account_valid(self, account, file_path):
        if not isinstance(account, dict):
            log.error("authentication config validation error: account "
                      "must be an object (file %s)", file_path)
            return False

        for field in _required_account_fields:
            if not isinstance(account.get(field), str) or not account[field]:
                log.error("authentication config validation error: account "
                          "%r is missing %r (file %s)", account.get("name"),
                          field, file_path)
                return False

        name = account["name"]
        arn = account["arn"]

        if arn.startswith("aws:"):
            log.error("account %r must have a valid AWS ARN, legacy examples "
                      "starting with 'aws:' are not supported anymore; note "
                      "that support for account users has been dropped "
                      "(arn %r, file %s)", name, arn, file_path)
            return False

        if "users" in account:
            log.error("support for account users has been dropped, consider "
                      "turning users into account entries (account %r, "
                      "file %s)", name, file_path)
            return False

        if not _account_arn.match(arn):
            log.error("authentication config validation error: not an IAM "
                      "account ARN (account %r, arn %r, file %s)", name, arn,
                      file_path)
            return False

        if not _shortid.match(account["shortid"]):
            log.error("authentication config validation error: shortid must "
                      "be 12 digits (account %r, file %s)", name, file_path)
            return False

        keys = account.get("keys", [])
        if not isinstance(keys, list):
            log.error("authentication config validation error: keys must be "
                      "a list (account %r, file %s)", name, file_path)
            return False

        for key in keys:
            if (not isinstance(key, dict) or
                    not isinstance(key.get("access"), str) or
                    not isinstance(key.get("secret"), str) or
                    not key["access"] or not key["secret"]):
                log.error("authentication config validation error: keys "
                          "need an access and a secret (account %r, file %s)",
                          name, file_path)
                return False

        return True

    def _is_auth_data_valid(self, auth_data, file_path):
        if (not isinstance(auth_data, dict) or
                not isinstance(auth_data.get("accounts"), list)):
            log.error("authentication config validation error: accounts "
                      "must be a list (file %s)", file_path)
            return False

        accounts = auth_data["accounts"]
        if not all([self._is_account_valid(account, file_path)
                    for account in accounts]):
            return False

        unique_fields = (
            ("canonicalID", lambda account: [account["canonicalID"]]),
            ("email", lambda account: [account["email"].lower()]),
            ("arn", lambda account: [account["arn"]]),
            ("access", lambda account: [
                key["access"] for key in account.get("keys", [])]),
        )

        for field, values_of in unique_fields:
            seen = set()
            for account in accounts:
                for value in values_of(account):
                    if value in seen:
                        log.error("authentication config validation error: "
                                  "duplicate value %r for %r (file %s)",
                                  value, field, file_path)
                        return False
                    seen.add(value)

        return True
