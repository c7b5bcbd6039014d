"""
The identity a request was authenticated as.
"""
from .constants import PUBLIC_ID, SERVICE_ACCOUNT_PREFIX

class AuthInfo(object):
    """
    Account and user information resolved by an identity backend.
    """

    def __init__(self, arn=None, canonical_id=None, shortid=None, email=None,
                 account_display_name=None, iam_display_name=None):
        super(AuthInfo, self).__init__()
        self.arn = arn
        self.canonical_id = canonical_id
        self.shortid = shortid
        self.email = email
        self.account_display_name = account_display_name
        self.iam_display_name = iam_display_name
        return

    @classmethod
    def from_dict(cls, info):
        """
        Build an AuthInfo from a backend's user_info reply, ignoring keys
        this class does not know about.
        """
        return cls(
            arn=info.get("arn"),
            canonical_id=info.get("canonical_id"),
            shortid=info.get("shortid"),
            email=info.get("email"),
            account_display_name=info.get("account_display_name"),
            iam_display_name=info.get("iam_display_name"))

    def is_requester_an_iam_user(self):
        return bool(self.iam_display_name)

    def is_requester_public_user(self):
        return self.canonical_id == PUBLIC_ID

    def is_requester_a_service_account(self):
        return (self.canonical_id or "").startswith(
            SERVICE_ACCOUNT_PREFIX + "/")

    def is_requester_this_service_account(self, service_name):
        return self.canonical_id == "%s/%s" % (
            SERVICE_ACCOUNT_PREFIX, service_name)

    def __repr__(self):
        return "AuthInfo(canonical_id=%r, arn=%r)" % (
            self.canonical_id, self.arn)
