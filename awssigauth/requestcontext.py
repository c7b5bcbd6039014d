"""
The authorization context of a request, as forwarded to the identity
backend for policy evaluation.
"""
import json

class RequestContext(object):
    # pylint: disable=R0902
    """
    What is being asked of which resource, plus the details of how the
    request was authenticated.
    """

    def __init__(self, api_method=None, aws_service="s3",
                 general_resource=None, specific_resource=None,
                 requester_ip=None, ssl_enabled=False, **kw):
        """
        RequestContext(api_method, aws_service, general_resource,
                       specific_resource, requester_ip, ssl_enabled)

        Authentication details (auth_type, signature_version,
        signature_age, security_token) are normally filled in by the
        authenticator, but may be passed as keyword arguments.
        """
        super(RequestContext, self).__init__()
        self.api_method = api_method
        self.aws_service = aws_service
        self.general_resource = general_resource
        self.specific_resource = specific_resource
        self.requester_ip = requester_ip
        self.ssl_enabled = ssl_enabled
        self.auth_type = kw.pop("auth_type", None)
        self.signature_version = kw.pop("signature_version", None)
        self.signature_age = kw.pop("signature_age", None)
        self.security_token = kw.pop("security_token", None)

        if kw:
            raise TypeError("Unknown RequestContext arguments: %s" %
                            ", ".join(sorted(kw)))
        return

    def to_dict(self):
        return {
            "api_method": self.api_method,
            "aws_service": self.aws_service,
            "general_resource": self.general_resource,
            "specific_resource": self.specific_resource,
            "requester_ip": self.requester_ip,
            "ssl_enabled": self.ssl_enabled,
            "auth_type": self.auth_type,
            "signature_version": self.signature_version,
            "signature_age": self.signature_age,
            "security_token": self.security_token,
        }

    def serialize(self):
        """
        The context as a JSON string.
        """
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def deserialize(cls, value, specific_resource=None):
        """
        Rebuild a context from serialize() output. A ValueError is raised if
        value is not valid JSON.
        """
        info = json.loads(value)
        if specific_resource:
            info["specific_resource"] = specific_resource
        return cls(**info)
