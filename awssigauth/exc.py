#!/usr/bin/env python
"""
Authentication errors.

Every failure reported by the checkers, the backends and the facade is one of
the named entries of the ``errors`` catalog below. They are returned as
values; the streaming transform is the only place one is raised, and it
raises a copy so catalog entries never carry a traceback.
"""

class AuthError(Exception):
    """
    A named, coded authentication error.
    """
    def __init__(self, code, status, description):
        super(AuthError, self).__init__(description)
        self.code = code
        self.status = status
        self.description = description

    def copy(self):
        """
        Return a fresh instance of this error, suitable for raising.
        """
        return type(self)(self.code, self.status, self.description)

    def customize_description(self, description):
        """
        Return a copy of this error with a different description.
        """
        return type(self)(self.code, self.status, description)

    def is_error(self, code):
        return self.code == code

    def __eq__(self, other):
        if not isinstance(other, AuthError):
            return NotImplemented
        return (self.code, self.description) == (other.code, other.description)

    def __hash__(self):
        return hash((self.code, self.description))

    def __repr__(self):
        return "AuthError(%r, %d, %r)" % (
            self.code, self.status, self.description)


class InvalidSignatureError(AuthError):
    """
    An exception indicating that the signature on the request was invalid.
    """
    pass


_catalog = (
    ("AccessDenied", 403, "Access Denied"),
    ("AuthMethodNotImplemented", 501,
     "The authentication method is not implemented by this backend."),
    ("InternalError", 500,
     "We encountered an internal error. Please try again."),
    ("InvalidAccessKeyId", 403,
     "The AWS access key Id you provided does not exist in our records."),
    ("InvalidArgument", 400, "Invalid Argument"),
    ("InvalidRequest", 400, "Invalid Request"),
    ("InvalidToken", 400,
     "The provided token is malformed or otherwise invalid."),
    ("MalformedXML", 400,
     "The XML you provided was not well-formed or did not validate "
     "against our published schema."),
    ("MissingSecurityHeader", 400,
     "Your request was missing a required header."),
    ("NotImplemented", 501,
     "A header you provided implies functionality that is not "
     "implemented."),
    ("RequestExpired", 400, "Request has expired."),
    ("RequestTimeTooSkewed", 403,
     "The difference between the request time and the server's time is "
     "too large."),
    ("UnresolvableGrantByEmailAddress", 400,
     "The email address you provided does not match any account on "
     "record."),
)


class _Catalog(object):
    def __init__(self, entries):
        self._names = []
        for code, status, description in entries:
            setattr(self, code, AuthError(code, status, description))
            self._names.append(code)

        self.SignatureDoesNotMatch = InvalidSignatureError(
            "SignatureDoesNotMatch", 403,
            "The request signature we calculated does not match the "
            "signature you provided.")
        self._names.append("SignatureDoesNotMatch")

    def __iter__(self):
        return iter([getattr(self, name) for name in self._names])

    def __contains__(self, code):
        return code in self._names


errors = _Catalog(_catalog)

# Local variables:
# mode: Python
# tab-width: 8
# indent-tabs-mode: nil
# End:
# vi: set expandtab tabstop=8
